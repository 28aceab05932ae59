"""
Tests de interfaz para migradores.

Valida que todos los migradores implementan correctamente la interfaz
BaseMigrator y tienen la estructura esperada.
"""

import sys
import os
import inspect

# Agregar directorio raíz al path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config
import pgmigra
from migrators.base import BaseMigrator
from tests.helpers import get_all_migrator_classes, get_all_migrator_instances


def test_all_migrators_load():
    """Cada entidad de MIGRATION_ORDER tiene su migrador."""
    print("\n🔍 Test 1: Carga dinámica")

    loaded = get_all_migrator_classes()
    assert len(loaded) == len(config.MIGRATION_ORDER), loaded
    for name, _ in loaded:
        print(f"   ✅ {name}")


def test_migrator_inheritance():
    """Verifica que migradores heredan de BaseMigrator."""
    print("\n🔍 Test 2: Herencia de BaseMigrator")

    errors = []
    for name, migrator_class in get_all_migrator_classes():
        if not issubclass(migrator_class, BaseMigrator):
            errors.append(f"{name} no hereda de BaseMigrator")
            print(f"   ❌ {name}")
        else:
            print(f"   ✅ {name} hereda de BaseMigrator")

    assert not errors, errors


def test_required_methods():
    """Verifica que migradores implementan métodos abstractos."""
    print("\n🔍 Test 3: Implementación de métodos requeridos")

    required_methods = [
        "reconcile_lookups",
        "resolve_references",
        "transform_record",
    ]

    errors = []
    for name, migrator_class in get_all_migrator_classes():
        print(f"\n   📦 {name}:")

        for method_name in required_methods:
            method = getattr(migrator_class, method_name)
            # Verificar que no es el método abstracto de la base
            if method.__qualname__.startswith("BaseMigrator"):
                errors.append(f"{name}.{method_name}() no está implementado (usa abstracto)")
                print(f"      ❌ {method_name}() (abstracto)")
            else:
                print(f"      ✅ {method_name}()")

    assert not errors, errors


def test_method_signatures():
    """Verifica que métodos tienen firmas (parámetros) correctas."""
    print("\n🔍 Test 4: Firmas de métodos")

    expected_signatures = {
        "reconcile_lookups": ["self", "target"],
        "resolve_references": ["self", "record", "record_id", "source", "target", "stats"],
        "transform_record": ["self", "record", "record_id", "references"],
        "after_pages": ["self", "source", "target", "stats", "limit"],
    }

    errors = []
    for name, migrator_class in get_all_migrator_classes():
        for method_name, expected_params in expected_signatures.items():
            sig = inspect.signature(getattr(migrator_class, method_name))
            actual_params = list(sig.parameters.keys())

            if actual_params != expected_params:
                errors.append(f"{name}.{method_name}() tiene firma incorrecta")
                print(f"      ❌ {method_name}{sig}")
                print(f"         Esperado: {expected_params}")
            else:
                print(f"      ✅ {name}.{method_name}{sig}")

    assert not errors, errors


def test_entity_and_table_match_config():
    """entity / natural_key / target_table coinciden con config.ENTITIES."""
    print("\n🔍 Test 5: Coherencia con config")

    for name, migrator in get_all_migrator_instances():
        cfg = config.get_entity_config(migrator.entity)
        assert migrator.target_table == cfg["target_table"], name
        assert migrator.natural_key == cfg["natural_key"], name
        assert migrator.actor == config.MIGRATION_USER
        print(f"   ✅ {name}: {migrator.entity} → {migrator.target_table}")


def test_load_migrator_for_entity():
    """pgmigra resuelve la convención entidad → módulo → clase."""
    print("\n🔍 Test 6: load_migrator_for_entity")

    migrator = pgmigra.load_migrator_for_entity("position", actor=config.TEST_MIGRATION_USER)
    assert type(migrator).__name__ == "PositionMigrator"
    assert migrator.actor == config.TEST_MIGRATION_USER

    try:
        pgmigra.load_migrator_for_entity("inexistente")
        assert False, "Debería lanzar KeyError"
    except KeyError:
        print("   ✅ Entidad no configurada rechazada")


def run_all_tests():
    """Ejecuta todos los tests de interfaz."""
    print("=" * 70)
    print("🧪 TESTS DE INTERFAZ DE MIGRADORES")
    print("=" * 70)

    tests = [
        test_all_migrators_load,
        test_migrator_inheritance,
        test_required_methods,
        test_method_signatures,
        test_entity_and_table_match_config,
        test_load_migrator_for_entity,
    ]

    all_errors = []

    for test_func in tests:
        try:
            test_func()
        except AssertionError as e:
            all_errors.append(f"{test_func.__name__}: {e}")

    print("\n" + "=" * 70)

    if len(all_errors) == 0:
        print("✅ TODOS LOS TESTS PASARON")
        return True
    else:
        print(f"❌ {len(all_errors)} ERRORES ENCONTRADOS")
        for error in all_errors:
            print(f"   - {error}")
        return False


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
