"""
Runner principal de tests.

Ejecuta todos los tests en orden lógico y reporta resultados consolidados.
"""

import sys
import os

import pytest

TESTS_DIR = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, os.path.dirname(TESTS_DIR))

from tests.test_syntax import check_syntax

# Fases: (clave, título, módulos de test)
PHASES = [
    ("interface", "🔌 FASE 2: VALIDACIÓN DE INTERFAZ", ["test_config.py", "test_migrator_interface.py"]),
    ("core", "🧩 FASE 3: COMPONENTES DEL CORE", [
        "test_identifiers.py",
        "test_transform.py",
        "test_stores.py",
        "test_resolver.py",
        "test_lookups.py",
    ]),
    ("migration", "🚚 FASE 4: MIGRACIÓN END-TO-END", ["test_migrators.py", "test_orchestrator.py"]),
]


def main():
    """
    Ejecuta suite completa de tests.

    Orden de ejecución:
    1. Sintaxis (si falla aquí, no tiene sentido continuar)
    2. Interfaz (config y herencia de migradores)
    3. Core (normalizer, transformer, stores, resolver, lookups)
    4. Migración end-to-end sobre stores en memoria
    """
    print("=" * 70)
    print("🚀 INICIANDO SUITE DE TESTS")
    print("=" * 70)

    results = {}

    print("\n" + "=" * 70)
    print("📝 FASE 1: VALIDACIÓN DE SINTAXIS")
    print("=" * 70)
    success, errors = check_syntax()
    results["syntax"] = success

    if not success:
        print("\n⚠️  Errores de sintaxis detectados. Corregir antes de continuar.")
        print_summary(results)
        return False

    for key, title, modules in PHASES:
        print("\n" + "=" * 70)
        print(title)
        print("=" * 70)
        paths = [os.path.join(TESTS_DIR, module) for module in modules]
        results[key] = pytest.main(["-q", *paths]) == 0

    print_summary(results)

    return all(results.values())


def print_summary(results):
    """Imprime resumen de resultados de tests."""
    print("\n" + "=" * 70)
    print("📊 RESUMEN DE TESTS")
    print("=" * 70)

    for test_name, passed in results.items():
        status = "✅ PASS" if passed else "❌ FAIL"
        print(f"   {status}  {test_name.capitalize()}")

    print("=" * 70)

    if all(results.values()):
        print("✅ TODOS LOS TESTS PASARON - Sistema listo para migración")
    else:
        print("❌ HAY TESTS FALLANDO - Corregir antes de migrar")

    print("=" * 70)


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
