# cleanup_test_data.py
"""
Script para eliminar del destino los registros creados por corridas de prueba.

Un registro es de prueba si:
- created_by = config.TEST_MIGRATION_USER (python pgmigra.py --test), o
- alguno de sus campos de texto contiene un marcador de prueba
  (TEST_NAME_MARKERS), o
- referencia (company_id) a una compañía de prueba.

El script los lista por entidad, pide confirmación y los elimina en orden
inverso de dependencias (contacts, positions, leads, companies), así la
compañía nunca se borra antes que sus hijos.

Las tablas de lookup (config.LOOKUP_TABLES) NUNCA se eliminan.
"""

import sys

import config
from migrators.stores import TargetStore

# Orden inverso a MIGRATION_ORDER: primero quien referencia a companies
CLEANUP_ORDER = ["contact", "position", "lead", "company"]

# entidad → [(columna, marcador)], comparación icontains
TEST_NAME_MARKERS = {
    "company": [
        ("name", "Test Migration Company"),
        ("name", "Test Contact Migration"),
        ("name", "Test Position Migration Company"),
        ("domain", "testcontactmigration"),
    ],
    "lead": [
        ("company_name", "Test Migration Company"),
    ],
    "position": [
        ("title", "Test Migration Position"),
        ("title", "Test Position"),
        ("description", "This is a test position"),
        ("company_name", "Test Migration Company"),
    ],
    "contact": [
        ("name", "Test Contact"),
        ("name", "Migration Test"),
        ("job_title", "Test Migration"),
    ],
}


def cleanup_predicates(entity, actor=None):
    """
    Predicados (combinados con OR) que marcan un registro como de prueba.

    Returns:
        list: Lista de listas de condiciones para TargetStore
    """
    predicates = [[("created_by", "eq", actor or config.TEST_MIGRATION_USER)]]
    for column, marker in TEST_NAME_MARKERS.get(entity, []):
        predicates.append([(column, "icontains", marker)])
    return predicates


def _find_ids(target, table, predicates):
    ids = set()
    for conditions in predicates:
        for row in target.find_all(table, conditions, columns=("id",)):
            ids.add(row["id"])
    return ids


def find_test_data(target, actor=None):
    """
    Ids de los registros de prueba por entidad.

    Los hijos de una compañía de prueba se incluyen aunque no tengan
    marcadores propios (ej: un lead con createdBy del origen).

    Returns:
        dict: entidad → set de ids
    """
    company_ids = _find_ids(
        target, config.get_target_table("company"), cleanup_predicates("company", actor)
    )

    found = {}
    for entity in CLEANUP_ORDER:
        if entity == "company":
            found[entity] = company_ids
            continue
        predicates = cleanup_predicates(entity, actor)
        if company_ids:
            predicates.append([("company_id", "in", sorted(company_ids))])
        found[entity] = _find_ids(target, config.get_target_table(entity), predicates)
    return found


def count_test_data(target, actor=None):
    """
    Cuenta los registros de prueba por entidad.

    Returns:
        dict: entidad → cantidad
    """
    return {entity: len(ids) for entity, ids in find_test_data(target, actor).items()}


def cleanup_test_data(target, actor=None):
    """
    Elimina los registros de prueba de las cuatro tablas de entidades.

    Returns:
        dict: entidad → filas eliminadas

    Raises:
        ValueError: Si alguna entidad apunta a una tabla de lookup
    """
    found = find_test_data(target, actor)
    deleted = {}

    for entity in CLEANUP_ORDER:
        table = config.get_target_table(entity)
        if table in config.LOOKUP_TABLES:
            raise ValueError(f"'{table}' es una tabla de lookup y no se limpia")

        print(f"\n🗑️  Eliminando registros de prueba en '{table}'...")
        ids = found[entity]
        deleted[entity] = target.delete_where(table, [("id", "in", sorted(ids))]) if ids else 0
        print(f"   ✅ {deleted[entity]:,} filas eliminadas")

    return deleted


def main():
    sys.stdout.reconfigure(encoding="utf-8")

    print("=" * 70)
    print("🗑️  LIMPIEZA DE DATOS DE PRUEBA")
    print("=" * 70)

    try:
        _, new_url = config.require_database_urls()
    except RuntimeError as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)

    target = TargetStore.connect(new_url)
    try:
        counts = count_test_data(target)
        print("\n🔍 Registros de prueba (created_by, marcadores o compañía de prueba):")
        for entity, count in counts.items():
            print(f"   - {config.get_target_table(entity)}: {count:,}")

        if not any(counts.values()):
            print("\n✅ No hay datos de prueba para eliminar")
            return

        # Seguridad: pedir confirmación
        print("\n⚠️  ADVERTENCIA: Esto eliminará los registros listados.")
        response = input("¿Continuar? (escribir 'SI' en mayúsculas): ")
        if response != "SI":
            print("\n❌ Operación cancelada")
            return

        cleanup_test_data(target)

        print("\n" + "=" * 70)
        print("✅ LIMPIEZA FINALIZADA")
        print("=" * 70)
    finally:
        target.close()


if __name__ == "__main__":
    main()
