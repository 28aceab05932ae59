r"""
Script principal de migración de entidades legacy → nuevo schema (PostgreSQL → PostgreSQL).

Arquitectura con carga dinámica de migradores:
- pgmigra.py: Infraestructura genérica (conexiones, paginación, progreso, reporte)
- migrators/*.py: Lógica específica por entidad (implementan BaseMigrator)
- config.py: Configuración centralizada de entidades

Flujo de ejecución por entidad (máquina de estados):
    Init → ReconcileLookups → Paginate{Fetch → ProcessBatch}* → Report → Terminal

1. Init: carga el migrador y crea el ledger (MigrationStats)
2. ReconcileLookups: asegura las enumeraciones; un fallo acá es FATAL
3. Paginate: skip/take sobre el origen, ordenado por id
4. ProcessBatch: pipeline por registro; los errores se clasifican en el
   ledger y el lote continúa (sin reintentos automáticos)
5. Report: post-pasada del migrador (after_pages) y reporte final

Prerrequisitos:
- OLD_DATABASE_URL y NEW_DATABASE_URL definidas (entorno o .env)
- Schema destino creado (incluyendo tablas de lookup)

Uso:
    python pgmigra.py                       # Menú interactivo
    python pgmigra.py --entity company      # Una entidad, con confirmaciones
    python pgmigra.py --all --yes           # Todas, sin preguntar (batch)
    python pgmigra.py --all --test          # Corrida de prueba (SAMPLE_SIZE por entidad)

Exit codes:
    0: Reporte completado (aunque haya fallos por registro)
    1: Error de configuración, conexión, lookups o excepción no manejada
"""

from pathlib import Path
import argparse
import importlib
import sys

from psycopg2 import OperationalError

# Asegurar que el directorio raíz esté en sys.path para imports dinámicos
project_root = Path(__file__).resolve().parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import config
from migrators.base import BaseMigrator
from migrators.errors import category_of
from migrators.records import LegacyRecord
from migrators.stats import MigrationStats
from migrators.stores import SourceStore, TargetStore


# =============================================================================
# PUERTO DE CONFIRMACIÓN
# =============================================================================


def terminal_confirm(question):
    """
    Pregunta s/n en la terminal. Bloquea sin timeout.

    Returns:
        bool: True si el operador respondió afirmativamente
    """
    try:
        response = input(f"\n{question} (s/n): ").strip().lower()
    except (KeyboardInterrupt, EOFError):
        print("\n\n👋 Cancelado por usuario")
        return False
    return response in ("s", "si", "sí", "y", "yes")


def auto_confirm(question):
    """Modo batch: toda confirmación se responde que sí."""
    print(f"\n{question} → sí (modo batch)")
    return True


# =============================================================================
# CONEXIONES
# =============================================================================


def connect_to_source(dsn):
    """
    Abre la conexión de solo lectura al schema legacy.

    Raises:
        SystemExit: Si no puede conectar
    """
    try:
        print("🔌 Conectando a la base de origen...")
        source = SourceStore.connect(dsn)
        print("✅ Conexión a origen exitosa")
        return source
    except OperationalError as e:
        print("❌ Error de conexión a la base de origen", file=sys.stderr)
        print(f"   Detalle: {e}", file=sys.stderr)
        sys.exit(1)


def connect_to_target(dsn):
    """
    Abre la conexión al schema destino.

    Raises:
        SystemExit: Si no puede conectar
    """
    try:
        print("🔌 Conectando a la base de destino...")
        target = TargetStore.connect(dsn)
        print("✅ Conexión a destino exitosa")
        return target
    except OperationalError as e:
        print("❌ Error de conexión a la base de destino", file=sys.stderr)
        print(f"   Detalle: {e}", file=sys.stderr)
        sys.exit(1)


# =============================================================================
# CARGA DE MIGRADORES
# =============================================================================


def load_migrator_for_entity(entity_name, actor=None):
    """
    Carga dinámicamente el migrador correspondiente a una entidad.

    Convención de nombres:
        company → migrators.company → CompanyMigrator
        contact → migrators.contact → ContactMigrator

    Args:
        entity_name: Nombre de la entidad (clave de config.ENTITIES)
        actor: Usuario de auditoría (default config.MIGRATION_USER)

    Returns:
        BaseMigrator: Instancia del migrador específico

    Raises:
        SystemExit: Si no existe el módulo o la clase
    """
    entity_config = config.get_entity_config(entity_name)
    class_name = "".join(word.capitalize() for word in entity_name.split("_")) + "Migrator"

    try:
        module = importlib.import_module(f"migrators.{entity_name}")
        migrator_class = getattr(module, class_name)
    except ModuleNotFoundError:
        print(f"❌ No existe migrador para '{entity_name}'", file=sys.stderr)
        print(f"   Se esperaba: migrators/{entity_name}.py", file=sys.stderr)
        sys.exit(1)
    except AttributeError:
        print(
            f"❌ El módulo migrators.{entity_name} no tiene la clase '{class_name}'",
            file=sys.stderr,
        )
        sys.exit(1)

    # Verificar que hereda de BaseMigrator (type safety en runtime)
    if not issubclass(migrator_class, BaseMigrator):
        print(f"❌ {class_name} no hereda de BaseMigrator", file=sys.stderr)
        sys.exit(1)

    return migrator_class(target_table=entity_config["target_table"], actor=actor)


def select_entity():
    """
    Muestra menú interactivo para seleccionar la entidad a migrar.

    Returns:
        list: Entidades a migrar (una, o todas en orden con la opción 'a')

    Raises:
        SystemExit: Si el usuario cancela
    """
    available = config.MIGRATION_ORDER

    print("\n" + "=" * 70)
    print("📚 ENTIDADES DISPONIBLES (orden de migración recomendado)")
    print("=" * 70)

    for i, entity_name in enumerate(available, 1):
        entity_config = config.get_entity_config(entity_name)
        depends_on = entity_config.get("depends_on", [])

        print(f"\n{i}. {entity_name}")
        print(f"   └─ {entity_config.get('description', 'Sin descripción')}")
        print(
            f"   └─ {entity_config['source_table']} → {entity_config['target_table']}"
            f" | Página: {entity_config['page_size']}"
        )
        if depends_on:
            print(f"   └─ Requiere: {', '.join(depends_on)}")

    print("\n   a. Todas (en orden)")
    print("\n" + "=" * 70)

    while True:
        try:
            choice = input(
                "Seleccione el número de entidad a migrar (a = todas, 0 para salir): "
            ).strip().lower()

            if choice == "0":
                print("\n👋 Migración cancelada por usuario")
                sys.exit(0)
            if choice == "a":
                return list(available)

            idx = int(choice) - 1
            if 0 <= idx < len(available):
                return [available[idx]]
            print("❌ Número fuera de rango. Intente nuevamente.")
        except ValueError:
            print("❌ Entrada inválida. Ingrese un número.")
        except (KeyboardInterrupt, EOFError):
            print("\n\n👋 Migración cancelada por usuario")
            sys.exit(0)


def validate_dependencies(entity_name, target, confirm=auto_confirm):
    """
    Valida que las dependencias de una entidad ya tengan datos en el destino.

    Args:
        entity_name: Entidad a validar
        target: TargetStore
        confirm: Puerto de confirmación

    Returns:
        bool: True si puede proceder
    """
    deps = config.validate_migration_order(entity_name)
    if not deps:
        return True

    print(f"\n🔍 Validando dependencias de '{entity_name}'...")

    missing = []
    for dep in deps:
        table = config.get_target_table(dep)
        count = target.count(table)
        if count == 0:
            missing.append(dep)
            print(f"   ❌ {dep}: tabla vacía ({table})")
        else:
            print(f"   ✅ {dep}: {count:,} registros en {table}")

    if missing:
        print(f"\n⚠️  ADVERTENCIA: Faltan dependencias: {', '.join(missing)}")
        print("   Los registros que las referencien fallarán con missing_reference")
        return confirm("¿Continuar de todas formas?")

    print("   ✅ Todas las dependencias satisfechas")
    return True


# =============================================================================
# ORQUESTADOR
# =============================================================================


def migrate_entity(migrator, source, target, confirm=auto_confirm, limit=None,
                   update_existing=False):
    """
    Orquesta la migración de una entidad. Completamente genérica: funciona
    con cualquier migrador que implemente BaseMigrator.

    Args:
        migrator: Instancia de BaseMigrator
        source: SourceStore (solo lectura)
        target: TargetStore
        confirm: Puerto de confirmación (terminal_confirm / auto_confirm)
        limit: Máximo de registros del origen a procesar (corridas de prueba)
        update_existing: Si True, ofrece actualizar registros ya migrados

    Returns:
        MigrationStats: Ledger de la corrida, ya impreso

    Raises:
        Exception: Solo los errores fatales (ReconcileLookups, I/O de paginación)
    """
    entity_name = migrator.entity
    entity_config = config.get_entity_config(entity_name)
    source_table = entity_config["source_table"]
    page_size = entity_config["page_size"]

    # ========================================================================
    # INIT
    # ========================================================================

    print(f"\n🚚 Iniciando migración de '{entity_name}' ({type(migrator).__name__})...")
    stats = MigrationStats(entity_name)
    migrator.prepare(source, target)

    on_existing = None
    if update_existing:
        def on_existing(record, existing):
            return confirm(f"El {entity_name} {existing['id']} ya existe. ¿Actualizarlo?")

    # ========================================================================
    # RECONCILE LOOKUPS (fatal)
    # ========================================================================

    migrator.reconcile_lookups(target)

    # ========================================================================
    # PAGINATE
    # ========================================================================

    total = source.count(source_table)
    if limit is not None:
        total = min(total, limit)

    print(f"\n   📊 Total de registros: {total:,}")
    print(f"   📦 Tamaño de página: {page_size}")
    print(f"   🎯 Tabla destino: {migrator.target_table}")

    count = 0
    skip = 0
    while skip < total:
        rows = source.find_many(source_table, skip, min(page_size, total - skip))
        if not rows:
            break

        for row in rows:
            count += 1
            try:
                record = LegacyRecord.from_row(entity_name, row)
                outcome, message = migrator.migrate_record(
                    record, source, target, stats, on_existing=on_existing
                )
                stats.record_outcome(outcome, message)
            except Exception as e:
                legacy_id = getattr(e, "legacy_id", None) or row.get("id")
                message = f"Failed: {entity_name} {legacy_id}: {e}"
                stats.record_failure(category_of(e), message)
                print(f"\n   ❌ {message}", file=sys.stderr)

            if count % config.PROGRESS_EVERY == 0 or count == total:
                print(
                    f"\r\033[K⏳ Procesados: {count:,}/{total:,} ({count * 100 // total}%)",
                    end="",
                    flush=True,
                )

        skip += len(rows)

    print()

    # ========================================================================
    # REPORT
    # ========================================================================

    migrator.after_pages(source, target, stats, limit=limit)
    stats.finish()
    stats.print_report(config.FAILURE_SAMPLE_SIZE)
    return stats


def run_migrations(entities, source, target, confirm=auto_confirm, limit=None,
                   update_existing=False, actor=None):
    """
    Ejecuta varias entidades en secuencia (orden de config.MIGRATION_ORDER).

    Pide confirmación antes de cada entidad salvo la primera y, si una
    etapa falla, pregunta si continuar con la siguiente.

    Returns:
        tuple: (dict entidad → MigrationStats|None, bool hubo_fallo_fatal)
    """
    ordered = [name for name in config.MIGRATION_ORDER if name in entities]
    results = {}
    fatal = False

    for position, entity_name in enumerate(ordered):
        if position > 0 and not confirm(f"¿Migrar '{entity_name}'?"):
            print(f"   ⏭️  '{entity_name}' omitida")
            results[entity_name] = None
            continue

        if not validate_dependencies(entity_name, target, confirm):
            print(f"   ⏭️  '{entity_name}' omitida (dependencias no satisfechas)")
            results[entity_name] = None
            continue

        try:
            migrator = load_migrator_for_entity(entity_name, actor=actor)
            results[entity_name] = migrate_entity(
                migrator, source, target, confirm=confirm, limit=limit,
                update_existing=update_existing,
            )
        except Exception as e:
            fatal = True
            results[entity_name] = None
            print(f"\n❌ Falló la migración de '{entity_name}': {e}", file=sys.stderr)

            remaining = ordered[position + 1:]
            if remaining and not confirm("¿Continuar con la siguiente entidad?"):
                print("\n🛑 Migraciones restantes canceladas")
                break

    return results, fatal


def print_run_summary(results):
    print("\n" + "=" * 70)
    print("📋 RESUMEN DE LA CORRIDA")
    print("=" * 70)
    for entity_name, stats in results.items():
        if stats is None:
            print(f"   ⚠️  {entity_name}: no completada")
        else:
            print(
                f"   ✅ {entity_name}: {stats.successful:,} migrados, "
                f"{stats.duplicates:,} duplicados, {stats.failed:,} fallidos "
                f"({stats.success_rate}% éxito)"
            )


def build_parser():
    parser = argparse.ArgumentParser(
        description="Migración de entidades legacy al nuevo schema"
    )
    selection = parser.add_mutually_exclusive_group()
    selection.add_argument(
        "--entity", choices=config.MIGRATION_ORDER, help="Entidad a migrar"
    )
    selection.add_argument(
        "--all", action="store_true", help="Migrar todas las entidades en orden"
    )
    parser.add_argument(
        "--yes", action="store_true", help="Modo batch: no pedir confirmaciones"
    )
    parser.add_argument(
        "--limit", type=int, default=None, help="Máximo de registros por entidad"
    )
    parser.add_argument(
        "--update-existing",
        action="store_true",
        help="Ofrecer actualizar los registros ya migrados",
    )
    parser.add_argument(
        "--test",
        action="store_true",
        help=f"Corrida de prueba: actor '{config.TEST_MIGRATION_USER}' y "
        f"{config.SAMPLE_SIZE} registro(s) por entidad salvo --limit",
    )
    return parser


def main(argv=None):
    """
    Función principal que coordina el flujo completo de migración.

    Exit Codes:
        0: Éxito (reporte completado)
        1: Error de configuración, conexión o migración
    """
    # Forzar UTF-8 en stdout/stderr para emojis en Windows
    sys.stdout.reconfigure(encoding="utf-8")
    sys.stderr.reconfigure(encoding="utf-8")

    args = build_parser().parse_args(argv)

    print("=" * 70)
    print("🚀 SISTEMA DE MIGRACIÓN LEGACY → NUEVO SCHEMA")
    print("=" * 70)

    try:
        old_url, new_url = config.require_database_urls()
    except RuntimeError as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)

    if args.all:
        entities = list(config.MIGRATION_ORDER)
    elif args.entity:
        entities = [args.entity]
    else:
        entities = select_entity()

    confirm = auto_confirm if args.yes else terminal_confirm
    actor = config.TEST_MIGRATION_USER if args.test else config.MIGRATION_USER
    limit = args.limit
    if limit is None and args.test:
        limit = config.SAMPLE_SIZE

    print("\n" + "=" * 70)
    print(f"📦 Entidades seleccionadas: {', '.join(entities)}")
    print(f"👤 Actor de auditoría: {actor}")
    if limit is not None:
        print(f"🔬 Límite por entidad: {limit}")
    print("=" * 70)

    if not confirm("¿Iniciar la migración?"):
        print("\n👋 Migración cancelada por usuario")
        sys.exit(0)

    source = connect_to_source(old_url)
    target = connect_to_target(new_url)

    try:
        results, fatal = run_migrations(
            entities, source, target, confirm=confirm, limit=limit,
            update_existing=args.update_existing, actor=actor,
        )
        print_run_summary(results)

    except Exception as e:
        print(f"\n❌ Error durante la migración: {e}", file=sys.stderr)
        import traceback

        traceback.print_exc()
        sys.exit(1)

    finally:
        print("\n🔒 Cerrando conexiones...")
        source.close()
        target.close()
        print("✅ Conexiones cerradas correctamente")

    if fatal:
        print("\n" + "=" * 70)
        print("⚠️  PROCESO COMPLETADO CON ERRORES FATALES")
        print("=" * 70)
        sys.exit(1)

    print("\n" + "=" * 70)
    print("✅ PROCESO COMPLETADO EXITOSAMENTE")
    print("=" * 70)
    sys.exit(0)


if __name__ == "__main__":
    main()
