"""
Migradores para transformar entidades del schema legacy al schema nuevo.

Cada migrador implementa la interfaz BaseMigrator y se carga dinámicamente
en runtime según la entidad seleccionada.

Estructura:
    base.py: Clase abstracta BaseMigrator (pipeline por registro)
    company.py: Migrador para companies (fuente de las referencias)
    lead.py: Migrador para leads (+ leads placeholder por compañía)
    position.py: Migrador para positions (+ job_roles a demanda)
    contact.py: Migrador para contacts (+ email status a demanda)

Componentes compartidos:
    identifiers.py: Normalización de ids legacy (24/32/36 chars → 32 hex)
    resolver.py: Resolución de la compañía referenciada (id → dominio)
    lookups.py: Find-or-create de tablas de enumeración
    transform.py: Helpers puros del Field Transformer
    records.py: LegacyRecord / TargetRecord por entidad
    stores.py: SourceStore / TargetStore sobre psycopg2
    stats.py: Ledger de estadísticas de la corrida
    errors.py: Taxonomía de errores por registro

Los migradores son instanciados por load_migrator_for_entity() en
pgmigra.py usando importlib.import_module() para carga dinámica.

Interfaz requerida (ver BaseMigrator):
    - reconcile_lookups(target)
    - resolve_references(record, record_id, source, target, stats)
    - transform_record(record, record_id, references)
"""
