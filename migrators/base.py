"""
Módulo base para migradores de entidades legacy → nuevo schema.

Define la interfaz común (contrato) que todos los migradores específicos
deben implementar. Esto permite que pgmigra.py funcione con cualquier
migrador sin conocer sus detalles internos.

Patrón de diseño: Strategy Pattern
- pgmigra.py = Contexto (orquestador)
- BaseMigrator = Estrategia abstracta
- CompanyMigrator, LeadMigrator, ... = Estrategias concretas

Pipeline por registro (migrate_record):
1. get_primary_key_from_record()  → id canónico (InvalidIdentifierFormat)
2. find_existing()                → duplicado / skip (idempotencia)
3. resolve_references()           → Reference Resolver (MissingReference)
4. reconcile_record_lookups()     → Lookup Reconciler (LookupReconciliationFailed)
5. transform_record()             → Field Transformer (puro, sin I/O)
6. write_record() / update_record()

Ejemplo de implementación:
    class MiMigrador(BaseMigrator):
        entity = 'mi_entidad'

        def reconcile_lookups(self, target):
            ensure_lookups(target, MI_SPEC, MIS_VALORES, actor=self.actor)

        def resolve_references(self, record, record_id, source, target, stats):
            return {'company': self.company_resolver.resolve(...)}

        def transform_record(self, record, record_id, references):
            return TargetRecord('mi_entidad', {...})
"""

from abc import ABC, abstractmethod

import config
from .errors import DuplicateConstraintViolation
from .identifiers import normalize_identifier
from .resolver import CompanyReferenceResolver
from .stats import DUPLICATE, SUCCESS, UPDATED


class BaseMigrator(ABC):
    """
    Clase abstracta que define la interfaz para migradores de entidades.

    Attributes:
        entity (str): Nombre de la entidad (clave en config.ENTITIES)
        natural_key (str|None): Columna única de negocio; una colisión en
            ella o en 'id' se clasifica como duplicado, no como fallo
        target_table (str): Tabla destino
        actor (str): Valor de created_by / last_updated_by
        company_resolver (CompanyReferenceResolver|None): Creado en prepare()
    """

    entity = None
    natural_key = None

    def __init__(self, target_table: str, actor: str = None):
        """
        Args:
            target_table: Tabla destino (ej: 'contacts')
            actor: Usuario de auditoría (default config.MIGRATION_USER)
        """
        self.target_table = target_table
        self.actor = actor or config.MIGRATION_USER
        self.company_resolver = None

    @property
    def identity_fields(self):
        if self.natural_key:
            return ("id", self.natural_key)
        return ("id",)

    # =========================================================================
    # MÉTODOS ABSTRACTOS (INTERFAZ REQUERIDA)
    # =========================================================================

    @abstractmethod
    def reconcile_lookups(self, target):
        """
        Fase ReconcileLookups: asegura las enumeraciones compartidas.

        Se llama una sola vez por corrida, ANTES de procesar registros. Las
        excepciones que lance son fatales para la corrida.
        """
        pass

    @abstractmethod
    def resolve_references(self, record, record_id, source, target, stats) -> dict:
        """
        Resuelve entidades relacionadas y datos que requieren I/O.

        Returns:
            dict: Referencias para transform_record() (ej: {'company': {...}})

        Raises:
            MissingReference: Si una referencia requerida no se resuelve
        """
        pass

    @abstractmethod
    def transform_record(self, record, record_id, references):
        """
        Field Transformer: LegacyRecord + referencias → TargetRecord.

        Función pura: no hace I/O. Renombra, deriva, trunca y parsea.
        """
        pass

    # =========================================================================
    # MÉTODOS CON IMPLEMENTACIÓN POR DEFECTO
    # =========================================================================

    def prepare(self, source, target):
        """Inicializa el estado de una corrida (resolver con caché nueva)."""
        self.company_resolver = CompanyReferenceResolver(source, target)

    def get_primary_key_from_record(self, record):
        """
        Id canónico del destino a partir del id legacy.

        Raises:
            InvalidIdentifierFormat: Si el id no es de 24 ni 32 hex
        """
        return normalize_identifier(record.legacy_id)

    def find_existing(self, record_id, record, target):
        """Registro ya migrado (por id canónico), o None."""
        return target.find_by_id(self.target_table, record_id, columns=("id",))

    def reconcile_record_lookups(self, record, target) -> dict:
        """Lookups por registro (ej: job_roles, email status). Default: ninguno."""
        return {}

    def write_record(self, target_record, target):
        return target.create(self.target_table, target_record.as_dict())

    def update_record(self, existing_id, target_record, target):
        data = target_record.as_dict()
        data.pop("created_at", None)
        data.pop("created_by", None)
        return target.update(self.target_table, existing_id, data)

    def after_pages(self, source, target, stats, limit=None):
        """Hook tras la última página (ej: leads placeholder). Default: nada."""
        return None

    def describe(self, record, record_id):
        """Texto corto del registro para mensajes del ledger."""
        return f"{self.entity} {record_id or record.legacy_id}"

    def is_identity_collision(self, field, references):
        """True si una violación única en `field` significa "ya migrado"."""
        return field in self.identity_fields

    # =========================================================================
    # PIPELINE POR REGISTRO
    # =========================================================================

    def migrate_record(self, record, source, target, stats, on_existing=None):
        """
        Ejecuta el pipeline completo para un registro.

        Args:
            record: LegacyRecord validado
            source: SourceStore
            target: TargetStore
            stats: MigrationStats de la corrida
            on_existing: callable(record, existing) → bool; si retorna True
                se actualiza el registro existente en vez de saltearlo

        Returns:
            tuple: (resultado, mensaje) con resultado en SUCCESS, DUPLICATE, UPDATED

        Raises:
            MigrationError: Cualquier fallo clasificable del registro
        """
        record_id = self.get_primary_key_from_record(record)
        label = self.describe(record, record_id)

        existing = self.find_existing(record_id, record, target)
        if existing and not (on_existing and on_existing(record, existing)):
            return DUPLICATE, f"Duplicate: {label} ya existe ({existing['id']}), skip"

        references = self.resolve_references(record, record_id, source, target, stats)
        references.update(self.reconcile_record_lookups(record, target))
        target_record = self.transform_record(record, record_id, references)

        if existing:
            self.update_record(existing["id"], target_record, target)
            return UPDATED, f"Updated: {label}"

        try:
            self.write_record(target_record, target)
        except DuplicateConstraintViolation as e:
            # Colisión con su propio id / clave natural = ya migrado
            if self.is_identity_collision(e.field, references):
                return DUPLICATE, f"Duplicate: {label} ({e.field} ya existe), skip"
            raise

        return SUCCESS, f"Success: {label}"
