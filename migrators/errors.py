"""
Taxonomía de errores por registro.

Todos los errores de esta jerarquía son NO fatales para el lote: el
orquestador (pgmigra.migrate_entity) los captura en el borde de cada
registro, incrementa la categoría correspondiente en MigrationStats y
continúa con el siguiente.

Categorías (atributo `category`):
    invalid_identifier    InvalidIdentifierFormat
    missing_reference     MissingReference
    lookup_failed         LookupReconciliationFailed
    duplicate_constraint  DuplicateConstraintViolation
    data_too_long         DataTooLong
    unclassified          UnclassifiedError (y cualquier otra excepción)

Los dos errores de escritura (DuplicateConstraintViolation, DataTooLong)
los genera TargetStore a partir de psycopg2.errors, para que el core pueda
distinguirlos de un error genérico de I/O.
"""


class MigrationError(Exception):
    """Error base de la migración de un registro."""

    category = "unclassified"

    def __init__(self, message, legacy_id=None):
        super().__init__(message)
        self.legacy_id = legacy_id


class InvalidIdentifierFormat(MigrationError):
    """El id no tiene 24 ni 32 caracteres hex después de quitar guiones."""

    category = "invalid_identifier"

    def __init__(self, raw_id, legacy_id=None):
        super().__init__(f"Formato de identificador inválido: {raw_id!r}", legacy_id)
        self.raw_id = raw_id


class MissingReference(MigrationError):
    """Entidad relacionada requerida no encontrada (ni por id ni por clave natural)."""

    category = "missing_reference"

    def __init__(self, entity, reference_id, legacy_id=None):
        super().__init__(
            f"No se encontró {entity} para la referencia {reference_id!r}", legacy_id
        )
        self.entity = entity
        self.reference_id = reference_id


class LookupReconciliationFailed(MigrationError):
    """No se pudo encontrar ni crear una fila de enumeración."""

    category = "lookup_failed"

    def __init__(self, table, key, reason=None, legacy_id=None):
        message = f"No se pudo reconciliar {table}[{key!r}]"
        if reason:
            message += f": {reason}"
        super().__init__(message, legacy_id)
        self.table = table
        self.key = key


class DuplicateConstraintViolation(MigrationError):
    """El destino rechazó la escritura por un campo único (field)."""

    category = "duplicate_constraint"

    def __init__(self, field, message=None, legacy_id=None):
        super().__init__(message or f"Valor duplicado en campo único '{field}'", legacy_id)
        self.field = field


class DataTooLong(MigrationError):
    """Valor demasiado largo para la columna destino."""

    category = "data_too_long"

    def __init__(self, column=None, message=None, legacy_id=None):
        super().__init__(message or f"Valor demasiado largo para '{column}'", legacy_id)
        self.column = column


class UnclassifiedError(MigrationError):
    category = "unclassified"


FAILURE_CATEGORIES = (
    InvalidIdentifierFormat.category,
    MissingReference.category,
    LookupReconciliationFailed.category,
    DuplicateConstraintViolation.category,
    DataTooLong.category,
    UnclassifiedError.category,
)


def category_of(exc):
    """Categoría del ledger para cualquier excepción capturada en un registro."""
    if isinstance(exc, MigrationError):
        return exc.category
    return UnclassifiedError.category
