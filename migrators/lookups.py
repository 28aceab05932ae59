"""
Lookup-Table Reconciler: find-or-create idempotente de filas de enumeración.

Orden de búsqueda: por key, luego por value (ejecuciones previas pueden haber
dejado key/value invertidos o con typos), y recién ahí se crea.

Casos de borde en la creación:
- DuplicateConstraintViolation: otra ejecución creó la misma fila; se relee
  (key, luego value) y se usa esa. No es error.
- DataTooLong: se reintenta UNA vez con el fallback angosto del LookupSpec
  (truncado más corto + texto genérico), si la tabla lo define.
Cualquier otro desenlace sin fila → LookupReconciliationFailed.
"""

from .errors import DataTooLong, DuplicateConstraintViolation, LookupReconciliationFailed


class LookupSpec:
    """
    Describe una tabla de lookup del destino.

    Attributes:
        table (str): Tabla destino (ej: 'company_statuses')
        key_column (str): Columna de la clave estable
        value_column (str): Columna del valor visible
        defaults (dict): Columnas fijas de cada fila nueva
        columns (tuple): Columnas a retornar
        fallback (callable|None): data → data angosta, usado tras DataTooLong
    """

    def __init__(self, table, key_column="key", value_column="value",
                 defaults=None, columns=None, fallback=None):
        self.table = table
        self.key_column = key_column
        self.value_column = value_column
        self.defaults = defaults or {}
        self.columns = columns or ("id", key_column, value_column)
        self.fallback = fallback


def find_lookup(target, spec, key, value=None):
    """Busca por key y, si no está, por value."""
    row = target.find_by_key(spec.table, spec.key_column, key, columns=spec.columns)
    if row is None and value is not None:
        row = target.find_by_key(spec.table, spec.value_column, value, columns=spec.columns)
    return row


def find_or_create_lookup(target, spec, key, value, extra=None, actor=None):
    """
    Retorna la fila de lookup (key, value), creándola si no existe.

    Args:
        target: TargetStore
        spec: LookupSpec de la tabla
        key, value: Clave estable y valor visible
        extra: Columnas adicionales para la fila nueva
        actor: Valor de created_by

    Raises:
        LookupReconciliationFailed: Si no se pudo encontrar ni crear
    """
    row = find_lookup(target, spec, key, value)
    if row is not None:
        return row

    data = dict(spec.defaults)
    data.update(extra or {})
    data[spec.key_column] = key
    data[spec.value_column] = value
    if actor is not None:
        data["created_by"] = actor

    try:
        return _create(target, spec, data)
    except DataTooLong as e:
        if spec.fallback is None:
            raise LookupReconciliationFailed(spec.table, key, str(e)) from e

        narrow = spec.fallback(data)
        print(f"   ✂️  {spec.table}: valor demasiado largo, reintento con fallback angosto")
        row = find_lookup(target, spec, narrow[spec.key_column], narrow[spec.value_column])
        if row is not None:
            return row
        try:
            return _create(target, spec, narrow)
        except DataTooLong as narrow_error:
            raise LookupReconciliationFailed(spec.table, key, str(narrow_error)) from narrow_error


def _create(target, spec, data):
    key = data[spec.key_column]
    value = data[spec.value_column]
    try:
        row = target.create(spec.table, data, returning=spec.columns)
        print(f"   🆕 {spec.table}: creado {key!r}")
        return row
    except DuplicateConstraintViolation as e:
        # Carrera benigna: alguien la creó entre la búsqueda y el INSERT
        row = find_lookup(target, spec, key, value)
        if row is None:
            raise LookupReconciliationFailed(spec.table, key, str(e)) from e
        return row


def ensure_lookups(target, spec, entries, actor=None):
    """
    Garantiza que todas las filas (key → value) existan.

    Se ejecuta una sola vez por corrida, antes de procesar registros; un
    fallo acá es fatal para la corrida (el orquestador lo propaga).

    Returns:
        dict: key → fila encontrada o creada
    """
    print(f"\n   🗂️  Verificando {spec.table}...")
    rows = {}
    for key, value in entries.items():
        rows[key] = find_or_create_lookup(target, spec, key, value, actor=actor)
    print(f"   ✅ {spec.table}: {len(rows)} valores verificados")
    return rows
