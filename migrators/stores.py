"""
Adaptadores de persistencia sobre psycopg2.

SourceStore: base legacy, SOLO LECTURA (sesión readonly + autocommit).
TargetStore: base destino. Cada operación es su propia transacción
(`with self.conn:` hace commit al salir o rollback si hay excepción), así
un fallo en un registro nunca deja la conexión en estado abortado para el
siguiente.

TargetStore traduce dos errores del driver a la taxonomía del core:
    psycopg2.errors.UniqueViolation          → DuplicateConstraintViolation(field)
    psycopg2.errors.StringDataRightTruncation → DataTooLong(column)
El resto de los errores se propagan tal cual.

Predicados de find_first(): lista de tuplas (columna, operador, valor),
combinadas con AND. Operadores: eq, ne, ieq, icontains, in.
"""

import re

import psycopg2
import psycopg2.errors
from psycopg2 import sql
from psycopg2.extras import Json, RealDictCursor

from .errors import DataTooLong, DuplicateConstraintViolation

_OPERATORS = {
    "eq": "{column} = %s",
    "ne": "{column} <> %s",
    "ieq": "LOWER({column}) = LOWER(%s)",
    "icontains": "{column} ILIKE %s",
    # Comparación como texto: sirve igual para columnas uuid y text
    "in": "{column}::text = ANY(%s)",
}

JSON_COLUMNS = frozenset({"raw_body", "airtable_metadata"})

# DETAIL de PostgreSQL: 'Key (email)=(a@b.com) already exists.'
_KEY_DETAIL = re.compile(r"Key \((?P<field>[^)]+)\)=")


def escape_like(value):
    """Escapa comodines de LIKE/ILIKE (\\, %, _)."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def field_from_detail(detail, constraint_name=None, table_name=None):
    """
    Extrae el campo que violó la restricción única.

    Prioriza el DETAIL de PostgreSQL; si no está, usa el nombre de la
    restricción (convención <tabla>_<campo>_key).
    """
    if detail:
        match = _KEY_DETAIL.search(detail)
        if match:
            return match.group("field")
    if constraint_name:
        if constraint_name.endswith("_pkey"):
            return "id"
        name = constraint_name[:-4] if constraint_name.endswith("_key") else constraint_name
        if table_name and name.startswith(f"{table_name}_"):
            return name[len(table_name) + 1:]
        return name.split("_", 1)[1] if "_" in name else name
    return None


def translate_error(exc):
    """Convierte errores del driver en errores de la taxonomía (o retorna el mismo)."""
    if isinstance(exc, psycopg2.errors.UniqueViolation):
        diag = exc.diag
        field = field_from_detail(
            diag.message_detail, diag.constraint_name, diag.table_name
        )
        return DuplicateConstraintViolation(field, str(exc).strip())
    if isinstance(exc, psycopg2.errors.StringDataRightTruncation):
        return DataTooLong(exc.diag.column_name, str(exc).strip())
    return exc


def _adapt(column, value):
    # dict → jsonb; las listas van como ARRAY salvo en columnas jsonb
    if isinstance(value, dict):
        return Json(value)
    if column in JSON_COLUMNS and value is not None:
        return Json(value)
    return value


def _columns_sql(columns):
    if not columns:
        return sql.SQL("*")
    return sql.SQL(", ").join(sql.Identifier(column) for column in columns)


def _where_sql(conditions):
    clauses = []
    params = []
    for column, operator, value in conditions:
        if operator not in _OPERATORS:
            raise ValueError(f"Operador no soportado: {operator}")
        clauses.append(
            sql.SQL(_OPERATORS[operator]).format(column=sql.Identifier(column))
        )
        if operator == "icontains":
            value = f"%{escape_like(value)}%"
        elif operator == "in":
            value = [str(item) for item in value]
        params.append(value)
    return sql.SQL(" AND ").join(clauses), params


class SourceStore:
    """
    Lectura paginada del schema legacy.

    Attributes:
        conn: Conexión psycopg2 (readonly, autocommit)
    """

    def __init__(self, conn):
        self.conn = conn

    @classmethod
    def connect(cls, dsn):
        conn = psycopg2.connect(dsn)
        conn.set_session(readonly=True, autocommit=True)
        return cls(conn)

    def count(self, table):
        query = sql.SQL("SELECT COUNT(*) AS total FROM {}").format(sql.Identifier(table))
        with self.conn.cursor(cursor_factory=RealDictCursor) as cursor:
            cursor.execute(query)
            return cursor.fetchone()["total"]

    def find_many(self, table, skip, take):
        """Página de filas (orden estable por id) como lista de dicts."""
        query = sql.SQL("SELECT * FROM {} ORDER BY id OFFSET %s LIMIT %s").format(
            sql.Identifier(table)
        )
        with self.conn.cursor(cursor_factory=RealDictCursor) as cursor:
            cursor.execute(query, (skip, take))
            return [dict(row) for row in cursor.fetchall()]

    def find_by_id(self, table, record_id, columns=None):
        query = sql.SQL("SELECT {} FROM {} WHERE id = %s LIMIT 1").format(
            _columns_sql(columns), sql.Identifier(table)
        )
        try:
            with self.conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(query, (record_id,))
                row = cursor.fetchone()
        except psycopg2.DataError:
            # id con formato que la columna no acepta (ej: uuid inválido)
            return None
        return dict(row) if row else None

    def close(self):
        self.conn.close()


class TargetStore:
    """
    Escritura y consultas sobre el schema destino.

    Attributes:
        conn: Conexión psycopg2 (una transacción por operación)
    """

    def __init__(self, conn):
        self.conn = conn

    @classmethod
    def connect(cls, dsn):
        return cls(psycopg2.connect(dsn))

    # =========================================================================
    # LECTURA
    # =========================================================================

    def find_by_id(self, table, record_id, columns=None):
        return self.find_first(table, [("id", "eq", record_id)], columns)

    def find_by_key(self, table, column, value, columns=None):
        """Búsqueda por clave alternativa (domain, email, key de lookup...)."""
        return self.find_first(table, [(column, "eq", value)], columns)

    def find_first(self, table, conditions, columns=None):
        where, params = _where_sql(conditions)
        query = sql.SQL("SELECT {} FROM {} WHERE {} LIMIT 1").format(
            _columns_sql(columns), sql.Identifier(table), where
        )
        return self._execute(query, params, fetch="one")

    def find_all(self, table, conditions, columns=None):
        """Todas las filas que cumplen los predicados (sin paginar)."""
        where, params = _where_sql(conditions)
        query = sql.SQL("SELECT {} FROM {} WHERE {}").format(
            _columns_sql(columns), sql.Identifier(table), where
        )
        return self._execute(query, params, fetch="all")

    def find_many(self, table, skip, take, columns=None):
        query = sql.SQL("SELECT {} FROM {} ORDER BY id OFFSET %s LIMIT %s").format(
            _columns_sql(columns), sql.Identifier(table)
        )
        return self._execute(query, (skip, take), fetch="all")

    def count(self, table, conditions=None):
        if conditions:
            where, params = _where_sql(conditions)
            query = sql.SQL("SELECT COUNT(*) AS total FROM {} WHERE {}").format(
                sql.Identifier(table), where
            )
        else:
            query = sql.SQL("SELECT COUNT(*) AS total FROM {}").format(
                sql.Identifier(table)
            )
            params = ()
        return self._execute(query, params, fetch="one")["total"]

    # =========================================================================
    # ESCRITURA
    # =========================================================================

    def create(self, table, data, returning=("id",)):
        """INSERT de una fila; retorna las columnas de `returning`."""
        columns = list(data.keys())
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING {}").format(
            sql.Identifier(table),
            sql.SQL(", ").join(sql.Identifier(column) for column in columns),
            sql.SQL(", ").join(sql.Placeholder() * len(columns)),
            _columns_sql(returning),
        )
        return self._execute(query, [_adapt(c, data[c]) for c in columns], fetch="one")

    def update(self, table, record_id, data):
        columns = [column for column in data.keys() if column != "id"]
        query = sql.SQL("UPDATE {} SET {} WHERE id = %s RETURNING id").format(
            sql.Identifier(table),
            sql.SQL(", ").join(
                sql.SQL("{} = %s").format(sql.Identifier(column)) for column in columns
            ),
        )
        params = [_adapt(c, data[c]) for c in columns] + [record_id]
        return self._execute(query, params, fetch="one")

    def upsert(self, table, data):
        """INSERT ... ON CONFLICT (id) DO UPDATE con todas las columnas."""
        columns = list(data.keys())
        updates = [column for column in columns if column != "id"]
        query = sql.SQL(
            "INSERT INTO {} ({}) VALUES ({}) ON CONFLICT (id) DO UPDATE SET {} RETURNING id"
        ).format(
            sql.Identifier(table),
            sql.SQL(", ").join(sql.Identifier(column) for column in columns),
            sql.SQL(", ").join(sql.Placeholder() * len(columns)),
            sql.SQL(", ").join(
                sql.SQL("{} = EXCLUDED.{}").format(
                    sql.Identifier(column), sql.Identifier(column)
                )
                for column in updates
            ),
        )
        return self._execute(query, [_adapt(c, data[c]) for c in columns], fetch="one")

    def delete_where(self, table, conditions):
        """DELETE con predicados; retorna cantidad de filas eliminadas."""
        where, params = _where_sql(conditions)
        query = sql.SQL("DELETE FROM {} WHERE {}").format(sql.Identifier(table), where)
        return self._execute(query, params, fetch="rowcount")

    def close(self):
        self.conn.close()

    # =========================================================================
    # INTERNOS
    # =========================================================================

    def _execute(self, query, params, fetch):
        try:
            with self.conn:
                with self.conn.cursor(cursor_factory=RealDictCursor) as cursor:
                    cursor.execute(query, params)
                    if fetch == "one":
                        row = cursor.fetchone()
                        return dict(row) if row else None
                    if fetch == "all":
                        return [dict(row) for row in cursor.fetchall()]
                    return cursor.rowcount
        except psycopg2.Error as exc:
            translated = translate_error(exc)
            if translated is exc:
                raise
            raise translated from exc
