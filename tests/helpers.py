"""
Funciones helper compartidas para todos los tests.

Proporciona:
- Carga dinámica de migradores basándose en config.py, evitando imports
  hardcodeados y facilitando agregar nuevas entidades.
- Stores en memoria (FakeSourceStore / FakeTargetStore) con la misma
  interfaz que migrators.stores, para correr el pipeline sin base de datos.
- Builders de filas legacy.
"""

import sys
import os
import importlib
import json
import uuid

# Agregar directorio raíz al path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config
from migrators.errors import DataTooLong, DuplicateConstraintViolation


def get_migrator_class_for_entity(entity_name):
    """
    Carga dinámicamente la clase migrador para una entidad.

    Sigue la convención de nombres:
    - company → CompanyMigrator (en migrators/company.py)
    - contact → ContactMigrator (en migrators/contact.py)

    Raises:
        ImportError: Si no existe el módulo
        AttributeError: Si no existe la clase
    """
    config.get_entity_config(entity_name)
    class_name = "".join(word.capitalize() for word in entity_name.split("_")) + "Migrator"
    module = importlib.import_module(f"migrators.{entity_name}")
    return getattr(module, class_name)


def get_all_migrator_classes():
    """
    Retorna lista de tuplas (nombre_clase, clase) para todos los migradores configurados.

    Lee dinámicamente desde config.MIGRATION_ORDER.
    """
    migradores = []

    for entity_name in config.MIGRATION_ORDER:
        try:
            migrator_class = get_migrator_class_for_entity(entity_name)
            migradores.append((migrator_class.__name__, migrator_class))
        except (ImportError, AttributeError) as e:
            # Permite que los tests fallen individualmente sin romper todo
            print(f"⚠️  No se pudo cargar migrador para {entity_name}: {e}")
            continue

    return migradores


def get_all_migrator_instances(actor=None):
    """Retorna lista de tuplas (nombre_clase, instancia) con su tabla destino."""
    instances = []

    for class_name, migrator_class in get_all_migrator_classes():
        entity_name = migrator_class.entity
        migrator_instance = migrator_class(
            target_table=config.get_target_table(entity_name), actor=actor
        )
        instances.append((class_name, migrator_instance))

    return instances


# =============================================================================
# STORES EN MEMORIA
# =============================================================================

# Columnas únicas por tabla en el destino (id siempre incluido)
DEFAULT_UNIQUE = {
    "companies": ("id", "domain"),
    "leads": ("id", "email"),
    "positions": ("id",),
    "contacts": ("id", "email"),
    "company_statuses": ("id", "key", "value"),
    "lead_statuses": ("id", "key", "value"),
    "contact_email_statuses": ("id", "key", "value"),
    "job_roles": ("id", "title_normalized", "title_hash"),
}

# Anchos de columna en el destino: tabla → {columna: máximo}
DEFAULT_WIDTHS = {
    "job_roles": {"title_display": 250, "title_normalized": 250, "role_description": 500},
    "contact_email_statuses": {"key": 50, "value": 50},
}


def _project(row, columns):
    if row is None:
        return None
    if not columns:
        return dict(row)
    return {column: row.get(column) for column in columns}


def _matches(row, conditions):
    for column, operator, value in conditions:
        current = row.get(column)
        if operator == "eq":
            ok = current == value
        elif operator == "ne":
            ok = current != value
        elif operator == "ieq":
            ok = current is not None and str(current).lower() == str(value).lower()
        elif operator == "icontains":
            ok = current is not None and str(value).lower() in str(current).lower()
        elif operator == "in":
            ok = current is not None and str(current) in {str(item) for item in value}
        else:
            raise ValueError(f"Operador no soportado: {operator}")
        if not ok:
            return False
    return True


class FakeSourceStore:
    """Origen en memoria: tabla → lista de filas (dicts)."""

    def __init__(self, tables=None):
        self.tables = {name: list(rows) for name, rows in (tables or {}).items()}
        self.closed = False

    def count(self, table):
        return len(self.tables.get(table, []))

    def find_many(self, table, skip, take):
        rows = sorted(self.tables.get(table, []), key=lambda row: str(row.get("id")))
        return [dict(row) for row in rows[skip:skip + take]]

    def find_by_id(self, table, record_id, columns=None):
        for row in self.tables.get(table, []):
            if row.get("id") == record_id:
                return _project(row, columns)
        return None

    def close(self):
        self.closed = True


class FakeTargetStore:
    """
    Destino en memoria con las restricciones que importan al pipeline:
    columnas únicas (DuplicateConstraintViolation) y anchos (DataTooLong).

    Attributes:
        writes (int): INSERT/UPDATE exitosos (para verificar "cero escrituras")
    """

    def __init__(self, tables=None, unique=None, widths=None):
        self.tables = {name: [dict(row) for row in rows] for name, rows in (tables or {}).items()}
        self.unique = dict(DEFAULT_UNIQUE, **(unique or {}))
        self.widths = dict(DEFAULT_WIDTHS, **(widths or {}))
        self.writes = 0
        self.closed = False

    def rows(self, table):
        return self.tables.setdefault(table, [])

    # --- Lectura ---

    def find_by_id(self, table, record_id, columns=None):
        return self.find_first(table, [("id", "eq", record_id)], columns)

    def find_by_key(self, table, column, value, columns=None):
        return self.find_first(table, [(column, "eq", value)], columns)

    def find_first(self, table, conditions, columns=None):
        for row in self.rows(table):
            if _matches(row, conditions):
                return _project(row, columns)
        return None

    def find_all(self, table, conditions, columns=None):
        return [_project(row, columns) for row in self.rows(table) if _matches(row, conditions)]

    def find_many(self, table, skip, take, columns=None):
        rows = sorted(self.rows(table), key=lambda row: str(row.get("id")))
        return [_project(row, columns) for row in rows[skip:skip + take]]

    def count(self, table, conditions=None):
        return sum(1 for row in self.rows(table) if _matches(row, conditions or []))

    # --- Escritura ---

    def create(self, table, data, returning=("id",)):
        row = dict(data)
        if row.get("id") is None:
            row["id"] = uuid.uuid4().hex
        self._check(table, row)
        self.rows(table).append(row)
        self.writes += 1
        return _project(row, returning)

    def update(self, table, record_id, data):
        for index, row in enumerate(self.rows(table)):
            if row.get("id") == record_id:
                updated = dict(row, **data)
                self._check(table, updated, ignore=row)
                self.rows(table)[index] = updated
                self.writes += 1
                return {"id": record_id}
        return None

    def upsert(self, table, data):
        if self.find_by_id(table, data.get("id")):
            return self.update(table, data["id"], data)
        return self.create(table, data)

    def delete_where(self, table, conditions):
        keep = [row for row in self.rows(table) if not _matches(row, conditions)]
        deleted = len(self.rows(table)) - len(keep)
        self.tables[table] = keep
        return deleted

    def close(self):
        self.closed = True

    def _check(self, table, row, ignore=None):
        for column, limit in self.widths.get(table, {}).items():
            value = row.get(column)
            if isinstance(value, str) and len(value) > limit:
                raise DataTooLong(column)

        for column in self.unique.get(table, ("id",)):
            value = row.get(column)
            if value is None:
                continue
            for other in self.rows(table):
                if other is not ignore and other.get(column) == value:
                    raise DuplicateConstraintViolation(column)


# =============================================================================
# BUILDERS DE FILAS LEGACY
# =============================================================================


def company_row(legacy_id, domain, name=None, website=None, **fields):
    """Fila de companies (origen) con raw_body JSON serializado."""
    payload = {}
    if name is not None:
        payload["name"] = name
    if website is not None:
        payload["website_url"] = website
    row = {
        "id": legacy_id,
        "domain": domain,
        "raw_body": json.dumps(payload) if payload else None,
        "isDeleted": False,
    }
    row.update(fields)
    return row


def target_company(company_id, domain, name="Acme", website="https://acme.test", **fields):
    """Fila de companies ya migrada (destino)."""
    row = {
        "id": company_id,
        "name": name,
        "website": website,
        "domain": domain,
        "status": "Potential Client",
        "is_deleted": False,
        "created_by": config.MIGRATION_USER,
    }
    row.update(fields)
    return row


def no_confirm(question):
    return False


def yes_confirm(question):
    return True
