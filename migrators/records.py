"""
Formas tipadas de registro por entidad: legacy (origen) y destino.

LegacyRecord se construye en el borde de lectura (SourceStore → orquestador)
y valida que las columnas requeridas estén presentes y no sean NULL. Es de
solo lectura: la migración nunca modifica el registro de origen.

TargetRecord es la salida del Field Transformer. Solo admite las columnas
declaradas en TARGET_FIELDS para su entidad, así un typo en el transformer
falla en el transformer y no en el INSERT.
"""

from types import MappingProxyType

from .errors import UnclassifiedError

# Columnas del origen que deben venir con valor
LEGACY_REQUIRED_FIELDS = {
    "company": ("id", "domain"),
    "lead": ("id",),
    "position": ("id", "position_title"),
    "contact": ("id",),
}

AUDIT_FIELDS = (
    "created_by",
    "created_at",
    "last_updated_by",
    "last_updated_at",
    "is_deleted",
    "deleted_at",
    "deleted_by",
)

TARGET_FIELDS = {
    "company": (
        "id", "name", "website", "domain", "size", "revenue", "industry",
        "status", "organization_id", "careers_page", "linkedin_url",
        "raw_body", "airtable_metadata",
    ) + AUDIT_FIELDS,
    "lead": (
        "id", "email", "company_id", "company_name", "company_website",
        "status", "version", "email_sent", "email_opened", "is_pending",
        "is_processed", "has_organization", "has_positions", "retry_count",
        "is_stuck", "person_name", "linkedin", "phone", "job_title",
        "company_size", "revenue", "industry",
    ) + AUDIT_FIELDS,
    "position": (
        "id", "title", "description", "is_active", "company_id",
        "company_name", "is_company_deleted", "company_status",
        "location_address", "location_city", "location_state",
        "location_country", "location_zip", "jd_description", "jd_link",
        "job_role_id", "apollo_id", "salary_range", "airtable_metadata",
    ) + AUDIT_FIELDS,
    "contact": (
        "id", "name", "job_title", "company_id", "company_name", "email",
        "phone", "linkedin", "apollo_id", "first_name", "last_name",
        "full_name", "linkedin_url", "title", "email_status", "photo_url",
        "organization_id", "departments", "subdepartments", "seniority",
        "functions", "raw_body", "airtable_metadata",
    ) + AUDIT_FIELDS,
}


class LegacyRecord:
    """
    Registro del schema legacy, etiquetado con su entidad.

    Attributes:
        kind (str): 'company', 'lead', 'position' o 'contact'
    """

    __slots__ = ("kind", "_fields")

    def __init__(self, kind, fields):
        if kind not in LEGACY_REQUIRED_FIELDS:
            raise ValueError(f"Entidad desconocida: {kind}")
        self.kind = kind
        self._fields = MappingProxyType(dict(fields))

    @classmethod
    def from_row(cls, kind, row):
        """
        Valida una fila del origen y la envuelve.

        Raises:
            UnclassifiedError: Si falta alguna columna requerida
        """
        missing = [
            name for name in LEGACY_REQUIRED_FIELDS[kind] if row.get(name) is None
        ]
        if missing:
            raise UnclassifiedError(
                f"Registro {kind} sin columnas requeridas: {', '.join(missing)}",
                legacy_id=row.get("id"),
            )
        return cls(kind, row)

    @property
    def legacy_id(self):
        return self._fields.get("id")

    def get(self, name, default=None):
        return self._fields.get(name, default)

    def __getitem__(self, name):
        return self._fields[name]

    def __contains__(self, name):
        return name in self._fields

    def as_dict(self):
        return dict(self._fields)

    def __repr__(self):
        return f"LegacyRecord({self.kind!r}, id={self.legacy_id!r})"


class TargetRecord:
    """Registro transformado para el schema destino."""

    __slots__ = ("kind", "fields")

    def __init__(self, kind, fields):
        unknown = set(fields) - set(TARGET_FIELDS[kind])
        if unknown:
            raise KeyError(
                f"Columnas desconocidas para {kind}: {', '.join(sorted(unknown))}"
            )
        self.kind = kind
        self.fields = dict(fields)

    @property
    def id(self):
        return self.fields.get("id")

    def get(self, name, default=None):
        return self.fields.get(name, default)

    def __getitem__(self, name):
        return self.fields[name]

    def as_dict(self):
        """Datos listos para escribir; un id None se omite para que lo genere el destino."""
        data = dict(self.fields)
        if data.get("id") is None:
            data.pop("id", None)
        return data

    def __repr__(self):
        return f"TargetRecord({self.kind!r}, id={self.id!r})"
