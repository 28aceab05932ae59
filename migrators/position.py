"""
Migrador para la entidad position (positions → positions).

RESPONSABILIDAD:
Consumidor de company (referencia REQUERIDA) y de job_roles (taxonomía
creada a demanda a partir del título del puesto).

DECISIONES DE DISEÑO:
- Sin compañía resuelta la posición no se migra (MissingReference).
- job_roles se indexa por título normalizado + hash SHA-256 del mismo.
  Si el título no entra en las columnas de job_roles se reintenta una vez
  con un fallback angosto (título a 100 caracteres, descripciones genéricas).
- company_name / is_company_deleted / company_status son copias
  denormalizadas tomadas en el momento de la migración.
"""

from .base import BaseMigrator
from .errors import MissingReference
from .lookups import LookupSpec, find_or_create_lookup
from .records import TargetRecord
from .transform import (
    audit_fields,
    normalize_title,
    parse_location,
    title_hash,
    truncate,
    truncate_fields,
)

DEFAULT_JD_DESCRIPTION = "No description available"
DEFAULT_JD_LINK = "https://example.com"
UNTITLED_ROLE = "untitled"

FIELD_LIMITS = {
    "title": 250,
    "company_name": 250,
    "company_status": 250,
    "location_address": 250,
    "location_city": 250,
    "location_state": 250,
    "location_country": 100,
    "location_zip": 100,
    "jd_link": 500,
    "apollo_id": 100,
    "salary_range": 100,
}


def narrow_job_role(data):
    """Fallback angosto para job_roles tras un DataTooLong."""
    normalized = data["title_normalized"][:100]
    return dict(
        data,
        title_display=data["title_display"][:100],
        title_normalized=normalized,
        title_hash=title_hash(normalized),
        role_description="Migrated role",
        job_role_description_detailed="Role migrated from the legacy schema.",
    )


JOB_ROLE_SPEC = LookupSpec(
    "job_roles",
    key_column="title_normalized",
    value_column="title_display",
    columns=("id", "title_display", "title_normalized"),
    fallback=narrow_job_role,
)


class PositionMigrator(BaseMigrator):
    """Migrador específico para positions."""

    entity = "position"

    def __init__(self, target_table="positions", actor=None):
        super().__init__(target_table, actor)

    # =========================================================================
    # MÉTODOS PÚBLICOS (INTERFAZ REQUERIDA)
    # =========================================================================

    def reconcile_lookups(self, target):
        # job_roles se crean a demanda, por registro
        pass

    def resolve_references(self, record, record_id, source, target, stats):
        company = self.company_resolver.resolve(
            record.get("companyId"), stats, legacy_id=record.legacy_id
        )
        if company is None:
            raise MissingReference("company", record.get("companyId"), record.legacy_id)
        return {"company": company}

    def reconcile_record_lookups(self, record, target):
        """Busca o crea el job_role del título del puesto."""
        title = record["position_title"]
        normalized = normalize_title(title) or UNTITLED_ROLE
        description = record.get("job_description")

        job_role = find_or_create_lookup(
            target,
            JOB_ROLE_SPEC,
            normalized,
            title,
            extra={
                "title_hash": title_hash(normalized),
                "role_description": truncate(description or f"{title} role", 500),
                "job_role_description_detailed": description or f"This is a {title} position.",
            },
            actor=self.actor,
        )
        return {"job_role": job_role}

    def transform_record(self, record, record_id, references):
        """
        Transforma una posición legacy al schema nuevo.

        Args:
            record: LegacyRecord de positions
            record_id: id canónico (32 hex)
            references: {'company': proyección, 'job_role': fila de job_roles}

        Returns:
            TargetRecord: Posición lista para INSERT
        """
        company = references["company"]
        description = record.get("job_description")

        data = {
            "id": record_id,
            "title": record["position_title"],
            "description": description,
            "is_active": True,
            "company_id": company["id"],
            "company_name": company.get("name"),
            "is_company_deleted": company.get("is_deleted") is True,
            "company_status": company.get("status"),
            "jd_description": description or DEFAULT_JD_DESCRIPTION,
            "jd_link": record.get("link") or DEFAULT_JD_LINK,
            "job_role_id": references["job_role"]["id"],
            "apollo_id": record.get("apollo_id"),
            "salary_range": record.get("salary_range"),
            "airtable_metadata": {},
        }
        data.update(parse_location(record.get("location")))
        data.update(audit_fields(record, self.actor))

        return TargetRecord(self.entity, truncate_fields(data, FIELD_LIMITS))

    def describe(self, record, record_id):
        return f"position {record_id or record.legacy_id} ({record.get('position_title')})"
