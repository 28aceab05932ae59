"""
Migrador para la entidad lead (leads → leads).

RESPONSABILIDAD:
Consumidor de company. Dos fases:
1. Leads del origen: se migran con su compañía resuelta (opcional) y los
   campos denormalizados company_name / company_website.
2. Leads placeholder (after_pages): cada compañía del destino sin ningún
   lead recibe uno con email placeholder noreply+<epoch-ms>@<dominio>.

ESTADO (precedencia fija, dispara exactamente una regla):
    isStuck   → failed
    isPending → in_progress
    compañía resuelta en el destino → converted_to_company
    default   → new_lead
Una referencia a compañía que NO se resuelve no convierte el lead.

IDEMPOTENCIA: por id canónico y por email (natural_key).
"""

import sys

import config
from .base import BaseMigrator
from .errors import MissingReference, category_of
from .lookups import LookupSpec, ensure_lookups
from .records import TargetRecord
from .stats import DUPLICATE, SUCCESS, MigrationStats
from .transform import audit_fields, epoch_ms, placeholder_email, truncate_fields

LEAD_STATUSES = {
    "new_lead": "New Lead",
    "converted_to_company": "Converted to Company",
    "in_progress": "In Progress",
    "failed": "Failed",
}

DEFAULT_LEAD_STATUS = "new_lead"

LEAD_VERSION = 1.0

LEAD_STATUS_SPEC = LookupSpec(
    "lead_statuses",
    defaults={
        "field_type": "SINGLE_SELECT",
        "field_display_name": "leads_status",
        "color": None,
        "color_hex": None,
    },
)

FIELD_LIMITS = {
    "email": 250,
    "company_name": 250,
    "company_website": 500,
    "created_by": 100,
}

# Columnas de companies necesarias para crear su lead placeholder
COMPANY_LEAD_COLUMNS = (
    "id", "name", "website", "domain", "created_at", "last_updated_at",
    "is_deleted", "deleted_at", "deleted_by",
)


def derive_lead_status(record, company):
    """
    Estado del lead según la precedencia fija (stuck > pending > compañía > default).

    Args:
        record: LegacyRecord (o dict) con isStuck / isPending
        company: Proyección de la compañía resuelta, o None
    """
    if record.get("isStuck"):
        return "failed"
    if record.get("isPending"):
        return "in_progress"
    if company:
        return "converted_to_company"
    return DEFAULT_LEAD_STATUS


class LeadMigrator(BaseMigrator):
    """Migrador específico para leads."""

    entity = "lead"
    natural_key = "email"

    def __init__(self, target_table="leads", actor=None):
        super().__init__(target_table, actor)

    # =========================================================================
    # MÉTODOS PÚBLICOS (INTERFAZ REQUERIDA)
    # =========================================================================

    def reconcile_lookups(self, target):
        ensure_lookups(target, LEAD_STATUS_SPEC, LEAD_STATUSES, actor=self.actor)

    def find_existing(self, record_id, record, target):
        existing = super().find_existing(record_id, record, target)
        if existing or not record.get("email"):
            return existing
        return target.find_by_key(
            self.target_table, "email", record["email"], columns=("id",)
        )

    def resolve_references(self, record, record_id, source, target, stats):
        company = None
        if record.get("companyId") is not None:
            try:
                company = self.company_resolver.resolve(
                    record["companyId"], stats, legacy_id=record.legacy_id
                )
            except MissingReference as e:
                # La compañía es opcional para un lead
                print(f"   ⚠️  lead {record_id}: {e}; se migra sin compañía")

        references = {"company": company}
        if not record.get("email"):
            references["nonce"] = epoch_ms()
        return references

    def transform_record(self, record, record_id, references):
        company = references.get("company")
        email = record.get("email") or placeholder_email(
            company["domain"] if company else None, references.get("nonce")
        )

        data = {
            "id": record_id,
            "email": email,
            # Copia denormalizada: se captura acá y no se refresca después
            "company_id": company["id"] if company else None,
            "company_name": company["name"] if company else None,
            "company_website": company["website"] if company else None,
            "status": derive_lead_status(record, company),
            "version": LEAD_VERSION,
            "email_sent": record.get("emailSent"),
            "email_opened": record.get("emailOpened"),
            "is_pending": record.get("isPending"),
            "is_processed": record.get("isProcessed"),
            "has_organization": record.get("hasOrganization"),
            "has_positions": record.get("hasPositions"),
            "retry_count": record.get("retryCount"),
            "is_stuck": record.get("isStuck"),
            # Campos nuevos sin equivalente en el origen
            "person_name": None,
            "linkedin": None,
            "phone": None,
            "job_title": None,
            "company_size": None,
            "revenue": None,
            "industry": None,
        }
        data.update(audit_fields(record, self.actor))
        if self.actor != config.TEST_MIGRATION_USER:
            # En corridas de prueba created_by queda con el actor para la limpieza
            data["created_by"] = record.get("createdBy") or self.actor

        return TargetRecord(self.entity, truncate_fields(data, FIELD_LIMITS))

    def is_identity_collision(self, field, references):
        # Un email sintetizado que choca es un choque de nonce, no un lead ya migrado
        if field == "email" and references.get("nonce") is not None:
            return False
        return super().is_identity_collision(field, references)

    def describe(self, record, record_id):
        return f"lead {record_id or record.legacy_id} ({record.get('email')})"

    # =========================================================================
    # FASE 2: LEADS PLACEHOLDER POR COMPAÑÍA
    # =========================================================================

    def after_pages(self, source, target, stats, limit=None):
        """
        Crea un lead placeholder para cada compañía del destino sin leads.

        Los resultados se registran en un ledger propio (fase) dentro de
        `stats`, para no mezclarlos con los leads del origen.
        """
        phase = stats.add_phase(MigrationStats("lead (placeholder por compañía)"))
        page_size = config.get_entity_config("company")["page_size"]
        company_table = config.get_target_table("company")

        print("\n   🏢 Creando leads placeholder para compañías sin lead...")
        skip = 0
        while limit is None or skip < limit:
            take = page_size if limit is None else min(page_size, limit - skip)
            companies = target.find_many(
                company_table, skip, take, columns=COMPANY_LEAD_COLUMNS
            )
            if not companies:
                break

            for company in companies:
                try:
                    outcome, message = self._migrate_company_lead(company, target)
                    phase.record_outcome(outcome, message)
                except Exception as e:
                    message = f"Failed: lead placeholder para company {company['id']}: {e}"
                    phase.record_failure(category_of(e), message)
                    print(f"   ❌ {message}", file=sys.stderr)

            skip += len(companies)

        return phase

    def transform_company_lead(self, company, now_ms):
        """Lead placeholder (sin id: lo genera el destino) para una compañía."""
        data = {
            "email": placeholder_email(company.get("domain"), now_ms),
            "company_id": company["id"],
            "company_name": company.get("name"),
            "company_website": company.get("website"),
            "status": "converted_to_company",
            "version": LEAD_VERSION,
            "email_sent": False,
            "email_opened": False,
            "is_pending": False,
            "is_processed": True,
            "has_organization": True,
            "has_positions": False,
            "retry_count": 0,
            "is_stuck": False,
            "created_by": self.actor,
            "created_at": company.get("created_at"),
            "last_updated_by": self.actor,
            "last_updated_at": company.get("last_updated_at"),
            "is_deleted": company.get("is_deleted") is True,
            "deleted_at": company.get("deleted_at"),
            "deleted_by": company.get("deleted_by"),
        }
        return TargetRecord(self.entity, truncate_fields(data, FIELD_LIMITS))

    def _migrate_company_lead(self, company, target):
        existing = target.find_by_key(
            self.target_table, "company_id", company["id"], columns=("id",)
        )
        if existing:
            return DUPLICATE, f"Duplicate: lead para company {company['id']} ya existe, skip"

        lead = self.transform_company_lead(company, epoch_ms())
        # Una colisión de email acá es un choque de nonce: se reporta como fallo
        self.write_record(lead, target)
        return SUCCESS, f"Success: lead {lead['email']} para company {company['id']}"
