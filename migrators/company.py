"""
Migrador para la entidad company (companies → companies).

RESPONSABILIDAD:
Es la fuente de verdad de las referencias: lead, position y contact resuelven
su compañía contra lo que este migrador escribe. No depende de nadie.

DECISIONES DE DISEÑO:
- Id destino = id legacy normalizado (32 hex); las re-ejecuciones lo usan
  para detectar duplicados.
- Idempotencia adicional por dominio (natural_key): si ya existe otra
  compañía con el mismo dominio y distinto id, se cuenta como duplicado.
- name / website salen del payload JSON (raw_body); si el JSON es inválido
  o no trae el dato se usan valores derivados del dominio.
- Estado: siempre DEFAULT_COMPANY_STATUS ("Potential Client"); el origen no
  tiene información para derivar otro.
- Escritura con UPSERT por id.

Uso (desde pgmigra.py):
    migrator = CompanyMigrator(target_table='companies')
    migrator.reconcile_lookups(target)
    outcome, message = migrator.migrate_record(record, source, target, stats)
"""

from .base import BaseMigrator
from .lookups import LookupSpec, ensure_lookups
from .records import TargetRecord
from .transform import audit_fields, parse_json_payload, payload_get, truncate_fields

DEFAULT_COMPANY_STATUS = "Potential Client"

COMPANY_STATUSES = {
    "dh/contract_agreement_signed": "DH/Contract Agreement Signed",
    "no_recruitment_services_required": "No Recruitment Services Required",
    "potential_client": "Potential Client",
    "client_inactive/not_responding": "Client Inactive/Not Responding",
    "do_not_contact_email_received": "Do Not Contact Email Received",
    "position_not_being_filled_by_recruiters": "Position Not Being Filled By Recruiters",
    "client_backed_out": "Client Backed Out",
    "dh/contract_agreement_sent": "DH/Contract Agreement Sent",
    "clients_will_work_in_the_future": "Clients Will Work in the Future",
    "not_happy_with_terms": "Not happy With Terms",
    "pro-rated_refund_agreement": "Pro-Rated Refund Agreement",
    "job_closed_internally": "Job Closed Internally",
    "ready_to_dh_agreement": "Ready To DH Agreement",
    "client_wants_refund_policy": "Client Wants Refund Policy",
    "contract_terminated": "Contract Terminated",
}

COMPANY_STATUS_SPEC = LookupSpec(
    "company_statuses",
    defaults={
        "field_type": "SINGLE_SELECT",
        "field_display_name": "company_status",
        "color": None,
        "color_hex": None,
    },
)

# Anchos máximos de columna en companies
FIELD_LIMITS = {
    "name": 250,
    "website": 500,
    "domain": 250,
    "size": 100,
    "industry": 250,
    "organization_id": 100,
    "careers_page": 500,
    "linkedin_url": 500,
}


class CompanyMigrator(BaseMigrator):
    """
    Migrador específico para companies.

    Attributes:
        target_table (str): Tabla destino ('companies')
    """

    entity = "company"
    natural_key = "domain"

    def __init__(self, target_table="companies", actor=None):
        super().__init__(target_table, actor)

    # =========================================================================
    # MÉTODOS PÚBLICOS (INTERFAZ REQUERIDA)
    # =========================================================================

    def reconcile_lookups(self, target):
        ensure_lookups(target, COMPANY_STATUS_SPEC, COMPANY_STATUSES, actor=self.actor)

    def find_existing(self, record_id, record, target):
        """Por id y, si no, por dominio (otra compañía con el mismo dominio)."""
        existing = super().find_existing(record_id, record, target)
        if existing:
            return existing

        domain = truncate_fields({"domain": record["domain"]}, FIELD_LIMITS)["domain"]
        return target.find_by_key(self.target_table, "domain", domain, columns=("id",))

    def resolve_references(self, record, record_id, source, target, stats):
        return {}

    def transform_record(self, record, record_id, references):
        """
        Transforma una compañía legacy al schema nuevo.

        Args:
            record: LegacyRecord de companies
            record_id: id canónico (32 hex)
            references: No usado (company no tiene referencias)

        Returns:
            TargetRecord: Compañía lista para UPSERT
        """
        payload = parse_json_payload(record.get("raw_body"))
        domain = record["domain"]

        data = {
            "id": record_id,
            "name": payload_get(payload, "name") or f"Unknown Company ({domain})",
            "website": payload_get(payload, "website_url") or f"http://{domain}",
            "domain": domain,
            "size": self._extract_size(record, payload),
            "revenue": None,  # Sin equivalente en el origen
            "industry": record.get("industry") or payload_get(payload, "industry"),
            "status": self._determine_status(record, payload),
            "organization_id": record.get("organizationId"),
            "careers_page": record.get("careers_page"),
            "linkedin_url": record.get("linkedin_url"),
            "raw_body": payload,
            "airtable_metadata": None,
        }
        data.update(audit_fields(record, self.actor))

        return TargetRecord(self.entity, truncate_fields(data, FIELD_LIMITS))

    def write_record(self, target_record, target):
        return target.upsert(self.target_table, target_record.as_dict())

    def describe(self, record, record_id):
        return f"company {record_id or record.legacy_id} ({record.get('domain')})"

    # =========================================================================
    # MÉTODOS PRIVADOS
    # =========================================================================

    def _extract_size(self, record, payload):
        if record.get("company_size") is not None:
            return str(record["company_size"])
        estimated = payload_get(payload, "estimated_num_employees")
        if estimated is not None:
            return str(estimated)
        return None

    def _determine_status(self, record, payload):
        # El origen no trae datos para derivar otro estado
        return DEFAULT_COMPANY_STATUS
