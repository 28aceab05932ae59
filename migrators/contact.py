"""
Migrador para la entidad contact (contacts → contacts).

RESPONSABILIDAD:
Consumidor de company (referencia REQUERIDA) y de contact_email_statuses.

DECISIONES DE DISEÑO:
- Email status: valor en minúsculas (default 'unavailable'), key = valor
  con espacios → '_'. Si el status específico no se puede reconciliar se
  usa el genérico 'unavailable' (asegurado en reconcile_lookups).
- Email ya usado por OTRO contacto: se agrega +<epoch-ms> a la parte local
  antes de escribir. Si aun así choca, es un fallo duplicate_constraint.
- Truncado silencioso a los anchos de columna (100/200/250/500).
"""

import re

from .base import BaseMigrator
from .errors import LookupReconciliationFailed, MissingReference
from .lookups import LookupSpec, ensure_lookups, find_lookup, find_or_create_lookup
from .records import TargetRecord
from .transform import (
    audit_fields,
    coerce_list,
    email_with_nonce,
    epoch_ms,
    parse_json_payload,
    truncate_fields,
)

GENERIC_EMAIL_STATUS = "unavailable"

EMAIL_STATUS_SPEC = LookupSpec(
    "contact_email_statuses",
    defaults={
        "field_display_name": "email_status",
        "color": None,
        "color_hex": None,
    },
)

FIELD_LIMITS = {
    "name": 250,
    "job_title": 250,
    "title": 250,
    "company_name": 250,
    "first_name": 100,
    "last_name": 100,
    "seniority": 100,
    "full_name": 200,
    "linkedin": 500,
    "linkedin_url": 500,
    "photo_url": 500,
}


def email_status_entry(status):
    """(key, value) del email status a partir del valor legacy."""
    value = (status or "").strip().lower() or GENERIC_EMAIL_STATUS
    return re.sub(r"\s+", "_", value), value


def contact_name(record):
    """full_name → first + last → 'Unknown Contact'."""
    if record.get("full_name"):
        return record["full_name"]
    parts = f"{record.get('first_name') or ''} {record.get('last_name') or ''}".strip()
    return parts or "Unknown Contact"


class ContactMigrator(BaseMigrator):
    """Migrador específico para contacts."""

    entity = "contact"

    def __init__(self, target_table="contacts", actor=None):
        super().__init__(target_table, actor)

    # =========================================================================
    # MÉTODOS PÚBLICOS (INTERFAZ REQUERIDA)
    # =========================================================================

    def reconcile_lookups(self, target):
        ensure_lookups(
            target,
            EMAIL_STATUS_SPEC,
            {GENERIC_EMAIL_STATUS: GENERIC_EMAIL_STATUS},
            actor=self.actor,
        )

    def resolve_references(self, record, record_id, source, target, stats):
        company = self.company_resolver.resolve(
            record.get("companyId"), stats, legacy_id=record.legacy_id
        )
        if company is None:
            raise MissingReference("company", record.get("companyId"), record.legacy_id)

        references = {"company": company, "email_taken": False}
        email = record.get("email")
        if email:
            other = target.find_first(
                self.target_table,
                [("email", "eq", email), ("id", "ne", record_id)],
                columns=("id",),
            )
            if other is not None:
                references["email_taken"] = True
                references["nonce"] = epoch_ms()
                print(f"   ✉️  Email {email} en uso por otro contacto, se agrega nonce")
        return references

    def reconcile_record_lookups(self, record, target):
        key, value = email_status_entry(record.get("email_status"))
        try:
            status = find_or_create_lookup(
                target, EMAIL_STATUS_SPEC, key, value, actor=self.actor
            )
        except LookupReconciliationFailed as e:
            print(f"   ⚠️  {e}; se usa '{GENERIC_EMAIL_STATUS}'")
            status = find_lookup(target, EMAIL_STATUS_SPEC, GENERIC_EMAIL_STATUS, GENERIC_EMAIL_STATUS)
            if status is None:
                raise
        return {"email_status": status}

    def transform_record(self, record, record_id, references):
        company = references["company"]

        email = record.get("email")
        if email and references.get("email_taken"):
            email = email_with_nonce(email, references.get("nonce"))

        data = {
            "id": record_id,
            "name": contact_name(record),
            "job_title": record.get("title") or "Unknown Title",
            "company_id": company["id"],
            "company_name": company.get("name"),
            "email": email,
            "phone": None,  # Sin equivalente en el origen
            "linkedin": record.get("linkedin_url"),
            "apollo_id": record.get("apollo_id"),
            "first_name": record.get("first_name"),
            "last_name": record.get("last_name"),
            "full_name": record.get("full_name"),
            "linkedin_url": record.get("linkedin_url"),
            "title": record.get("title"),
            "email_status": references["email_status"]["value"],
            "photo_url": record.get("photo_url"),
            "organization_id": record.get("organization_id"),
            "departments": coerce_list(record.get("departments")),
            "subdepartments": coerce_list(record.get("subdepartments")),
            "seniority": record.get("seniority"),
            "functions": coerce_list(record.get("functions")),
            "raw_body": parse_json_payload(record.get("raw_body")),
            "airtable_metadata": {},
        }
        data.update(audit_fields(record, self.actor))

        return TargetRecord(self.entity, truncate_fields(data, FIELD_LIMITS))

    def describe(self, record, record_id):
        return f"contact {record_id or record.legacy_id} ({record.get('email') or contact_name(record)})"
