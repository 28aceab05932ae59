"""
Tests de los helpers puros del Field Transformer (migrators/transform.py).
"""

import sys
import os
import hashlib
from datetime import datetime

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config
from migrators.transform import (
    audit_fields,
    coerce_list,
    email_with_nonce,
    normalize_title,
    parse_json_payload,
    parse_location,
    placeholder_email,
    title_hash,
    truncate,
    truncate_fields,
)


# === TRUNCADO ===


def test_truncate_keeps_prefix_of_exact_width():
    for limit in (100, 200, 250, 500):
        value = "x" * (limit + 37)
        result = truncate(value, limit)
        assert len(result) == limit
        assert value.startswith(result)
    print("✅ Truncado deja len == ancho y es prefijo del original")


def test_truncate_leaves_short_and_non_string_values():
    assert truncate("corto", 100) == "corto"
    assert truncate(None, 100) is None
    assert truncate(42, 1) == 42


def test_truncate_fields_only_touches_listed_columns():
    data = {"name": "n" * 300, "domain": "d" * 300}
    truncate_fields(data, {"name": 250, "missing": 10})
    assert len(data["name"]) == 250
    assert len(data["domain"]) == 300
    assert "missing" not in data


# === JSON ===


def test_parse_json_payload():
    assert parse_json_payload('{"name": "Superior"}') == {"name": "Superior"}
    assert parse_json_payload({"ya": "dict"}) == {"ya": "dict"}
    assert parse_json_payload(None) is None
    assert parse_json_payload("") is None
    assert parse_json_payload("{no es json") is None


# === EMAILS ===


def test_placeholder_email_format():
    assert placeholder_email("Example.com", 1700000000000) == "noreply+1700000000000@example.com"
    assert placeholder_email(None, 5) == f"noreply+5@{config.PLACEHOLDER_EMAIL_DOMAIN}"


def test_email_with_nonce():
    assert email_with_nonce("ana@acme.test", 99) == "ana+99@acme.test"
    assert email_with_nonce("sin-arroba", 99) == "sin-arroba+99"


# === TÍTULOS Y UBICACIÓN ===


def test_normalize_title():
    assert normalize_title("Senior Java Developer (Remote)") == "senior_java_developer_remote"
    assert normalize_title("  C++ / Backend  ") == "c_backend"
    assert normalize_title("!!!") == ""


def test_title_hash_is_sha256_of_normalized_title():
    assert title_hash("data_engineer") == hashlib.sha256(b"data_engineer").digest()
    assert len(title_hash("data_engineer")) == 32


def test_parse_location():
    parsed = parse_location("Austin, TX")
    assert parsed["location_city"] == "Austin"
    assert parsed["location_state"] == "TX"
    assert parsed["location_country"] == "US"

    parsed = parse_location("Madrid, Madrid, Spain")
    assert parsed["location_country"] == "Spain"

    assert set(parse_location(None).values()) == {None}


def test_coerce_list():
    assert coerce_list(["a"]) == ["a"]
    assert coerce_list("a") == []
    assert coerce_list(None) == []


# === AUDITORÍA ===


def test_audit_fields_for_deleted_record():
    created = datetime(2023, 1, 2, 3, 4, 5)
    deleted = datetime(2024, 1, 1)
    record = {"createdAt": created, "isDeleted": True, "deletedAt": deleted}

    audit = audit_fields(record, "migration_script", now=datetime(2025, 1, 1))
    assert audit["created_at"] == created
    assert audit["last_updated_at"] == created
    assert audit["is_deleted"] is True
    assert audit["deleted_at"] == deleted
    assert audit["deleted_by"] == "migration_script"


def test_audit_fields_defaults():
    now = datetime(2025, 1, 1)
    audit = audit_fields({"createdAt": "no-es-fecha", "isDeleted": "true"}, "actor", now=now)
    assert audit["created_at"] == now
    assert audit["is_deleted"] is False
    assert audit["deleted_by"] is None
