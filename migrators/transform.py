"""
Helpers puros del Field Transformer, compartidos por los cuatro migradores.

Nada en este módulo hace I/O. La única fuente no determinística es el nonce
de tiempo (epoch_ms) de los emails placeholder, y aun así los helpers lo
reciben como parámetro para poder fijarlo en tests.
"""

import hashlib
import json
import re
import sys
import time
from datetime import datetime

import config


def truncate(value, limit):
    """
    Trunca silenciosamente un string al ancho de la columna destino.

    Es la primera defensa contra "value too long": se aplica siempre antes
    de escribir. None y valores no-string se retornan sin cambios.
    """
    if not isinstance(value, str):
        return value
    return value[:limit]


def truncate_fields(data, limits):
    """Aplica truncate() a cada columna de `limits` presente en `data`."""
    for column, limit in limits.items():
        if column in data:
            data[column] = truncate(data[column], limit)
    return data


def parse_json_payload(raw):
    """
    Parsea un campo JSON serializado de forma defensiva.

    Returns:
        dict|list|None: Valor decodificado; None si viene vacío o el JSON
                        es inválido (el registro se migra igual, sin payload)
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, (dict, list)):
        return raw
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        print(f"   ⚠️  JSON inválido en payload, se ignora: {e}", file=sys.stderr)
        return None


def payload_get(payload, key):
    """Lee una clave de un payload que puede no ser un objeto JSON."""
    if isinstance(payload, dict):
        return payload.get(key)
    return None


def epoch_ms():
    """Nonce de tiempo (milisegundos) para unicidad best-effort dentro de una corrida."""
    return int(time.time() * 1000)


def placeholder_email(domain, now_ms=None):
    """
    Email placeholder único para entidades que exigen email y no lo tienen.

    Formato: noreply+<epoch-ms>@<dominio>. La unicidad es best-effort: dos
    llamadas en el mismo milisegundo colisionan y la segunda escritura falla
    con duplicate_constraint.
    """
    if now_ms is None:
        now_ms = epoch_ms()
    domain = (domain or "").strip().lower() or config.PLACEHOLDER_EMAIL_DOMAIN
    return f"noreply+{now_ms}@{domain}"


def email_with_nonce(email, now_ms=None):
    """Agrega +<epoch-ms> a la parte local de un email que ya está en uso."""
    if now_ms is None:
        now_ms = epoch_ms()
    parts = email.split("@")
    if len(parts) == 2:
        return f"{parts[0]}+{now_ms}@{parts[1]}"
    return f"{email}+{now_ms}"


def coerce_list(value):
    """Columnas array del destino: cualquier cosa que no sea lista → []."""
    if isinstance(value, list):
        return value
    return []


def as_datetime(value, default=None):
    """Solo acepta datetime; cualquier otro valor → default."""
    if isinstance(value, datetime):
        return value
    return default


def normalize_title(title):
    """
    Normaliza un título de puesto para job_roles.title_normalized.

    Ejemplo:
        >>> normalize_title('Senior Java Developer (Remote)')
        'senior_java_developer_remote'
    """
    normalized = title.strip().lower()
    normalized = re.sub(r"[^\w\s]", "", normalized)
    normalized = re.sub(r"\s+", "_", normalized)
    return normalized.strip("_")


def title_hash(normalized_title):
    """SHA-256 (bytes, para bytea) del título normalizado."""
    return hashlib.sha256(normalized_title.encode("utf-8")).digest()


def parse_location(location):
    """
    Separa un string 'Ciudad, Estado, País' en columnas de ubicación.

    Heurística simple: la primera parte es dirección y ciudad; sin país
    explícito se asume 'US'. El código postal no se extrae.
    """
    if not location:
        return {
            "location_address": None,
            "location_city": None,
            "location_state": None,
            "location_country": None,
            "location_zip": None,
        }

    parts = [part.strip() for part in location.split(",")]
    return {
        "location_address": parts[0] or None,
        "location_city": parts[0] or None,
        "location_state": parts[1] if len(parts) > 1 else None,
        "location_country": parts[2] if len(parts) > 2 else "US",
        "location_zip": None,
    }


def audit_fields(record, actor, now=None):
    """
    Campos de auditoría explícitos del destino.

    Los timestamps faltantes se completan con `now` (o con created_at en el
    caso de last_updated_at). deleted_by solo se setea si está borrado.
    """
    if now is None:
        now = datetime.now()
    created_at = as_datetime(record.get("createdAt"), now)
    is_deleted = record.get("isDeleted") is True
    return {
        "created_by": actor,
        "created_at": created_at,
        "last_updated_by": actor,
        "last_updated_at": as_datetime(record.get("updatedAt"), created_at),
        "is_deleted": is_deleted,
        "deleted_at": as_datetime(record.get("deletedAt")),
        "deleted_by": actor if is_deleted else None,
    }
