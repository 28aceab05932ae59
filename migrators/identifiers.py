"""
Normalización de identificadores entre generaciones de schema.

El destino exige ids de 32 caracteres hex sin guiones. El origen emite:
- UUIDs con guiones (36 chars) o sin guiones (32 chars)
- ids de 24 chars hex de un esquema anterior (tipo ObjectId)

Los de 24 se rellenan a la derecha con '0' hasta 32. Es una transformación
con pérdida y sin vuelta atrás: se debe conservar EXACTAMENTE así para que
las re-ejecuciones encuentren los registros ya migrados.
"""

import re

from .errors import InvalidIdentifierFormat

_HEX_32 = re.compile(r"[0-9a-f]{32}", re.IGNORECASE)
_HEX_24 = re.compile(r"[0-9a-f]{24}", re.IGNORECASE)


def normalize_identifier(raw_id):
    """
    Canonicaliza un id legacy a 32 caracteres hex en minúscula.

    Args:
        raw_id: id del origen (str, uuid.UUID) o None

    Returns:
        str|None: id canónico sin guiones, o None si no se proveyó id

    Raises:
        InvalidIdentifierFormat: Si no quedan 24 ni 32 chars hex

    Ejemplo:
        >>> normalize_identifier('0627caad-6165-48ca-8c74-aac1d9783d92')
        '0627caad616548ca8c74aac1d9783d92'
        >>> normalize_identifier('5f1a2b3c4d5e6f7a8b9c0d1e')
        '5f1a2b3c4d5e6f7a8b9c0d1e00000000'
    """
    # "sin id" es distinto de "id mal formado"
    if raw_id is None:
        return None

    compact = str(raw_id).replace("-", "")

    if _HEX_32.fullmatch(compact):
        return compact.lower()

    if _HEX_24.fullmatch(compact):
        return compact.lower().ljust(32, "0")

    raise InvalidIdentifierFormat(raw_id)


def to_dashed(identifier):
    """
    Restaura el formato con guiones 8-4-4-4-12.

    Solo es la inversa de normalize_identifier() para entradas de 32 chars;
    un id de 24 chars ya rellenado no recupera su forma original.
    """
    compact = normalize_identifier(identifier)
    if compact is None:
        return None
    return (
        f"{compact[:8]}-{compact[8:12]}-{compact[12:16]}-"
        f"{compact[16:20]}-{compact[20:]}"
    )
