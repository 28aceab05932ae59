"""
Reference Resolver: resuelve una referencia legacy a compañía contra el destino.

Estrategia:
1. Primaria (by_id): normalizar el id legacy y buscar companies.id en el
   destino. Si el id no se puede normalizar se pasa directo al paso 2.
2. Secundaria (by_domain): releer la compañía en el ORIGEN por su id legacy
   para obtener el dominio, normalizarlo (minúsculas, sin 'www.') y buscar
   en el destino, en este orden de precedencia:
       a. igualdad exacta
       b. igualdad case-insensitive del dominio normalizado
       c. igualdad case-insensitive de la variante con/sin 'www.'
       d. contención de substring case-insensitive
   Gana el primer hit.

ADVERTENCIA (d): la contención es una heurística amplia a propósito;
'example.com' también matchea 'myexample.com'. Se conserva tal cual.

Solo se retorna la proyección mínima (COMPANY_PROJECTION), nunca la fila
completa, para acotar memoria en corridas masivas.
"""

from .errors import InvalidIdentifierFormat, MissingReference
from .identifiers import normalize_identifier

COMPANY_PROJECTION = ("id", "name", "status", "is_deleted", "website", "domain")


def normalize_domain(domain):
    """
    Normaliza un dominio para matching: trim, minúsculas, sin 'www.' inicial.

    Ejemplo:
        >>> normalize_domain('  WWW.Example.com ')
        'example.com'
    """
    if not domain:
        return ""
    normalized = domain.strip().lower()
    if normalized.startswith("www."):
        normalized = normalized[4:]
    return normalized


def toggle_www(domain):
    """'example.com' ↔ 'www.example.com'."""
    if domain.startswith("www."):
        return domain[4:]
    return f"www.{domain}"


class CompanyReferenceResolver:
    """
    Resuelve referencias a compañías con fallback por dominio.

    Las resoluciones se memorizan por id legacy durante la corrida (una
    instancia por corrida); un fallo memorizado no se reintenta.

    Attributes:
        source: SourceStore (lectura del origen, paso 2)
        target: TargetStore (búsquedas en el destino)
    """

    def __init__(self, source, target, source_table="companies", target_table="companies"):
        self.source = source
        self.target = target
        self.source_table = source_table
        self.target_table = target_table
        self._cache = {}

    def resolve(self, legacy_company_id, stats, legacy_id=None):
        """
        Resuelve la compañía referenciada.

        Args:
            legacy_company_id: Valor de la FK legacy (companyId) o None
            stats: MigrationStats donde registrar la estrategia usada
            legacy_id: id del registro dueño de la referencia (para mensajes)

        Returns:
            dict|None: Proyección de la compañía; None si no hay referencia

        Raises:
            MissingReference: Si no se encontró por id ni por dominio
        """
        if legacy_company_id is None:
            return None

        cache_key = str(legacy_company_id)
        if cache_key not in self._cache:
            self._cache[cache_key] = self._lookup(legacy_company_id)

        company, strategy = self._cache[cache_key]
        if company is None:
            raise MissingReference("company", legacy_company_id, legacy_id=legacy_id)

        stats.record_match(strategy)
        return company

    # =========================================================================
    # ESTRATEGIAS
    # =========================================================================

    def _lookup(self, legacy_company_id):
        company = self._find_by_id(legacy_company_id)
        if company:
            return company, "by_id"

        company = self._find_by_domain(legacy_company_id)
        if company:
            return company, "by_domain"

        return None, None

    def _find_by_id(self, legacy_company_id):
        try:
            normalized_id = normalize_identifier(legacy_company_id)
        except InvalidIdentifierFormat:
            print(f"   ⚠️  id de compañía inválido {legacy_company_id!r}, probando por dominio")
            return None

        return self.target.find_by_id(
            self.target_table, normalized_id, columns=COMPANY_PROJECTION
        )

    def _find_by_domain(self, legacy_company_id):
        source_company = self.source.find_by_id(
            self.source_table, legacy_company_id, columns=("id", "domain")
        )
        if not source_company or not source_company.get("domain"):
            return None

        normalized = normalize_domain(source_company["domain"])
        if not normalized:
            return None

        attempts = [
            ("domain", "eq", normalized),
            ("domain", "ieq", normalized),
            ("domain", "ieq", toggle_www(normalized)),
            ("domain", "icontains", normalized),
        ]
        for condition in attempts:
            company = self.target.find_first(
                self.target_table, [condition], columns=COMPANY_PROJECTION
            )
            if company:
                print(
                    f"   🔗 Compañía por dominio: {source_company['domain']} → "
                    f"{company['name']} ({company['id']})"
                )
                return company

        return None
