"""
Ledger de estadísticas de una corrida de migración.

Se crea uno nuevo al inicio de cada corrida y el orquestador lo pasa
explícitamente a cada paso del pipeline (nada de estado global). Se
descarta al terminar el proceso: no se persiste.
"""

import time

from .errors import FAILURE_CATEGORIES

SUCCESS = "success"
DUPLICATE = "duplicate"
UPDATED = "updated"


class MigrationStats:
    """
    Contadores de una corrida para una entidad.

    Attributes:
        entity (str): Nombre de la entidad (o de la fase)
        total, successful, duplicates, updated, failed (int): Contadores
        failures (dict): Fallos por categoría (ver errors.FAILURE_CATEGORIES)
        reference_matches (dict): Estrategia que resolvió cada referencia
        phases (list): Ledgers de fases adicionales (ej: leads placeholder)
    """

    def __init__(self, entity):
        self.entity = entity
        self.total = 0
        self.successful = 0
        self.duplicates = 0
        self.updated = 0
        self.failed = 0
        self.failures = {category: 0 for category in FAILURE_CATEGORIES}
        self.reference_matches = {"by_id": 0, "by_domain": 0}

        self.success_results = []
        self.duplicate_results = []
        self.failure_results = []

        self.phases = []
        self._started = time.monotonic()
        self._finished = None

    # =========================================================================
    # REGISTRO DE RESULTADOS
    # =========================================================================

    def record_success(self, message):
        self.total += 1
        self.successful += 1
        self.success_results.append(message)

    def record_duplicate(self, message):
        self.total += 1
        self.duplicates += 1
        self.duplicate_results.append(message)

    def record_update(self, message):
        self.total += 1
        self.updated += 1
        self.success_results.append(message)

    def record_failure(self, category, message):
        if category not in self.failures:
            category = "unclassified"
        self.total += 1
        self.failed += 1
        self.failures[category] += 1
        self.failure_results.append(message)

    def record_outcome(self, outcome, message):
        """Despacha un resultado no fallido (SUCCESS, DUPLICATE, UPDATED)."""
        if outcome == SUCCESS:
            self.record_success(message)
        elif outcome == DUPLICATE:
            self.record_duplicate(message)
        elif outcome == UPDATED:
            self.record_update(message)
        else:
            raise ValueError(f"Resultado desconocido: {outcome}")

    def record_match(self, strategy):
        self.reference_matches[strategy] += 1

    def add_phase(self, stats):
        self.phases.append(stats)
        return stats

    # =========================================================================
    # MÉTRICAS DERIVADAS
    # =========================================================================

    def finish(self):
        self._finished = time.monotonic()
        for phase in self.phases:
            if phase._finished is None:
                phase.finish()

    @property
    def duration(self):
        end = self._finished if self._finished is not None else time.monotonic()
        return end - self._started

    @property
    def success_rate(self):
        if self.total == 0:
            return 0
        return round((self.successful + self.updated) * 100 / self.total)

    def summary(self):
        """Resumen serializable de la corrida (sin mensajes)."""
        return {
            "entity": self.entity,
            "total": self.total,
            "successful": self.successful,
            "duplicates": self.duplicates,
            "updated": self.updated,
            "failed": self.failed,
            "failures": dict(self.failures),
            "reference_matches": dict(self.reference_matches),
            "duration_seconds": round(self.duration, 2),
            "success_rate": self.success_rate,
            "phases": [phase.summary() for phase in self.phases],
        }

    # =========================================================================
    # REPORTE
    # =========================================================================

    def print_report(self, sample_size=5):
        print("\n" + "=" * 70)
        print(f"📊 REPORTE DE MIGRACIÓN: {self.entity}")
        print("=" * 70)
        print(f"   Total procesados:      {self.total:,}")
        print(f"   ✅ Migrados:            {self.successful:,}")
        print(f"   ⏭️  Duplicados (skip):   {self.duplicates:,}")
        if self.updated:
            print(f"   🔄 Actualizados:        {self.updated:,}")
        print(f"   ❌ Fallidos:            {self.failed:,}")

        matched = sum(self.reference_matches.values())
        if matched:
            print("\n   🔗 Resolución de compañías:")
            print(f"      - Por id:      {self.reference_matches['by_id']:,}")
            print(f"      - Por dominio: {self.reference_matches['by_domain']:,}")
            print(f"      - Total:       {matched:,}")

        if self.failed:
            print("\n   🧾 Fallos por categoría:")
            for category, count in self.failures.items():
                print(f"      - {category}: {count:,}")

            print("\n   🔍 Fallos de ejemplo:")
            for message in self.failure_results[:sample_size]:
                print(f"      - {message}")
            remaining = len(self.failure_results) - sample_size
            if remaining > 0:
                print(f"      ... y {remaining:,} fallos más")

        print(f"\n   ⏱️  Duración: {self.duration:.2f} s")
        print(f"   🎯 Tasa de éxito: {self.success_rate}%")

        for phase in self.phases:
            phase.print_report(sample_size)
