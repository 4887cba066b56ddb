from datetime import date

from django.test import TestCase

from journey_engine.core.domain.events.exceptions import ValidationError
from tests.helpers.builders import build_engine, stages_spec


class SlaReportTests(TestCase):
    def setUp(self):
        self.engine = build_engine()
        self.clock = self.engine.clock
        catalog = self.engine.catalog
        self.labor = catalog.create_template("Trabalhista", "trabalhista", stages_spec(24, 48))
        self.family = catalog.create_template("Família", "familia", stages_spec(10))

    def advance(self, inst, position):
        stage = next(s for s in inst.stages if s.position == position)
        return self.engine.instances.advance_stage(str(inst.id), str(stage.id), "completed", "adv-1")

    def test_buckets_criticos_e_conclusao(self):
        svc = self.engine.instances
        late = svc.start_instance(str(self.labor.id), "cli-1", "adv-1")
        on_time = svc.start_instance(str(self.labor.id), "cli-2", "adv-1")
        family = svc.start_instance(str(self.family.id), "cli-3", "adv-2")

        self.clock.advance(hours=6)
        on_time = self.advance(on_time, 1)
        self.advance(family, 1)

        # late: etapa 1 ativa há 54h (> 2× 24h); on_time: etapa 2 ainda no prazo
        self.clock.advance(hours=48)
        report = self.engine.reports.get_sla_report()

        self.assertEqual(report["instances"], 3)
        self.assertEqual(report["active_stages"], 2)
        self.assertEqual(report["buckets"]["overdue"], 1)
        self.assertEqual(report["buckets"]["due_<24h"], 1)
        self.assertEqual(report["overdue"], 1)
        self.assertEqual(report["critical_overdue"], 1)
        self.assertEqual(report["completed_within_sla"], 2)
        self.assertEqual(report["completed_late"], 0)
        self.assertEqual(report["sla_compliance_pct"], 100.0)
        self.assertEqual(report["avg_completion_time_hours"], 6.0)

        by_niche = {row["niche"]: row for row in report["by_niche"]}
        self.assertEqual(by_niche["familia"]["completed_journeys"], 1)
        self.assertEqual(by_niche["familia"]["completion_rate"], 100.0)
        self.assertEqual(by_niche["familia"]["avg_days_to_complete"], 0.25)
        self.assertEqual(by_niche["trabalhista"]["total_journeys"], 2)
        self.assertEqual(by_niche["trabalhista"]["completion_rate"], 0.0)
        self.assertIsNone(by_niche["trabalhista"]["avg_days_to_complete"])
        self.assertIsNotNone(late)

    def test_filtro_por_nicho_e_periodo(self):
        svc = self.engine.instances
        svc.start_instance(str(self.labor.id), "cli-1", "adv-1")
        self.clock.advance(days=10)
        svc.start_instance(str(self.family.id), "cli-2", "adv-1")

        self.assertEqual(self.engine.reports.get_sla_report(niche="familia")["instances"], 1)

        report = self.engine.reports.get_sla_report(start=date(2025, 3, 1), end=date(2025, 3, 5))
        self.assertEqual(report["instances"], 1)
        self.assertEqual(report["filters"]["start"], "2025-03-01")
        self.assertEqual(report["by_niche"][0]["niche"], "trabalhista")

    def test_relatorio_vazio(self):
        report = self.engine.reports.get_sla_report()
        self.assertEqual(report["instances"], 0)
        self.assertIsNone(report["sla_compliance_pct"])
        self.assertIsNone(report["avg_completion_time_hours"])
        self.assertEqual(report["by_niche"], [])

    def test_periodo_invertido(self):
        with self.assertRaises(ValidationError):
            self.engine.reports.get_sla_report(start=date(2025, 3, 10), end=date(2025, 3, 1))
