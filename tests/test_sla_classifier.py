from datetime import UTC, datetime, timedelta

from django.test import SimpleTestCase

from journey_engine.core.domain.entities.enums import SlaBucket, StageStatus
from journey_engine.core.domain.services.sla_classifier import classify, classify_stage, is_critical

NOW = datetime(2025, 3, 3, 12, 0, tzinfo=UTC)


class ClassifyTests(SimpleTestCase):
    def test_sem_prazo_fica_on_track(self):
        self.assertEqual(classify(None, NOW), SlaBucket.ON_TRACK)

    def test_prazo_vencido(self):
        self.assertEqual(classify(NOW - timedelta(seconds=1), NOW), SlaBucket.OVERDUE)

    def test_exatamente_no_prazo_nao_esta_vencido(self):
        self.assertEqual(classify(NOW, NOW), SlaBucket.DUE_LT_24H)

    def test_faixas_de_antecedencia(self):
        cases = [
            (timedelta(hours=1), SlaBucket.DUE_LT_24H),
            (timedelta(hours=23, minutes=59), SlaBucket.DUE_LT_24H),
            (timedelta(hours=24), SlaBucket.DUE_24_72H),
            (timedelta(hours=72), SlaBucket.DUE_24_72H),
            (timedelta(hours=72, minutes=1), SlaBucket.DUE_GT_72H),
            (timedelta(days=30), SlaBucket.DUE_GT_72H),
        ]
        for remaining, expected in cases:
            with self.subTest(remaining=remaining):
                self.assertEqual(classify(NOW + remaining, NOW), expected)

    def test_funcao_pura(self):
        due = NOW + timedelta(hours=10)
        self.assertEqual(classify(due, NOW), classify(due, NOW))


class ClassifyStageTests(SimpleTestCase):
    def test_etapa_nao_ativa_fica_on_track_mesmo_vencida(self):
        past = NOW - timedelta(days=3)
        for status in (StageStatus.PENDING, StageStatus.COMPLETED, StageStatus.SKIPPED, StageStatus.BLOCKED):
            with self.subTest(status=status):
                self.assertEqual(classify_stage(status, past, NOW), SlaBucket.ON_TRACK)

    def test_etapa_em_andamento_usa_o_prazo(self):
        self.assertEqual(
            classify_stage("in_progress", NOW - timedelta(hours=1), NOW),
            SlaBucket.OVERDUE,
        )


class IsCriticalTests(SimpleTestCase):
    def test_mais_que_o_dobro_do_sla(self):
        started = NOW - timedelta(hours=49)
        self.assertTrue(is_critical(started, 24, NOW))

    def test_no_limite_do_dobro_nao_e_critico(self):
        started = NOW - timedelta(hours=48)
        self.assertFalse(is_critical(started, 24, NOW))

    def test_sem_inicio_ou_sla_zero(self):
        self.assertFalse(is_critical(None, 24, NOW))
        self.assertFalse(is_critical(NOW - timedelta(days=10), 0, NOW))
