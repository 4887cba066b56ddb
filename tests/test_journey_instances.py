"""
Motor de instâncias: ativação sequencial, SLA no avanço, conflitos de ordem
e concorrência, conclusão e transições manuais de status.
"""
from datetime import timedelta

from django.db import transaction
from django.test import TestCase

from journey_engine.core.domain.entities.enums import InstanceStatus, SlaBucket, StageStatus
from journey_engine.core.domain.events.events import (
    JourneyStartedEvent,
    JourneyStatusChangedEvent,
    StageActivatedEvent,
    StageAdvancedEvent,
)
from journey_engine.core.domain.events.exceptions import NotFoundError, StateConflict, ValidationError
from plugins.django_interface.models import StageProgress
from tests.helpers.builders import build_engine, stages_spec


class JourneyTestCase(TestCase):
    def setUp(self):
        self.engine = build_engine()
        self.clock = self.engine.clock
        self.svc = self.engine.instances

    def start(self, *sla_hours, optional=(), types=()):
        with self.captureOnCommitCallbacks(execute=True):
            tpl = self.engine.catalog.create_template(
                "Jornada", "trabalhista", stages_spec(*sla_hours, optional=optional, types=types)
            )
            return self.svc.start_instance(str(tpl.id), "cli-42", "adv-1", matter_id="proc-7")

    def advance(self, instance, position, outcome="completed", actor="adv-1"):
        stage = next(s for s in instance.stages if s.position == position)
        with self.captureOnCommitCallbacks(execute=True):
            return self.svc.advance_stage(str(instance.id), str(stage.id), outcome, actor)


class StartInstanceTests(JourneyTestCase):
    def test_primeira_etapa_ativada_e_demais_pendentes(self):
        inst = self.start(24, 48, 12)

        self.assertEqual(inst.status, InstanceStatus.ACTIVE)
        self.assertEqual(inst.current_stage_position, 1)
        self.assertEqual(inst.progress_pct, 0.0)
        first, second, third = inst.stages
        self.assertEqual(first.status, StageStatus.IN_PROGRESS)
        self.assertEqual(first.started_at, self.clock.now())
        self.assertEqual(first.sla_due_at, self.clock.now() + timedelta(hours=24))
        self.assertEqual((second.status, third.status), (StageStatus.PENDING, StageStatus.PENDING))
        self.assertIsNone(second.sla_due_at)
        self.assertEqual(inst.next_action["title"], "Executar tarefa: Etapa 1")
        self.assertEqual(len(self.engine.dispatcher.of_type(JourneyStartedEvent)), 1)

    def test_template_inexistente(self):
        with self.assertRaises(NotFoundError):
            self.svc.start_instance("00000000-0000-0000-0000-000000000000", "cli", "adv")

    def test_cliente_obrigatorio(self):
        tpl = self.engine.catalog.create_template("J", "civel", stages_spec(24))
        with self.assertRaises(ValidationError):
            self.svc.start_instance(str(tpl.id), "", "adv")


class AdvanceStageTests(JourneyTestCase):
    def test_conclusao_atrasada_registra_bucket_overdue(self):
        inst = self.start(24, 48, 12)
        self.clock.advance(hours=30)

        inst = self.advance(inst, 1)

        evt = self.engine.dispatcher.of_type(StageAdvancedEvent)[0]
        self.assertEqual(evt.sla_bucket, SlaBucket.OVERDUE.value)
        first, second, _ = inst.stages
        self.assertEqual(first.status, StageStatus.COMPLETED)
        self.assertEqual(first.completed_at, self.clock.now())
        self.assertEqual(second.status, StageStatus.IN_PROGRESS)
        self.assertEqual(second.sla_due_at, self.clock.now() + timedelta(hours=48))
        self.assertEqual(inst.current_stage_position, 2)
        self.assertAlmostEqual(inst.progress_pct, 33.33)
        self.assertEqual(len(self.engine.dispatcher.of_type(StageActivatedEvent)), 1)

    def test_fora_de_ordem_nao_altera_estado(self):
        inst = self.start(24, 48, 12)
        before = list(StageProgress.objects.filter(instance_id=inst.id).values_list("status", "version"))

        with self.assertRaises(StateConflict) as ctx:
            self.advance(inst, 2)

        self.assertEqual(ctx.exception.code, "StageOutOfOrder")
        after = list(StageProgress.objects.filter(instance_id=inst.id).values_list("status", "version"))
        self.assertEqual(before, after)
        self.assertEqual(self.svc.get_instance(str(inst.id)).current_stage_position, 1)

    def test_segundo_avanco_recebe_stage_already_completed(self):
        inst = self.start(24, 48)
        self.advance(inst, 1)

        with self.assertRaises(StateConflict) as ctx:
            self.advance(inst, 1)
        self.assertEqual(ctx.exception.code, "StageAlreadyCompleted")
        self.assertEqual(len(self.engine.dispatcher.of_type(StageAdvancedEvent)), 1)

    def test_cas_com_versao_desatualizada_falha(self):
        inst = self.start(24, 48)
        inst = self.advance(inst, 1)
        second = inst.stages[1]

        self.assertFalse(
            self.engine.instance_repo.compare_and_set_stage(
                str(second.id), expected_version=second.version - 1, status="completed"
            )
        )
        self.assertEqual(StageProgress.objects.get(id=second.id).status, "in_progress")

    def test_pular_obrigatoria_e_proibido(self):
        inst = self.start(24, 24)
        with self.assertRaises(StateConflict) as ctx:
            self.advance(inst, 1, outcome="skipped")
        self.assertEqual(ctx.exception.code, "MandatoryStagePending")

    def test_pular_opcional_ativa_a_seguinte(self):
        inst = self.start(24, 24, 24, optional=(2,))
        inst = self.advance(inst, 1)
        inst = self.advance(inst, 2, outcome="skipped")

        self.assertEqual(inst.stages[1].status, StageStatus.SKIPPED)
        self.assertEqual(inst.current_stage_position, 3)
        self.assertAlmostEqual(inst.progress_pct, 66.67)

    def test_resultado_invalido(self):
        inst = self.start(24)
        with self.assertRaises(ValidationError):
            self.advance(inst, 1, outcome="done")


class CompletionTests(JourneyTestCase):
    def test_conclui_quando_todas_obrigatorias_concluidas(self):
        inst = self.start(24, 48, 12)
        for position in (1, 2):
            inst = self.advance(inst, position)
            self.assertEqual(inst.status, InstanceStatus.ACTIVE)

        inst = self.advance(inst, 3)

        self.assertEqual(inst.status, InstanceStatus.COMPLETED)
        self.assertEqual(inst.completed_at, self.clock.now())
        self.assertIsNone(inst.current_stage_position)
        self.assertEqual(inst.progress_pct, 100.0)
        self.assertEqual(inst.next_action["title"], "Jornada Concluída")
        changes = self.engine.dispatcher.of_type(JourneyStatusChangedEvent)
        self.assertEqual([(e.previous, e.current) for e in changes], [("active", "completed")])

    def test_opcional_no_final_fica_pendente(self):
        inst = self.start(24, 24, optional=(2,))
        inst = self.advance(inst, 1)

        self.assertEqual(inst.status, InstanceStatus.COMPLETED)
        self.assertEqual(inst.stages[1].status, StageStatus.PENDING)
        self.assertEqual(inst.progress_pct, 50.0)

    def test_avancar_instancia_concluida(self):
        inst = self.start(24)
        inst = self.advance(inst, 1)
        with self.assertRaises(StateConflict) as ctx:
            self.advance(inst, 1)
        self.assertEqual(ctx.exception.code, "StageAlreadyCompleted")


class BlockedStageTests(JourneyTestCase):
    def test_bloqueio_nao_ativa_a_proxima_e_reabertura_renova_prazo(self):
        inst = self.start(24, 24)
        inst = self.advance(inst, 1, outcome="blocked")

        first, second = inst.stages
        self.assertEqual(first.status, StageStatus.BLOCKED)
        self.assertEqual(second.status, StageStatus.PENDING)
        self.assertEqual(inst.current_stage_position, 1)
        self.assertEqual(inst.next_action["type"], "unblock")

        with self.assertRaises(StateConflict) as ctx:
            self.advance(inst, 1)
        self.assertEqual(ctx.exception.code, "StageAlreadyCompleted")

        self.clock.advance(hours=5)
        inst = self.svc.reopen_stage(str(inst.id), str(first.id), actor="adv-1")
        first = inst.stages[0]
        self.assertEqual(first.status, StageStatus.IN_PROGRESS)
        self.assertEqual(first.sla_due_at, self.clock.now() + timedelta(hours=24))

        inst = self.advance(inst, 1)
        self.assertEqual(inst.current_stage_position, 2)

    def test_reabrir_etapa_nao_bloqueada(self):
        inst = self.start(24)
        with self.assertRaises(StateConflict) as ctx:
            self.svc.reopen_stage(str(inst.id), str(inst.stages[0].id), actor="adv-1")
        self.assertEqual(ctx.exception.code, "InvalidTransition")


class StatusTransitionTests(JourneyTestCase):
    def test_pausa_e_retomada(self):
        inst = self.start(24, 24)
        inst = self.svc.pause_instance(str(inst.id), actor="adv-1")
        self.assertEqual(inst.status, InstanceStatus.PAUSED)
        self.assertEqual(inst.next_action["type"], "resume")

        with self.assertRaises(StateConflict) as ctx:
            self.advance(inst, 1)
        self.assertEqual(ctx.exception.code, "InstanceNotActive")

        inst = self.svc.resume_instance(str(inst.id), actor="adv-1")
        self.assertEqual(inst.status, InstanceStatus.ACTIVE)
        inst = self.advance(inst, 1)
        self.assertEqual(inst.current_stage_position, 2)

    def test_cancelamento_e_terminal(self):
        inst = self.start(24)
        inst = self.svc.cancel_instance(str(inst.id), actor="adv-1")
        self.assertEqual(inst.status, InstanceStatus.CANCELLED)
        self.assertEqual(inst.cancelled_at, self.clock.now())

        for action in (self.svc.resume_instance, self.svc.pause_instance, self.svc.cancel_instance):
            with self.subTest(action=action.__name__):
                with self.assertRaises(StateConflict) as ctx:
                    action(str(inst.id))
                self.assertEqual(ctx.exception.code, "InvalidTransition")

    def test_retomar_instancia_ativa(self):
        inst = self.start(24)
        with self.assertRaises(StateConflict):
            self.svc.resume_instance(str(inst.id))


class ReadSideTests(JourneyTestCase):
    def test_bucket_derivado_na_leitura(self):
        inst = self.start(24, 24)
        self.assertEqual(inst.stages[0].sla_bucket, SlaBucket.DUE_24_72H)

        self.clock.advance(hours=25)
        inst = self.svc.get_instance(str(inst.id))
        self.assertEqual(inst.stages[0].sla_bucket, SlaBucket.OVERDUE)
        self.assertEqual(inst.stages[1].sla_bucket, SlaBucket.ON_TRACK)

    def test_listagem_com_filtros(self):
        inst = self.start(24)
        self.start(24)
        self.svc.cancel_instance(str(inst.id))

        res = self.svc.list_instances({"status": "cancelled"}, page=1, page_size=10)
        self.assertEqual([i.id for i in res.items], [inst.id])

        res = self.svc.list_instances({"client_id": "cli-42", "niche": "trabalhista"}, page=1, page_size=1)
        self.assertEqual(res.total, 2)
        self.assertEqual(len(res.items), 1)

    def test_instancia_inexistente(self):
        with self.assertRaises(NotFoundError):
            self.svc.get_instance("00000000-0000-0000-0000-000000000000")

    def test_proxima_acao_recalculada_na_leitura(self):
        inst = self.start(100, 24)
        self.assertEqual(inst.next_action["priority"], "low")

        self.clock.advance(hours=101)
        inst = self.svc.get_instance(str(inst.id))

        self.assertEqual(inst.stages[0].sla_bucket, SlaBucket.OVERDUE)
        self.assertEqual(inst.next_action["priority"], "high")
        self.assertEqual(inst.next_action["title"], "Executar tarefa: Etapa 1 (Atrasado)")
        listed = self.svc.list_instances({"client_id": "cli-42"}, page=1, page_size=10).items[0]
        self.assertEqual(listed.next_action["priority"], "high")


class EventPublicationTests(JourneyTestCase):
    def test_eventos_do_avanco_saem_somente_apos_commit(self):
        inst = self.start(24, 24)
        stage = inst.stages[0]

        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            self.svc.advance_stage(str(inst.id), str(stage.id), "completed", "adv-1")
            self.assertEqual(self.engine.dispatcher.of_type(StageAdvancedEvent), [])

        self.assertEqual(len(callbacks), 1)
        self.assertEqual(self.engine.dispatcher.of_type(StageAdvancedEvent), [])
        callbacks[0]()
        self.assertEqual(len(self.engine.dispatcher.of_type(StageAdvancedEvent)), 1)
        self.assertEqual(len(self.engine.dispatcher.of_type(StageActivatedEvent)), 1)

    def test_transacao_externa_revertida_descarta_eventos(self):
        inst = self.start(24, 24)
        stage = inst.stages[0]

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(RuntimeError):
                with transaction.atomic():
                    self.svc.advance_stage(str(inst.id), str(stage.id), "completed", "adv-1")
                    raise RuntimeError("sincronização abortada")

        self.assertEqual(callbacks, [])
        self.assertEqual(self.engine.dispatcher.of_type(StageAdvancedEvent), [])
        self.assertEqual(StageProgress.objects.get(id=stage.id).status, "in_progress")
