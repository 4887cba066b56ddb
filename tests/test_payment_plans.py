from datetime import date
from decimal import Decimal
from unittest import mock

from django.test import SimpleTestCase, TestCase

from journey_engine.core.domain.events.events import PlanStatusChangedEvent
from journey_engine.core.domain.events.exceptions import NotFoundError, StateConflict, ValidationError
from milestone_billing.core.application.services.payment_plan_service import add_months, split_amount
from milestone_billing.core.domain.entities.enums import InstallmentStatus, PlanStatus
from tests.helpers.builders import build_engine, stages_spec


class SplitHelpersTests(SimpleTestCase):
    def test_resto_dos_centavos_na_ultima(self):
        self.assertEqual(split_amount(Decimal("100.00"), 3), [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")])
        self.assertEqual(split_amount(Decimal("10"), 0), [])

    def test_soma_de_meses_no_fim_do_mes(self):
        self.assertEqual(add_months(date(2025, 1, 31), 1), date(2025, 2, 28))
        self.assertEqual(add_months(date(2024, 1, 31), 1), date(2024, 2, 29))
        self.assertEqual(add_months(date(2025, 11, 15), 3), date(2026, 2, 15))


class PaymentPlanTests(TestCase):
    def setUp(self):
        self.engine = build_engine()
        self.plans = self.engine.plans

    def test_criacao_divide_em_parcelas_mensais(self):
        plan = self.plans.create_plan("cli-1", Decimal("1000"), 3, first_due_date=date(2025, 1, 31))

        self.assertEqual(plan.status, PlanStatus.ATIVO)
        self.assertEqual([i.sequence_number for i in plan.installments], [1, 2, 3])
        self.assertEqual([i.due_date for i in plan.installments], [date(2025, 1, 31), date(2025, 2, 28), date(2025, 3, 31)])
        self.assertEqual(sum(i.amount for i in plan.installments), Decimal("1000.00"))
        self.assertEqual(plan.installments[-1].amount, Decimal("333.34"))

    def test_primeiro_vencimento_padrao_e_hoje(self):
        plan = self.plans.create_plan("cli-1", Decimal("50"), 1)
        self.assertEqual(plan.installments[0].due_date, self.engine.clock.today())

    def test_valores_invalidos(self):
        for kwargs in (
            {"client_id": "", "amount_total": Decimal("10"), "installments_count": 1},
            {"client_id": "c", "amount_total": Decimal("0"), "installments_count": 1},
            {"client_id": "c", "amount_total": Decimal("10"), "installments_count": -1},
        ):
            with self.subTest(**{k: str(v) for k, v in kwargs.items()}):
                with self.assertRaises(ValidationError):
                    self.plans.create_plan(**kwargs)

    def test_pagamento_de_todas_conclui_o_plano(self):
        plan = self.plans.create_plan("cli-1", Decimal("200"), 2)
        first, second = plan.installments

        plan = self.plans.mark_installment_paid(str(first.id), payment_method="pix")
        self.assertEqual(plan.status, PlanStatus.ATIVO)
        self.assertEqual(plan.amount_paid, Decimal("100.00"))
        self.assertEqual(plan.installments[0].payment_method, "pix")
        self.assertEqual(plan.installments[0].paid_at, self.engine.clock.now())

        plan = self.plans.cancel_installment(str(second.id), notes="acordo")
        self.assertEqual(plan.status, PlanStatus.CONCLUIDO)
        self.assertEqual(plan.installments[1].status, InstallmentStatus.CANCELADA)

    def test_cancelar_todas_nao_conclui(self):
        plan = self.plans.create_plan("cli-1", Decimal("100"), 1)
        plan = self.plans.cancel_installment(str(plan.installments[0].id))
        self.assertEqual(plan.status, PlanStatus.ATIVO)

    def test_parcela_paga_nao_volta(self):
        plan = self.plans.create_plan("cli-1", Decimal("100"), 2)
        inst_id = str(plan.installments[0].id)
        self.plans.mark_installment_paid(inst_id)

        for action in (self.plans.mark_installment_paid, self.plans.cancel_installment):
            with self.subTest(action=action.__name__):
                with self.assertRaises(StateConflict) as ctx:
                    action(inst_id)
                self.assertEqual(ctx.exception.code, "InvalidTransition")

    def test_parcela_inexistente(self):
        with self.assertRaises(NotFoundError):
            self.plans.mark_installment_paid("00000000-0000-0000-0000-000000000000")

    def test_pausa_e_reativacao_manual(self):
        plan = self.plans.create_plan("cli-1", Decimal("100"), 1)

        with self.captureOnCommitCallbacks(execute=True):
            plan = self.plans.pause_plan(str(plan.id), actor="fin-1")
        self.assertEqual(plan.status, PlanStatus.PAUSADO)

        with self.captureOnCommitCallbacks(execute=True):
            plan = self.plans.reactivate_plan(str(plan.id), actor="fin-1")
        self.assertEqual(plan.status, PlanStatus.ATIVO)

        with self.assertRaises(StateConflict):
            self.plans.reactivate_plan(str(plan.id))

        changes = self.engine.dispatcher.of_type(PlanStatusChangedEvent)
        self.assertEqual([(e.previous, e.current) for e in changes], [("ativo", "pausado"), ("pausado", "ativo")])

    def test_pagamento_em_plano_pausado_nao_conclui(self):
        plan = self.plans.create_plan("cli-1", Decimal("100"), 1)
        self.plans.pause_plan(str(plan.id))

        plan = self.plans.mark_installment_paid(str(plan.installments[0].id))
        self.assertEqual(plan.status, PlanStatus.PAUSADO)

        with self.captureOnCommitCallbacks(execute=True):
            plan = self.plans.reactivate_plan(str(plan.id))
        self.assertEqual(plan.status, PlanStatus.CONCLUIDO)
        changes = self.engine.dispatcher.of_type(PlanStatusChangedEvent)
        self.assertEqual([e.current for e in changes][-2:], ["ativo", "concluido"])

    def test_reativacao_e_conclusao_na_mesma_transacao(self):
        plan = self.plans.create_plan("cli-1", Decimal("100"), 1)
        self.plans.pause_plan(str(plan.id))
        self.plans.mark_installment_paid(str(plan.installments[0].id))

        with mock.patch.object(self.plans, "_refresh_completion", side_effect=RuntimeError("falha")):
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                with self.assertRaises(RuntimeError):
                    self.plans.reactivate_plan(str(plan.id))

        self.assertEqual(self.plans.get_plan(str(plan.id)).status, PlanStatus.PAUSADO)
        self.assertEqual(callbacks, [])


class AttachPaymentPlanTests(TestCase):
    def setUp(self):
        self.engine = build_engine()
        tpl = self.engine.catalog.create_template("Família", "familia", stages_spec(24))
        self.instance = self.engine.instances.start_instance(str(tpl.id), "cli-7", "adv-1")
        self.other = self.engine.instances.start_instance(str(tpl.id), "cli-7", "adv-2")

    def test_novo_plano_herda_cliente_da_jornada(self):
        plan = self.engine.plans.attach_payment_plan(
            str(self.instance.id), new_plan={"amount_total": Decimal("600"), "installments_count": 2}
        )
        self.assertEqual(plan.client_id, "cli-7")
        self.assertEqual(plan.journey_instance_id, self.instance.id)

    def test_plano_existente(self):
        plan = self.engine.plans.create_plan("cli-7", Decimal("600"), 2)
        attached = self.engine.plans.attach_payment_plan(str(self.instance.id), plan_id=str(plan.id))
        self.assertEqual(attached.journey_instance_id, self.instance.id)

        # reanexar à mesma jornada é aceito
        self.engine.plans.attach_payment_plan(str(self.instance.id), plan_id=str(plan.id))

        with self.assertRaises(StateConflict) as ctx:
            self.engine.plans.attach_payment_plan(str(self.other.id), plan_id=str(plan.id))
        self.assertEqual(ctx.exception.code, "InvalidTransition")

    def test_plano_de_outro_cliente(self):
        plan = self.engine.plans.create_plan("cli-8", Decimal("600"), 2)
        with self.assertRaises(ValidationError):
            self.engine.plans.attach_payment_plan(str(self.instance.id), plan_id=str(plan.id))

    def test_exige_exatamente_uma_origem(self):
        with self.assertRaises(ValidationError):
            self.engine.plans.attach_payment_plan(str(self.instance.id))

    def test_jornada_inexistente(self):
        with self.assertRaises(NotFoundError):
            self.engine.plans.attach_payment_plan(
                "00000000-0000-0000-0000-000000000000", new_plan={"amount_total": "10"}
            )
