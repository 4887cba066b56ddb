"""
Catálogo de templates: validação das etapas, ETA, duplicação e bloqueio
de edição depois que o template entra em uso.
"""
from decimal import Decimal

from django.test import TestCase

from journey_engine.core.domain.events.events import JourneyTemplateCreatedEvent
from journey_engine.core.domain.events.exceptions import NotFoundError, StateConflict, ValidationError
from plugins.django_interface.models import JourneyTemplate, StagePaymentLink, TemplateStage
from tests.helpers.builders import build_engine, stages_spec


class TemplateCreationTests(TestCase):
    def setUp(self):
        self.engine = build_engine()
        self.catalog = self.engine.catalog

    def test_cria_template_com_eta_e_contagem(self):
        with self.captureOnCommitCallbacks(execute=True):
            tpl = self.catalog.create_template("Trabalhista", "trabalhista", stages_spec(24, 48, 12), tags=["clt"])

        self.assertEqual(tpl.steps_count, 3)
        # 84h → 3,5 dias → 4
        self.assertEqual(tpl.eta_days, 4)
        self.assertEqual([s.position for s in tpl.stages], [1, 2, 3])
        self.assertEqual(TemplateStage.objects.filter(template_id=tpl.id).count(), 3)

        evt = self.engine.dispatcher.of_type(JourneyTemplateCreatedEvent)[0]
        self.assertEqual(evt.template_id, tpl.id)
        self.assertEqual(evt.steps_count, 3)
        self.assertIsNone(evt.duplicated_from)

    def test_posicoes_fora_de_ordem_sao_normalizadas(self):
        stages = list(reversed(stages_spec(8, 16)))
        tpl = self.catalog.create_template("Família", "familia", stages)
        self.assertEqual([s.title for s in tpl.stages], ["Etapa 1", "Etapa 2"])

    def test_rejeicoes(self):
        gap = stages_spec(24, 24, 24)
        gap[2]["position"] = 4
        dup = stages_spec(24, 24)
        dup[1]["position"] = 1
        bad_type = stages_spec(24)
        bad_type[0]["type"] = "telefonema"
        blank_title = stages_spec(24)
        blank_title[0]["title"] = "   "
        negative = stages_spec(24)
        negative[0]["sla_hours"] = -1

        cases = {
            "vazio": [],
            "lacuna": gap,
            "duplicada": dup,
            "tipo desconhecido": bad_type,
            "sem título": blank_title,
            "sla negativo": negative,
            "sem obrigatória": stages_spec(24, 24, optional=(1, 2)),
        }
        for label, stages in cases.items():
            with self.subTest(label):
                with self.assertRaises(ValidationError):
                    self.catalog.create_template("Inválido", "civel", stages)

        self.assertFalse(JourneyTemplate.objects.exists())

    def test_nome_obrigatorio(self):
        with self.assertRaises(ValidationError) as ctx:
            self.catalog.create_template("  ", "civel", stages_spec(24))
        self.assertEqual(ctx.exception.field, "name")


class TemplateDuplicationTests(TestCase):
    def setUp(self):
        self.engine = build_engine()
        self.catalog = self.engine.catalog
        stages = stages_spec(24, 72, types=("document_request", "meeting"), optional=(2,))
        stages[0]["config"] = {"documents": ["RG", "CPF"]}
        self.source = self.catalog.create_template("Empresarial", "empresarial", stages, tags=["pj"])

    def test_copia_profunda_com_novos_ids(self):
        with self.captureOnCommitCallbacks(execute=True):
            copy = self.catalog.duplicate_template(str(self.source.id), created_by="ana")

        self.assertNotEqual(copy.id, self.source.id)
        self.assertEqual(copy.name, "Empresarial (Cópia)")
        self.assertEqual(copy.niche, "empresarial")
        self.assertEqual(copy.tags, ["pj"])
        self.assertEqual(copy.eta_days, self.source.eta_days)

        source_ids = {s.id for s in self.source.stages}
        for original, copied in zip(self.source.stages, copy.stages, strict=True):
            self.assertNotIn(copied.id, source_ids)
            self.assertEqual(copied.position, original.position)
            self.assertEqual(copied.type, original.type)
            self.assertEqual(copied.mandatory, original.mandatory)
            self.assertEqual(copied.config, original.config)

        evt = self.engine.dispatcher.of_type(JourneyTemplateCreatedEvent)[-1]
        self.assertEqual(evt.duplicated_from, self.source.id)

    def test_duplicar_inexistente(self):
        with self.assertRaises(NotFoundError):
            self.catalog.duplicate_template("00000000-0000-0000-0000-000000000000")


class TemplateInUseTests(TestCase):
    def setUp(self):
        self.engine = build_engine()
        self.tpl = self.engine.catalog.create_template("Cível", "civel", stages_spec(24, 24))

    def test_edicao_livre_antes_do_uso(self):
        updated = self.engine.catalog.update_template(
            str(self.tpl.id), "Cível v2", "civel", stages_spec(12, 12, 12)
        )
        self.assertEqual(updated.name, "Cível v2")
        self.assertEqual(updated.steps_count, 3)
        self.assertEqual(TemplateStage.objects.filter(template_id=self.tpl.id).count(), 3)

    def test_edicao_e_exclusao_bloqueadas_com_instancia(self):
        self.engine.instances.start_instance(str(self.tpl.id), "cli-1", "adv-1")

        with self.assertRaises(StateConflict) as ctx:
            self.engine.catalog.update_template(str(self.tpl.id), "Outro", "civel", stages_spec(24))
        self.assertEqual(ctx.exception.code, "TemplateInUse")

        with self.assertRaises(StateConflict) as ctx:
            self.engine.catalog.delete_template(str(self.tpl.id))
        self.assertEqual(ctx.exception.code, "TemplateInUse")
        self.assertTrue(JourneyTemplate.objects.filter(id=self.tpl.id).exists())

    def test_exclusao_sem_instancias(self):
        self.engine.catalog.delete_template(str(self.tpl.id))
        self.assertFalse(JourneyTemplate.objects.filter(id=self.tpl.id).exists())


class TemplateWithPaymentLinksTests(TestCase):
    def setUp(self):
        self.engine = build_engine()
        self.tpl = self.engine.catalog.create_template("Cível", "civel", stages_spec(24, 24))
        plan = self.engine.plans.create_plan("cli-1", Decimal("300"), 1)
        self.linked = self.tpl.stages[1]
        self.engine.plans.add_payment_link(
            str(plan.id), str(self.linked.id), "create_installment", installment_amount=Decimal("100")
        )

    def test_edicao_mantem_ids_e_vinculos(self):
        updated = self.engine.catalog.update_template(
            str(self.tpl.id), "Cível v2", "civel", stages_spec(12, 36, 8)
        )

        self.assertEqual([s.id for s in updated.stages][:2], [s.id for s in self.tpl.stages])
        self.assertEqual(updated.stages[1].sla_hours, 36)
        self.assertEqual(StagePaymentLink.objects.filter(stage_template_id=self.linked.id).count(), 1)

    def test_remover_etapa_vinculada_e_recusado(self):
        with self.assertRaises(StateConflict) as ctx:
            self.engine.catalog.update_template(str(self.tpl.id), "Cível", "civel", stages_spec(24))

        self.assertEqual(ctx.exception.code, "TemplateInUse")
        self.assertEqual(TemplateStage.objects.filter(template_id=self.tpl.id).count(), 2)
        self.assertEqual(StagePaymentLink.objects.count(), 1)

    def test_exclusao_recusada_com_vinculos(self):
        with self.assertRaises(StateConflict) as ctx:
            self.engine.catalog.delete_template(str(self.tpl.id))

        self.assertEqual(ctx.exception.code, "TemplateInUse")
        self.assertTrue(JourneyTemplate.objects.filter(id=self.tpl.id).exists())
        self.assertEqual(StagePaymentLink.objects.count(), 1)


class TemplateListingTests(TestCase):
    def setUp(self):
        self.engine = build_engine()
        catalog = self.engine.catalog
        catalog.create_template("Rescisão", "trabalhista", stages_spec(24), tags=["clt"])
        catalog.create_template("Divórcio", "familia", stages_spec(24), description="consensual", tags=["urgente"])
        catalog.create_template("Guarda", "familia", stages_spec(24))

    def test_filtros(self):
        repo = self.engine.catalog.template_repo

        by_niche = repo.list({"niche": "familia"}, page=1, page_size=10)
        self.assertEqual([t.name for t in by_niche.items], ["Divórcio", "Guarda"])

        by_tag = repo.list({"tag": "clt"}, page=1, page_size=10)
        self.assertEqual([t.name for t in by_tag.items], ["Rescisão"])

        by_search = repo.list({"search": "consens"}, page=1, page_size=10)
        self.assertEqual(by_search.total, 1)

    def test_paginacao(self):
        res = self.engine.catalog.template_repo.list({}, page=2, page_size=2)
        self.assertEqual(res.total, 3)
        self.assertEqual(res.total_pages, 2)
        self.assertEqual(len(res.items), 1)
