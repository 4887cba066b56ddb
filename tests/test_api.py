"""
Superfície HTTP: rotas DRF sobre os buses e mapeamento de erros de domínio.
"""
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from plugins.django_interface.models import Installment

TEMPLATE_PAYLOAD = {
    "name": "Trabalhista padrão",
    "niche": "trabalhista",
    "tags": ["clt"],
    "stages": [
        {"position": 1, "title": "Contrato Assinado", "type": "document_request", "sla_hours": 24,
         "config": {"documents": ["RG", "CTPS"]}},
        {"position": 2, "title": "Petição Protocolada", "type": "task", "sla_hours": 48},
        {"position": 3, "title": "Audiência", "type": "meeting", "sla_hours": 12, "mandatory": False},
    ],
}


class JourneyApiTests(APITestCase):
    def setUp(self):
        self.client = APIClient()

    def create_template(self, **overrides):
        resp = self.client.post("/api/journey-templates", {**TEMPLATE_PAYLOAD, **overrides}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.content)
        return resp.json()

    def start(self, template_id):
        resp = self.client.post(
            "/api/journey-instances",
            {"template_id": template_id, "client_id": "cli-1", "owner": "adv-1"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.content)
        return resp.json()

    def advance_url(self, instance, position):
        stage = next(s for s in instance["stages"] if s["position"] == position)
        return f"/api/journey-instances/{instance['id']}/stages/{stage['id']}/advance"

    def test_fluxo_completo(self):
        tpl = self.create_template()
        self.assertEqual(tpl["steps_count"], 3)
        self.assertEqual(tpl["eta_days"], 4)

        inst = self.start(tpl["id"])
        self.assertEqual(inst["status"], "active")
        self.assertEqual(inst["stages"][0]["status"], "in_progress")
        self.assertEqual(inst["next_action"]["description"], "Documentos: RG, CTPS")

        resp = self.client.post(self.advance_url(inst, 1), {"outcome": "completed", "actor": "adv-1"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()["current_stage_position"], 2)

        resp = self.client.post(self.advance_url(inst, 2), {"outcome": "completed", "actor": "adv-1"}, format="json")
        body = resp.json()
        self.assertEqual(body["status"], "completed")
        self.assertEqual(body["stages"][2]["status"], "pending")

        listing = self.client.get("/api/journey-instances", {"status": "completed"}).json()
        self.assertEqual(listing["total_items"], 1)
        self.assertEqual(listing["results"][0]["id"], inst["id"])

    def test_conflitos_viram_409_com_codigo(self):
        inst = self.start(self.create_template()["id"])

        resp = self.client.post(self.advance_url(inst, 2), {"outcome": "completed", "actor": "adv-1"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.json()["error"], "StageOutOfOrder")

        resp = self.client.post(self.advance_url(inst, 1), {"outcome": "skipped", "actor": "adv-1"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.json()["error"], "MandatoryStagePending")

    def test_validacao_e_inexistentes(self):
        resp = self.client.post(
            "/api/journey-templates", {**TEMPLATE_PAYLOAD, "stages": []}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.json()["field"], "stages")

        resp = self.client.post("/api/journey-templates", {"name": "sem etapas"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

        resp = self.client.get("/api/journey-instances/00000000-0000-0000-0000-000000000000")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.json()["error"], "NotFound")

    def test_duplicar_e_template_em_uso(self):
        tpl = self.create_template()
        copy = self.client.post(f"/api/journey-templates/{tpl['id']}/duplicate", {}, format="json").json()
        self.assertEqual(copy["name"], "Trabalhista padrão (Cópia)")

        self.start(tpl["id"])
        resp = self.client.delete(f"/api/journey-templates/{tpl['id']}")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.json()["error"], "TemplateInUse")

        resp = self.client.delete(f"/api/journey-templates/{copy['id']}")
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)

    def test_pausa_bloqueia_avanco(self):
        inst = self.start(self.create_template()["id"])
        resp = self.client.post(f"/api/journey-instances/{inst['id']}/pause", {"actor": "adv-1"}, format="json")
        self.assertEqual(resp.json()["status"], "paused")

        resp = self.client.post(self.advance_url(inst, 1), {"outcome": "completed", "actor": "adv-1"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.json()["error"], "InstanceNotActive")

    def test_relatorio_sla(self):
        self.start(self.create_template()["id"])
        resp = self.client.get("/api/reports/sla/", {"niche": "trabalhista"})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()["instances"], 1)
        self.assertEqual(resp.json()["active_stages"], 1)

        resp = self.client.get("/api/reports/sla/", {"start": "2025-03-10", "end": "2025-03-01"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)


class BillingApiTests(APITestCase):
    def setUp(self):
        self.client = APIClient()
        tpl = self.client.post("/api/journey-templates", TEMPLATE_PAYLOAD, format="json").json()
        self.template = tpl
        self.instance = self.client.post(
            "/api/journey-instances",
            {"template_id": tpl["id"], "client_id": "cli-1", "owner": "adv-1"},
            format="json",
        ).json()

    def test_plano_vinculado_e_parcela_por_marco(self):
        resp = self.client.post(
            f"/api/journey-instances/{self.instance['id']}/payment-plan",
            {"plan": {"amount_total": "9000", "installments_count": 3}},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.content)
        plan = resp.json()
        self.assertEqual(plan["client_id"], "cli-1")
        self.assertEqual([i["amount"] for i in plan["installments"]], ["3000.00"] * 3)

        petition = next(s for s in self.template["stages"] if s["position"] == 2)
        resp = self.client.post(
            f"/api/payment-plans/{plan['id']}/links",
            {"stage_template_id": petition["id"], "rule": "create_installment", "installment_amount": "1500"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.content)

        for position in (1, 2):
            stage = next(s for s in self.instance["stages"] if s["position"] == position)
            self.client.post(
                f"/api/journey-instances/{self.instance['id']}/stages/{stage['id']}/advance",
                {"outcome": "completed", "actor": "adv-1"},
                format="json",
            )

        plan = self.client.get(f"/api/payment-plans/{plan['id']}").json()
        self.assertEqual(plan["installments_count"], 4)
        self.assertEqual(plan["installments"][-1]["amount"], "1500.00")
        self.assertEqual(plan["installments"][-1]["triggered_by_stage_id"], petition["id"])

        links = self.client.get(f"/api/payment-plans/{plan['id']}/links").json()
        self.assertEqual(len(links), 1)

    def test_vinculo_malformado_400(self):
        plan = self.client.post(
            "/api/payment-plans", {"client_id": "cli-1", "amount_total": "100", "installments_count": 1}, format="json"
        ).json()
        stage = self.template["stages"][0]
        resp = self.client.post(
            f"/api/payment-plans/{plan['id']}/links",
            {"stage_template_id": stage["id"], "rule": "activate_installment"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.json()["error"], "BillingRuleError")

    def test_baixa_de_parcela_conclui_plano(self):
        plan = self.client.post(
            "/api/payment-plans", {"client_id": "cli-1", "amount_total": "100", "installments_count": 1}, format="json"
        ).json()
        installment_id = plan["installments"][0]["id"]

        resp = self.client.post(f"/api/installments/{installment_id}/pay", {"payment_method": "pix"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()["status"], "concluido")
        self.assertEqual(resp.json()["amount_paid"], "100.00")

        resp = self.client.post(f"/api/installments/{installment_id}/cancel", {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)

    def test_varredura_manual(self):
        plan = self.client.post(
            "/api/payment-plans",
            {"client_id": "cli-1", "amount_total": "100", "installments_count": 1, "first_due_date": "2020-01-10"},
            format="json",
        ).json()

        resp = self.client.post("/api/billing/reconciliation-sweep/", {}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()["installments_aged"], 1)
        self.assertEqual(resp.json()["plans_defaulted"], 1)
        self.assertEqual(Installment.objects.get(plan_id=plan["id"]).status, "vencida")

        resp = self.client.post(f"/api/payment-plans/{plan['id']}/reactivate", {"actor": "fin-1"}, format="json")
        self.assertEqual(resp.json()["status"], "ativo")


class HealthCheckTests(APITestCase):
    def test_healthz(self):
        resp = APIClient().get("/api/healthz/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json(), {"status": "ok", "database": "up"})
