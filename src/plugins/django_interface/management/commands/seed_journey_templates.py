from django.core.management.base import BaseCommand

from journey_engine.adapters.config.composition_root import container as journey_container
from journey_engine.core.application.commands.template_commands import CreateJourneyTemplateCommand
from journey_engine.core.application.dtos.journey_template_dto import JourneyTemplateDTO
from plugins.django_interface.models import JourneyTemplate

# Templates de referência por área de atuação
JOURNEY_TEMPLATES = [
    {
        "name": "Onboarding Trabalhista",
        "niche": "trabalhista",
        "description": "Processo completo para novos clientes com questões trabalhistas",
        "tags": ["iniciante", "trabalhista", "CLT"],
        "stages": [
            {"position": 1, "title": "Coleta de Documentos",  "type": "document_request", "sla_hours": 48,  "description": "Carteira de trabalho e documentos pessoais"},
            {"position": 2, "title": "Análise do Caso",       "type": "form",             "sla_hours": 24,  "description": "Formulário de análise inicial"},
            {"position": 3, "title": "Reunião Estratégica",   "type": "meeting",          "sla_hours": 168, "description": "Primeira reunião para definir estratégia"},
        ],
    },
    {
        "name": "Divórcio Consensual",
        "niche": "familia",
        "description": "Fluxo otimizado para divórcios consensuais",
        "tags": ["família", "divórcio", "consensual"],
        "stages": [
            {"position": 1, "title": "Orientação Inicial",    "type": "lesson",           "sla_hours": 24, "description": "Vídeo explicativo sobre o processo"},
            {"position": 2, "title": "Documentação Pessoal",  "type": "document_request", "sla_hours": 72, "description": "Documentos pessoais e do cônjuge"},
            {"position": 3, "title": "Revisão do Acordo",     "type": "manual_review",    "sla_hours": 48},
            {"position": 4, "title": "Pesquisa de Satisfação", "type": "form",            "sla_hours": 72, "mandatory": False},
        ],
    },
    {
        "name": "Recuperação Judicial",
        "niche": "empresarial",
        "description": "Processo completo para empresas em recuperação judicial",
        "tags": ["empresarial", "recuperação", "complexo"],
        "stages": [
            {"position": 1, "title": "Auditoria Financeira",  "type": "form",         "sla_hours": 240, "description": "Levantamento completo da situação financeira"},
            {"position": 2, "title": "Plano de Recuperação",  "type": "task",         "sla_hours": 480},
            {"position": 3, "title": "Aviso aos Credores",    "type": "notification", "sla_hours": 24},
        ],
    },
]


class Command(BaseCommand):
    help = "Seed dos templates de jornada de referência (idempotente por nome)"

    def add_arguments(self, parser):
        parser.add_argument("--created-by", default="seed", help="Autor registrado nos templates criados")

    def handle(self, *args, **options):
        self.stdout.write("🌿 Iniciando seeding de templates de jornada...")
        bus = journey_container.command_bus()
        created = skipped = 0

        for data in JOURNEY_TEMPLATES:
            if JourneyTemplate.objects.filter(name=data["name"]).exists():
                skipped += 1
                continue
            bus.dispatch(
                CreateJourneyTemplateCommand(
                    payload=JourneyTemplateDTO(**data),
                    created_by=options["created_by"],
                )
            )
            created += 1

        self.stdout.write(self.style.SUCCESS(
            f"✅ Seeding concluído: {created} criados, {skipped} já existentes."
        ))
