from django.apps import AppConfig


class LegalflowConfig(AppConfig):
    name = "legalflow_api"
    verbose_name = "LegalFlow Jornadas API"

    def ready(self):
        from django.conf import settings

        # ─── DI containers ──────────────────────────────────────────
        # O container de jornadas constrói o de cobrança (avaliador de marcos).
        from journey_engine.adapters.config.composition_root import (
            setup_di_container_from_settings as build_journey_container,
        )

        build_journey_container(settings)

        # ─── Celery ─────────────────────────────────────────────────
        from legalflow_api.celery import app as _celery_app  # noqa: F401
