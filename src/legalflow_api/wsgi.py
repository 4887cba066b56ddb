import os

from django.core.wsgi import get_wsgi_application

from config.structlog_config import configure_logging

configure_logging(level=os.getenv("LOG_LEVEL", "INFO"))
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Os containers de DI são montados em LegalflowConfig.ready().
application = get_wsgi_application()
