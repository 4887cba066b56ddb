import os

from celery import Celery

# Define o módulo de configurações do Django para o Celery.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('legalflow_api')

# Todas as chaves do Celery vêm do settings com prefixo CELERY_.
app.config_from_object('django.conf:settings', namespace='CELERY')

# Procura tasks.py em todos os INSTALLED_APPS.
app.autodiscover_tasks()
