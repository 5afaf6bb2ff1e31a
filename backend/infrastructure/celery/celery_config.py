"""
Configuração do Celery para tarefas periódicas do FarmCast.
Centraliza todas as configurações do Celery para a aplicação.
"""

import time

from celery import Celery
from celery.schedules import crontab
from kombu import Queue

from backend.api.middleware.prometheus_metrics import (
    CELERY_TASK_DURATION,
    CELERY_TASKS_TOTAL,
)
from config.settings.app_config import (
    get_celery_broker_url,
    get_celery_result_backend,
)

broker_url = get_celery_broker_url()
result_backend = get_celery_result_backend()

# Inicializar Celery
celery_app = Celery(
    "farmcast",
    broker=broker_url,
    backend=result_backend,
)


# Classe base para tarefas com monitoramento
class MonitoredTask(celery_app.Task):
    def __call__(self, *args, **kwargs):
        """Rastreia duração e status da tarefa para Prometheus."""
        start_time = time.time()
        try:
            result = super().__call__(*args, **kwargs)
            CELERY_TASKS_TOTAL.labels(
                task_name=self.name, status="SUCCESS"
            ).inc()
            return result
        except Exception:
            CELERY_TASKS_TOTAL.labels(
                task_name=self.name, status="FAILURE"
            ).inc()
            raise
        finally:
            CELERY_TASK_DURATION.labels(task_name=self.name).observe(
                time.time() - start_time
            )


# Definir classe base para todas as tarefas
celery_app.Task = MonitoredTask

# Configurações principais
celery_app.conf.update(
    # Serialização
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    # Timezone
    timezone="UTC",
    enable_utc=True,
    # Rotas e filas
    task_default_queue="general",
    task_routes={
        "weather.*": {"queue": "weather"},
    },
    task_queues=(
        Queue("general"),
        Queue("weather"),
    ),
)

# Configuração de tarefas periódicas
celery_app.conf.beat_schedule = {
    # Cache durável e alertas expirados (a cada 15 minutos)
    "purge-expired-weather-cache": {
        "task": "weather.purge_expired_cache",
        "schedule": crontab(minute="*/15"),
    },
    # Alertas agrícolas para todos os agricultores (a cada 6 horas)
    "generate-farming-alerts": {
        "task": "weather.generate_alerts_for_all",
        # 00:00, 06:00, 12:00, 18:00
        "schedule": crontab(hour="*/6", minute=0),
    },
}

# Descoberta automática de tarefas
celery_app.autodiscover_tasks(["backend.infrastructure.celery.tasks"])
