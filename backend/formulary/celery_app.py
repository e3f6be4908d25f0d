from celery import Celery

from formulary.config import settings

# Configure Celery to use Redis
celery_app = Celery(
    "formulary",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["formulary.tasks.formulas"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_routes={
        "formulary.tasks.formulas.refresh_formula": {"queue": "formulas"},
        "formulary.tasks.formulas.generate_formula_history": {"queue": "history"},
        "formulary.tasks.formulas.fetch_formula_source": {"queue": "formulas"},
    },
)
