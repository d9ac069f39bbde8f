import logging

from celery import Celery, Task

logger = logging.getLogger(__name__)


def make_celery(app):
    """
    Build the Celery app from the Flask config and bind tasks to the Flask
    app context. Worker entry point: ``celery -A wsgi.celery_app worker``.
    """

    class ObservedTask(Task):
        abstract = True

        def __call__(self, *args, **kwargs):
            with app.app_context():
                try:
                    return self.run(*args, **kwargs)
                except Exception:
                    logger.exception("Task failed", extra={"task": self.name})
                    raise

    celery_app = Celery(app.import_name, task_cls=ObservedTask)
    celery_app.config_from_object(app.config["CELERY"])
    celery_app.set_default()

    app.extensions["celery"] = celery_app
    return celery_app
