import os

from dotenv import load_dotenv

load_dotenv()

from grundy import create_app  # noqa: E402

config = os.getenv("APP_ENV", "production")

app = create_app(config)
celery_app = app.extensions["celery"]

app.logger.info(f"[BOOT] Running in {config} mode")
