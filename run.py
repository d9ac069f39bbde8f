import os

from dotenv import load_dotenv

load_dotenv()

from grundy import create_app  # noqa: E402

app = create_app(os.getenv("APP_ENV", "development"))


if __name__ == "__main__":
    app.run(
        host="0.0.0.0",
        port=int(os.getenv("PORT", "3001")),
        debug=app.config.get("DEBUG", False),
    )
