"""Main entry point for the chat document desk."""

import uvicorn
from dotenv import load_dotenv

from chatdocs.config import PROJECT_ROOT, Settings
from chatdocs.logging_config import setup_logging


def main():
    """Run the application."""
    load_dotenv(PROJECT_ROOT / ".env")
    setup_logging()

    from chatdocs.api import create_fastapi_app
    from chatdocs.app import Application

    settings = Settings.from_env()
    app = create_fastapi_app(Application(settings))

    # Run with uvicorn
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
