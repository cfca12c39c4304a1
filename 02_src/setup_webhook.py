"""Register this backend's webhook URL with Whapi.cloud.

Run after deploying the backend. Reads WHAPI_BASE_URL, WHAPI_TOKEN and
WEBHOOK_URL from the environment or the project's .env file.
"""

import asyncio
import sys

from dotenv import load_dotenv

from chatdocs.config import PROJECT_ROOT, Settings
from chatdocs.errors import ProviderError
from chatdocs.logging_config import get_logger, setup_logging
from chatdocs.providers import WhapiClient

logger = get_logger("setup_webhook")


async def setup_webhook(settings: Settings) -> int:
    """Register the webhook; returns a process exit code."""
    if not settings.whapi_base_url or not settings.whapi_token or not settings.webhook_url:
        logger.error("Missing WHAPI_BASE_URL, WHAPI_TOKEN or WEBHOOK_URL")
        return 1

    client = WhapiClient(settings.whapi_base_url, settings.whapi_token)
    try:
        response = await client.set_webhook(settings.webhook_url)
    except ProviderError as e:
        logger.error("Error setting up webhook: %s", e)
        return 1
    finally:
        await client.aclose()

    logger.info("Webhook setup successful: %s", response)
    return 0


def main():
    load_dotenv(PROJECT_ROOT / ".env")
    setup_logging()
    sys.exit(asyncio.run(setup_webhook(Settings.from_env())))


if __name__ == "__main__":
    main()
