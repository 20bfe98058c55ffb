"""Run the REST API with uvicorn."""

from __future__ import annotations

import logging
import os

import uvicorn
from dotenv import load_dotenv

from src.api.app import create_app
from src.services.factory import build_services
from src.utils.telemetry import configure_logging, configure_otel

logger = logging.getLogger(__name__)


def run() -> None:
    load_dotenv()
    configure_logging()
    configure_otel("coinbase-api")
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "3002"))

    services = build_services()
    app = create_app(services.market, services.wallet)
    logger.info("Starting REST API on http://%s:%s", host, port)
    uvicorn.run(app, host=host, port=port, log_config=None)


if __name__ == "__main__":
    run()
