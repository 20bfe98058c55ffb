"""MCP server wiring: build the Coinbase client and demo wallet, register tool modules."""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from http.server import BaseHTTPRequestHandler, HTTPServer
from importlib import import_module
from typing import List

from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP

from src.services.factory import build_services
from src.services.types import MarketDataService, WalletService
from src.utils.telemetry import configure_logging, configure_otel

# One file per tool so tools can be added/removed independently.
TOOL_MODULES: List[str] = [
    "src.mcp_server.tools.get_spot_price",
    "src.mcp_server.tools.get_historical_prices",
    "src.mcp_server.tools.get_exchange_rates",
    "src.mcp_server.tools.search_assets",
    "src.mcp_server.tools.get_asset_details",
    "src.mcp_server.tools.get_market_stats",
    "src.mcp_server.tools.get_popular_pairs",
    "src.mcp_server.tools.analyze_price_data",
    "src.mcp_server.tools.calculate_beer_cost",
    "src.mcp_server.tools.simulate_purchase",
    "src.mcp_server.tools.get_wallet",
    "src.mcp_server.tools.get_transaction_history",
    "src.mcp_server.tools.buy_virtual_beer",
    "src.mcp_server.tools.reset_wallet",
    "src.mcp_server.tools.get_wallet_stats",
    "src.mcp_server.resources",
    "src.mcp_server.prompts",
]

SERVER_NAME = "coinbase-mcp"

logger = logging.getLogger(__name__)


def start_health_server(host: str, port: int, ready_flag: dict) -> threading.Thread:
    """Start a lightweight HTTP server for liveness/readiness probes."""
    started = time.monotonic()

    class Handler(BaseHTTPRequestHandler):
        def log_message(self, format, *args):  # noqa: A002
            return

        def _reply(self, status: int, payload: dict) -> None:
            body = json.dumps(payload).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def do_GET(self):  # noqa: N802
            if self.path in ("/healthz", "/livez"):
                self._reply(200, {"status": "ok", "uptime": round(time.monotonic() - started, 3)})
            elif self.path in ("/readyz", "/ready"):
                ready = bool(ready_flag.get("ready"))
                self._reply(200 if ready else 503, {"status": "ready" if ready else "not-ready"})
            else:
                self._reply(404, {"error": "not found", "path": self.path})

    httpd = HTTPServer((host, port), Handler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    logger.info("Health server started on http://%s:%s (healthz/readyz)", host, port)
    ready_flag["server"] = httpd
    return thread


def build_server(
    market: MarketDataService,
    wallet: WalletService,
    host: str | None = None,
    port: int | None = None,
    sse_path: str | None = None,
) -> FastMCP:
    logger.info("Building MCP server with %d modules", len(TOOL_MODULES))
    mcp = FastMCP(
        SERVER_NAME,
        host=host or "127.0.0.1",
        port=port or 8000,
        sse_path=sse_path or "/sse",
    )
    for module_path in TOOL_MODULES:
        module = import_module(module_path)
        if not hasattr(module, "register"):
            raise AttributeError(f"Module {module_path} missing register()")
        module.register(mcp, market, wallet)
        logger.debug("Registered module: %s", module_path)
    return mcp


def run() -> None:
    """Entry point for the Coinbase MCP server."""
    load_dotenv()
    configure_logging()
    configure_otel("coinbase-mcp")
    transport = os.getenv("MCP_TRANSPORT", "stdio").lower()
    host = os.getenv("MCP_HOST", "0.0.0.0")
    port = int(os.getenv("MCP_PORT", "8001"))
    sse_path = os.getenv("MCP_SSE_PATH", "/sse")
    health_host = os.getenv("HEALTH_HOST", "0.0.0.0")
    health_port = int(os.getenv("HEALTH_PORT", "8081"))
    ready_flag: dict = {"ready": False}

    start_health_server(health_host, health_port, ready_flag)

    services = build_services()
    mcp = build_server(services.market, services.wallet, host=host, port=port, sse_path=sse_path)
    logger.info("Starting MCP server... transport=%s host=%s port=%s sse_path=%s", transport, host, port, sse_path)
    ready_flag["ready"] = True

    if transport == "stdio":
        mcp.run()
    else:
        # "sse" or "streamable-http"
        mcp.run(transport=transport)


if __name__ == "__main__":
    run()
