"""
Quick MCP tool smoke runner.

Usage:
    python scripts/smoke_mcp_tools.py

Starts the MCP server over stdio (MCP_SERVER_CMD, or MCP_SERVER_URL for SSE),
then invokes every registered tool with sample arguments. Market tools hit the
public Coinbase API; the wallet is in memory, so each call sees a fresh wallet.
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Tuple

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from src.mcp_client.client import MCPToolClient  # noqa: E402
from src.utils.telemetry import configure_logging  # noqa: E402

# (tool_name, kwargs)
TEST_CASES: List[Tuple[str, Dict[str, Any]]] = [
    ("get_spot_price", {"currency_pair": "BTC-USD"}),
    ("get_historical_prices", {"currency_pair": "ETH-USD", "period": "day"}),
    ("get_exchange_rates", {"currency": "USD"}),
    ("search_assets", {"query": "bitcoin", "limit": 3}),
    ("get_asset_details", {"asset_id": "BTC"}),
    ("get_market_stats", {"currency_pair": "BTC-USD"}),
    ("get_popular_pairs", {}),
    ("analyze_price_data", {"currency_pair": "BTC-USD", "metrics": ["volatility", "trend", "support_resistance"]}),
    ("calculate_beer_cost", {"currency": "BTC", "beer_count": 2}),
    ("simulate_purchase", {"to_currency": "BTC", "amount": 100.0}),
    ("get_wallet", {}),
    ("get_transaction_history", {"limit": 5}),
    ("buy_virtual_beer", {"quantity": 1, "currency": "BTC"}),
    ("get_wallet_stats", {}),
    ("reset_wallet", {}),
]


def run_case(client: MCPToolClient, name: str, params: Dict[str, Any]) -> Dict[str, Any]:
    try:
        result = client.call_tool(name, **params)
        return {"ok": True, "result": result}
    except Exception as exc:  # noqa: BLE001
        return {"ok": False, "error": str(exc)}


def main() -> None:
    load_dotenv()
    configure_logging(os.getenv("LOG_LEVEL", "WARNING"))
    os.environ.setdefault("MCP_SERVER_CMD", f"{sys.executable} -m src.mcp_server.server")
    print(f"[info] MCP_SERVER_CMD={os.environ['MCP_SERVER_CMD']}")

    client = MCPToolClient(server_cmd=os.environ["MCP_SERVER_CMD"], server_url=os.getenv("MCP_SERVER_URL"))

    results = [(name, run_case(client, name, params)) for name, params in TEST_CASES]

    print("\n=== MCP tool smoke results ===")
    failures = 0
    for name, res in results:
        status = "OK " if res["ok"] else "FAIL"
        failures += 0 if res["ok"] else 1
        payload = res.get("result") if res["ok"] else res.get("error")
        pretty = json.dumps(payload, ensure_ascii=False) if isinstance(payload, (dict, list)) else str(payload)
        print(f"{status:4} {name}: {pretty}")
    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
