import asyncio
import os

import streamlit as st
from dotenv import load_dotenv

from src.agent.core import CryptoAgent
from src.agent.tools import make_tool_caller
from src.mcp_client.client import make_mcp_tool_caller
from src.services.factory import build_services
from src.utils.telemetry import configure_logging, configure_otel


load_dotenv()
configure_logging()
configure_otel("coinbase-streamlit")

st.set_page_config(page_title="Coinbase Beer Wallet", page_icon="🍺", layout="wide")

QUICK_PAIRS = ["BTC-USD", "ETH-USD", "SOL-USD", "ADA-USD", "DOGE-USD"]


def load_style() -> None:
    """浅色聊天样式。"""
    st.markdown(
        """
        <style>
        @import url('https://fonts.googleapis.com/css2?family=Space+Grotesk:wght@400;500;600&display=swap');
        :root {
            --bg: #f6f7fb;
            --panel: #ffffff;
            --muted: #6b7280;
            --accent: #0052ff;
            --beer: #f59e0b;
            --text: #0f172a;
        }
        * { font-family: 'Space Grotesk', system-ui, -apple-system, sans-serif; }
        [data-testid="stAppViewContainer"] {
            background: radial-gradient(circle at 20% 20%, rgba(0,82,255,0.08), rgba(255,255,255,0)),
                        radial-gradient(circle at 80% 0%, rgba(245,158,11,0.10), rgba(255,255,255,0)),
                        var(--bg);
            color: var(--text);
        }
        [data-testid="stSidebar"] {
            background: linear-gradient(180deg, #fdfefe 0%, #f4f6fb 100%);
            border-right: 1px solid #e5e7eb;
        }
        .hero-card {
            background: linear-gradient(135deg, #ffffff 0%, #f4f7ff 100%);
            border: 1px solid #e5e7eb;
            padding: 18px;
            border-radius: 16px;
            box-shadow: 0 10px 30px rgba(15,23,42,0.12);
        }
        .hero-title { font-size: 26px; font-weight: 600; margin: 0 0 6px 0; }
        .hero-sub { color: var(--muted); margin: 0; }
        [data-testid="stChatMessage"] {
            background: var(--panel);
            border: 1px solid #e5e7eb;
            border-radius: 16px;
            padding: 12px 14px;
            margin-bottom: 12px;
        }
        .tag {
            display: inline-block;
            padding: 4px 8px;
            border-radius: 10px;
            background: rgba(0,82,255,0.10);
            color: var(--accent);
            font-weight: 600;
            font-size: 12px;
            margin-right: 8px;
        }
        .tag.beer { background: rgba(245,158,11,0.15); color: #b45309; }
        </style>
        """,
        unsafe_allow_html=True,
    )


def init_state():
    if "services" not in st.session_state:
        st.session_state.services = build_services()

    if "tool_caller" not in st.session_state:
        # A long-running SSE server keeps its own wallet; otherwise serve tools in-process.
        if os.getenv("MCP_SERVER_URL"):
            st.session_state.tool_caller = make_mcp_tool_caller()
        else:
            services = st.session_state.services
            st.session_state.tool_caller = make_tool_caller(services.market, services.wallet)

    if "agent" not in st.session_state:
        st.session_state.agent = CryptoAgent(tool_caller=st.session_state.tool_caller)

    if "turns" not in st.session_state:
        st.session_state.turns = []


def render_header(agent: CryptoAgent):
    st.markdown(
        """
        <div class="hero-card">
            <div class="tag">Coinbase + MCP</div>
            <div class="tag beer">🍺 Demo Wallet</div>
            <h1 class="hero-title">Coinbase Beer Wallet</h1>
            <p class="hero-sub">Ask about crypto prices, then see how much Bitcoin a beer buys in a simulated wallet.</p>
        </div>
        """,
        unsafe_allow_html=True,
    )
    col1, col2 = st.columns(2)
    col1.metric("Mode", "Basic" if agent.basic_mode else "AI")
    col2.metric("Requests left this hour", agent.remaining_requests())


def render_sidebar():
    wallet = st.session_state.services.wallet
    with st.sidebar:
        st.markdown("### 🍺 Demo Wallet")
        snapshot = wallet.get_wallet()
        for code, amount in snapshot.balances.items():
            label = f"${amount:,.2f}" if code == "USD" else f"{amount:.8f}"
            st.metric(code, label)
        st.metric("Beers", snapshot.inventory.beers)
        try:
            stats = asyncio.run(wallet.get_wallet_stats())
            st.caption(f"Portfolio value: ${stats.portfolio_value:,.2f} · {stats.total_transactions} transactions")
        except Exception as exc:  # noqa: BLE001
            st.error(f"Stats unavailable: {exc}")
        if st.button("Reset wallet"):
            wallet.reset_wallet()
            st.success("Wallet reset to initial state")
            st.rerun()

        st.markdown("### Quick actions")
        currency = st.selectbox("Crypto", ["BTC", "ETH", "SOL", "USDC"])
        beers = st.number_input("Beers", value=1, min_value=1, step=1)
        if st.button("How much crypto is that?"):
            try:
                calc = asyncio.run(wallet.calculate_beer_cost(currency, int(beers)))
                st.info(calc.description)
            except Exception as exc:  # noqa: BLE001
                st.error(f"Failed: {exc}")
        usd = st.number_input("Spend USD", value=5.0, min_value=0.01, step=1.0)
        if st.button(f"Buy {currency}"):
            try:
                tx = asyncio.run(wallet.simulate_purchase("USD", currency, float(usd)))
                st.success(f"Bought {tx.to_amount:.8f} {currency} at ${tx.price:,.2f}")
                st.rerun()
            except Exception as exc:  # noqa: BLE001
                st.error(f"Purchase failed: {exc}")
        if st.button("Buy beer with crypto"):
            try:
                result = asyncio.run(wallet.buy_virtual_beer(int(beers), currency))
                if result.success:
                    st.success(result.message)
                    st.rerun()
                else:
                    st.warning(result.message)
            except Exception as exc:  # noqa: BLE001
                st.error(f"Beer purchase failed: {exc}")

        st.markdown("### Transactions")
        for tx in wallet.get_transaction_history(limit=5):
            st.caption(f"{tx.type}: {tx.from_amount:.8g} {tx.from_currency} → {tx.to_amount:.8g} {tx.to_currency}")


def render_prices():
    market = st.session_state.services.market
    st.markdown("### Market prices")
    cols = st.columns(len(QUICK_PAIRS))
    for col, pair in zip(cols, QUICK_PAIRS):
        try:
            payload = market.get_spot_price(pair)
            col.metric(pair, f"${float(payload['data']['amount']):,.2f}")
        except Exception as exc:  # noqa: BLE001
            col.metric(pair, "n/a", help=str(exc))


def render_chat(agent: CryptoAgent):
    st.markdown("### Chat")
    for turn in st.session_state.turns:
        with st.chat_message("user"):
            st.markdown(turn["user"])
        with st.chat_message("assistant"):
            st.markdown(turn["reply"])
            if turn["tool_calls"]:
                with st.expander(f"Tool calls ({len(turn['tool_calls'])})"):
                    for call in turn["tool_calls"]:
                        st.json(call)

    if st.button("Clear conversation"):
        agent.reset_conversation()
        st.session_state.turns = []
        st.rerun()

    user_input = st.chat_input("Ask about prices, markets, or how much BTC a beer costs…")
    if user_input:
        result = agent.chat(user_input)
        st.session_state.turns.append(
            {
                "user": user_input,
                "reply": result.reply,
                "tool_calls": result.to_dict()["tool_calls"],
            }
        )
        st.rerun()


def main():
    load_style()
    init_state()
    agent: CryptoAgent = st.session_state.agent
    render_header(agent)
    render_sidebar()
    render_prices()
    render_chat(agent)


if __name__ == "__main__":
    main()
