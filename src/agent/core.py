"""Chat assistant: LLM with tool calling over the market and demo wallet tools."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_openai import ChatOpenAI

from src.coinbase.errors import RateLimitError
from src.coinbase.rate_limit import RateLimiter

from .guardrails import REDIRECT_MESSAGE, is_topic_allowed
from .tools import TOOL_SPECS, ToolCaller

logger = logging.getLogger(__name__)

CHAT_RATE_LIMIT = 100
CHAT_RATE_WINDOW_SECONDS = 60 * 60

SYSTEM_PROMPT = (
    "You are a specialized cryptocurrency assistant powered by MCP (Model Context Protocol) "
    "with access to real-time Coinbase data through tools.\n\n"
    "Only discuss cryptocurrency, blockchain, trading and MCP topics; politely redirect anything else.\n"
    "Use the tools for prices, market statistics, technical analysis, asset search and exchange rates. "
    "Infer the trading pair when the user names a coin (usually against USD, like BTC-USD).\n\n"
    "Demo wallet: when users mention beer and crypto use calculate_beer_cost; when they want to buy crypto "
    "use simulate_purchase; use buy_virtual_beer to spend crypto on beers; show get_wallet or "
    "get_transaction_history when asked about the portfolio. The wallet is simulated, no real money moves.\n\n"
    "Be friendly, concise and accurate."
)

_COIN_PATTERN = re.compile(
    r"\b(btc|bitcoin|eth|ethereum|ltc|litecoin|bch|ada|dot|uni|link|sol|matic|avax|algo)\b"
)
_COIN_NAMES = {"bitcoin": "BTC", "ethereum": "ETH", "litecoin": "LTC"}


class SimpleChatMemory:
    """Conversation history kept in memory for the session."""

    def __init__(self):
        self._messages: List[BaseMessage] = []

    def add_user_message(self, text: str) -> None:
        self._messages.append(HumanMessage(content=text))

    def add_ai_message(self, text: str) -> None:
        self._messages.append(AIMessage(content=text))

    def load(self) -> List[BaseMessage]:
        return list(self._messages)

    def clear(self) -> None:
        self._messages.clear()


@dataclass
class ToolCallRecord:
    tool: str
    parameters: Dict[str, Any]
    result: Any = None
    error: Optional[str] = None


@dataclass
class ChatResult:
    reply: str
    tool_calls: List[ToolCallRecord] = field(default_factory=list)
    rate_limited: bool = False
    remaining_requests: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _make_llm(model: str | None, temperature: float):
    api_key = os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY")
    if not api_key:
        return None
    return ChatOpenAI(
        model=model or os.getenv("LLM_MODEL") or "gpt-4o-mini",
        temperature=temperature,
        openai_api_key=api_key,
        base_url=os.getenv("LLM_API_BASE") or os.getenv("OPENAI_BASE_URL"),
    )


class CryptoAgent:
    """Crypto chat assistant with guardrails, a per-session rate limit and tool calling.

    Without an LLM (no API key configured) it answers in "basic mode" by
    pattern-matching the message onto a single tool call.
    """

    def __init__(
        self,
        tool_caller: ToolCaller | None = None,
        llm: Any = None,
        rate_limiter: RateLimiter | None = None,
        model: str | None = None,
        temperature: float = 0.7,
        session_id: str = "default",
    ):
        self.tool_caller = tool_caller
        self.llm = llm if llm is not None else _make_llm(model, temperature)
        self.rate_limiter = rate_limiter or RateLimiter(
            max_requests=CHAT_RATE_LIMIT, window_seconds=CHAT_RATE_WINDOW_SECONDS
        )
        self.session_id = session_id
        self.memory = SimpleChatMemory()

    @property
    def basic_mode(self) -> bool:
        return self.llm is None

    def remaining_requests(self) -> int:
        return self.rate_limiter.remaining(self.session_id)

    def reset_conversation(self) -> None:
        self.memory.clear()

    def _call_tool(self, name: str, parameters: Dict[str, Any]) -> ToolCallRecord:
        record = ToolCallRecord(tool=name, parameters=dict(parameters))
        if not self.tool_caller:
            record.error = "No tool caller configured"
            return record
        try:
            record.result = self.tool_caller(name, **parameters)
        except Exception as exc:  # noqa: BLE001
            # Tool failures go back to the model as data; the chat keeps going.
            logger.warning("tool %s failed: %s", name, exc)
            record.error = str(exc)
        return record

    def _rate_limited_reply(self, retry_after: int | None) -> ChatResult:
        wait = f" Try again in about {retry_after // 60 + 1} minute(s)." if retry_after else ""
        return ChatResult(
            reply=(
                "🚫 **Rate Limit Reached**\n\n"
                f"You've reached the limit of {self.rate_limiter.max_requests} requests per hour. "
                f"This helps keep the service available for educational use.{wait}"
            ),
            rate_limited=True,
            remaining_requests=0,
        )

    def chat(self, user_input: str) -> ChatResult:
        """Main chat entrypoint."""
        if self.remaining_requests() == 0:
            return self._rate_limited_reply(None)

        if not is_topic_allowed(user_input):
            return ChatResult(reply=REDIRECT_MESSAGE, remaining_requests=self.remaining_requests())

        try:
            remaining = self.rate_limiter.acquire(self.session_id)
        except RateLimitError as exc:
            return self._rate_limited_reply(exc.retry_after)

        if self.basic_mode:
            result = self._basic_reply(user_input)
        else:
            try:
                result = self._llm_reply(user_input)
            except Exception as exc:  # noqa: BLE001
                logger.exception("chat failed")
                result = ChatResult(
                    reply=f"I apologize, but I encountered an error processing your request: {exc}. Please try again."
                )
        result.remaining_requests = remaining
        return result

    def _llm_reply(self, user_input: str) -> ChatResult:
        messages: List[BaseMessage] = [
            SystemMessage(content=SYSTEM_PROMPT),
            *self.memory.load(),
            HumanMessage(content=user_input),
        ]
        response = self.llm.bind_tools(TOOL_SPECS).invoke(messages)
        reply = response.content if isinstance(response.content, str) else str(response.content)
        records: List[ToolCallRecord] = []

        tool_calls = getattr(response, "tool_calls", None) or []
        if tool_calls:
            messages.append(response)
            for call in tool_calls:
                record = self._call_tool(call["name"], call.get("args") or {})
                records.append(record)
                payload = record.result if record.error is None else {"error": record.error}
                messages.append(
                    ToolMessage(content=json.dumps(payload, default=str, ensure_ascii=False), tool_call_id=call["id"])
                )
            final = self.llm.invoke(messages)
            if final.content:
                reply = final.content if isinstance(final.content, str) else str(final.content)

        self.memory.add_user_message(user_input)
        self.memory.add_ai_message(reply)
        return ChatResult(reply=reply, tool_calls=records)

    def _basic_reply(self, user_input: str) -> ChatResult:
        text = user_input.lower()
        if "popular" in text or "pairs" in text:
            record = self._call_tool("get_popular_pairs", {})
        else:
            match = _COIN_PATTERN.search(text) if ("price" in text or "cost" in text) else None
            coin = match.group(1) if match else "btc"
            code = _COIN_NAMES.get(coin, coin.upper())
            record = self._call_tool("get_spot_price", {"currency_pair": f"{code}-USD"})

        lines = ["💡 **Basic Mode** (LLM not configured)", ""]
        if record.error is not None:
            lines.append(f"❌ Error: {record.error}")
        else:
            lines.append(record.result if isinstance(record.result, str) else json.dumps(record.result, default=str))
        lines += ["", "🚀 Set LLM_API_KEY to unlock AI-powered conversations!"]
        return ChatResult(reply="\n".join(lines), tool_calls=[record])
