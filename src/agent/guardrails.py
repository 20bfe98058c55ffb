"""Keep the assistant on crypto topics while letting the beer-wallet demo through."""

from __future__ import annotations

ALLOWED_TOPICS = (
    "cryptocurrency", "crypto", "bitcoin", "ethereum", "blockchain", "trading",
    "price", "market", "analysis", "exchange", "wallet", "defi", "nft",
    "mcp", "model context protocol", "coinbase", "api", "technical analysis",
    "volatility", "support", "resistance", "volume", "trend",
    "buy", "purchase", "sell", "balance", "transaction", "portfolio", "invest",
)

OFF_TOPIC_KEYWORDS = (
    "cat", "dog", "animal", "pet", "weather", "movie", "music",
    "sports", "politics", "health", "medicine", "travel", "cooking",
    "fashion", "celebrity", "news", "entertainment",
)

# Allowed even though they look off-topic: used by the price comparison demos.
ALLOWED_CONTEXT_KEYWORDS = ("beer", "coffee", "pizza", "food")

GENERAL_WORDS = ("hello", "hi", "help", "what", "how", "can you", "show", "buy", "get")

GENERAL_QUERY_MAX_LEN = 20

REDIRECT_MESSAGE = (
    "🎯 **Let's talk crypto!**\n\n"
    "I'm specialized in cryptocurrency and MCP technology. I can help you with:\n\n"
    "💰 **Cryptocurrency Prices & Analysis**\n"
    "• Real-time prices (Bitcoin, Ethereum, etc.)\n"
    "• Market statistics and trends\n"
    "• Technical analysis and volatility\n\n"
    "🍺 **Demo Wallet**\n"
    "• Beer-to-crypto conversions and simulated purchases\n\n"
    'Try asking: "What\'s the current Bitcoin price?" or "How much BTC is a beer?"'
)


def is_topic_allowed(message: str) -> bool:
    text = message.lower()
    if any(keyword in text for keyword in ALLOWED_CONTEXT_KEYWORDS):
        return True
    if any(topic in text for topic in ALLOWED_TOPICS):
        return True
    off_topic = any(keyword in text for keyword in OFF_TOPIC_KEYWORDS)
    general = len(text) < GENERAL_QUERY_MAX_LEN or any(word in text for word in GENERAL_WORDS)
    return general and not off_topic
