"""Contact form relay: rate limiting, spam filtering, Turnstile and mail dispatch."""

__version__ = "1.0.0"
