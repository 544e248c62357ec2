"""Event models, encrypted websocket sessions, authentication, retries and metrics for a social network node."""

__version__ = "0.1.0"