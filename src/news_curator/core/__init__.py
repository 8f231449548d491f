"""Core configuration and constants.

Import what you need from `news_curator.core.config` and
`news_curator.core.constants` to avoid heavy side effects at import time.
"""

__all__ = ["config", "constants"]
