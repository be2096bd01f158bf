"""Configuration module using Pydantic Settings.

Usage:
    from optisync.config import ClientSettings

    settings = ClientSettings(base_url="http://localhost:3000")
"""

from optisync.config.settings import ClientSettings

__all__ = [
    "ClientSettings",
]
