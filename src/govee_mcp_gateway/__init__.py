"""Govee MCP gateway - rate-limited, allowlisted command dispatch for Govee lights."""

__all__ = ["config", "logging", "gateway", "translator", "backends"]
__version__ = "0.1.0"
