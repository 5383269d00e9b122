"""Error taxonomy for gateway operations."""

from __future__ import annotations

from typing import Any, Dict, Optional


class GatewayError(Exception):
    """Base class for failures reported back to the agent as structured results."""

    kind = "internal"

    def as_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": str(self)}


class ValidationError(GatewayError):
    """Input outside its declared range or shape; raised before any network call."""

    kind = "validation"


class AuthorizationError(GatewayError):
    """Device is not in the configured allowlist."""

    kind = "authorization"


class UpstreamError(GatewayError):
    """The Govee API answered with a non-success status or could not be reached.

    Only the status (or the failure class) is kept; response bodies may echo
    vendor diagnostics or credentials and are never surfaced.
    """

    kind = "upstream"

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status

    def as_dict(self) -> Dict[str, Any]:
        base = super().as_dict()
        if self.status is not None:
            base["status"] = self.status
        return base


class UnsupportedOperationError(GatewayError):
    """Operation not implemented by the selected backend."""

    kind = "unsupported"


class LanDisabledError(UnsupportedOperationError):
    """LAN control requested while the LAN backend is disabled."""

    kind = "lan_disabled"


class EmptyBatchError(GatewayError):
    """Every batch item was dropped by the allowlist."""

    kind = "empty_batch"
