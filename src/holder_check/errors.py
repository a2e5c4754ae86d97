from __future__ import annotations

from enum import Enum


class FaultKind(str, Enum):
    TIMEOUT = "timeout"
    AUTH_OR_QUOTA = "auth_or_quota"
    TRANSIENT = "transient"
    STORE_UNAVAILABLE = "store_unavailable"


class RpcError(RuntimeError):
    """A balance query failed against one endpoint."""


class RpcTimeout(RpcError):
    """A balance query did not finish inside its time bound."""


class StoreUnavailable(RuntimeError):
    """The config / allow-list document store could not be read."""


# Matched case-insensitively against the fault text.
# -32052 is the JSON-RPC code for a missing or invalid API key.
AUTH_OR_QUOTA_MARKERS = (
    "-32052",
    "api key",
    "apikey",
    "forbidden",
    "403",
    "429",
    "too many requests",
)


def classify_fault(exc: BaseException) -> FaultKind:
    if isinstance(exc, RpcTimeout):
        return FaultKind.TIMEOUT
    if isinstance(exc, StoreUnavailable):
        return FaultKind.STORE_UNAVAILABLE

    msg = str(exc).lower()
    if any(marker in msg for marker in AUTH_OR_QUOTA_MARKERS):
        return FaultKind.AUTH_OR_QUOTA
    return FaultKind.TRANSIENT
