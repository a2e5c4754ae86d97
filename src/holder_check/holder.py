"""
Holder resolution.

Order of sources:
1. On-chain balance of any configured mint, tried endpoint by endpoint.
2. config/draw `forceAllAsHolder`.
3. whitelist/{address}.

Nothing here raises for endpoint or store faults: callers always get a bool.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .config import ChainConfig, HolderConfig, coerce_int
from .endpoints import (
    EndpointMemory,
    build_endpoint_list,
    recall_endpoint,
    redact_text,
    redact_url,
    remember_endpoint,
)
from .errors import FaultKind, classify_fault
from .project_constants import (
    DEFAULT_HOLDER_CHANCES,
    DEFAULT_NON_HOLDER_CHANCES,
    QUERY_TIMEOUT_S,
)
from .rpc import Connector, connect as default_connect, is_public_key, query_balance
from .store import DocumentStore, is_whitelisted

log = logging.getLogger("holder_check.holder")

_SOLANA_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


@dataclass(frozen=True)
class OnChainResult:
    holder: bool
    endpoint_used: str
    matched_mint: Optional[str] = None
    amount: float = 0.0


def is_solana_address(address: str) -> bool:
    if not address or address.startswith("0x"):
        return False
    if not _SOLANA_ADDRESS_RE.match(address):
        return False
    return is_public_key(address)


async def check_any_mint_hold(
    owner: str,
    chain: ChainConfig,
    memory: EndpointMemory | None = None,
    connect: Connector | None = None,
    timeout_s: float = QUERY_TIMEOUT_S,
) -> Optional[OnChainResult]:
    """
    Returns a decisive OnChainResult, or None when no mint is configured
    or every endpoint failed.
    """
    if not chain.has_mints:
        return None

    connect = connect or default_connect
    cluster = chain.cluster_name
    endpoints = build_endpoint_list(chain, recall_endpoint(memory, cluster))
    last_err: Optional[BaseException] = None

    for rpc in endpoints:
        try:
            source = connect(rpc, chain.commitment)
        except Exception as e:
            last_err = e
            log.warning(
                "RPC connect failed, switch next: %s (%s)", redact_url(rpc), redact_text(e)
            )
            continue

        try:
            for mint in chain.mints:
                if not mint.address:
                    continue
                total = await query_balance(source, owner, mint.address, timeout_s)
                if total > mint.min_hold_ui_amount:
                    remember_endpoint(memory, cluster, rpc)
                    return OnChainResult(
                        holder=True,
                        endpoint_used=rpc,
                        matched_mint=mint.address,
                        amount=total,
                    )

            # endpoint answered every mint cleanly: a trusted negative
            remember_endpoint(memory, cluster, rpc)
            return OnChainResult(holder=False, endpoint_used=rpc)
        except Exception as e:
            last_err = e
            kind = classify_fault(e)
            if kind is FaultKind.AUTH_OR_QUOTA:
                log.warning(
                    "RPC forbidden/needs key, switch: %s (%s)", redact_url(rpc), redact_text(e)
                )
            else:
                log.warning(
                    "RPC %s error, switch next: %s (%s)",
                    kind.value, redact_url(rpc), redact_text(e),
                )
        finally:
            try:
                await source.aclose()
            except Exception as e:
                log.debug("Closing connection to %s failed: %s", redact_url(rpc), redact_text(e))

    if last_err is not None:
        log.warning("All RPCs failed, fallback to config/whitelist: %s", redact_text(last_err))
    return None


async def resolve_is_holder(
    store: DocumentStore | None,
    address: str,
    chain_config: ChainConfig | None,
    config: HolderConfig | Mapping[str, Any] | None,
    memory: EndpointMemory | None = None,
    connect: Connector | None = None,
    timeout_s: float = QUERY_TIMEOUT_S,
) -> bool:
    addr = str(address or "")

    if chain_config is not None and chain_config.has_mints and is_solana_address(addr):
        try:
            r = await check_any_mint_hold(
                addr, chain_config, memory=memory, connect=connect, timeout_s=timeout_s
            )
            if r is not None:
                if r.holder:
                    log.info(
                        "%s holds %s of %s (via %s)",
                        addr, r.amount, r.matched_mint, redact_url(r.endpoint_used),
                    )
                return r.holder
        except Exception as e:
            log.warning("On-chain check failed, fallback to config/whitelist: %s", redact_text(e))

    # no mint / not a Solana address / every RPC failed
    if _force_all_as_holder(config):
        return True
    return is_whitelisted(store, addr)


def _force_all_as_holder(config: HolderConfig | Mapping[str, Any] | None) -> bool:
    if isinstance(config, HolderConfig):
        return config.force_all_as_holder is True
    if isinstance(config, Mapping):
        return config.get("forceAllAsHolder") is True
    return False


def allowed_chances(
    is_holder: bool,
    config: HolderConfig | Mapping[str, Any] | None,
) -> int:
    if isinstance(config, HolderConfig):
        raw_h: Any = config.holder_chances
        raw_n: Any = config.non_holder_chances
    elif isinstance(config, Mapping):
        raw_h = config.get("holderChances")
        raw_n = config.get("nonHolderChances")
    else:
        raw_h = raw_n = None

    if is_holder:
        h = coerce_int(raw_h)
        return DEFAULT_HOLDER_CHANCES if h is None else h
    n = coerce_int(raw_n)
    return DEFAULT_NON_HOLDER_CHANCES if n is None else n
