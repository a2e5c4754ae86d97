from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Tuple

from dotenv import load_dotenv

from .project_constants import (
    DEFAULT_CLUSTER,
    DEFAULT_COMMITMENT,
    DEFAULT_FORCE_ALL_AS_HOLDER,
    DEFAULT_HOLDER_CHANCES,
    DEFAULT_MIN_HOLD_UI_AMOUNT,
    DEFAULT_NON_HOLDER_CHANCES,
)


def _split_csv(raw: str) -> Tuple[str, ...]:
    return tuple(x.strip() for x in raw.split(",") if x.strip())


def coerce_int(value: Any) -> Optional[int]:
    """Numeric (non-bool) value or numeric string -> int, else None."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(num):
        return None
    return int(num)


def _number_field(doc: Mapping[str, Any], key: str) -> Optional[int]:
    # stored documents must carry real numbers; strings are a wrong type here
    value = doc.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return coerce_int(value)


@dataclass(frozen=True)
class MintDescriptor:
    address: str
    min_hold_ui_amount: float = DEFAULT_MIN_HOLD_UI_AMOUNT

    @staticmethod
    def parse(spec: str) -> "MintDescriptor":
        """Parse ``MINT`` or ``MINT:MIN_UI_AMOUNT``."""
        address, _, threshold = spec.strip().partition(":")
        if not threshold.strip():
            return MintDescriptor(address=address.strip())
        try:
            min_hold = float(threshold)
        except ValueError:
            raise ValueError(f"Bad mint threshold in {spec!r}")
        return MintDescriptor(address=address.strip(), min_hold_ui_amount=min_hold)

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "MintDescriptor":
        address = d.get("address")
        address = str(address).strip() if address else ""
        try:
            min_hold = float(d.get("minHoldUiAmount", DEFAULT_MIN_HOLD_UI_AMOUNT))
        except (TypeError, ValueError):
            min_hold = DEFAULT_MIN_HOLD_UI_AMOUNT
        if math.isnan(min_hold):
            min_hold = DEFAULT_MIN_HOLD_UI_AMOUNT
        return MintDescriptor(address=address, min_hold_ui_amount=min_hold)


@dataclass(frozen=True)
class ChainConfig:
    cluster: str = DEFAULT_CLUSTER
    mints: Tuple[MintDescriptor, ...] = ()
    commitment: str = DEFAULT_COMMITMENT
    rpc: str = ""
    # legacy name for the primary endpoint; `rpc` wins when both are set
    rpc_endpoint: str = ""
    extra_rpcs: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def primary_rpc(self) -> str:
        return (self.rpc or "").strip() or (self.rpc_endpoint or "").strip()

    @property
    def cluster_name(self) -> str:
        return (self.cluster or "").strip() or DEFAULT_CLUSTER

    @property
    def has_mints(self) -> bool:
        return any(m.address for m in self.mints)

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "ChainConfig":
        """Build from the front-end shaped dict (camelCase keys)."""
        raw_mints = d.get("mints")
        mints = []
        if isinstance(raw_mints, (list, tuple)):
            for m in raw_mints:
                if isinstance(m, Mapping):
                    mints.append(MintDescriptor.from_dict(m))

        raw_extras = d.get("extraRpcs")
        extras: Tuple[str, ...] = ()
        if isinstance(raw_extras, (list, tuple)):
            extras = tuple(str(x) for x in raw_extras if x is not None)

        return ChainConfig(
            cluster=str(d.get("cluster") or DEFAULT_CLUSTER).strip(),
            mints=tuple(mints),
            commitment=str(d.get("commitment") or DEFAULT_COMMITMENT),
            rpc=str(d.get("rpc") or ""),
            rpc_endpoint=str(d.get("rpcEndpoint") or ""),
            extra_rpcs=extras,
        )

    @staticmethod
    def from_env(
        rpc_url_override: str | None = None,
        cluster_override: str | None = None,
        commitment_override: str | None = None,
        mints_override: Iterable[str] | None = None,
        extra_rpcs_override: Iterable[str] | None = None,
        with_mints: bool = True,
    ) -> "ChainConfig":
        load_dotenv()

        cluster = cluster_override or os.getenv("SOLANA_CLUSTER", "").strip()
        commitment = commitment_override or os.getenv("RPC_COMMITMENT", "").strip()

        # If user provides --rpc-url, trust it.
        rpc = rpc_url_override or os.getenv("RPC_URL", "").strip()
        if not rpc:
            helius_key = os.getenv("HELIUS_API_KEY", "").strip()
            if helius_key:
                rpc = f"https://mainnet.helius-rpc.com/?api-key={helius_key}"

        # endpoint-only callers skip mint parsing (and its errors)
        mint_specs = list(mints_override or ()) if with_mints else []
        if with_mints and not mint_specs:
            mint_specs = list(_split_csv(os.getenv("HOLDER_MINTS", "")))

        extras = list(extra_rpcs_override or ())
        if not extras:
            extras = list(_split_csv(os.getenv("EXTRA_RPCS", "")))

        return ChainConfig(
            cluster=cluster or DEFAULT_CLUSTER,
            mints=tuple(MintDescriptor.parse(s) for s in mint_specs),
            commitment=commitment or DEFAULT_COMMITMENT,
            rpc=rpc,
            rpc_endpoint=os.getenv("RPC_ENDPOINT", "").strip(),
            extra_rpcs=tuple(extras),
        )


@dataclass(frozen=True)
class HolderConfig:
    force_all_as_holder: bool = DEFAULT_FORCE_ALL_AS_HOLDER
    holder_chances: int = DEFAULT_HOLDER_CHANCES
    non_holder_chances: int = DEFAULT_NON_HOLDER_CHANCES

    @staticmethod
    def from_document(
        doc: Mapping[str, Any] | None,
        defaults: "HolderConfig | None" = None,
    ) -> "HolderConfig":
        """Validate a config/draw document, field by field, onto defaults."""
        base = defaults or HolderConfig()
        if not isinstance(doc, Mapping) or not doc:
            return base

        force = doc.get("forceAllAsHolder")
        if not isinstance(force, bool):
            force = base.force_all_as_holder

        holder = _number_field(doc, "holderChances")
        non_holder = _number_field(doc, "nonHolderChances")

        return HolderConfig(
            force_all_as_holder=force,
            holder_chances=base.holder_chances if holder is None else holder,
            non_holder_chances=(
                base.non_holder_chances if non_holder is None else non_holder
            ),
        )
