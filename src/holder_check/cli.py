from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import Any, Dict

from .config import ChainConfig
from .endpoints import JsonFileEndpointMemory, build_endpoint_list, recall_endpoint
from .holder import allowed_chances, resolve_is_holder
from .project_constants import DEFAULT_STATE_FILE, QUERY_TIMEOUT_S
from .store import JsonFileStore, load_remote_config


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _chain_from_args(args: argparse.Namespace, with_mints: bool = True) -> ChainConfig:
    return ChainConfig.from_env(
        rpc_url_override=args.rpc_url,
        cluster_override=getattr(args, "cluster", None),
        commitment_override=getattr(args, "commitment", None),
        mints_override=getattr(args, "mint", None),
        extra_rpcs_override=getattr(args, "extra_rpc", None),
        with_mints=with_mints,
    )


def cmd_check(args: argparse.Namespace) -> int:
    chain = _chain_from_args(args)
    memory = JsonFileEndpointMemory(args.state_file)
    store = JsonFileStore(args.store_file) if args.store_file else None
    log = logging.getLogger("check")

    config = load_remote_config(store)
    log.debug("Draw config: %s", config)

    is_holder = asyncio.run(
        resolve_is_holder(
            store,
            args.address,
            chain,
            config,
            memory=memory,
            timeout_s=args.timeout,
        )
    )
    chances = allowed_chances(is_holder, config)

    if args.json:
        out: Dict[str, Any] = {
            "address": args.address,
            "cluster": chain.cluster_name,
            "holder": is_holder,
            "chances": chances,
            "last_good_rpc": recall_endpoint(memory, chain.cluster_name) or None,
        }
        print(json.dumps(out, indent=2))
        return 0

    print("----------------------------------------")
    print(f"Address       : {args.address}")
    print(f"Cluster       : {chain.cluster_name}")
    print(f"Holder        : {'yes' if is_holder else 'no'}")
    print(f"Chances       : {chances}")
    print("----------------------------------------")
    return 0


def cmd_endpoints(args: argparse.Namespace) -> int:
    chain = _chain_from_args(args, with_mints=False)
    memory = JsonFileEndpointMemory(args.state_file)
    remembered = recall_endpoint(memory, chain.cluster_name)

    for i, url in enumerate(build_endpoint_list(chain, remembered), start=1):
        mark = "  (last good)" if url == remembered else ""
        print(f"{i:2d}. {url}{mark}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="holder-check",
        description="Decide whether a Solana wallet is a token holder and its draw chances.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument("--rpc-url", default=None, help="Override primary RPC URL (else use env).")
    p.add_argument(
        "--timeout",
        type=float,
        default=QUERY_TIMEOUT_S,
        help="Per-query RPC timeout seconds.",
    )
    p.add_argument(
        "--state-file",
        default=DEFAULT_STATE_FILE,
        help="JSON file remembering the last good RPC per cluster.",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    c = sub.add_parser("check", help="Resolve holder status and allowed chances.")
    c.add_argument("--address", required=True, help="Wallet address to check.")
    c.add_argument(
        "--mint",
        action="append",
        default=None,
        help="Token mint, optionally MINT:MIN_UI_AMOUNT. Repeatable (else HOLDER_MINTS).",
    )
    c.add_argument(
        "--extra-rpc",
        action="append",
        default=None,
        help="Extra RPC URL tried after the primary. Repeatable (else EXTRA_RPCS).",
    )
    c.add_argument("--cluster", default=None, help="Logical network name (else use env).")
    c.add_argument("--commitment", default=None, help="RPC commitment level.")
    c.add_argument(
        "--store-file",
        default=None,
        help="JSON document store with config/draw and whitelist/<address>.",
    )
    c.add_argument("--json", action="store_true", help="Print result as JSON.")
    c.set_defaults(func=cmd_check)

    e = sub.add_parser("endpoints", help="Show RPC candidates in the order they are tried.")
    e.add_argument(
        "--extra-rpc",
        action="append",
        default=None,
        help="Extra RPC URL tried after the primary. Repeatable (else EXTRA_RPCS).",
    )
    e.add_argument("--cluster", default=None, help="Logical network name (else use env).")
    e.set_defaults(func=cmd_endpoints)

    return p


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.verbose)
    raise SystemExit(args.func(args))
