"""Tests for endpoint ordering and the remembered last-good endpoint."""

import json
from pathlib import Path

from holder_check.config import ChainConfig
from holder_check.endpoints import (
    InMemoryEndpointMemory,
    JsonFileEndpointMemory,
    build_endpoint_list,
    dedupe,
    is_http_url,
    memory_key,
    recall_endpoint,
    redact_text,
    redact_url,
    remember_endpoint,
)
from holder_check.project_constants import PUBLIC_FALLBACK_RPCS


class TestDedupe:
    def test_first_occurrence_wins(self) -> None:
        assert dedupe(["b", " a ", "b", "a", "", None, "  "]) == ["b", "a"]

    def test_case_sensitive(self) -> None:
        assert dedupe(["https://A", "https://a"]) == ["https://A", "https://a"]


class TestBuildEndpointList:
    def test_defaults_are_public_fallbacks(self) -> None:
        assert build_endpoint_list(ChainConfig()) == list(PUBLIC_FALLBACK_RPCS)

    def test_canonical_endpoint_last(self) -> None:
        urls = build_endpoint_list(ChainConfig(rpc="https://mine"))
        assert urls[-1] == "https://api.mainnet-beta.solana.com"

    def test_order(self) -> None:
        chain = ChainConfig(
            rpc="https://primary",
            rpc_endpoint="https://legacy",
            extra_rpcs=("https://x1", "https://x2"),
        )
        urls = build_endpoint_list(chain, remembered="https://remembered")
        assert urls[:4] == ["https://remembered", "https://primary", "https://x1", "https://x2"]
        assert "https://legacy" not in urls
        assert urls[4:] == list(PUBLIC_FALLBACK_RPCS)

    def test_remembered_always_first_even_if_configured_later(self) -> None:
        chain = ChainConfig(rpc="https://primary", extra_rpcs=("https://x1",))
        urls = build_endpoint_list(chain, remembered=PUBLIC_FALLBACK_RPCS[2])
        assert urls[0] == PUBLIC_FALLBACK_RPCS[2]
        assert urls.count(PUBLIC_FALLBACK_RPCS[2]) == 1

    def test_no_duplicates_and_only_http(self) -> None:
        chain = ChainConfig(
            rpc=" https://solana.publicnode.com ",
            extra_rpcs=("ftp://nope", "wss://ws", "", "HTTPS://UPPER", "https://x", "https://x"),
        )
        urls = build_endpoint_list(chain, remembered="not a url")
        assert len(urls) == len(set(urls))
        assert all(is_http_url(u) for u in urls)
        assert urls[0] == "https://solana.publicnode.com"
        assert "HTTPS://UPPER" in urls

    def test_never_empty(self) -> None:
        assert build_endpoint_list(ChainConfig(rpc="garbage"), remembered="")


class _BrokenMemory:
    def get(self, key: str) -> str:
        raise OSError("storage unavailable")

    def set(self, key: str, value: str) -> None:
        raise OSError("storage unavailable")


class TestRememberedEndpoint:
    def test_key_pattern(self) -> None:
        assert memory_key("devnet") == "lastGoodRpc:devnet"

    def test_round_trip_per_cluster(self) -> None:
        mem = InMemoryEndpointMemory()
        remember_endpoint(mem, "mainnet-beta", "https://a")
        remember_endpoint(mem, "devnet", "https://b")
        assert recall_endpoint(mem, "mainnet-beta") == "https://a"
        assert recall_endpoint(mem, "devnet") == "https://b"
        assert recall_endpoint(mem, "testnet") == ""

    def test_faults_are_swallowed(self) -> None:
        mem = _BrokenMemory()
        assert recall_endpoint(mem, "mainnet-beta") == ""
        remember_endpoint(mem, "mainnet-beta", "https://a")

    def test_no_memory(self) -> None:
        assert recall_endpoint(None, "mainnet-beta") == ""
        remember_endpoint(None, "mainnet-beta", "https://a")

    def test_json_file_memory_persists(self, tmp_path: Path) -> None:
        path = tmp_path / "state.json"
        remember_endpoint(JsonFileEndpointMemory(str(path)), "mainnet-beta", "https://a")

        assert json.loads(path.read_text()) == {"lastGoodRpc:mainnet-beta": "https://a"}
        assert recall_endpoint(JsonFileEndpointMemory(str(path)), "mainnet-beta") == "https://a"

    def test_corrupt_json_file_is_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "state.json"
        path.write_text("{not json")
        assert recall_endpoint(JsonFileEndpointMemory(str(path)), "mainnet-beta") == ""


class TestRedaction:
    def test_redact_url_drops_query(self) -> None:
        assert redact_url("https://mainnet.helius-rpc.com/?api-key=k") == "https://mainnet.helius-rpc.com/"
        assert redact_url("https://rpc.ankr.com/solana") == "https://rpc.ankr.com/solana"

    def test_redact_text_scrubs_embedded_urls(self) -> None:
        msg = "Client error '403 Forbidden' for url 'https://x.io/rpc?api-key=k#frag'"
        assert redact_text(msg) == "Client error '403 Forbidden' for url 'https://x.io/rpc'"

    def test_redact_text_leaves_plain_text(self) -> None:
        assert redact_text(RuntimeError("connection reset")) == "connection reset"
