from __future__ import annotations

import json
import logging
import os
import re
from typing import Dict, Iterable, List, Optional, Protocol
from urllib.parse import urlsplit, urlunsplit

from .config import ChainConfig
from .project_constants import LAST_GOOD_RPC_KEY_PREFIX, PUBLIC_FALLBACK_RPCS

log = logging.getLogger("holder_check.endpoints")

_HTTP_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
_URL_QUERY_RE = re.compile(r"(https?://[^\s'\"?#]*)[?#][^\s'\"]*", re.IGNORECASE)


class EndpointMemory(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class InMemoryEndpointMemory:
    def __init__(self, initial: Dict[str, str] | None = None) -> None:
        self.values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value


class JsonFileEndpointMemory:
    """Flat JSON object of key -> URL, re-read on every access."""

    def __init__(self, path: str) -> None:
        self.path = path

    def _read(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)


def memory_key(cluster: str) -> str:
    return f"{LAST_GOOD_RPC_KEY_PREFIX}{cluster}"


def recall_endpoint(memory: EndpointMemory | None, cluster: str) -> str:
    if memory is None:
        return ""
    try:
        return memory.get(memory_key(cluster)) or ""
    except Exception as e:
        log.debug("Could not read last good RPC for %s: %s", cluster, e)
        return ""


def remember_endpoint(memory: EndpointMemory | None, cluster: str, rpc: str) -> None:
    if memory is None:
        return
    try:
        memory.set(memory_key(cluster), str(rpc or ""))
    except Exception as e:
        log.debug("Could not store last good RPC for %s: %s", cluster, e)


def dedupe(items: Iterable[Optional[str]]) -> List[str]:
    seen = set()
    out: List[str] = []
    for x in items:
        k = (x or "").strip()
        if k and k not in seen:
            seen.add(k)
            out.append(k)
    return out


def is_http_url(url: str) -> bool:
    return bool(_HTTP_URL_RE.match(url))


def redact_url(url: str) -> str:
    """Drop query and fragment; keyed providers put the API key there."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def redact_text(text: object) -> str:
    """Strip query strings from every URL inside a message (e.g. httpx errors)."""
    return _URL_QUERY_RE.sub(r"\1", str(text))


def build_endpoint_list(chain: ChainConfig, remembered: str | None = None) -> List[str]:
    """
    Candidate order: remembered last-good, primary, extras, public fallbacks.
    First occurrence wins; anything that is not an http(s) URL is dropped.
    """
    candidates = [remembered, chain.primary_rpc, *chain.extra_rpcs, *PUBLIC_FALLBACK_RPCS]
    return [u for u in dedupe(candidates) if is_http_url(u)]
