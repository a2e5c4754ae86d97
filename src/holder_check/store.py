from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional, Protocol

from .config import HolderConfig
from .errors import StoreUnavailable
from .project_constants import REMOTE_CONFIG_PATH, WHITELIST_COLLECTION

log = logging.getLogger("holder_check.store")

Document = Dict[str, Any]


class DocumentStore(Protocol):
    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        """Return the document or None if absent. Raise on read faults."""
        ...


class InMemoryStore:
    def __init__(self, data: Mapping[str, Mapping[str, Document]] | None = None) -> None:
        self.data: Dict[str, Dict[str, Document]] = {
            coll: dict(docs) for coll, docs in (data or {}).items()
        }

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        doc = self.data.get(collection, {}).get(doc_id)
        return dict(doc) if isinstance(doc, Mapping) else None

    def put(self, collection: str, doc_id: str, doc: Document) -> None:
        self.data.setdefault(collection, {})[doc_id] = dict(doc)


class JsonFileStore:
    """
    Read-only store backed by a JSON file:
        {"config": {"draw": {...}}, "whitelist": {"<address>": {"holder": true}}}
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._data: Optional[Dict[str, Any]] = None

    def _load(self) -> Dict[str, Any]:
        if self._data is None:
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                raise StoreUnavailable(f"Cannot read store file {self.path}: {e}")
            if not isinstance(data, dict):
                raise StoreUnavailable(f"Store file {self.path} is not a JSON object.")
            self._data = data
        return self._data

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        coll = self._load().get(collection)
        if not isinstance(coll, dict):
            return None
        doc = coll.get(doc_id)
        return dict(doc) if isinstance(doc, dict) else None


def load_remote_config(
    store: DocumentStore | None,
    defaults: HolderConfig | None = None,
) -> HolderConfig:
    fallback = defaults or HolderConfig()
    if store is None:
        return fallback
    try:
        doc = store.get(*REMOTE_CONFIG_PATH)
    except Exception as e:
        log.warning("loadRemoteConfig failed, using defaults: %s", e)
        return fallback
    if not isinstance(doc, Mapping):
        if doc is not None:
            log.warning("config/draw is not a document (%s), using defaults", type(doc).__name__)
        return fallback
    return HolderConfig.from_document(doc, fallback)


def _flagged(doc: Optional[Document]) -> bool:
    return isinstance(doc, Mapping) and doc.get("holder") is True


def is_whitelisted(store: DocumentStore | None, address: str) -> bool:
    if store is None:
        return False
    try:
        if _flagged(store.get(WHITELIST_COLLECTION, address)):
            return True

        # allow-list entries are sometimes written lower-cased
        low = address.lower()
        if low != address and _flagged(store.get(WHITELIST_COLLECTION, low)):
            return True
        return False
    except Exception as e:
        log.warning("Whitelist lookup failed for %s, treating as non-holder: %s", address, e)
        return False
