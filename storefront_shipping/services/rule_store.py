"""
Shipping Rule Store

Shipping rules are managed from the admin panel and persisted as documents
in the storefront's document database. Stores only fetch the raw documents;
normalization into ShippingRule happens in the shipping module.

Backends:
- InMemoryRuleStore: documents handed in at construction (tests, demos)
- JsonFileRuleStore: a JSON export of the rule collection
- FirestoreRuleStore: the live collection over the Firestore REST API

RuleCache keeps normalized rules per checkout session so a checkout does
not re-read the collection on every cart change.
"""
import json
import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from storefront_shipping.core.config import Settings
from storefront_shipping.core.exceptions import RuleStoreError
from storefront_shipping.models.shipping import ShippingRule

logger = logging.getLogger(__name__)

FIRESTORE_BASE_URL = "https://firestore.googleapis.com/v1"
FIRESTORE_PAGE_SIZE = 300
SHARED_CACHE_KEY = "__shared__"


class BaseRuleStore(ABC):
    """Source of raw shipping rule documents."""

    name: str = "base"

    @abstractmethod
    async def fetch_rule_documents(self) -> List[Dict[str, Any]]:
        """
        Return every stored rule document.

        Each document is a plain dict and carries its identifier under "id".

        Raises:
            RuleStoreError: The backing store could not be read
        """
        pass

    async def close(self) -> None:
        """Release network resources, if any."""
        return None


class InMemoryRuleStore(BaseRuleStore):
    name = "memory"

    def __init__(self, documents: Optional[List[Dict[str, Any]]] = None):
        self._documents = [dict(doc) for doc in (documents or [])]

    def replace(self, documents: List[Dict[str, Any]]) -> None:
        self._documents = [dict(doc) for doc in documents]

    async def fetch_rule_documents(self) -> List[Dict[str, Any]]:
        return [dict(doc) for doc in self._documents]


class JsonFileRuleStore(BaseRuleStore):
    """
    Rules exported to a JSON file.

    Accepts either a list of documents or an object mapping document ids to
    documents (the shape of a collection export).
    """

    name = "file"

    def __init__(self, path: str):
        self.path = Path(path)

    async def fetch_rule_documents(self) -> List[Dict[str, Any]]:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise RuleStoreError(f"Shipping rules file not found: {self.path.name}")
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read shipping rules file {self.path}: {e}")
            raise RuleStoreError(f"Shipping rules file is unreadable: {self.path.name}")

        if isinstance(raw, dict):
            documents = []
            for doc_id, doc in raw.items():
                if isinstance(doc, dict):
                    documents.append({"id": doc_id, **doc})
            return documents
        if isinstance(raw, list):
            return [doc for doc in raw if isinstance(doc, dict)]

        raise RuleStoreError("Shipping rules file must hold a list or an object of documents")


# =============================================================================
# Firestore REST
# =============================================================================

def decode_firestore_value(value: Dict[str, Any]) -> Any:
    """Convert one typed Firestore REST value into a plain Python value."""
    if "nullValue" in value:
        return None
    if "stringValue" in value:
        return value["stringValue"]
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        # int64 values travel as strings
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        return value["timestampValue"]
    if "referenceValue" in value:
        return value["referenceValue"]
    if "geoPointValue" in value:
        return dict(value["geoPointValue"])
    if "arrayValue" in value:
        return [decode_firestore_value(v) for v in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return decode_firestore_fields(value["mapValue"].get("fields", {}))
    return None


def decode_firestore_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {key: decode_firestore_value(value) for key, value in fields.items()}


def decode_firestore_document(document: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten a REST document; its id is the last segment of its name."""
    decoded = decode_firestore_fields(document.get("fields", {}))
    name = document.get("name", "")
    if name:
        decoded["id"] = name.rsplit("/", 1)[-1]
    return decoded


class FirestoreRuleStore(BaseRuleStore):
    """
    Reads the rule collection through the Firestore REST API.

    Collections larger than one page are followed through nextPageToken.
    """

    name = "firestore"

    def __init__(
        self,
        project_id: str,
        collection: str = "zonas_envio",
        database: str = "(default)",
        api_key: str = "",
        timeout: float = 15.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.project_id = project_id
        self.collection = collection
        self.database = database
        self.api_key = api_key
        self.timeout = timeout
        self._http_client = http_client

    @property
    def collection_url(self) -> str:
        return (
            f"{FIRESTORE_BASE_URL}/projects/{self.project_id}"
            f"/databases/{self.database}/documents/{self.collection}"
        )

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"Accept": "application/json"},
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _fetch_page(self, page_token: Optional[str]) -> Dict[str, Any]:
        client = await self._get_http_client()
        params: Dict[str, Any] = {"pageSize": FIRESTORE_PAGE_SIZE}
        if page_token:
            params["pageToken"] = page_token
        if self.api_key:
            params["key"] = self.api_key

        try:
            response = await client.get(self.collection_url, params=params)
        except httpx.RequestError as e:
            logger.error(f"Firestore request failed: {type(e).__name__}: {e}")
            raise RuleStoreError("Network error while loading shipping rules")

        logger.debug(f"Firestore GET {self.collection} -> {response.status_code}")

        if response.status_code >= 400:
            try:
                error_data = response.json()
                error_msg = error_data.get("error", {}).get("message", "")
            except ValueError:
                error_msg = response.text[:500]
            logger.error(
                f"Firestore error loading {self.collection}: "
                f"{response.status_code} - {error_msg}"
            )
            raise RuleStoreError(
                "Shipping rules could not be loaded",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError:
            raise RuleStoreError("Shipping rule store returned malformed JSON")

    async def fetch_rule_documents(self) -> List[Dict[str, Any]]:
        documents: List[Dict[str, Any]] = []
        page_token: Optional[str] = None

        while True:
            page = await self._fetch_page(page_token)
            documents.extend(
                decode_firestore_document(doc) for doc in page.get("documents", [])
            )
            page_token = page.get("nextPageToken")
            if not page_token:
                break

        logger.info(f"Loaded {len(documents)} shipping rule document(s) from {self.collection}")
        return documents


# =============================================================================
# Session cache
# =============================================================================

class RuleCache:
    """
    Normalized rules cached per checkout session, with TTL.

    A stale entry is treated as missing; the caller reloads and stores it.
    Storing sweeps stale entries of every session and, past max_entries,
    evicts the oldest ones.
    """

    def __init__(
        self,
        ttl_seconds: int = 1800,
        clock: Callable[[], float] = time.time,
        max_entries: int = 10000,
    ):
        self._ttl = ttl_seconds
        self._clock = clock
        self._max_entries = max_entries
        self._entries: Dict[str, Tuple[float, List[ShippingRule]]] = {}

    @staticmethod
    def _key(session_id: Optional[str]) -> str:
        return session_id or SHARED_CACHE_KEY

    def _expired(self, loaded_at: float, now: float) -> bool:
        return now - loaded_at > self._ttl

    def get(self, session_id: Optional[str]) -> Optional[List[ShippingRule]]:
        entry = self._entries.get(self._key(session_id))
        if entry is None:
            return None
        loaded_at, rules = entry
        if self._expired(loaded_at, self._clock()):
            del self._entries[self._key(session_id)]
            return None
        return rules

    def set(self, session_id: Optional[str], rules: List[ShippingRule]) -> None:
        now = self._clock()
        self.evict_expired(now)

        key = self._key(session_id)
        # Re-insert so dict order stays oldest-first
        self._entries.pop(key, None)
        while self._entries and len(self._entries) >= self._max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
        self._entries[key] = (now, list(rules))

    def evict_expired(self, now: Optional[float] = None) -> int:
        """Drop every stale entry. Returns how many were dropped."""
        now = self._clock() if now is None else now
        stale = [key for key, (loaded_at, _) in self._entries.items() if self._expired(loaded_at, now)]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug(f"Evicted {len(stale)} stale shipping rule cache entries")
        return len(stale)

    def invalidate(self, session_id: Optional[str] = None) -> bool:
        """Drop one session's rules. Returns True when something was cached."""
        return self._entries.pop(self._key(session_id), None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def create_rule_store(settings: Settings) -> BaseRuleStore:
    """Build the rule store selected by SHIPPING_RULE_STORE."""
    backend = settings.SHIPPING_RULE_STORE
    if backend == "firestore":
        store: BaseRuleStore = FirestoreRuleStore(
            project_id=settings.FIRESTORE_PROJECT_ID,
            collection=settings.FIRESTORE_RULES_COLLECTION,
            database=settings.FIRESTORE_DATABASE,
            api_key=settings.FIRESTORE_API_KEY,
            timeout=settings.FIRESTORE_TIMEOUT_SECONDS,
        )
    elif backend == "file":
        store = JsonFileRuleStore(settings.SHIPPING_RULES_FILE)
    else:
        store = InMemoryRuleStore()

    logger.info(f"Shipping rule store: {store.name}")
    return store
