"""
Event feed collector

Fetches the manifest, then every per-category event document it lists,
and normalizes both event shapes (positional arrays and keyed objects)
into one Event record.
"""

import asyncio
import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import httpx

from ..config import settings
from ..errors import UpstreamFetchError

logger = logging.getLogger(__name__)

USER_AGENT = "LetsRace-EmailDigest/1.0"

# [date, name, discipline, venue, url, region, imported, id]
POSITIONAL_FIELDS = ("start_date", "name", "discipline", "venue", "url", "region", "added_at", "id")


@dataclass
class Event:
    """Normalized event (missing optional fields are empty strings)"""
    id: str
    name: str
    discipline: str = ""
    region: str = ""
    venue: str = ""
    start_date: str = ""
    added_at: str = ""
    url: str = ""


def _text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _first(data: dict, *keys) -> str:
    for key in keys:
        value = _text(data.get(key))
        if value:
            return value
    return ""


def derive_event_id(start_date: str, name: str, venue: str) -> str:
    """Stable id for positional entries, which carry none"""
    raw = f"{start_date}|{name}|{venue}".lower()
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()[:16]


def _decode_positional(entry: list) -> dict:
    values = {name: _text(entry[i]) if i < len(entry) else "" for i, name in enumerate(POSITIONAL_FIELDS)}
    if not values["id"] and values["start_date"] and values["name"]:
        values["id"] = derive_event_id(values["start_date"], values["name"], values["venue"])
    return values


def _decode_keyed(entry: dict) -> dict:
    start_date = _first(entry, "date", "start_date")
    return {
        "id": _first(entry, "id"),
        "name": _first(entry, "name"),
        "discipline": _first(entry, "type", "discipline"),
        "region": _first(entry, "region"),
        "venue": _first(entry, "venue", "location"),
        "start_date": start_date,
        "added_at": _first(entry, "last_updated", "added_at", "imported") or start_date,
        "url": _first(entry, "url"),
    }


def normalize_event(entry: Any) -> Optional[Event]:
    """
    Decode one raw entry into an Event

    Returns None for unknown shapes and for entries lacking id, name or
    start_date after decoding.
    """
    if isinstance(entry, (list, tuple)):
        values = _decode_positional(list(entry))
    elif isinstance(entry, dict):
        values = _decode_keyed(entry)
    else:
        return None

    if not values["id"] or not values["name"] or not values["start_date"]:
        return None
    return Event(**values)


def normalize_events(entries: list) -> list[Event]:
    events = []
    for entry in entries:
        event = normalize_event(entry)
        if event is not None:
            events.append(event)
    return events


def extract_entries(document: Any) -> list:
    """Accept a bare list or {"events": [...]}"""
    if isinstance(document, list):
        return document
    if isinstance(document, dict) and isinstance(document.get("events"), list):
        return document["events"]
    return []


@dataclass
class _CacheEntry:
    value: Any
    stored_at: float


@dataclass
class EventCache:
    """
    TTL cache for fetched documents

    The clock is injected so expiry can be tested without sleeping.
    Expired entries are kept to serve as a fallback when a fetch fails.
    """
    ttl_seconds: float = 23 * 60 * 60
    clock: Callable[[], float] = time.monotonic
    _entries: dict = field(default_factory=dict)

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.clock() - entry.stored_at > self.ttl_seconds:
            return None
        return entry.value

    def get_stale(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = _CacheEntry(value=value, stored_at=self.clock())

    def clear(self) -> None:
        self._entries.clear()


class EventSourceAdapter:
    """Loads all events listed in the content host's manifest"""

    def __init__(
        self,
        base_url: str = None,
        manifest_path: str = None,
        cache: Optional[EventCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = None
    ):
        self.base_url = (base_url or settings.events_base_url).rstrip("/")
        self.manifest_path = manifest_path or settings.manifest_path
        self.cache = cache if cache is not None else EventCache(ttl_seconds=settings.event_cache_ttl_seconds)
        self._transport = transport
        self._timeout = timeout or settings.http_timeout_seconds

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            timeout=self._timeout,
            transport=self._transport,
            follow_redirects=True,
        )

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        if not path.startswith("/"):
            path = "/" + path
        return f"{self.base_url}{path}"

    async def _fetch_json(self, client: httpx.AsyncClient, url: str) -> Any:
        try:
            response = await client.get(url)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamFetchError(
                f"HTTP {e.response.status_code} for {url}: {e.response.text[:200]}"
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise UpstreamFetchError(f"Request failed for {url}: {e}") from e
        except ValueError as e:
            raise UpstreamFetchError(f"Failed to parse JSON from {url}: {e}") from e

    async def fetch_manifest(self, client: httpx.AsyncClient) -> dict:
        """Manifest failure is fatal for the whole load"""
        manifest = await self._fetch_json(client, self._url(self.manifest_path))
        if not isinstance(manifest, dict) or not isinstance(manifest.get("type"), dict):
            raise UpstreamFetchError("Invalid manifest structure")
        return manifest

    async def _fetch_category(self, client: httpx.AsyncClient, category: str, path: str) -> list:
        url = self._url(path)
        cached = self.cache.get(url)
        if cached is not None:
            return cached

        try:
            entries = extract_entries(await self._fetch_json(client, url))
        except UpstreamFetchError as e:
            stale = self.cache.get_stale(url)
            if stale is not None:
                logger.warning(f"Failed to load {category} ({e}); using cached copy")
                return stale
            logger.warning(f"Failed to load {category}: {e}")
            return []

        self.cache.set(url, entries)
        return entries

    async def fetch_raw_events(self) -> list:
        """All raw entries from every category, in manifest order"""
        async with self._client() as client:
            manifest = await self.fetch_manifest(client)
            categories = list(manifest["type"].items())
            results = await asyncio.gather(
                *(self._fetch_category(client, category, str(path)) for category, path in categories)
            )

        entries = []
        for chunk in results:
            entries.extend(chunk)
        return entries

    async def fetch_events(self) -> list[Event]:
        entries = await self.fetch_raw_events()
        events = normalize_events(entries)
        logger.info(f"Loaded {len(events)} events ({len(entries) - len(events)} discarded)")
        return events

    def load_events(self) -> list[Event]:
        """Synchronous wrapper for callers outside an event loop"""
        return asyncio.run(self.fetch_events())
