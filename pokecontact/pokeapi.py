# pokecontact/pokeapi.py
# PokeAPI client with an in-memory profile cache and a one-shot full catalog cache.

import random
import threading
from concurrent.futures import Future

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from pokecontact import config
from pokecontact.errors import FetchError, FetchTimeoutError
from pokecontact.logger import log_action
from pokecontact.models import STAT_NAMES, CatalogEntry, Profile, Stats, capitalize_name

ENABLE_VERBOSE_LOGGING = config.VERBOSE_LOGGING


def set_verbose(on: bool):
    """Enable/disable verbose cache logs."""
    global ENABLE_VERBOSE_LOGGING
    ENABLE_VERBOSE_LOGGING = bool(on)


# --------------------------------------------------------------------------- #
# Shared HTTP session (retries + timeout)
# --------------------------------------------------------------------------- #

def build_session(total: int = config.RETRY_TOTAL, backoff: float = config.RETRY_BACKOFF) -> requests.Session:
    session = requests.Session()
    retry = Retry(total=total, backoff_factor=backoff, status_forcelist=(429, 500, 502, 503, 504))
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


# --------------------------------------------------------------------------- #
# Payload transforms
# --------------------------------------------------------------------------- #

def best_sprite(data: dict) -> str:
    s = data.get("sprites") or {}
    other = s.get("other") or {}
    return (
        s.get("front_default")
        or (other.get("official-artwork") or {}).get("front_default")
        or config.PLACEHOLDER_SPRITE
    )


def transform_pokemon(data: dict) -> Profile:
    """Raw /pokemon/{id} payload -> Profile. Raises KeyError/TypeError/ValueError on junk."""
    base = {s["stat"]["name"]: s.get("base_stat") for s in (data.get("stats") or [])}
    types = tuple(t["type"]["name"] for t in (data.get("types") or []) if t.get("type", {}).get("name"))
    return Profile(
        id=int(data["id"]),
        name=capitalize_name(data["name"]),
        sprite=best_sprite(data),
        types=types or ("normal",),
        stats=Stats.from_dict({key: base.get(api_name) for key, api_name in STAT_NAMES.items()}),
    )


def id_from_url(url: str) -> int:
    """'https://pokeapi.co/api/v2/pokemon/25/' -> 25 (0 when unparsable)"""
    parts = (url or "").split("/")
    try:
        return int(parts[-2])
    except (IndexError, ValueError):
        return 0


def transform_catalog(data: dict) -> tuple:
    return tuple(
        CatalogEntry(id=id_from_url(p.get("url", "")), name=capitalize_name(p.get("name")), url=p.get("url", ""))
        for p in (data or {}).get("results", [])
        if p.get("name")
    )


# --------------------------------------------------------------------------- #
# Client
# --------------------------------------------------------------------------- #

class CatalogClient:
    """
    Fetches profiles and the full catalog from PokeAPI.

    Profiles are cached per lower-cased id/name. The full catalog is fetched at
    most once: concurrent callers attach to the in-flight request instead of
    issuing their own, and only a successful result is kept.
    """

    def __init__(self, session=None, timeout: float = config.REQUEST_TIMEOUT,
                 base_url: str = config.POKEMON_API, list_url: str = config.POKEMON_LIST_URL,
                 max_id: int = config.MAX_POKEMON_ID, search_limit: int = config.SEARCH_LIMIT,
                 rng: random.Random | None = None):
        self.session = session if session is not None else build_session()
        self.timeout = timeout
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.list_url = list_url
        self.max_id = max_id
        self.search_limit = search_limit
        self.rng = rng or random.Random()

        self._lock = threading.Lock()
        self._profiles: dict[str, Profile] = {}
        self._catalog: tuple | None = None
        self._catalog_pending: Future | None = None

    def _json_fetch(self, url: str, key):
        try:
            r = self.session.get(url, timeout=self.timeout)
            r.raise_for_status()
            return r.json()
        except requests.Timeout as e:
            raise FetchTimeoutError(key, self.timeout) from e
        except (requests.RequestException, ValueError) as e:
            raise FetchError(key, f"Failed to fetch Pokemon: {key} ({e})") from e

    # ---- single profile ------------------------------------------------------ #

    def fetch_profile(self, id_or_name) -> Profile:
        key = str(id_or_name).strip().lower()
        if not key:
            raise FetchError(id_or_name, "Empty Pokemon id or name")
        with self._lock:
            cached = self._profiles.get(key)
        if cached is not None:
            if ENABLE_VERBOSE_LOGGING:
                log_action(f"CACHE HIT: {key}")
            return cached

        log_action(f"CACHE MISS: {key} - Fetching from API")
        try:
            data = self._json_fetch(f"{self.base_url}{key}/", key)
        except FetchError as e:
            log_action(f"ERROR fetching pokemon {key}: {e}")
            raise
        try:
            profile = transform_pokemon(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            log_action(f"ERROR malformed pokemon payload for {key}: {e}")
            raise FetchError(key, f"Malformed data for Pokemon: {key}") from e

        with self._lock:
            self._profiles[key] = profile
        return profile

    def fetch_random_profile(self) -> Profile:
        return self.fetch_profile(self.rng.randint(1, self.max_id))

    def clear_cache(self) -> None:
        """Drop cached profiles. The full catalog is kept, see clear_catalog()."""
        with self._lock:
            self._profiles.clear()
        log_action("Profile cache cleared")

    # ---- full catalog -------------------------------------------------------- #

    def fetch_full_catalog(self) -> tuple:
        with self._lock:
            if self._catalog is not None:
                if ENABLE_VERBOSE_LOGGING:
                    log_action("CACHE HIT: full catalog")
                return self._catalog
            pending = self._catalog_pending
            owner = pending is None
            if owner:
                pending = self._catalog_pending = Future()

        if not owner:
            return pending.result()

        entries = ()
        try:
            entries = transform_catalog(self._json_fetch(self.list_url, "catalog"))
            with self._lock:
                self._catalog = entries
            log_action(f"Primed full catalog ({len(entries)})")
        except (FetchError, AttributeError, TypeError) as e:
            log_action(f"ERROR fetching full catalog: {e}")
            entries = ()
        finally:
            with self._lock:
                self._catalog_pending = None
            pending.set_result(entries)
        return entries

    def clear_catalog(self) -> None:
        with self._lock:
            self._catalog = None
        log_action("Full catalog cache cleared")

    def search_catalog(self, query) -> list:
        q = str(query or "").strip().lower()
        if not q:
            return []

        # ascii only: isdigit() also accepts things like '²' that int() rejects
        if q.isascii() and q.isdigit():
            num = int(q)
            if not 1 <= num <= self.max_id:
                return []
            return [e for e in self.fetch_full_catalog() if e.id == num][:1]

        matches = [
            e for e in self.fetch_full_catalog()
            if q in e.name.lower() or q in str(e.id)
        ]
        return matches[:self.search_limit]
