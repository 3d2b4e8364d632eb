"""
Pytest configuration and shared fakes for the pokecontact tests.

No test touches the network: the catalog client is handed a FakeSession.
"""

import sys
import threading
from pathlib import Path

import pytest
import requests

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from pokecontact.associations import AssociationStore  # noqa: E402
from pokecontact.contacts import LocalContactStore  # noqa: E402
from pokecontact.pokeapi import CatalogClient  # noqa: E402
from pokecontact.storage import MemoryBlobStore  # noqa: E402

BASE_URL = "https://pokeapi.test/api/v2/pokemon/"
LIST_URL = "https://pokeapi.test/api/v2/pokemon?limit=10000"


# =============================================================================
# FAKE HTTP
# =============================================================================

def pokemon_payload(pid, name, types, stats=None, sprite="https://img.test/{id}.png"):
    """Minimal /pokemon/{id} body in PokeAPI's shape."""
    stats = stats if stats is not None else {
        "hp": 35, "attack": 55, "defense": 40,
        "special-attack": 50, "special-defense": 50, "speed": 90,
    }
    return {
        "id": pid,
        "name": name,
        "sprites": {"front_default": sprite.format(id=pid) if sprite else None, "other": {}},
        "types": [{"slot": i + 1, "type": {"name": t, "url": ""}} for i, t in enumerate(types)],
        "stats": [{"base_stat": v, "stat": {"name": k}} for k, v in stats.items()],
    }


POKEMON = {
    "1": pokemon_payload(1, "bulbasaur", ["grass", "poison"]),
    "4": pokemon_payload(4, "charmander", ["fire"]),
    "7": pokemon_payload(7, "squirtle", ["water"]),
    "25": pokemon_payload(25, "pikachu", ["electric"]),
    "63": pokemon_payload(63, "abra", ["psychic"]),
    "92": pokemon_payload(92, "gastly", ["ghost", "poison"]),
    "94": pokemon_payload(94, "gengar", ["ghost", "poison"]),
}
POKEMON.update({p["name"]: p for p in list(POKEMON.values())})

CATALOG = {
    "count": 6,
    "results": [
        {"name": "bulbasaur", "url": "https://pokeapi.test/api/v2/pokemon/1/"},
        {"name": "charmander", "url": "https://pokeapi.test/api/v2/pokemon/4/"},
        {"name": "squirtle", "url": "https://pokeapi.test/api/v2/pokemon/7/"},
        {"name": "pikachu", "url": "https://pokeapi.test/api/v2/pokemon/25/"},
        {"name": "gastly", "url": "https://pokeapi.test/api/v2/pokemon/92/"},
        {"name": "gengar", "url": "https://pokeapi.test/api/v2/pokemon/94/"},
    ],
}


class FakeResponse:
    def __init__(self, status_code=200, body=None, bad_json=False):
        self.status_code = status_code
        self._body = body
        self._bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        if self._bad_json:
            raise ValueError("not json")
        return self._body


class FakeSession:
    """
    Stand-in for requests.Session. Records every GET; serves POKEMON and CATALOG.
    Set `catalog_gate` to an Event to hold catalog requests until it is set,
    `fail_catalog` / `timeout` / `routes` to script failures.
    """

    def __init__(self):
        self.calls = []
        self.routes = {}
        self.fail_catalog = False
        self.timeout = False
        self.catalog_gate = None
        self._lock = threading.Lock()

    def catalog_calls(self):
        return [u for u in self.calls if u == LIST_URL]

    def get(self, url, timeout=None):
        with self._lock:
            self.calls.append(url)
        if self.timeout:
            raise requests.Timeout("slow")
        if url in self.routes:
            return self.routes[url]
        if url == LIST_URL:
            if self.catalog_gate is not None:
                self.catalog_gate.wait(5)
            if self.fail_catalog:
                raise requests.ConnectionError("offline")
            return FakeResponse(body=CATALOG)
        key = url[len(BASE_URL):].strip("/")
        if key in POKEMON:
            return FakeResponse(body=POKEMON[key])
        return FakeResponse(status_code=404, body={"detail": "Not found."})


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(session):
    return CatalogClient(session=session, base_url=BASE_URL, list_url=LIST_URL)


@pytest.fixture
def blob_store():
    return MemoryBlobStore()


@pytest.fixture
def contacts(blob_store):
    return LocalContactStore(blob_store)


@pytest.fixture
def associations(blob_store, contacts):
    return AssociationStore(blob_store, contacts)


@pytest.fixture
def app(client, blob_store, contacts, associations):
    from app import create_app
    flask_app = create_app(
        client=client,
        blob_store=blob_store,
        contacts=contacts,
        associations=associations,
        config_overrides={"TESTING": True, "LOG_FILE": ""},
    )
    return flask_app


@pytest.fixture
def http(app):
    return app.test_client()
