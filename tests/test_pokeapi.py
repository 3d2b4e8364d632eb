"""
Tests for the PokeAPI catalog client and its caches.
"""

import random
import threading
import time

import pytest

from conftest import BASE_URL, LIST_URL, FakeResponse, pokemon_payload
from pokecontact import config
from pokecontact.errors import FetchError, FetchTimeoutError
from pokecontact.models import CatalogEntry
from pokecontact.pokeapi import CatalogClient, id_from_url, transform_pokemon


class TestTransform:

    def test_canonical_shape(self):
        p = transform_pokemon(pokemon_payload(25, "PIKACHU", ["electric"]))
        assert p.id == 25
        assert p.name == "Pikachu"
        assert p.sprite == "https://img.test/25.png"
        assert p.types == ("electric",)
        assert p.stats.to_dict() == {
            "hp": 35, "attack": 55, "defense": 40,
            "speed": 90, "specialAttack": 50, "specialDefense": 50,
        }

    def test_missing_stats_default_to_fifty(self):
        p = transform_pokemon(pokemon_payload(1, "bulbasaur", ["grass"], stats={"hp": 45}))
        assert p.stats.hp == 45
        assert p.stats.attack == 50
        assert p.stats.specialDefense == 50

    def test_sprite_fallbacks(self):
        data = pokemon_payload(4, "charmander", ["fire"], sprite=None)
        assert transform_pokemon(data).sprite == config.PLACEHOLDER_SPRITE

        data["sprites"]["other"] = {"official-artwork": {"front_default": "https://art.test/4.png"}}
        assert transform_pokemon(data).sprite == "https://art.test/4.png"

    def test_missing_types_default_to_normal(self):
        assert transform_pokemon(pokemon_payload(1, "x", [])).types == ("normal",)

    def test_id_from_url(self):
        assert id_from_url("https://pokeapi.co/api/v2/pokemon/25/") == 25
        assert id_from_url("garbage") == 0


class TestFetchProfile:

    def test_second_fetch_is_served_from_cache(self, client, session):
        first = client.fetch_profile("25")
        second = client.fetch_profile("25")
        assert first == second
        assert session.calls == [f"{BASE_URL}25/"]

    def test_key_is_case_insensitive(self, client, session):
        client.fetch_profile("Pikachu")
        client.fetch_profile("pikachu")
        client.fetch_profile(" PIKACHU ")
        assert len(session.calls) == 1

    def test_not_found_raises_fetch_error_with_key(self, client):
        with pytest.raises(FetchError) as exc:
            client.fetch_profile("missingno")
        assert exc.value.key == "missingno"

    def test_malformed_payload_raises_fetch_error(self, client, session):
        session.routes[f"{BASE_URL}999/"] = FakeResponse(body={"name": "no-id"})
        with pytest.raises(FetchError):
            client.fetch_profile(999)

    def test_unparsable_json_raises_fetch_error(self, client, session):
        session.routes[f"{BASE_URL}998/"] = FakeResponse(bad_json=True)
        with pytest.raises(FetchError):
            client.fetch_profile(998)

    def test_timeout_raises_distinct_error(self, client, session):
        session.timeout = True
        with pytest.raises(FetchTimeoutError) as exc:
            client.fetch_profile(25)
        assert isinstance(exc.value, FetchError)
        assert exc.value.timeout == client.timeout

    def test_failures_are_not_cached(self, client, session):
        session.timeout = True
        with pytest.raises(FetchError):
            client.fetch_profile(25)
        session.timeout = False
        assert client.fetch_profile(25).name == "Pikachu"

    def test_clear_cache_forces_refetch_but_keeps_catalog(self, client, session):
        client.fetch_profile(25)
        client.fetch_full_catalog()
        client.clear_cache()
        client.fetch_profile(25)
        client.fetch_full_catalog()
        assert session.calls.count(f"{BASE_URL}25/") == 2
        assert len(session.catalog_calls()) == 1

    def test_random_profile_draws_within_range(self, session):
        rng = random.Random(3)
        expected = random.Random(3).randint(1, 7)
        session.routes[f"{BASE_URL}{expected}/"] = FakeResponse(body=pokemon_payload(expected, "x", ["ice"]))
        c = CatalogClient(session=session, base_url=BASE_URL, list_url=LIST_URL, max_id=7, rng=rng)
        assert c.fetch_random_profile().id == expected


class TestFullCatalog:

    def test_fetched_once_and_cached(self, client, session):
        first = client.fetch_full_catalog()
        second = client.fetch_full_catalog()
        assert first is second
        assert first[3] == CatalogEntry(25, "Pikachu", "https://pokeapi.test/api/v2/pokemon/25/")
        assert len(session.catalog_calls()) == 1

    def test_failure_returns_empty_and_is_retried(self, client, session):
        session.fail_catalog = True
        assert client.fetch_full_catalog() == ()
        session.fail_catalog = False
        assert len(client.fetch_full_catalog()) == 6
        assert len(session.catalog_calls()) == 2

    def test_concurrent_callers_share_one_request(self, client, session):
        session.catalog_gate = threading.Event()
        results = []
        lock = threading.Lock()

        def worker():
            r = client.fetch_full_catalog()
            with lock:
                results.append(r)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        time.sleep(0.2)
        session.catalog_gate.set()
        for t in threads:
            t.join(5)

        assert len(session.catalog_calls()) == 1
        assert len(results) == 8
        assert all(r == results[0] for r in results)
        assert len(results[0]) == 6

    def test_clear_catalog_refetches(self, client, session):
        client.fetch_full_catalog()
        client.clear_catalog()
        client.fetch_full_catalog()
        assert len(session.catalog_calls()) == 2


class TestSearch:

    def test_numeric_query_matches_exact_id(self, client):
        assert [e.name for e in client.search_catalog("25")] == ["Pikachu"]
        assert [e.name for e in client.search_catalog("4")] == ["Charmander"]

    def test_numeric_query_out_of_range(self, client, session):
        assert client.search_catalog("0") == []
        assert client.search_catalog("5000") == []
        assert session.catalog_calls() == []

    def test_non_ascii_digits_fall_through_to_text_search(self, client):
        assert client.search_catalog("²") == []
        assert client.search_catalog("٢٥") == []

    def test_text_query_is_case_insensitive_substring(self, client):
        assert [e.name for e in client.search_catalog("GA")] == ["Gastly", "Gengar"]
        assert client.search_catalog("  ") == []

    def test_results_are_capped(self, session):
        c = CatalogClient(session=session, base_url=BASE_URL, list_url=LIST_URL, search_limit=2)
        assert len(c.search_catalog("a")) == 2
