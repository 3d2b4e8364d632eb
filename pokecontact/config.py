# pokecontact/config.py
# Settings for the catalog client, stores and ranking; every value can be
# overridden with a POKECONTACT_* environment variable.

import os


def _env(name: str, default):
    raw = os.environ.get(f"POKECONTACT_{name}")
    if raw is None or raw == "":
        return default
    if isinstance(default, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw


# --------------------------------------------------------------------------- #
# Remote catalog
# --------------------------------------------------------------------------- #

POKEMON_API = _env("POKEMON_API", "https://pokeapi.co/api/v2/pokemon/")
POKEMON_LIST_URL = _env("POKEMON_LIST_URL", "https://pokeapi.co/api/v2/pokemon?limit=10000")
PLACEHOLDER_SPRITE = _env(
    "PLACEHOLDER_SPRITE",
    "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/pokemon/0.png",
)
MAX_POKEMON_ID = _env("MAX_POKEMON_ID", 1025)
SEARCH_LIMIT = _env("SEARCH_LIMIT", 50)

REQUEST_TIMEOUT = _env("REQUEST_TIMEOUT", 10.0)
RETRY_TOTAL = _env("RETRY_TOTAL", 3)
RETRY_BACKOFF = _env("RETRY_BACKOFF", 0.3)

# --------------------------------------------------------------------------- #
# Persistence & logs
# --------------------------------------------------------------------------- #

DATA_DIR = _env("DATA_DIR", "data")
STORE_FILE = _env("STORE_FILE", os.path.join(DATA_DIR, "pokecontact_store.json"))
LOG_FILE = _env("LOG_FILE", "")
VERBOSE_LOGGING = _env("VERBOSE_LOGGING", False)

# --------------------------------------------------------------------------- #
# Ranking
# --------------------------------------------------------------------------- #

MATCH_THRESHOLD = _env("MATCH_THRESHOLD", 60)
BATCH_SIZE = _env("BATCH_SIZE", 10)


def as_dict() -> dict:
    """Upper-case settings of this module, used to seed Flask's app.config."""
    return {k: v for k, v in globals().items() if k.isupper()}
