# pokecontact/share.py
# Shareable contact payload (QR / text share). Field names are fixed for interop.

import json

from pokecontact.associations import create_contact_with_profile
from pokecontact.errors import ValidationError
from pokecontact.logger import log_action
from pokecontact.models import CustomStats, MergedContact, Stats


def build_share_payload(contact: MergedContact) -> dict:
    return {
        "name": contact.name,
        "phoneNumber": contact.phoneNumber,
        "pokemonId": contact.profile.id,
        "pokemon": contact.profile.to_dict(),
        "customStats": contact.custom_stats.to_dict(),
    }


def dumps_share_payload(contact: MergedContact) -> str:
    return json.dumps(build_share_payload(contact), ensure_ascii=False)


def parse_share_payload(payload) -> dict:
    """
    Validate a shared payload (JSON text or dict) and fill in customStats
    from pokemon.stats when it is missing.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as e:
            raise ValidationError("payload", "Shared contact is not valid JSON") from e
    if not isinstance(payload, dict):
        raise ValidationError("payload", "Shared contact must be a JSON object")

    name = payload.get("name")
    phone = payload.get("phoneNumber")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name", "Shared contact has no name")
    if not isinstance(phone, str) or not phone.strip():
        raise ValidationError("phoneNumber", "Shared contact has no phone number")

    pokemon = payload.get("pokemon") if isinstance(payload.get("pokemon"), dict) else {}
    raw_custom = payload.get("customStats")
    if isinstance(raw_custom, dict):
        custom = CustomStats.from_dict(raw_custom)
    else:
        custom = CustomStats.from_stats(Stats.from_dict(pokemon.get("stats")))

    out = dict(payload)
    out["name"] = name.strip()
    out["phoneNumber"] = phone.strip()
    out["pokemon"] = pokemon
    out["customStats"] = custom.to_dict()
    return out


def profile_key(payload: dict):
    """Which key to fetch the shared profile by: pokemonId, pokemon.id, then pokemon.name."""
    pokemon = payload.get("pokemon") or {}
    for key in (payload.get("pokemonId"), pokemon.get("id"), pokemon.get("name")):
        if key not in (None, ""):
            return key
    raise ValidationError("pokemon", "Shared contact does not identify a Pokemon")


def import_shared_contact(payload, client, contacts, associations) -> str:
    """Create the device contact + association described by a shared payload; returns the contact id."""
    data = parse_share_payload(payload)
    profile = client.fetch_profile(profile_key(data))
    contact_id = create_contact_with_profile(contacts, associations, data["name"], data["phoneNumber"],
                                             profile, CustomStats.from_dict(data["customStats"]))
    log_action(f"Imported shared contact {contact_id} with {profile.name}")
    return contact_id
