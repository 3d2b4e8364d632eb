# pokecontact/models.py
# Value types shared by the client, stores and engine. The dict shapes
# (camelCase keys) are what gets persisted and shared, so keep them stable.

from dataclasses import dataclass, field, replace
from typing import Optional

DEFAULT_STAT = 50
UNKNOWN_CONTACT = "Unknown Contact"

# stats key -> PokeAPI stat name
STAT_NAMES = {
    "hp": "hp",
    "attack": "attack",
    "defense": "defense",
    "speed": "speed",
    "specialAttack": "special-attack",
    "specialDefense": "special-defense",
}


def capitalize_name(name) -> str:
    """'PIKACHU' / 'pikachu' -> 'Pikachu'"""
    if not name:
        return ""
    s = str(name)
    return s[:1].upper() + s[1:].lower()


def _stat(value) -> int:
    if value is None or value == "":
        return DEFAULT_STAT
    try:
        return int(value)
    except (TypeError, ValueError):
        return DEFAULT_STAT


@dataclass(frozen=True)
class Stats:
    hp: int = DEFAULT_STAT
    attack: int = DEFAULT_STAT
    defense: int = DEFAULT_STAT
    speed: int = DEFAULT_STAT
    specialAttack: int = DEFAULT_STAT
    specialDefense: int = DEFAULT_STAT

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Stats":
        data = data or {}
        return cls(**{k: _stat(data.get(k)) for k in STAT_NAMES})

    def to_dict(self) -> dict:
        return {k: getattr(self, k) for k in STAT_NAMES}


@dataclass(frozen=True)
class CustomStats:
    """User-editable overlay for attack / defense / speed (display only)."""
    responseTime: int = DEFAULT_STAT
    confidenceLevel: int = DEFAULT_STAT
    messageSpeed: int = DEFAULT_STAT

    def __post_init__(self):
        for name in ("responseTime", "confidenceLevel", "messageSpeed"):
            value = max(0, min(100, _stat(getattr(self, name))))
            object.__setattr__(self, name, value)

    @classmethod
    def from_stats(cls, stats: Optional[Stats]) -> "CustomStats":
        if stats is None:
            return cls()
        return cls(stats.attack, stats.defense, stats.speed)

    @classmethod
    def from_dict(cls, data: dict) -> "CustomStats":
        return cls(
            responseTime=data.get("responseTime"),
            confidenceLevel=data.get("confidenceLevel"),
            messageSpeed=data.get("messageSpeed"),
        )

    def to_dict(self) -> dict:
        return {
            "responseTime": self.responseTime,
            "confidenceLevel": self.confidenceLevel,
            "messageSpeed": self.messageSpeed,
        }


@dataclass(frozen=True)
class Profile:
    id: int
    name: str
    sprite: str
    types: tuple
    stats: Stats = field(default_factory=Stats)

    @classmethod
    def from_dict(cls, data: dict) -> "Profile":
        types = tuple(t for t in (data.get("types") or []) if isinstance(t, str) and t) or ("normal",)
        return cls(
            id=int(data["id"]),
            name=capitalize_name(data.get("name")),
            sprite=data.get("sprite") or "",
            types=types,
            stats=Stats.from_dict(data.get("stats")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sprite": self.sprite,
            "types": list(self.types),
            "stats": self.stats.to_dict(),
        }


@dataclass(frozen=True)
class CatalogEntry:
    id: int
    name: str
    url: str = ""

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "url": self.url}


@dataclass(frozen=True)
class Association:
    contact_id: str
    profile: Profile
    custom_stats: CustomStats

    @classmethod
    def from_dict(cls, contact_id, data: dict) -> "Association":
        # stored shape: profile fields flattened + "customStats"
        profile = Profile.from_dict(data)
        raw_custom = data.get("customStats")
        custom = CustomStats.from_dict(raw_custom) if raw_custom else CustomStats.from_stats(profile.stats)
        return cls(str(contact_id), profile, custom)

    def to_dict(self) -> dict:
        d = self.profile.to_dict()
        d["customStats"] = self.custom_stats.to_dict()
        return d


@dataclass
class DeviceContact:
    id: str
    name: str = ""
    firstName: str = ""
    lastName: str = ""
    phoneNumbers: list = field(default_factory=list)

    @property
    def phone_number(self) -> str:
        if self.phoneNumbers:
            return (self.phoneNumbers[0] or {}).get("number") or ""
        return ""

    @classmethod
    def from_dict(cls, data: dict) -> "DeviceContact":
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            firstName=data.get("firstName") or "",
            lastName=data.get("lastName") or "",
            phoneNumbers=list(data.get("phoneNumbers") or []),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "firstName": self.firstName,
            "lastName": self.lastName,
            "phoneNumbers": [dict(p) for p in self.phoneNumbers],
        }


def display_name(contact: DeviceContact) -> str:
    """name > 'first last' > 'Unknown Contact'; never the phone number."""
    phone = contact.phone_number
    name = ""
    if contact.name and contact.name.strip() and contact.name != phone:
        name = contact.name.strip()
    elif contact.firstName or contact.lastName:
        name = f"{contact.firstName} {contact.lastName}".strip()
    if not name or name == phone:
        name = UNKNOWN_CONTACT
    return name


@dataclass(frozen=True)
class MergedContact:
    """A device contact joined with its association, stats overlaid for display."""
    id: str
    name: str
    phoneNumber: str
    profile: Profile
    custom_stats: CustomStats

    @property
    def types(self) -> tuple:
        return self.profile.types

    @property
    def stats(self) -> Stats:
        base = self.profile.stats
        return replace(
            base,
            attack=self.custom_stats.responseTime,
            defense=self.custom_stats.confidenceLevel,
            speed=self.custom_stats.messageSpeed,
        )

    def to_dict(self) -> dict:
        pokemon = self.profile.to_dict()
        pokemon["stats"] = self.stats.to_dict()
        return {
            "id": self.id,
            "name": self.name,
            "phoneNumber": self.phoneNumber,
            "pokemonId": self.profile.id,
            "pokemonName": self.profile.name,
            "sprite": self.profile.sprite,
            "types": list(self.profile.types),
            "stats": pokemon["stats"],
            "pokemon": pokemon,
            "customStats": self.custom_stats.to_dict(),
        }
