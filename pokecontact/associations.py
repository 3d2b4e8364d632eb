# pokecontact/associations.py
"""
Contact -> profile associations, persisted as one JSON document in a blob store.

Stored shape, keyed by contact id::

    {"<contactId>": {"id": 25, "name": "Pikachu", "sprite": "...", "types": [...],
                     "stats": {...}, "customStats": {"responseTime": 55, ...}}}
"""

import json
from dataclasses import dataclass

from pokecontact.errors import AssociationStoreError, ContactStoreError
from pokecontact.logger import log_action
from pokecontact.models import Association, CustomStats, MergedContact, Profile, display_name

ASSOCIATIONS_KEY = "pokecontact:contactPokemonMap"


@dataclass(frozen=True)
class RemovalOutcome:
    contact_id: str
    ok: bool
    error: str | None = None

    def to_dict(self) -> dict:
        return {"id": self.contact_id, "ok": self.ok, "error": self.error}


class AssociationStore:
    def __init__(self, blob_store, device_contacts=None, key: str = ASSOCIATIONS_KEY):
        self.blob_store = blob_store
        self.device_contacts = device_contacts
        self.key = key

    # ---- raw map --------------------------------------------------------- #

    def _read_map(self) -> dict:
        try:
            raw = self.blob_store.get(self.key)
        except Exception as e:
            raise AssociationStoreError(f"Could not read associations: {e}") from e
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise AssociationStoreError(f"Corrupt association document: {e}") from e
        if not isinstance(data, dict):
            raise AssociationStoreError("Association document is not an object")
        return data

    def _write_map(self, data: dict):
        try:
            self.blob_store.set(self.key, json.dumps(data, ensure_ascii=False))
        except Exception as e:
            raise AssociationStoreError(f"Could not write associations: {e}") from e

    # ---- single record --------------------------------------------------- #

    def save(self, contact_id, profile: Profile, custom_stats: CustomStats | None = None) -> bool:
        """Insert or replace the association; custom stats default to attack/defense/speed."""
        if custom_stats is None:
            custom_stats = CustomStats.from_stats(profile.stats)
        assoc = Association(str(contact_id), profile, custom_stats)
        data = self._read_map()
        data[assoc.contact_id] = assoc.to_dict()
        self._write_map(data)
        log_action(f"Saved association {assoc.contact_id} -> {profile.name}")
        return True

    def get(self, contact_id) -> Association | None:
        entry = self._read_map().get(str(contact_id))
        if entry is None:
            return None
        try:
            return Association.from_dict(contact_id, entry)
        except (KeyError, TypeError, ValueError) as e:
            raise AssociationStoreError(f"Corrupt association for {contact_id}: {e}") from e

    def remove(self, contact_id) -> bool:
        data = self._read_map()
        if data.pop(str(contact_id), None) is not None:
            self._write_map(data)
            log_action(f"Removed association {contact_id}")
        return True

    def all(self) -> dict[str, Association]:
        out = {}
        for cid, entry in self._read_map().items():
            try:
                out[cid] = Association.from_dict(cid, entry)
            except (KeyError, TypeError, ValueError) as e:
                log_action(f"ERROR skipping unreadable association {cid}: {e}")
        return out

    # ---- bulk ------------------------------------------------------------ #

    def remove_many(self, contact_ids, delete_contacts: bool = False) -> list[RemovalOutcome]:
        """
        Best-effort removal. Every id is attempted; failures are collected in
        the returned outcomes instead of raised. With delete_contacts=True the
        device contact is deleted first, then the association.
        """
        outcomes = []
        for cid in contact_ids:
            try:
                if delete_contacts:
                    if self.device_contacts is None:
                        raise ContactStoreError("No device contact store configured")
                    self.device_contacts.delete(cid)
                self.remove(cid)
                outcomes.append(RemovalOutcome(str(cid), True))
            except (AssociationStoreError, ContactStoreError) as e:
                outcomes.append(RemovalOutcome(str(cid), False, str(e)))

        failed = [o for o in outcomes if not o.ok]
        if failed:
            log_action(f"ERROR {len(failed)} of {len(outcomes)} removals failed: "
                       f"{[o.contact_id for o in failed]}")
        return outcomes

    # ---- join with the device address book ------------------------------- #

    def merge(self, contact, association: Association) -> MergedContact:
        return MergedContact(
            id=contact.id,
            name=display_name(contact),
            phoneNumber=contact.phone_number,
            profile=association.profile,
            custom_stats=association.custom_stats,
        )

    def list_with_profiles(self) -> list[MergedContact]:
        """Device contacts that have an association, in device order. [] on any read failure."""
        if self.device_contacts is None:
            return []
        try:
            contacts = self.device_contacts.list_contacts()
            associations = self.all()
        except (AssociationStoreError, ContactStoreError) as e:
            log_action(f"ERROR listing contacts with profiles: {e}")
            return []
        return [self.merge(c, associations[c.id]) for c in contacts if c.id in associations]

    def get_merged(self, contact_id) -> MergedContact | None:
        cid = str(contact_id)
        return next((m for m in self.list_with_profiles() if m.id == cid), None)


def create_contact_with_profile(contacts, associations, name, phone, profile: Profile,
                                custom_stats: CustomStats | None = None) -> str:
    """Create a device contact and its association; the contact is rolled back if the save fails."""
    contact_id = contacts.create(name, phone)
    try:
        associations.save(contact_id, profile, custom_stats)
    except AssociationStoreError:
        try:
            contacts.delete(contact_id)
        except ContactStoreError as e:
            log_action(f"ERROR rolling back contact {contact_id}: {e}")
        raise
    return contact_id
