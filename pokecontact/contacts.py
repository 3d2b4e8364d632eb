# pokecontact/contacts.py
# Device contact store: the authoritative source of contact identity and phone numbers.

import json
import re
import uuid

from pokecontact.errors import ContactPermissionError, ContactStoreError, ValidationError
from pokecontact.logger import log_action
from pokecontact.models import UNKNOWN_CONTACT, DeviceContact

CONTACTS_KEY = "pokecontact:deviceContacts"
PHONE_DIGITS = 10


def digits_only(phone) -> str:
    return re.sub(r"\D", "", str(phone or ""))


def validate_phone_number(phone) -> str:
    """Return the 10-digit form of phone or raise ValidationError."""
    digits = digits_only(phone)
    if len(digits) != PHONE_DIGITS:
        raise ValidationError("phoneNumber", f"Phone number must have exactly {PHONE_DIGITS} digits")
    return digits


def normalize_contact_name(name, phone) -> str:
    if name and str(name).strip() and name != phone:
        return str(name).strip()
    return UNKNOWN_CONTACT


def split_name(name: str) -> tuple[str, str]:
    parts = name.split(" ")
    return (parts[0] or name), " ".join(parts[1:])


def phones_match(a, b) -> bool:
    da, db = digits_only(a), digits_only(b)
    if not da or not db:
        return False
    return da == db or da.endswith(db) or db.endswith(da)


class DeviceContactStore:
    """Interface of the address book the association store joins against."""

    def request_permission(self) -> bool:
        raise NotImplementedError

    def list_contacts(self) -> list[DeviceContact]:
        raise NotImplementedError

    def create(self, name: str, phone: str) -> str:
        raise NotImplementedError

    def update(self, contact_id, name: str, phone: str) -> str:
        raise NotImplementedError

    def delete(self, contact_id) -> bool:
        raise NotImplementedError


class LocalContactStore(DeviceContactStore):
    """Address book kept in a blob store (JSON list under CONTACTS_KEY)."""

    def __init__(self, blob_store, granted: bool = True, key: str = CONTACTS_KEY):
        self.blob_store = blob_store
        self.granted = granted
        self.key = key

    def request_permission(self) -> bool:
        return self.granted

    def _require_permission(self):
        if not self.request_permission():
            raise ContactPermissionError()

    def _read(self) -> list[DeviceContact]:
        try:
            raw = self.blob_store.get(self.key)
        except Exception as e:
            raise ContactStoreError(f"Could not read contact list: {e}") from e
        if not raw:
            return []
        try:
            return [DeviceContact.from_dict(c) for c in json.loads(raw)]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise ContactStoreError(f"Unreadable contact list: {e}") from e

    def _write(self, contacts: list[DeviceContact]):
        try:
            self.blob_store.set(self.key, json.dumps([c.to_dict() for c in contacts]))
        except (OSError, TypeError) as e:
            raise ContactStoreError(f"Could not save contact list: {e}") from e

    def list_contacts(self) -> list[DeviceContact]:
        if not self.request_permission():
            log_action("Contacts permission not granted, returning no contacts")
            return []
        return self._read()

    def get(self, contact_id):
        cid = str(contact_id)
        return next((c for c in self.list_contacts() if c.id == cid), None)

    def create(self, name: str, phone: str) -> str:
        self._require_permission()
        contact_name = normalize_contact_name(name, phone)
        first, last = split_name(contact_name)
        contact = DeviceContact(
            id=uuid.uuid4().hex,
            name=contact_name,
            firstName=first,
            lastName=last,
            phoneNumbers=[{"label": "mobile", "number": phone}],
        )
        contacts = self._read()
        contacts.append(contact)
        self._write(contacts)
        log_action(f"Created contact {contact.id}")
        return contact.id

    def update(self, contact_id, name: str, phone: str) -> str:
        self._require_permission()
        contacts = self._read()
        cid = str(contact_id)
        target = next((c for c in contacts if c.id == cid), None)
        if target is None and phone:
            target = next((c for c in contacts if phones_match(c.phone_number, phone)), None)
        if target is None:
            raise ContactStoreError(f"Contact with ID {contact_id} not found")

        contact_name = normalize_contact_name(name, phone)
        target.name = contact_name
        target.firstName, target.lastName = split_name(contact_name)
        label = (target.phoneNumbers[0].get("label") if target.phoneNumbers else None) or "mobile"
        target.phoneNumbers = [{"label": label, "number": phone}]
        self._write(contacts)
        log_action(f"Updated contact {target.id}")
        return target.id

    def delete(self, contact_id) -> bool:
        self._require_permission()
        contacts = self._read()
        cid = str(contact_id)
        remaining = [c for c in contacts if c.id != cid]
        if len(remaining) == len(contacts):
            raise ContactStoreError(f"Contact with ID {contact_id} not found")
        self._write(remaining)
        log_action(f"Deleted contact {cid}")
        return True
