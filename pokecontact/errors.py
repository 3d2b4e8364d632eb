# pokecontact/errors.py


class PokeContactError(Exception):
    """Base class for every error raised by the pokecontact package."""


class FetchError(PokeContactError):
    """Remote catalog call failed or returned data we could not use."""

    def __init__(self, key, message: str | None = None):
        self.key = key
        super().__init__(message or f"Failed to fetch Pokemon: {key}")


class FetchTimeoutError(FetchError):
    """Remote catalog call did not answer within the configured timeout."""

    def __init__(self, key, timeout: float):
        self.timeout = timeout
        super().__init__(key, f"Timed out after {timeout}s fetching Pokemon: {key}")


class AssociationStoreError(PokeContactError):
    """Reading or writing the contact -> profile mapping failed."""


class ContactStoreError(PokeContactError):
    """The device contact store rejected an operation (e.g. unknown id)."""


class ContactPermissionError(ContactStoreError):
    def __init__(self, message: str = "Contacts permission not granted"):
        super().__init__(message)


class ValidationError(PokeContactError):
    """Caller supplied data that cannot be used (share payload, phone number...)."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)
