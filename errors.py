class CardVaultError(Exception):
    """Base class for all gift card vault errors."""


class CardValidationError(CardVaultError):
    """Required card fields are missing or invalid. Raised before any store call."""


class TransientBackendError(CardVaultError):
    """The record store could not be read or written. Safe to retry."""


class CardNotFoundError(CardVaultError):
    """No card with this id belongs to the user."""


class CardAlreadyUsedError(CardVaultError):
    """The card was already marked as used."""


class LogoLookupError(CardVaultError):
    """The brand logo search failed or is not configured."""
