from __future__ import annotations


class PushError(Exception):
    """Base class for every error raised by pushwire."""


class ConfigurationError(PushError):
    pass


class DecodeError(PushError, ValueError):
    pass


class KeyImportError(PushError):
    pass


class SigningError(PushError):
    pass


class MalformedSignatureError(SigningError):
    pass


class EncryptionError(PushError):
    pass


class DeliveryError(PushError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class InvalidRequestError(PushError):
    pass


class SubscriptionStoreError(PushError):
    pass
