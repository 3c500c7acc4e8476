"""Error kinds raised across the messenger.

Every error derives from `MessengerError`, so callers at the edge (the CLI) can catch the whole family at once,
while the builtin base of each error keeps it catchable the usual way (e.g. a bad key size is still a ValueError).
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0


class MessengerError(Exception):
    """Base class for all rsamessenger errors."""


class InvalidKeySize(MessengerError, ValueError):
    """Key size is not a whole number of bytes or too small to split into two primes."""


class PrimalityExhausted(MessengerError, RuntimeError):
    """A bounded random search (prime candidates, witnesses, key pairs) ran out of attempts."""


class EncodingError(MessengerError, ValueError):
    """Malformed Base64, inconsistent length headers or a malformed JSON record."""


class MessageTooLarge(MessengerError, ValueError):
    """Message representative is not smaller than the modulus."""


class NonTextInput(MessengerError, ValueError):
    """Payload holds bytes outside the ASCII range."""


class KeyNotFound(MessengerError, IOError):
    """Requested key record does not exist in the key store."""


class InvalidKeyName(MessengerError, ValueError):
    """Key store name is empty or would leave the key directory."""


class TransportError(MessengerError, IOError):
    """Communication with the remote key/message store failed.

    Attributes:
        status: The HTTP status code if a response was received, None otherwise.
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
