"""JSON records exchanged with the key store and the remote server.

    public key:  {"email": "<address>", "key": "<Base64 key>"}
    private key: {"email": ["<address>", ...], "key": "<Base64 key>"}
    message:     {"email": "<address>", "content": "<Base64 ciphertext>"}
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import json
import typing

from rsamessenger.errors import EncodingError


def _load_object(data: str | bytes, *fields: str) -> dict:
    try:
        obj = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise EncodingError(f"Record is not valid JSON: {exc}") from exc
    if not isinstance(obj, dict):
        raise EncodingError("Record must be a JSON object.")
    missing = [field for field in fields if field not in obj]
    if missing:
        raise EncodingError(f"Record is missing field(s): {', '.join(missing)}")
    return obj


def _dump_object(obj: dict) -> bytes:
    return json.dumps(obj, separators=(",", ":")).encode("utf-8")


class PublicKeyRecord(typing.NamedTuple):
    """A public key, optionally published under an email.

    Attributes:
        email: The identity the key belongs to. Empty until the key is published.
        key: The Base64 encoded (E, N) pair.
    """
    email: str
    key: str

    def to_json(self) -> bytes:
        return _dump_object({"email": self.email, "key": self.key})

    @classmethod
    def from_json(cls, data: str | bytes) -> "PublicKeyRecord":
        obj = _load_object(data, "email", "key")
        if not isinstance(obj["email"], str) or not isinstance(obj["key"], str):
            raise EncodingError("Public key record fields must be strings.")
        return cls(obj["email"], obj["key"])


class MessageRecord(typing.NamedTuple):
    """An encrypted message addressed to an email.

    Attributes:
        email: The recipient.
        content: The Base64 encoded ciphertext.
    """
    email: str
    content: str

    def to_json(self) -> bytes:
        return _dump_object({"email": self.email, "content": self.content})

    @classmethod
    def from_json(cls, data: str | bytes) -> "MessageRecord":
        obj = _load_object(data, "email", "content")
        if not isinstance(obj["email"], str) or not isinstance(obj["content"], str):
            raise EncodingError("Message record fields must be strings.")
        return cls(obj["email"], obj["content"])


class PrivateKeyRecord:
    """The local private key and every email its public half has been published under.

    Attributes:
        emails: Ordered, duplicate free list of identities. Only ever appended to.
        key: The Base64 encoded (D, N) pair.
    """

    def __init__(self, key: str, emails: typing.Iterable[str] = ()) -> None:
        self.key = key
        self.emails: list[str] = []
        for email in emails:
            self.add_email(email)

    def add_email(self, email: str) -> bool:
        """Records that the public key was published under `email`.

        Returns:
            True if the email was new, False if it was already listed.
        """
        if email in self.emails:
            return False
        self.emails.append(email)
        return True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PrivateKeyRecord):
            return NotImplemented
        return self.key == other.key and self.emails == other.emails

    def __repr__(self) -> str:
        return f"PrivateKeyRecord(emails={self.emails!r})"

    def to_json(self) -> bytes:
        return _dump_object({"email": list(self.emails), "key": self.key})

    @classmethod
    def from_json(cls, data: str | bytes) -> "PrivateKeyRecord":
        obj = _load_object(data, "email", "key")
        emails = obj["email"]
        if not isinstance(emails, list) or not all(isinstance(email, str) for email in emails):
            raise EncodingError("Private key record email field must be a list of strings.")
        if not isinstance(obj["key"], str):
            raise EncodingError("Private key record key field must be a string.")
        return cls(obj["key"], emails)
