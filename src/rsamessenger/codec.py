"""Binary key codec shared by public and private key records.

A key is an (exponent, modulus) pair laid out as two length-prefixed big-endian magnitudes::

    [4 bytes, big-endian unsigned] k = byte length of exponent
    [k bytes]                      exponent, big-endian magnitude
    [4 bytes, big-endian unsigned] n = byte length of modulus
    [n bytes]                      modulus, big-endian magnitude

The packed bytes are Base64 encoded before they are embedded in a JSON record. Zero is stored with length 0.

Typical usage example:

    key = encode_key(65537, mod)
    expo, mod = decode_key(key)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import base64
import binascii
import struct
import typing

from rsamessenger.errors import EncodingError

_LENGTH = struct.Struct(">I")


def bytes_to_integer(msg: bytes) -> int:
    """Converts a byte string to an integer, reading it as a big-endian magnitude."""
    return int.from_bytes(msg, byteorder="big", signed=False)


def integer_to_bytes(msg: int) -> bytes:
    """Converts a non-negative integer to its minimal big-endian magnitude. Zero yields an empty string."""
    return msg.to_bytes((msg.bit_length() + 7) // 8, byteorder="big", signed=False)


def b64_decode(data: str | bytes) -> bytes:
    """Strict Base64 decoding.

    Args:
        data: The Base64 text.

    Returns:
        The decoded bytes.

    Raises:
        EncodingError: If `data` is not valid Base64.
    """
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise EncodingError(f"Invalid Base64 payload: {exc}") from exc


class KeyBlob(typing.NamedTuple):
    """Typed view of the serialized key layout.

    Attributes:
        expo: The exponent, E for public keys and D for private keys.
        mod: The shared modulus N.
    """
    expo: int
    mod: int

    def pack(self) -> bytes:
        """Lays the pair out in the binary key format."""
        if self.expo < 0 or self.mod < 0:
            raise EncodingError("Key components must be non-negative.")
        expo = integer_to_bytes(self.expo)
        mod = integer_to_bytes(self.mod)
        return _LENGTH.pack(len(expo)) + expo + _LENGTH.pack(len(mod)) + mod

    @classmethod
    def unpack(cls, data: bytes) -> "KeyBlob":
        """Reads a pair back from the binary key format.

        Args:
            data: The packed key.

        Returns:
            The decoded KeyBlob.

        Raises:
            EncodingError: If a header is truncated, a length runs past the data or bytes are left over.
        """
        fields = []
        offset = 0
        for name in cls._fields:
            if len(data) - offset < _LENGTH.size:
                raise EncodingError(f"Key data truncated in the {name} length header.")
            (size,) = _LENGTH.unpack_from(data, offset)
            offset += _LENGTH.size
            if len(data) - offset < size:
                raise EncodingError(f"Key {name} length {size} exceeds the remaining {len(data) - offset} bytes.")
            fields.append(bytes_to_integer(data[offset:offset + size]))
            offset += size
        if offset != len(data):
            raise EncodingError(f"Key data has {len(data) - offset} trailing bytes.")
        return cls(*fields)


def encode_key(expo: int, mod: int) -> str:
    """Encodes an (exponent, modulus) pair into its Base64 text form."""
    return base64.b64encode(KeyBlob(expo, mod).pack()).decode("ascii")


def decode_key(key: str | bytes) -> tuple[int, int]:
    """Decodes the Base64 text form of a key.

    Args:
        key: The Base64 encoded key, as found in a key record.

    Returns:
        Tuple of (exponent, modulus).

    Raises:
        EncodingError: If the Base64 or the binary layout is malformed.
    """
    blob = KeyBlob.unpack(b64_decode(key))
    return blob.expo, blob.mod
