"""Provides core RSA functionalities: textbook encryption and decryption with keys loaded from key records.

Encryption is raw modular exponentiation of the ASCII message read as a big-endian integer, so a message can never
be longer than the modulus allows. Keys travel as JSON records holding the binary key codec output.

Typical usage example:

    pub, priv = generate_key_pair(2048)
    c = encrypt("Hi there!", pub)
    r = decrypt(c, priv)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import base64

from rsamessenger import codec
from rsamessenger import keygen
from rsamessenger.errors import MessageTooLarge
from rsamessenger.errors import NonTextInput
from rsamessenger.records import PrivateKeyRecord
from rsamessenger.records import PublicKeyRecord


class RSAKey:
    """The overall RSA key class implementation.

    Holds the two components every key record carries.

    Attributes:
        mod: The modulus of the keypair.
        expo: The exponent of the key, whether private or public.
    """

    def __init__(self, mod: int, expo: int) -> None:
        self.mod = mod
        self.expo = expo
        self.bsize = (self.mod.bit_length() + 7) // 8

    def c_rsa(self, message: int) -> int:
        """Performs core RSA operation. (Encrypt/Decrypt)

        Args:
            message: The int-marshalled message.

        Returns:
            The transformed message.

        Raises:
            MessageTooLarge: If the message is out of range for the current key.
        """
        if not 0 <= message < self.mod:
            raise MessageTooLarge(f"Message representative must be in range [0, mod-1] for a {self.bsize}-byte key")
        return pow(message, self.expo, self.mod)

    def encode(self) -> str:
        """The Base64 key codec form of this key."""
        return codec.encode_key(self.expo, self.mod)


class RSAPubKey(RSAKey):
    """A rather straightforward subclass of RSAKey, for Public Keys."""

    def encrypt(self, message: str | bytes) -> str:
        """Use the public key to encrypt the message.

        Args:
            message: The ASCII message to encrypt. Its integer value must be smaller than the modulus.

        Returns:
            Base64 encoded ciphertext.

        Raises:
            NonTextInput: If the message holds non-ASCII characters or starts with NUL.
            MessageTooLarge: If the message is too long for the key.
        """
        c = self.c_rsa(codec.bytes_to_integer(to_ascii(message)))
        return base64.b64encode(codec.integer_to_bytes(c)).decode("ascii")

    def to_record(self, email: str = "") -> PublicKeyRecord:
        return PublicKeyRecord(email, self.encode())

    @classmethod
    def from_record(cls, record: PublicKeyRecord) -> "RSAPubKey":
        expo, mod = codec.decode_key(record.key)
        return cls(mod, expo)


class RSAPrivKey(RSAKey):
    """RSA Private Key class implementation.

    A key loaded from a private key record only knows its modulus and private exponent. A key built straight from a
    freshly derived KeyPair also knows the public exponent and the primes, which enables CRT acceleration.

    Attributes:
        mod: The modulus of the keypair.
        expo: The private exponent of the key.
        pub_exp: The public exponent, if known.
        p: Private Prime 1, if known.
        q: Private Prime 2, if known.
    """

    def __init__(self,
                 mod: int,
                 priv_exp: int,
                 pub_exp: int | None = None,
                 p: int | None = None,
                 q: int | None = None) -> None:
        super().__init__(mod, priv_exp)
        self.pub_exp = pub_exp
        self.p: int | None = None
        self.q: int | None = None
        if p and q:
            self.p = p
            self.q = q
            self.exp1 = priv_exp % (p - 1)
            self.exp2 = priv_exp % (q - 1)
            self.coeff = keygen.mod_inverse(q, p)

    def c_rsa(self, message: int) -> int:
        """Performs core RSA operation, accelerated with CRT when the primes are known. (Decrypt)

        Args:
            message: The int-marshalled ciphertext.

        Returns:
            The decrypted message representative.

        Raises:
            MessageTooLarge: If the ciphertext is out of range for the current key.
        """
        if not self.p or not self.q:
            return super().c_rsa(message)
        if not 0 <= message < self.mod:
            raise MessageTooLarge(f"Message representative must be in range [0, mod-1] for a {self.bsize}-byte key")
        m_1 = pow(message, self.exp1, self.p)
        m_2 = pow(message, self.exp2, self.q)
        h = ((m_1 - m_2) * self.coeff) % self.p
        return m_2 + self.q * h

    def decrypt(self, message: str | bytes) -> bytes:
        """Decrypts the message using the private key.

        Args:
            message: Base64 encoded ciphertext.

        Returns:
            The decrypted ASCII bytes.

        Raises:
            EncodingError: If the ciphertext is not Base64.
            MessageTooLarge: If the ciphertext is out of range for the key.
            NonTextInput: If the result is not ASCII, typically because the wrong key was used.
        """
        c = codec.bytes_to_integer(codec.b64_decode(message))
        return to_ascii(codec.integer_to_bytes(self.c_rsa(c)))

    @property
    def pub(self) -> RSAPubKey:
        if self.pub_exp is None:
            raise ValueError("Public exponent unknown for this private key.")
        return RSAPubKey(self.mod, self.pub_exp)

    def to_record(self, emails: tuple[str, ...] = ()) -> PrivateKeyRecord:
        return PrivateKeyRecord(self.encode(), emails)

    @classmethod
    def from_record(cls, record: PrivateKeyRecord) -> "RSAPrivKey":
        expo, mod = codec.decode_key(record.key)
        return cls(mod, expo)

    @classmethod
    def from_key_pair(cls, pair: keygen.KeyPair) -> "RSAPrivKey":
        return cls(pair.mod, pair.priv_exp, pair.pub_exp, pair.p, pair.q)


def to_ascii(message: str | bytes) -> bytes:
    """Marshals a message into ASCII bytes.

    A message starting with NUL is rejected too: its integer form carries no leading zero bytes, so the NULs would
    be lost on decryption.

    Raises:
        NonTextInput: If any character falls outside the ASCII range, or the message starts with NUL.
    """
    if isinstance(message, str):
        try:
            data = message.encode("ascii")
        except UnicodeEncodeError as exc:
            raise NonTextInput(f"Message contains non-ASCII character at position {exc.start}.") from exc
    else:
        if not message.isascii():
            raise NonTextInput("Message contains bytes outside the ASCII range.")
        data = bytes(message)
    if data.startswith(b"\x00"):
        raise NonTextInput("Message must not start with a NUL character.")
    return data


def records_from_key_pair(pair: keygen.KeyPair) -> tuple[PublicKeyRecord, PrivateKeyRecord]:
    """Splits a key pair into its independent public (E, N) and private (D, N) records."""
    return PublicKeyRecord("", codec.encode_key(pair.pub_exp, pair.mod)), PrivateKeyRecord(
        codec.encode_key(pair.priv_exp, pair.mod))


def generate_key_pair(size: int) -> tuple[bytes, bytes]:
    """Generates a new key pair straight into its serialized records.

    Args:
        size: The key size in bits. Must be a multiple of 8.

    Returns:
        Tuple of (public record JSON, private record JSON).
    """
    pub, priv = records_from_key_pair(keygen.derive_key_pair(size))
    return pub.to_json(), priv.to_json()


def encrypt(plaintext: str | bytes, public_key: str | bytes) -> str:
    """Encrypts `plaintext` for the owner of a serialized public key record.

    Returns:
        Base64 encoded ciphertext.
    """
    return RSAPubKey.from_record(PublicKeyRecord.from_json(public_key)).encrypt(plaintext)


def decrypt(ciphertext: str | bytes, private_key: str | bytes) -> str:
    """Decrypts Base64 `ciphertext` with a serialized private key record.

    Returns:
        The ASCII plaintext.
    """
    return RSAPrivKey.from_record(PrivateKeyRecord.from_json(private_key)).decrypt(ciphertext).decode("ascii")

