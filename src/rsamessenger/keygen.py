"""Core Key Generation Utility, from probabilistic prime search up to a full RSA key pair.

Probable primes are found by sampling random odd candidates of a fixed byte length and running them through
a Miller-Rabin test. Two such primes of deliberately unequal size make up the modulus, and the private exponent is
obtained with an iterative extended Euclidean algorithm. Every random search is bounded and reports exhaustion
through `PrimalityExhausted` instead of looping forever.

Typical usage example:

    is_probably_prime(7919)
    p = generate_prime(16)
    pair = derive_key_pair(2048)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
import math
import secrets
import typing
import warnings

from rsamessenger.errors import InvalidKeySize
from rsamessenger.errors import PrimalityExhausted

logger = logging.getLogger(__name__)

PUBLIC_EXPONENT: int = 65537
DEFAULT_ROUNDS: int = 10
MIN_KEY_SIZE: int = 64
SECURE_KEY_SIZE: int = 2048
# Acceptance per draw is at least 1/4 (value == 5), so running out is practically impossible.
WITNESS_ATTEMPTS: int = 256
KEY_ATTEMPTS: int = 16


class KeyPair(typing.NamedTuple):
    """A freshly derived RSA key pair.

    Attributes:
        mod: The modulus N = p * q.
        pub_exp: The public exponent E.
        priv_exp: The private exponent D.
        p: Private prime 1. Never persisted in a key record.
        q: Private prime 2. Never persisted in a key record.
    """
    mod: int
    pub_exp: int
    priv_exp: int
    p: int
    q: int

    @property
    def totient(self) -> int:
        return (self.p - 1) * (self.q - 1)


def _draw_witness(value: int, attempts: int = WITNESS_ATTEMPTS) -> int:
    """Draw a Miller-Rabin witness uniformly from [2, value - 2] by rejection sampling.

    Args:
        value: The odd candidate under test. Must be >= 5.
        attempts: Maximum number of draws before giving up.

    Returns:
        A random witness.

    Raises:
        PrimalityExhausted: If no draw landed in range within `attempts` draws.
    """
    size = value.bit_length()
    for _ in range(attempts):
        a = secrets.randbits(size)
        if 2 <= a <= value - 2:
            return a
    raise PrimalityExhausted(f"No Miller-Rabin witness found for a {size}-bit candidate in {attempts} draws.")


def is_probably_prime(value: int, rounds: int = DEFAULT_ROUNDS, attempts: int = WITNESS_ATTEMPTS) -> bool:
    """Perform the Miller-Rabin primality test.

    Writes `value - 1` as `d * 2**s` with `d` odd, then runs `rounds` independent rounds with random witnesses.
    A round declares `value` composite when it finds a nontrivial square root of 1, or when the final square is
    not 1. Never reports a prime as composite; a composite slips through with probability at most 4**-rounds.

    Args:
        value: The integer to test.
        rounds: Number of Miller-Rabin rounds to perform. Defaults to 10.
        attempts: Draw budget for each witness.

    Returns:
        True if `value` is probably prime, False otherwise.

    Raises:
        PrimalityExhausted: If witness sampling ran out of attempts.
    """
    if value <= 3:
        return value in (2, 3)
    if value % 2 == 0:
        return False
    d = value - 1
    s = (d & -d).bit_length() - 1
    d >>= s
    for _ in range(rounds):
        x = pow(_draw_witness(value, attempts), d, value)
        y = x
        for _ in range(s):
            y = pow(x, 2, value)
            if y == 1 and x != 1 and x != value - 1:
                return False
            x = y
        if y != 1:
            return False
    return True


def generate_prime(byte_length: int, rounds: int = DEFAULT_ROUNDS, attempts: int | None = None) -> int:
    """Generate a probable prime of exactly `byte_length` bytes.

    Candidates are drawn from the system CSPRNG with the top bit set to guarantee the length and the bottom bit set
    to guarantee oddness.

    Args:
        byte_length: Size of the prime in bytes. Must be >= 1.
        rounds: Miller-Rabin rounds used to accept a candidate. Defaults to 10.
        attempts: Maximum amount of candidates to try.
            Defaults to five times the bit length, far beyond the expected amount.

    Returns:
        A probable prime with bit length `8 * byte_length`.

    Raises:
        InvalidKeySize: If `byte_length` is smaller than 1.
        PrimalityExhausted: If no prime was found within `attempts` candidates.
    """
    if byte_length < 1:
        raise InvalidKeySize(f"Prime length must be at least one byte, got {byte_length}.")
    if attempts is None:
        attempts = 40 * byte_length
    msk = (1 << (8 * byte_length - 1)) | 1
    for tries in range(1, attempts + 1):
        candidate = int.from_bytes(secrets.token_bytes(byte_length), byteorder="big") | msk
        if is_probably_prime(candidate, rounds):
            logger.debug("Found %d-byte prime after %d candidates.", byte_length, tries)
            return candidate
    raise PrimalityExhausted(
        f"Tried an improbable {attempts} candidates with no prime found. Check system random number generator.")


def mod_inverse(a: int, n: int) -> int:
    """Compute the multiplicative inverse of `a` modulo `n` with the iterative extended Euclidean algorithm.

    Args:
        a: The value to invert. Must be positive.
        n: The modulus. Must be > 1.

    Returns:
        The inverse `v` in `[0, n)` such that `(a * v) % n == 1`.

    Raises:
        ValueError: If `a` and `n` are not coprime.
    """
    i, v, d = n, 0, 1
    while a > 0:
        t = i // a
        a, i = i % a, a
        d, v = v - t * d, d
    if i != 1:
        raise ValueError(f"Value is not invertible, shares factor {i} with the modulus.")
    return v % n


def split_key_size(key_size: int) -> tuple[int, int]:
    """Split a key size into two unequal, byte aligned prime sizes.

    Half of the key size is shifted up or down by a random 20-30% of itself, so that p and q end up far apart and
    the modulus resists Fermat factorization.

    Args:
        key_size: The modulus size in bits. Must be a multiple of 8.

    Returns:
        Tuple of (p size, q size) in bits, both multiples of 8 and summing to `key_size`.
    """
    half = key_size // 2
    offset = half * (20 + secrets.randbelow(11)) // 100
    if secrets.randbelow(2) == 0:
        offset = -offset
    p_bits = half + offset
    p_bits -= p_bits % 8
    return p_bits, key_size - p_bits


def derive_key_pair(key_size: int, pub_exp: int = PUBLIC_EXPONENT, attempts: int = KEY_ATTEMPTS) -> KeyPair:
    """Derive an RSA key pair.

    Generates two primes of asymmetric size and derives the private exponent as the inverse of `pub_exp` modulo
    (p - 1)(q - 1). Should the totient share a factor with `pub_exp`, no inverse exists and both primes are drawn
    again.

    Args:
        key_size: The modulus size in bits. Must be a multiple of 8 and at least `MIN_KEY_SIZE`.
        pub_exp: The public exponent. Defaults (and recommended) to use 65537.
        attempts: Maximum amount of prime pairs to try.

    Returns:
        The derived KeyPair. Its modulus has a bit length of `key_size` or `key_size - 1`.

    Raises:
        InvalidKeySize: If `key_size` is not a multiple of 8 or too small.
        ValueError: If `pub_exp` is not an odd integer greater than 1.
        PrimalityExhausted: If no suitable prime pair was found within `attempts` tries.
    """
    if key_size % 8 != 0:
        raise InvalidKeySize(f"Key size in bits must be a multiple of 8, got {key_size}.")
    if key_size < MIN_KEY_SIZE:
        raise InvalidKeySize(f"Key size must be at least {MIN_KEY_SIZE} bits, got {key_size}.")
    if pub_exp < 3 or pub_exp % 2 == 0:
        raise ValueError("Public exponent must be an odd integer greater than 1.")
    if key_size < SECURE_KEY_SIZE:
        warnings.warn(f"Key size {key_size} is below {SECURE_KEY_SIZE} bits and insecure! Please use with care.",
                      RuntimeWarning)
    for _ in range(attempts):
        p_bits, q_bits = split_key_size(key_size)
        logger.debug("Splitting %d-bit key into %d-bit and %d-bit primes.", key_size, p_bits, q_bits)
        p = generate_prime(p_bits // 8)
        q = generate_prime(q_bits // 8)
        if p == q:  # (Un)Likely story.
            continue
        totient = (p - 1) * (q - 1)
        if math.gcd(pub_exp, totient) != 1:
            logger.debug("Public exponent divides the totient, drawing a new prime pair.")
            continue
        return KeyPair(p * q, pub_exp, mod_inverse(pub_exp, totient), p, q)
    raise PrimalityExhausted(f"No usable prime pair for a {key_size}-bit key found in {attempts} tries.")
