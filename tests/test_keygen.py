# pylint: disable=protected-access,missing-module-docstring
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import itertools
import math
import secrets

import pytest
import sympy

from rsamessenger import keygen
from rsamessenger.errors import InvalidKeySize
from rsamessenger.errors import PrimalityExhausted

E = 65537
P128 = int(sympy.nextprime(2**127))
P256 = int(sympy.nextprime(2**255 + 2**200))
P512 = int(sympy.nextprime(2**511 + 2**300))

base_primetest_cases = [
    # Edge Cases (neither)
    (0, False),
    (1, False),
    # Known Primes
    (2, True),
    (3, True),
    (5, True),
    (7, True),
    (11, True),
    (97, True),
    (101, True),
    (3571, True),
    (7919, True),
    (9973, True),
    # Composite
    (4, False),
    (6, False),
    (9, False),
    (1000, False),
    # Fermat Pseudoprimes (numbers that fool naive tests)
    (341, False),  # 11 * 31
    (561, False),  # 3 * 11 * 17 (Carmichael number)
    (1105, False),  # 5 * 13 * 17 (Carmichael number)
    # Pseudo-prime (PsP)
    (121, False),
    (703, False),
    (781, False),
    (1541, False),
    (2047, False),
    (52633, False),
]

large_primetest_cases = [
    (2**61 - 1, True),
    (2**127 - 1, True),
    pytest.param(2**521 - 1, True, marks=pytest.mark.slow, id="LargeInt-Mersenne521"),
    (P128, True),
    (P256, True),
    (P512, True),
    (P128 * 3, False),
    (P256 * 3, False),
    (P128 * P256, False),
    (P256 * P512, False),
    (P128 + 4, sympy.isprime(P128 + 4)),
    (P256 + 4, sympy.isprime(P256 + 4)),
    # Strong pseudoprime to all bases below 41.
    (3317044064679887385961981, False),
]

prime_lengths = [1, 2, 8, 16, 32, pytest.param(64, marks=pytest.mark.slow), pytest.param(256, marks=pytest.mark.extreme)]

key_sizes = [64, 128, 256, 512, pytest.param(1024, marks=pytest.mark.slow), pytest.param(2048, marks=pytest.mark.slow)]


def id_generator(param):
    if isinstance(param, int) and param > 1000000:
        return f"LargeInt-{param.bit_length()}bits"
    return str(param)


@pytest.mark.parametrize("n,expected", base_primetest_cases + large_primetest_cases, ids=id_generator)
def test_is_probably_prime(n, expected):
    assert keygen.is_probably_prime(n) == expected


def test_is_probably_prime_matches_reference():
    for n in range(5, 5000, 2):
        assert keygen.is_probably_prime(n) == sympy.isprime(n), n


@pytest.mark.parametrize("rounds", [10, 20])
def test_carmichael_rejected(rounds):
    for n in (561, 1105, 1729, 2465, 2821, 6601, 8911, 41041, 825265):
        assert not keygen.is_probably_prime(n, rounds)


def test_witness_rejection_sampling(mocker):
    mocker.patch("secrets.randbits", side_effect=[0, 1, 96, 127, 5])
    assert keygen._draw_witness(97) == 5
    assert secrets.randbits.call_count == 5
    secrets.randbits.assert_called_with((97).bit_length())


def test_witness_sampling_bounded(mocker):
    mocker.patch("secrets.randbits", return_value=0)
    with pytest.raises(PrimalityExhausted):
        keygen.is_probably_prime(7919)
    assert secrets.randbits.call_count == keygen.WITNESS_ATTEMPTS


def test_witness_range_small_prime():
    for _ in range(200):
        assert keygen._draw_witness(5) in (2, 3)


@pytest.mark.parametrize("byte_length", prime_lengths)
def test_generate_prime_size(byte_length):
    p = keygen.generate_prime(byte_length)
    assert p.bit_length() == 8 * byte_length
    assert p % 2 == 1
    assert sympy.isprime(p)


def test_generate_prime_forces_bits(mocker):
    mocker.patch("secrets.token_bytes", return_value=b"\x00\x00")
    mocker.patch("rsamessenger.keygen.is_probably_prime", return_value=True)
    assert keygen.generate_prime(2) == 0x8001
    secrets.token_bytes.assert_called_once_with(2)


def test_generate_prime_retries(mocker):
    mocker.patch("secrets.token_bytes", side_effect=[b"\x00\x08", b"\x00\x06", b"\x00\x04"])
    mocker.patch("rsamessenger.keygen.is_probably_prime", side_effect=[False, False, True])
    assert keygen.generate_prime(2) == 0x8005
    assert [c.args[0] for c in keygen.is_probably_prime.call_args_list] == [0x8009, 0x8007, 0x8005]
    keygen.is_probably_prime.assert_called_with(0x8005, keygen.DEFAULT_ROUNDS)


def test_generate_prime_faulty(mocker):
    mocker.patch("rsamessenger.keygen.is_probably_prime", return_value=False)
    with pytest.raises(PrimalityExhausted):
        keygen.generate_prime(4)
    assert keygen.is_probably_prime.call_count == 4 * 40


def test_generate_prime_attempt_override(mocker):
    mocker.patch("rsamessenger.keygen.is_probably_prime", return_value=False)
    with pytest.raises(PrimalityExhausted):
        keygen.generate_prime(4, attempts=3)
    assert keygen.is_probably_prime.call_count == 3


@pytest.mark.parametrize("byte_length", [0, -1])
def test_generate_prime_validates(byte_length):
    with pytest.raises(InvalidKeySize):
        keygen.generate_prime(byte_length)


@pytest.mark.parametrize("a,n,expected", [(3, 7, 5), (7, 40, 23), (17, 3120, 2753), (1, 2, 1), (E, 2**32, 4294901761)])
def test_mod_inverse_known(a, n, expected):
    assert keygen.mod_inverse(a, n) == expected


def test_mod_inverse_random_coprime():
    checked = 0
    while checked < 200:
        n = secrets.randbits(256) | 2
        a = secrets.randbelow(n - 1) + 1
        if math.gcd(a, n) != 1:
            continue
        v = keygen.mod_inverse(a, n)
        assert 0 <= v < n
        assert (a * v) % n == 1
        assert v == pow(a, -1, n)
        checked += 1


@pytest.mark.parametrize("a,n", [(2, 4), (6, 9), (E, 2 * E), (0, 7)])
def test_mod_inverse_not_coprime(a, n):
    with pytest.raises(ValueError):
        keygen.mod_inverse(a, n)


@pytest.mark.parametrize("key_size", [64, 256, 1024, 2048, 4096])
def test_split_key_size_band(key_size):
    half = key_size // 2
    for _ in range(100):
        p_bits, q_bits = keygen.split_key_size(key_size)
        assert p_bits % 8 == 0
        assert q_bits % 8 == 0
        assert p_bits + q_bits == key_size
        assert half * 20 // 100 - 8 < abs(p_bits - half) <= half * 30 // 100 + 8


@pytest.mark.parametrize("draws,expected", [([10, 0], (88, 168)), ([0, 1], (152, 104)), ([5, 1], (160, 96))])
def test_split_key_size_concrete(mocker, draws, expected):
    mocker.patch("secrets.randbelow", side_effect=draws)
    assert keygen.split_key_size(256) == expected


@pytest.mark.parametrize("key_size", [255, 100, 12, 0, 56, -64])
def test_derive_key_pair_validates_size(key_size):
    with pytest.raises(InvalidKeySize):
        keygen.derive_key_pair(key_size)


@pytest.mark.parametrize("pub", [1, 2, 65538])
def test_derive_key_pair_validates_exponent(pub):
    with pytest.raises(ValueError):
        keygen.derive_key_pair(256, pub)


def test_derive_key_pair_warns_small():
    with pytest.warns(RuntimeWarning, match="insecure"):
        keygen.derive_key_pair(128)


@pytest.mark.parametrize("key_size", key_sizes)
def test_derive_key_pair_properties(key_size):
    pair = keygen.derive_key_pair(key_size)
    assert pair.pub_exp == E
    assert pair.mod == pair.p * pair.q
    assert pair.p != pair.q
    assert sympy.isprime(pair.p)
    assert sympy.isprime(pair.q)
    assert (pair.pub_exp * pair.priv_exp) % pair.totient == 1
    assert key_size - 1 <= pair.mod.bit_length() <= key_size


def test_derive_key_pair_roundcryption():
    pair = keygen.derive_key_pair(512)
    message = 17092025232642
    ciphertext = pow(message, pair.pub_exp, pair.mod)
    assert pow(ciphertext, pair.priv_exp, pair.mod) == message


def test_derive_key_pair_redraws_on_shared_factor(mocker):
    bad_p = next(k * E + 1 for k in itertools.count(2, 2) if sympy.isprime(k * E + 1))
    good_p = int(sympy.nextprime(2**40))
    good_q = int(sympy.nextprime(2**24))
    while math.gcd(E, (good_p - 1) * (good_q - 1)) != 1:
        good_q = int(sympy.nextprime(good_q))
    mocker.patch("rsamessenger.keygen.generate_prime", side_effect=[bad_p, good_q, good_p, good_q])
    pair = keygen.derive_key_pair(64)
    assert (pair.p, pair.q) == (good_p, good_q)
    assert keygen.generate_prime.call_count == 4


def test_derive_key_pair_redraws_equal_primes(mocker):
    p = int(sympy.nextprime(2**31))
    q = int(sympy.nextprime(p))
    while math.gcd(E, (p - 1) * (q - 1)) != 1:
        q = int(sympy.nextprime(q))
    mocker.patch("rsamessenger.keygen.generate_prime", side_effect=[p, p, p, q])
    pair = keygen.derive_key_pair(64)
    assert pair.mod == p * q
    assert keygen.generate_prime.call_count == 4


def test_derive_key_pair_exhausted(mocker):
    mocker.patch("rsamessenger.keygen.generate_prime", return_value=P128)
    with pytest.raises(PrimalityExhausted):
        keygen.derive_key_pair(256)
    assert keygen.generate_prime.call_count == 2 * keygen.KEY_ATTEMPTS


def test_derive_key_pair_functional(mocker):
    src_p, src_q = P128, int(sympy.nextprime(2**135))
    while math.gcd(E, (src_p - 1) * (src_q - 1)) != 1:
        src_q = int(sympy.nextprime(src_q))
    mocker.patch("rsamessenger.keygen.generate_prime", side_effect=[src_p, src_q])
    pair = keygen.derive_key_pair(264)
    assert pair.mod == src_p * src_q
    assert pair.priv_exp == pow(E, -1, (src_p - 1) * (src_q - 1))
