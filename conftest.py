"""Configures pytest further."""
import math

import pytest
import sympy

from rsamessenger.keygen import KeyPair
from rsamessenger.keystore import MemoryKeyStore


def pytest_addoption(parser):
    parser.addoption("--skip-slow", action="store_true", default=False, help="skip slower tests")
    parser.addoption("--run-extreme", action="store_true", default=False, help="run extreme value extremely slow tests")


def pytest_collection_modifyitems(config, items):
    skipdict = {}
    if config.getoption("--skip-slow"):
        skipdict["slow"] = pytest.mark.skip(reason="Slow test: needs no --skip-slow option")
    if not config.getoption("--run-extreme"):
        skipdict["extreme"] = pytest.mark.skip(reason="Extreme test: needs --run-extreme option")
    if not skipdict:
        return
    for item in items:
        for k, v in skipdict.items():
            if k in item.keywords:
                item.add_marker(v)


@pytest.fixture
def store() -> MemoryKeyStore:
    return MemoryKeyStore()


@pytest.fixture(scope="session")
def known_pair() -> KeyPair:
    """A fixed, asymmetric key pair of roughly 350 bits built from sympy primes."""
    e = 65537
    p = int(sympy.nextprime(2**200 + 1234567))
    q = int(sympy.nextprime(3 * 2**150 + 98765))
    while math.gcd(e, (p - 1) * (q - 1)) != 1:
        q = int(sympy.nextprime(q))
    return KeyPair(p * q, e, pow(e, -1, (p - 1) * (q - 1)), p, q)
