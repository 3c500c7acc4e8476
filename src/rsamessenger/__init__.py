"""A Personal RSA Messenger, built on a from-scratch textbook RSA engine.

Provides key pair generation including its own Miller-Rabin prime search, a compact binary key codec wrapped in
JSON key records, textbook RSA encryption/decryption and a client for a remote key/message store.

Typical usage example:

    pub, priv = generate_key_pair(2048)
    c = encrypt("Hi there!", pub)
    r = decrypt(c, priv)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from rsamessenger.codec import decode_key
from rsamessenger.codec import encode_key
from rsamessenger.keygen import derive_key_pair
from rsamessenger.keygen import generate_prime
from rsamessenger.keygen import is_probably_prime
from rsamessenger.keygen import KeyPair
from rsamessenger.keygen import mod_inverse
from rsamessenger.rsa import decrypt
from rsamessenger.rsa import encrypt
from rsamessenger.rsa import generate_key_pair
from rsamessenger.rsa import RSAPrivKey
from rsamessenger.rsa import RSAPubKey

__version__ = "0.0.1"
__all__ = [
    "KeyPair",
    "RSAPrivKey",
    "RSAPubKey",
    "decode_key",
    "decrypt",
    "derive_key_pair",
    "encode_key",
    "encrypt",
    "generate_key_pair",
    "generate_prime",
    "is_probably_prime",
    "mod_inverse",
]
