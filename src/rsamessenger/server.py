"""Client for the remote key/message store.

The server exposes one public key and one message slot per email:

    GET/PUT {server}/Key/{email}      public key record
    GET/PUT {server}/Message/{email}  message record

Typical usage example:

    client = ServerClient("http://example.org:5000", DirectoryKeyStore())
    client.get_key("alice@example.org")
    client.send_msg("alice@example.org", "Hi there!")
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
import urllib.parse

import requests

from rsamessenger import rsa
from rsamessenger.errors import KeyNotFound
from rsamessenger.errors import TransportError
from rsamessenger.keystore import KeyStore
from rsamessenger.keystore import PRIVATE_NAME
from rsamessenger.records import MessageRecord
from rsamessenger.records import PublicKeyRecord

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json; charset=utf-8"}


class ServerClient:
    """Publishes and fetches keys and messages.

    Attributes:
        base_url: Server root, without trailing slash.
        store: Key store holding the local key pair and fetched public keys.
        session: The requests session used for all calls.
        timeout: Per-request timeout in seconds.
    """

    def __init__(self,
                 base_url: str,
                 store: KeyStore,
                 session: requests.Session | None = None,
                 timeout: float = 10) -> None:
        self.base_url = base_url.rstrip("/")
        self.store = store
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    def _url(self, kind: str, email: str) -> str:
        return f"{self.base_url}/{kind}/{urllib.parse.quote(email, safe='@')}"

    def _request(self, method: str, kind: str, email: str, data: bytes | None = None) -> requests.Response:
        url = self._url(kind, email)
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(method,
                                            url,
                                            data=data,
                                            headers=JSON_HEADERS if data is not None else None,
                                            timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise TransportError(f"HTTP error {status} on {method} {url}: {exc}", status) from exc
        except requests.RequestException as exc:
            raise TransportError(f"Request {method} {url} failed: {exc}") from exc
        return response

    def get_key(self, email: str) -> PublicKeyRecord:
        """Fetches the public key of `email` and stores it under that email.

        Returns:
            The fetched public key record.
        """
        response = self._request("GET", "Key", email)
        record = PublicKeyRecord.from_json(response.content)
        self.store.store_public(record, email)
        logger.info("Key received for %s", email)
        return record

    def send_key(self, email: str) -> None:
        """Publishes the local public key under `email` and records the email on the private key.

        Raises:
            KeyNotFound: If no local key pair exists.
        """
        if not self.store.has_key_pair():
            raise KeyNotFound("Local public/private key pair does not exist")
        public = self.store.load_public()._replace(email=email)
        private = self.store.load_private()
        self._request("PUT", "Key", email, public.to_json())
        private.add_email(email)
        self.store.store_private(private)
        logger.info("Key saved for %s", email)

    def send_msg(self, email: str, plaintext: str) -> None:
        """Encrypts `plaintext` with the stored public key of `email` and uploads it.

        Raises:
            KeyNotFound: If no usable public key of `email` has been fetched.
        """
        public = self.store.load_public(email)
        if not public.key.strip():
            raise KeyNotFound(f"Email {email} is missing a stored key")
        content = rsa.RSAPubKey.from_record(public).encrypt(plaintext)
        self._request("PUT", "Message", email, MessageRecord(email, content).to_json())
        logger.info("Message written for %s", email)

    def get_msg(self, email: str) -> str:
        """Downloads the message waiting for `email` and decrypts it with the local private key.

        Raises:
            KeyNotFound: If the local private key was never published under `email`.
        """
        if not self.store.exists(PRIVATE_NAME):
            raise KeyNotFound(f"No private key stored for {email}")
        private = self.store.load_private()
        if email not in private.emails:
            raise KeyNotFound(f"No private key stored for {email}")
        response = self._request("GET", "Message", email)
        message = MessageRecord.from_json(response.content)
        return rsa.RSAPrivKey.from_record(private).decrypt(message.content).decode("ascii")
