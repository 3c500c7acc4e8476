"""Key store capability for loading and storing named key records.

The local key pair lives under the names `public` and `private`; public keys fetched from the server are stored
under the email they belong to. `DirectoryKeyStore` keeps each record in a `<name>.key` file, `MemoryKeyStore`
keeps them in a dict for tests and embedding.
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import abc
import logging
import pathlib

from rsamessenger.errors import InvalidKeyName
from rsamessenger.errors import KeyNotFound
from rsamessenger.records import PrivateKeyRecord
from rsamessenger.records import PublicKeyRecord

logger = logging.getLogger(__name__)

PUBLIC_NAME = "public"
PRIVATE_NAME = "private"


class KeyStore(abc.ABC):
    """Abstract named record storage."""

    @abc.abstractmethod
    def load(self, name: str) -> bytes:
        """Returns the raw record stored under `name`.

        Raises:
            KeyNotFound: If nothing is stored under `name`.
        """

    @abc.abstractmethod
    def store(self, name: str, data: bytes) -> None:
        """Stores the raw record under `name`, replacing any previous one."""

    @abc.abstractmethod
    def exists(self, name: str) -> bool:
        ...

    def load_public(self, name: str = PUBLIC_NAME) -> PublicKeyRecord:
        return PublicKeyRecord.from_json(self.load(name))

    def store_public(self, record: PublicKeyRecord, name: str = PUBLIC_NAME) -> None:
        self.store(name, record.to_json())

    def load_private(self) -> PrivateKeyRecord:
        return PrivateKeyRecord.from_json(self.load(PRIVATE_NAME))

    def store_private(self, record: PrivateKeyRecord) -> None:
        self.store(PRIVATE_NAME, record.to_json())

    def has_key_pair(self) -> bool:
        return self.exists(PUBLIC_NAME) and self.exists(PRIVATE_NAME)


class MemoryKeyStore(KeyStore):
    """Keeps records in memory."""

    def __init__(self) -> None:
        self.records: dict[str, bytes] = {}

    def load(self, name: str) -> bytes:
        try:
            return self.records[name]
        except KeyError:
            raise KeyNotFound(f"No key stored for {name}") from None

    def store(self, name: str, data: bytes) -> None:
        self.records[name] = data

    def exists(self, name: str) -> bool:
        return name in self.records


class DirectoryKeyStore(KeyStore):
    """Keeps each record in `<root>/<name>.key`.

    Attributes:
        root: The directory holding the key files.
    """

    def __init__(self, root: pathlib.Path = pathlib.Path(".")) -> None:
        self.root = pathlib.Path(root)

    def path(self, name: str) -> pathlib.Path:
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise InvalidKeyName(f"Invalid key name: {name!r}")
        return self.root / f"{name}.key"

    def load(self, name: str) -> bytes:
        try:
            with open(self.path(name), "rb") as f:
                return f.read()
        except FileNotFoundError:
            raise KeyNotFound(f"Key does not exist for {name}") from None

    def store(self, name: str, data: bytes) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        with open(self.path(name), "wb") as f:
            f.write(data)
        logger.info("Stored key record %s in %s", name, self.root)

    def exists(self, name: str) -> bool:
        return self.path(name).is_file()
