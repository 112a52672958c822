"""
Encrypted credential storage for the management server login.

The credential is kept as Fernet-encrypted JSON. The key comes from an
environment variable when set, otherwise from a key file that is generated
(mode 0600) the first time a credential is saved.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken

from snapshot_report.exceptions import (
    CredentialDecryptError,
    CredentialKeyMissingError,
    CredentialNotFoundError,
)
from snapshot_report.workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credential:
    """Account and secret for the management server."""

    username: str
    password: str

    def __repr__(self):
        return f"Credential(username={self.username!r}, password='***')"


class CredentialStore:
    """Reads and writes a single encrypted credential file."""

    def __init__(self, path: Path, key_file: Path | None = None, key_env: str | None = None):
        self.path = Path(path)
        self.key_file = Path(key_file) if key_file else None
        self.key_env = key_env

    @classmethod
    def from_workspace(cls, workspace: Workspace) -> "CredentialStore":
        config = workspace.load_config().get("credentials", {})
        key_file = config.get("key_file")
        return cls(
            path=workspace.resolve_path(config["file"]),
            key_file=workspace.resolve_path(key_file) if key_file else None,
            key_env=config.get("key_env"),
        )

    def exists(self) -> bool:
        return self.path.exists()

    def save(self, credential: Credential) -> Path:
        """Encrypt and write the credential, creating a key if none exists."""
        fernet = Fernet(self._key(create=True))
        payload = json.dumps({"username": credential.username, "password": credential.password})

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(fernet.encrypt(payload.encode("utf-8")))
        os.chmod(self.path, 0o600)
        logger.info(f"Saved credential for {credential.username} to {self.path}")
        return self.path

    def load(self) -> Credential:
        """
        Decrypt the stored credential.

        Raises:
            CredentialNotFoundError: If no credential file exists
            CredentialDecryptError: If the key is missing or does not match
        """
        if not self.path.exists():
            raise CredentialNotFoundError(str(self.path))

        try:
            fernet = Fernet(self._key(create=False))
            data = json.loads(fernet.decrypt(self.path.read_bytes()).decode("utf-8"))
            return Credential(username=data["username"], password=data["password"])
        except (InvalidToken, ValueError, KeyError) as e:
            raise CredentialDecryptError(str(self.path), self.key_env) from e

    def _key(self, create: bool) -> bytes:
        if self.key_env and os.environ.get(self.key_env):
            return os.environ[self.key_env].encode("ascii")

        if self.key_file is None:
            raise CredentialKeyMissingError(self.key_env)

        if self.key_file.exists():
            return self.key_file.read_bytes().strip()

        if not create:
            raise ValueError(f"credential key file not found: {self.key_file}")

        key = Fernet.generate_key()
        self.key_file.parent.mkdir(parents=True, exist_ok=True)
        self.key_file.write_bytes(key)
        os.chmod(self.key_file, 0o600)
        logger.info(f"Generated new credential key at {self.key_file}")
        return key
