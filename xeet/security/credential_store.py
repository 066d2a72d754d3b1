"""Encrypted on-disk storage for OAuth1 credentials."""

import json
from pathlib import Path
from typing import ClassVar, Optional, Tuple

from cryptography.fernet import Fernet, InvalidToken
from pydantic import BaseModel

from xeet.utils.errors import CorruptConfigError, CredentialStoreError
from xeet.utils.logging import get_logger, log_event
from xeet.utils.paths import CREDENTIALS_PATH, MASTER_KEY_PATH

logger = get_logger(__name__)


class Credentials(BaseModel):
    """OAuth1 keys for one account plus the identity they resolve to."""

    SECRET_FIELDS: ClassVar[Tuple[str, ...]] = ("api_secret", "access_token_secret")

    api_key: str = ""
    api_secret: str = ""
    access_token: str = ""
    access_token_secret: str = ""
    user_id: str = ""
    username: str = ""

    @property
    def is_empty(self) -> bool:
        return not any(self.model_dump().values())

    @property
    def has_access_token(self) -> bool:
        return bool(self.access_token)


class CredentialStore:
    """Load and save credentials with secret fields encrypted individually.

    Plain fields are written as-is; each secret field is a Fernet token
    (random IV per encryption, HMAC authenticated) under a master key that is
    generated on first use.
    """

    def __init__(self, credentials_path: Optional[Path] = None, key_path: Optional[Path] = None):
        self.path = Path(credentials_path) if credentials_path else CREDENTIALS_PATH
        self.key_path = Path(key_path) if key_path else MASTER_KEY_PATH
        self._master_key: Optional[bytes] = None

    ## Encryption Utilities

    def _get_master_key(self) -> bytes:
        """Get or create the master encryption key."""
        if self._master_key:
            return self._master_key

        try:
            self.key_path.parent.mkdir(parents=True, exist_ok=True)

            if self.key_path.exists():
                self._master_key = self.key_path.read_bytes().strip()
                logger.debug("Loaded existing master key")
            else:
                self._master_key = Fernet.generate_key()
                self.key_path.write_bytes(self._master_key)
                self.key_path.chmod(0o600)
                logger.info("Generated new master key")
                log_event("master_key_created", {"path": str(self.key_path)})

            return self._master_key

        except OSError as e:
            raise CredentialStoreError(
                "Failed to get or create master key", details={"error": str(e)}
            ) from e

    def _cipher(self) -> Fernet:
        try:
            return Fernet(self._get_master_key())
        except ValueError as e:
            raise CorruptConfigError(
                "Master key is not a valid encryption key", details={"path": str(self.key_path)}
            ) from e

    def _encrypt(self, value: str) -> str:
        return self._cipher().encrypt(value.encode()).decode()

    def _decrypt(self, field: str, token: str) -> str:
        try:
            return self._cipher().decrypt(token.encode()).decode()
        except (InvalidToken, UnicodeError) as e:
            raise CorruptConfigError(
                f"Failed to decrypt {field} - data corrupted or wrong key",
                details={"field": field},
            ) from e

    ## Public API

    def load(self) -> Credentials:
        """Load saved credentials; an empty value if nothing is saved yet.

        Raises:
            CorruptConfigError: if the file cannot be parsed or decrypted
        """
        if not self.path.exists():
            logger.debug(f"No credentials file at {self.path}")
            return Credentials()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            raise CorruptConfigError(
                "Credentials file is unreadable", details={"path": str(self.path)}
            ) from e

        if not isinstance(data, dict):
            raise CorruptConfigError("Credentials file has an unexpected format")

        for field in Credentials.SECRET_FIELDS:
            token = data.get(field)
            if token is not None and not isinstance(token, str):
                raise CorruptConfigError(
                    f"Stored {field} is not an encrypted token", details={"field": field}
                )
            if token:
                data[field] = self._decrypt(field, token)

        try:
            return Credentials(**{k: v for k, v in data.items() if k in Credentials.model_fields})
        except ValueError as e:
            raise CorruptConfigError("Credentials file has invalid fields") from e

    def save(self, credentials: Credentials) -> None:
        """Encrypt secret fields and write the credentials atomically.

        Raises:
            CredentialStoreError: if the file cannot be written
        """
        data = credentials.model_dump()
        for field in Credentials.SECRET_FIELDS:
            if data[field]:
                data[field] = self._encrypt(data[field])

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            temp_path = self.path.with_suffix(".tmp")
            temp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            temp_path.chmod(0o600)
            temp_path.replace(self.path)

        except OSError as e:
            raise CredentialStoreError(
                f"Failed to write credentials: {e}", details={"path": str(self.path)}
            ) from e

        logger.info(f"Credentials saved to {self.path}")
        log_event("credentials_saved", {"username": credentials.username})
