"""File backend for KeePassXC pairing credentials.

Storage Model:
- One JSON document per file: ``{"version": 1, "credentials": "<base64>"}``
- Default location ~/.keepassxc-property-agent/keepassxc-property-agent-credentials
- Permissions restricted to 600 (user read/write only) where supported
- Replaced atomically: written to a temp file in the same directory, then
  renamed over the target, so readers see either the old or the new file

The file holds the pairing identity only, never a secret read from KeePassXC.
"""

import base64
import logging
import os
import tempfile
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ValidationError

from keepassxc_property_agent.credentials.backend import PairingCredentials
from keepassxc_property_agent.exceptions import CorruptCredentialsError, PersistenceError

logger = logging.getLogger(__name__)

FILE_FORMAT_VERSION = 1


class _CredentialsDocument(BaseModel):
    version: Literal[1]
    credentials: str


class FileCredentialsStore:
    """File-based pairing credentials storage.

    Example:
        >>> store = FileCredentialsStore(Path("~/.keepassxc-property-agent/creds").expanduser())
        >>> store.save(PairingCredentials(b"abc"))
        >>> store.load()
        PairingCredentials(<3 bytes>)
    """

    def __init__(self, path: Path) -> None:
        """Initialize file store.

        Args:
            path: Credentials file location
        """
        self._path = path

    @property
    def path(self) -> Path:
        """Credentials file location."""
        return self._path

    def exists(self) -> bool:
        """Check whether a credentials file is present."""
        return self._path.exists()

    def load(self) -> PairingCredentials | None:
        """Load credentials from the file.

        Returns:
            Stored credentials, or None if the file is missing or corrupted

        Raises:
            PersistenceError: If the file exists but cannot be read
        """
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceError(f"Cannot read pairing credentials: {e}", path=self._path) from e

        try:
            credentials = self._decode(raw)
        except CorruptCredentialsError as e:
            # Pair with KeePassXC again instead of failing, the file is left in place
            logger.warning(f"Pairing credentials file corrupted, will pair with KeePassXC again: {e}")
            return None

        logger.debug(f"Loaded pairing credentials from {self._path}")
        return credentials

    def save(self, credentials: PairingCredentials) -> None:
        """Atomically replace the credentials file.

        Args:
            credentials: Credentials to store

        Raises:
            PersistenceError: If writing or replacing the file fails
        """
        payload = self._encode(credentials)

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f"{self._path.name}.", suffix=".tmp")
        except OSError as e:
            raise PersistenceError(f"Cannot create pairing credentials file: {e}", path=self._path) from e

        temp_file = Path(temp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                # Not every filesystem supports POSIX permissions
                try:
                    temp_file.chmod(0o600)
                except OSError as e:
                    logger.debug(f"Could not set credentials file permissions: {e}")

                f.write(payload)
                f.flush()
                os.fsync(f.fileno())

            os.replace(temp_file, self._path)
        except OSError as e:
            temp_file.unlink(missing_ok=True)
            raise PersistenceError(f"Failed to save pairing credentials: {e}", path=self._path) from e
        except BaseException:
            temp_file.unlink(missing_ok=True)
            raise

        logger.debug(f"Saved pairing credentials to {self._path}")

    def delete(self) -> bool:
        """Delete the credentials file.

        Returns:
            True if deleted, False if there was nothing to delete

        Raises:
            PersistenceError: If the file exists but cannot be removed
        """
        try:
            self._path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PersistenceError(f"Cannot delete pairing credentials: {e}", path=self._path) from e

        logger.info(f"Deleted pairing credentials file {self._path}")
        return True

    @staticmethod
    def _encode(credentials: PairingCredentials) -> bytes:
        document = _CredentialsDocument(
            version=FILE_FORMAT_VERSION,
            credentials=base64.b64encode(credentials.data).decode("ascii"),
        )
        return document.model_dump_json(indent=2).encode("utf-8")

    def _decode(self, raw: bytes) -> PairingCredentials:
        try:
            document = _CredentialsDocument.model_validate_json(raw)
            data = base64.b64decode(document.credentials, validate=True)
        except ValidationError as e:
            raise CorruptCredentialsError(f"invalid credentials document: {e.errors()[0]['msg']}", path=self._path) from e
        except ValueError as e:
            # binascii.Error for bad padding or alphabet, plain ValueError for non-ASCII text
            raise CorruptCredentialsError(f"invalid credentials encoding: {e}", path=self._path) from e

        return PairingCredentials(data)
