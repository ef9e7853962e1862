"""JSON file persistence for the Google credential record."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from social_scheduler.models.oauth import StoredOAuthToken

logger = logging.getLogger(__name__)


class TokenStoreError(Exception):
    """Raised when the persisted token file cannot be read."""


class TokenFileStore:
    """Read and overwrite a single ``tokens.json`` style record."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> StoredOAuthToken | None:
        if not self._path.exists():
            return None
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
            return StoredOAuthToken.model_validate(payload)
        except (json.JSONDecodeError, ValidationError) as exc:
            raise TokenStoreError(f"Token file {self._path} is not a valid token record.") from exc

    def on_credential_updated(self, record: StoredOAuthToken) -> None:
        """Persist the full record, replacing the previous file contents."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        data = json.dumps(record.model_dump(exclude_none=True), indent=2)

        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(data)
            os.replace(tmp_name, self._path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info("Persisted Google credentials to %s", self._path)


__all__ = ["TokenFileStore", "TokenStoreError"]
