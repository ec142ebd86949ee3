"""Durable key-value storage for access and refresh tokens.

Token values are opaque: nothing here inspects or validates them.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Mapping, Optional, Protocol

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "access_token"
REFRESH_TOKEN_KEY = "refresh_token"


class TokenStore(Protocol):
    """Minimal key-value contract. Setting ``None`` clears the key."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: Optional[str]) -> None: ...

    def update(self, values: Mapping[str, Optional[str]]) -> None: ...


class MemoryTokenStore:
    """In-process store; tokens are lost when the process exits."""

    def __init__(self, initial: Optional[Mapping[str, str]] = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: Optional[str]) -> None:
        self.update({key: value})

    def update(self, values: Mapping[str, Optional[str]]) -> None:
        for key, value in values.items():
            if value is None:
                self._values.pop(key, None)
            else:
                self._values[key] = value


class FileTokenStore:
    """Persists tokens as a JSON object in a local file."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path).expanduser()
        self._values: dict[str, str] = {}
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        """Load tokens from disk. A missing or corrupt file starts empty."""
        if not self._path.exists():
            logger.info("No token file at %s — starting unauthenticated", self._path)
            return
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Failed to load tokens from %s: %s — starting fresh", self._path, exc)
            return
        if not isinstance(raw, dict):
            logger.error("Token file %s is not a JSON object — starting fresh", self._path)
            return
        self._values = {k: v for k, v in raw.items() if isinstance(v, str)}

    def _persist(self, values: Mapping[str, str]) -> None:
        """Write all tokens in one atomic replace."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=".tokens-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(dict(values), fh, indent=2)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: Optional[str]) -> None:
        self.update({key: value})

    def update(self, values: Mapping[str, Optional[str]]) -> None:
        """Apply *values* on disk first; memory only changes once the write lands."""
        updated = dict(self._values)
        for key, value in values.items():
            if value is None:
                updated.pop(key, None)
            else:
                updated[key] = value
        self._persist(updated)
        self._values = updated
