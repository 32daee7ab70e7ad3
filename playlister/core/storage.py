"""
Single-slot persistent storage for the pending PKCE authorization.

The PKCE verifier has to survive the browser round-trip between
begin_login() and complete_login(), possibly across two separate CLI
invocations. It is written to a small JSON file under the storage
directory, keyed by a fixed name, with owner-only permissions.

File format (storage_dir/pending_auth.json):
    {
        "pkce_verifier": {
            "verifier": "...",
            "state": "...",
            "created_at": "2026-01-01T12:00:00+00:00"
        }
    }

Only one pending authorization exists at a time: a new login overwrites
the previous one.
"""

import json
import os
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path

from playlister.core.logger import get_logger

logger = get_logger(__name__)


PENDING_AUTH_FILENAME = "pending_auth.json"
VERIFIER_KEY = "pkce_verifier"


@dataclass(frozen=True)
class PendingAuthorization:
    """
    What must be remembered between the authorize redirect and its return.

    Attributes:
        verifier: The PKCE code verifier whose challenge was sent.
        state: Random value echoed back on the redirect.
        created_at: ISO timestamp of begin_login().
    """
    verifier: str
    state: str
    created_at: str

    @classmethod
    def create(cls, verifier: str, state: str) -> "PendingAuthorization":
        return cls(
            verifier=verifier,
            state=state,
            created_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        )


class VerifierStore:
    """
    File-backed store for the single pending authorization.

    Attributes:
        path: Location of the JSON file.
    """

    def __init__(self, storage_dir: Path, filename: str = PENDING_AUTH_FILENAME) -> None:
        self.path = storage_dir / filename

    def save(self, pending: PendingAuthorization) -> None:
        """
        Persist the pending authorization, replacing any previous one.

        The file is created with 0o600 permissions, so the verifier is
        never readable by others, even before the first write. An existing
        file is narrowed to 0o600 as well.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump({VERIFIER_KEY: asdict(pending)}, f, indent=2)
        try:
            # The mode of os.open only applies to a new file
            self.path.chmod(0o600)
        except OSError:
            # Windows doesn't support chmod
            pass
        logger.debug(f"Pending authorization saved to {self.path}")

    def load(self) -> PendingAuthorization | None:
        """
        Read the pending authorization.

        Returns:
            The stored PendingAuthorization, or None when nothing is stored
            or the file is unreadable / has an unexpected structure.
        """
        if not self.path.exists():
            return None

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable pending authorization file: {e}")
            return None

        entry = data.get(VERIFIER_KEY) if isinstance(data, dict) else None
        if not isinstance(entry, dict):
            return None

        verifier = entry.get("verifier")
        if not isinstance(verifier, str) or not verifier:
            return None

        return PendingAuthorization(
            verifier=verifier,
            state=str(entry.get("state", "")),
            created_at=str(entry.get("created_at", "")),
        )

    def clear(self) -> None:
        """Remove the pending authorization (no-op if none is stored)."""
        try:
            self.path.unlink()
            logger.debug("Pending authorization cleared")
        except FileNotFoundError:
            pass
