"""
Altegio Onboarding — Credential Store

Keeps the user token from altegio_login between runs, in
<directory>/credentials.json. The directory is created 0700 and the
file written 0600 via temp file + rename.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger("altegio_onboarding.credentials")

CREDENTIALS_FILE = "credentials.json"


class CredentialStore:
    """File-backed storage for {user_token, user_id, updated_at}."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self.path = self.directory / CREDENTIALS_FILE

    def load(self) -> dict[str, Any] | None:
        """Saved credentials, or None when nothing is stored or the file is unreadable."""
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.debug("No saved credentials at %s", self.path)
            return None
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load credentials from %s: %s", self.path, e)
            return None
        return data if isinstance(data, dict) else None

    def save(self, credentials: dict[str, Any]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True, mode=0o700)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        fd = os.open(tmp_path, os.O_CREAT | os.O_TRUNC | os.O_WRONLY, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(credentials, f, indent=2)
        os.replace(tmp_path, self.path)
        logger.info("Credentials saved to %s", self.path)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        logger.info("Credentials cleared")

    def exists(self) -> bool:
        return self.path.exists()
