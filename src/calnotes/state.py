"""
calnotes Sync State

Durable key/value store for the sync cursor. Every mutation is written to
disk immediately so a run killed mid-cycle resumes from the last page.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

SYNC_TOKEN_KEY = "syncToken"
PAGE_TOKEN_KEY = "pageToken"


class StateStore:
    """JSON-file backed property store with get/set/delete semantics."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._state: Dict[str, Any] = {}
        self._load()

    def _load(self):
        """Load the state from disk."""
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Ignoring unreadable sync state %s: %s", self.path, e)
            return
        if isinstance(data, dict):
            self._state = data

    def _save(self):
        """Save the current state to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._state, indent=2))
        tmp.replace(self.path)

    def get(self, key: str) -> Optional[str]:
        return self._state.get(key)

    def set(self, key: str, value: str):
        self._state[key] = value
        self._save()

    def delete(self, key: str):
        if key in self._state:
            del self._state[key]
            self._save()

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._state)
