"""
YAML snapshot store for sport aggregates.

Reads and writes whole sports only; there is no partial update.
"""
import logging
import os
import re
from typing import List, Optional

import yaml
from filelock import FileLock

from .errors import InvalidInputError
from .formats import Sport

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r'^[A-Za-z0-9_-]+$')


class SportStore:
    def __init__(self, data_dir: str, lock_timeout: int = 10, lock: FileLock = None):
        self.data_dir = data_dir
        os.makedirs(data_dir, exist_ok=True)
        # Callers holding the same lock across load and save pass it in
        self._lock = lock if lock is not None else FileLock(os.path.join(data_dir, '.lock'), timeout=lock_timeout)

    def _path(self, sport_id: str) -> str:
        if not _SAFE_ID.match(sport_id or ''):
            raise InvalidInputError(f"Invalid sport id: {sport_id!r}")
        return os.path.join(self.data_dir, f"{sport_id}.yaml")

    def load(self, sport_id: str) -> Optional[Sport]:
        """Load a sport snapshot, or None when it does not exist."""
        path = self._path(sport_id)
        with self._lock:
            if not os.path.exists(path):
                return None
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        if not data:
            return None
        return Sport.from_dict(data)

    def save(self, sport: Sport):
        """Replace the stored snapshot with `sport`."""
        path = self._path(sport.id)
        with self._lock:
            with open(path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(sport.to_dict(), f, default_flow_style=False, allow_unicode=True)
        logger.debug("Saved sport %s (%d matches)", sport.id, len(sport.matches))

    def delete(self, sport_id: str) -> bool:
        path = self._path(sport_id)
        with self._lock:
            if not os.path.exists(path):
                return False
            os.remove(path)
        return True

    def list_ids(self) -> List[str]:
        return sorted(
            name[:-len('.yaml')] for name in os.listdir(self.data_dir)
            if name.endswith('.yaml')
        )
