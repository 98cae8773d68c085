import json
import os
import tempfile
from dataclasses import asdict
from typing import Optional

from .core.interfaces import IProgressRepository
from .errors import ProgressStoreError
from .logger import get_logger
from .note_types import ProgressRecord

# Get logger for this module
logger = get_logger(__name__)

DEFAULT_PROGRESS_FILE = os.path.join(
    os.path.expanduser("~"), ".config", "piano_kids", "progress.json"
)


def _empty():
    return {"best": {}, "history": []}


class JsonProgressRepository(IProgressRepository):
    """Keeps level results in a local JSON file.

    Stores the best result per user and level plus the full history, for
    offline play or for tests standing in for the remote progress service.
    The file is replaced atomically, so a failed write leaves the previous
    contents intact.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path or DEFAULT_PROGRESS_FILE

    def load(self) -> dict:
        """Read the whole store.

        Raises:
            ProgressStoreError: If the file exists but cannot be read or parsed
        """
        if not os.path.exists(self.path):
            return _empty()
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ProgressStoreError(f"Could not read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise ProgressStoreError(f"Malformed progress file {self.path}")
        return data

    def _write(self, data: dict) -> None:
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(
            dir=directory, prefix=".progress-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise

    def save(self, record: ProgressRecord) -> bool:
        try:
            data = self.load()
        except ProgressStoreError as e:
            logger.error(str(e))
            return False

        entry = asdict(record)
        data.setdefault("history", []).append(entry)

        key = f"{record.user_id}/{record.level_id}"
        best = data.setdefault("best", {}).get(key)
        if best is None or (record.stars, record.score) > (best["stars"], best["score"]):
            data["best"][key] = entry

        try:
            self._write(data)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Could not write {self.path}: {e}")
            return False
        return True

    def best_for(self, user_id: str, level_id: Optional[str]) -> Optional[ProgressRecord]:
        """Best stored result for a user on a level, if any.

        Raises:
            ProgressStoreError: If the file exists but cannot be read or parsed
        """
        entry = self.load().get("best", {}).get(f"{user_id}/{level_id}")
        if entry is None:
            return None
        return ProgressRecord(**entry)
