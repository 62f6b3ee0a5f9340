"""Single JSON file storage shared by every front-end."""

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from todo_tracker.models import DataStore
from todo_tracker.storage.base import AggregateStorage, StorageError
from todo_tracker.utils.logging import get_logger

logger = get_logger(__name__)


class JsonFileStorage(AggregateStorage):
    """Stores the aggregate as one pretty-printed JSON document.

    Every save rewrites the whole document. The new content is written to a
    temporary file next to the target and renamed over it, so a concurrent
    reader sees either the old or the new document, never a partial one.
    Concurrent writers still race: last writer wins.

    A document that was read but rejected (bad JSON or invalid records) is
    never overwritten in place. The next save first renames it to
    `<name>.corrupt-<timestamp>`.
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize file storage.

        Args:
            path: Backing file path (~ is expanded)
        """
        self.path = Path(path).expanduser()
        self._rejected = False

    @property
    def location(self) -> str:
        return str(self.path)

    def load(self) -> DataStore | None:
        if not self.path.exists():
            self._rejected = False
            return None

        try:
            content = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e

        try:
            document = json.loads(content)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            self._rejected = True
            raise StorageError(f"Cannot parse {self.path}: {e}") from e

        if not isinstance(document, dict):
            self._rejected = True
            raise StorageError(f"Unexpected top-level JSON value in {self.path}")

        try:
            data = DataStore.from_document(document)
        except ValidationError as e:
            self._rejected = True
            raise StorageError(f"Invalid data in {self.path}: {e}") from e

        self._rejected = False
        return data

    def save(self, data: DataStore) -> None:
        content = json.dumps(data.to_document(), indent=2, ensure_ascii=False)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if self._rejected:
                self._set_aside()
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                dir=self.path.parent,
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e

        logger.debug("data_file_written", path=str(self.path), size=len(content))

    def _set_aside(self) -> None:
        """Rename the rejected document so the next write cannot destroy it."""
        if self.path.exists():
            stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
            target = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
            os.replace(self.path, target)
            logger.warning("rejected_data_file_moved", path=str(self.path), moved_to=str(target))
        self._rejected = False
