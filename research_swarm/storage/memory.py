import json
import logging
import time
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Any, Optional, Union

from ..core.types import SavedRun

logger = logging.getLogger(__name__)


class RunStore:
    """
    In-memory storage for completed research runs.

    In production, this would be backed by Redis or a database.
    """

    def __init__(self):
        self._runs: Dict[int, SavedRun] = {}

    def _next_id(self, requested: Optional[int]) -> int:
        run_id = requested if requested is not None else int(time.time() * 1000)
        while run_id in self._runs:
            run_id += 1
        return run_id

    def save(self, run: SavedRun) -> int:
        """Store a run and return its id. Ids are never reused while a run holds them."""
        run_id = self._next_id(run.id)
        self._runs[run_id] = replace(run, id=run_id)
        logger.info(f"💾 Saved research run {run_id}: {run.topic}")
        return run_id

    def get(self, run_id: int) -> Optional[SavedRun]:
        """Get a run by ID."""
        return self._runs.get(run_id)

    def list(self) -> List[SavedRun]:
        """All runs, newest first."""
        return sorted(self._runs.values(), key=lambda r: (r.timestamp, r.id), reverse=True)

    def delete(self, run_id: int) -> bool:
        if run_id not in self._runs:
            return False
        del self._runs[run_id]
        return True

    def clear(self) -> None:
        """Clear all stored data."""
        self._runs.clear()

    def export_state(self) -> Dict[str, Any]:
        """Export current state as JSON-serializable dict."""
        return {"runs": [run.to_dict() for run in self.list()]}


class JsonFileRunStore(RunStore):
    """RunStore that mirrors its contents to a JSON file after every change."""

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        data = json.loads(self.path.read_text(encoding="utf-8"))
        for item in data.get("runs", []):
            run = SavedRun.from_dict(item)
            self._runs[run.id] = run
        logger.info(f"📂 Loaded {len(self._runs)} saved run(s) from {self.path}")

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Readers only ever see a complete file
        staging = self.path.with_name(self.path.name + ".tmp")
        staging.write_text(json.dumps(self.export_state(), indent=2), encoding="utf-8")
        staging.replace(self.path)

    def save(self, run: SavedRun) -> int:
        run_id = super().save(run)
        self._flush()
        return run_id

    def delete(self, run_id: int) -> bool:
        deleted = super().delete(run_id)
        if deleted:
            self._flush()
        return deleted

    def clear(self) -> None:
        super().clear()
        self._flush()
