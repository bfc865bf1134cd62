"""Draft persistence port for the editable graph.

The core never decides where a working graph lives. An editing surface
injects a DraftStore: the graph is loaded from it on start and saved to it
after every change. Stores deal in plain graph dicts (the editor JSON shape);
DialogueGraph handles parsing and validation.

MemoryDraftStore keeps the draft in process (tests, embedding).
JsonFileDraftStore keeps it in a JSON file and is what the CLI uses.
"""

from __future__ import annotations

import copy
import json
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from dialogforge.observability.logging import get_logger

if TYPE_CHECKING:
    from pathlib import Path

    from dialogforge.graph.graph import DialogueGraph

log = get_logger(__name__)


@runtime_checkable
class DraftStore(Protocol):
    """Storage backend protocol for working drafts.

    Methods raise no domain-specific errors; a store that has nothing saved
    returns None from load().
    """

    def load(self) -> dict[str, Any] | None:
        """Return the saved graph dict, or None if nothing was saved."""
        ...

    def save(self, data: dict[str, Any]) -> None:
        """Persist a graph dict, replacing any previous draft."""
        ...


class MemoryDraftStore:
    """In-process draft store holding a deep copy of the last save."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data = copy.deepcopy(data)
        self.saves = 0

    def load(self) -> dict[str, Any] | None:
        return copy.deepcopy(self._data)

    def save(self, data: dict[str, Any]) -> None:
        self._data = copy.deepcopy(data)
        self.saves += 1


class JsonFileDraftStore:
    """Draft store backed by a single JSON file (atomic replace on save)."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> dict[str, Any] | None:
        if not self.path.exists():
            return None
        with self.path.open(encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Draft file {self.path} does not contain a JSON object")
        return data

    def save(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            tmp_path.replace(self.path)
        except Exception:
            if tmp_path.exists():
                tmp_path.unlink()
            raise
        log.debug("draft_saved", path=str(self.path))


def autosave(graph: DialogueGraph, store: DraftStore) -> None:
    """Save *graph* to *store* now and after every subsequent change."""

    def _save(changed: DialogueGraph) -> None:
        store.save(changed.to_dict())

    graph.on_change = _save
    _save(graph)
