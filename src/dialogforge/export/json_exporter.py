"""JSON document file format.

Writes compiled documents for the game runtime and reads documents back,
whatever schema version they were written with.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from dialogforge.export.loader import MalformedDocument

if TYPE_CHECKING:
    from pathlib import Path

    from dialogforge.export.document import Document


class JsonExporter:
    """Export a dialogue document as formatted JSON."""

    format_name = "json"

    def export(self, document: Document, output_dir: Path, name: str) -> Path:
        """Write *document* to ``{output_dir}/{name}.json``.

        Args:
            document: Compiled dialogue document.
            output_dir: Directory to write to (created if missing).
            name: Dialogue name, used as the file stem.

        Returns:
            Path to the written file.
        """
        output_dir.mkdir(parents=True, exist_ok=True)
        output_file = output_dir / f"{name}.json"

        output_file.write_text(
            json.dumps(document.to_json_dict(), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        return output_file


def read_document(path: Path) -> dict[str, Any] | MalformedDocument:
    """Read a document file into a dict.

    Returns:
        The parsed JSON object, or MalformedDocument when the file is empty,
        unreadable, not JSON, or not a JSON object.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return MalformedDocument(f"cannot read {path}: {e}")

    if not content.strip():
        return MalformedDocument(f"{path} is empty")

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        return MalformedDocument(f"{path} is not valid JSON: {e}")

    if not isinstance(data, dict):
        return MalformedDocument(f"{path} does not contain a JSON object")
    return data
