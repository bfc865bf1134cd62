"""Graph to document compilation, document loading and file I/O."""

from __future__ import annotations

from dialogforge.export.compiler import (
    Compiled,
    CompileResult,
    EmptyGraph,
    compile_graph,
    order_actions,
)
from dialogforge.export.document import (
    ActionRow,
    ConditionRow,
    Document,
    Interaction,
    Location,
    Ref,
    ResultRow,
)
from dialogforge.export.json_exporter import JsonExporter, read_document
from dialogforge.export.loader import Loaded, LoadResult, MalformedDocument, load_document
from dialogforge.export.migration import (
    CURRENT_SCHEMA_VERSION,
    DocumentFormatError,
    detect_schema_version,
    migrate_document,
)

__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "ActionRow",
    "CompileResult",
    "Compiled",
    "ConditionRow",
    "Document",
    "DocumentFormatError",
    "EmptyGraph",
    "Interaction",
    "JsonExporter",
    "LoadResult",
    "Loaded",
    "Location",
    "MalformedDocument",
    "Ref",
    "ResultRow",
    "compile_graph",
    "detect_schema_version",
    "load_document",
    "migrate_document",
    "order_actions",
    "read_document",
]
