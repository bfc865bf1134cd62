"""Graph integrity error types with user-facing feedback.

These errors are raised when an edit would break the dialogue graph:
referencing a node that doesn't exist, connecting ports that don't fit,
or touching the protected entry node.

Each error type can format itself as a short, actionable message that the
editing surface shows to the author.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from difflib import get_close_matches


class GraphIntegrityError(Exception):
    """Base class for graph integrity violations.

    Subclasses override describe() to provide a more actionable
    message for the author.
    """

    def describe(self) -> str:
        """Format error as actionable feedback.

        Returns:
            Human-readable message explaining what's wrong and how to fix it.
        """
        return str(self)


@dataclass
class NodeNotFoundError(GraphIntegrityError):
    """Raised when referencing a non-existent node.

    Attributes:
        node_id: The ID that was referenced but doesn't exist.
        available: Valid IDs that could be used instead.
        context: Description of where the reference occurred.
    """

    node_id: str
    available: list[str] = field(default_factory=list)
    context: str = ""

    def __post_init__(self) -> None:
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"Node '{self.node_id}' not found"
        if self.context:
            msg += f" ({self.context})"
        return msg

    def suggestions(self) -> list[str]:
        """Find similar IDs that might be typos."""
        return get_close_matches(self.node_id, self.available, n=3, cutoff=0.6)

    def describe(self) -> str:
        lines = [self._format_message() + "."]
        suggestions = self.suggestions()
        if suggestions:
            lines.append("Did you mean: " + ", ".join(suggestions) + "?")
        elif self.available:
            shown = sorted(self.available)[:10]
            more = len(self.available) - len(shown)
            lines.append("Known ids: " + ", ".join(shown) + (f" (+{more} more)" if more else ""))
        return "\n".join(lines)


@dataclass
class NodeExistsError(GraphIntegrityError):
    """Raised when adding a node whose id is already taken.

    Attributes:
        node_id: The ID that already exists.
    """

    node_id: str

    def __post_init__(self) -> None:
        super().__init__(f"Node '{self.node_id}' already exists")

    def describe(self) -> str:
        return (
            f"A node with id '{self.node_id}' already exists.\n"
            "Omit the id to have one generated, or pick a different one."
        )


@dataclass
class ProtectedNodeError(GraphIntegrityError):
    """Raised when deleting or moving the entry node.

    Attributes:
        node_id: The protected node.
        operation: What was attempted ("delete", "move", "change").
    """

    node_id: str
    operation: str

    def __post_init__(self) -> None:
        super().__init__(f"Cannot {self.operation} protected node '{self.node_id}'")

    def describe(self) -> str:
        return (
            f"The entry node '{self.node_id}' cannot be {self.operation}d.\n"
            "Every dialogue has exactly one entry node at the origin."
        )


@dataclass
class EdgeEndpointError(GraphIntegrityError):
    """Raised when an edge references non-existent endpoints.

    Attributes:
        source: Source node ID.
        target: Target node ID.
        missing: Which endpoint is missing ("source", "target", or "both").
        available: Valid node IDs.
    """

    source: str
    target: str
    missing: str  # "source", "target", or "both"
    available: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.missing == "both":
            msg = f"Edge endpoints not found: '{self.source}' and '{self.target}'"
        elif self.missing == "source":
            msg = f"Edge source not found: '{self.source}'"
        else:
            msg = f"Edge target not found: '{self.target}'"
        super().__init__(msg)

    def describe(self) -> str:
        lines = [str(self) + "."]
        missing_ids = {
            "source": [self.source],
            "target": [self.target],
            "both": [self.source, self.target],
        }[self.missing]
        for node_id in missing_ids:
            matches = get_close_matches(node_id, self.available, n=3, cutoff=0.6)
            if matches:
                lines.append(f"'{node_id}' -> did you mean: {', '.join(matches)}?")
        lines.append("Create the nodes first, then connect them.")
        return "\n".join(lines)


@dataclass
class InvalidConnectionError(GraphIntegrityError):
    """Raised when two ports cannot be connected.

    Attributes:
        source: Source node ID.
        source_handle: Source port name.
        target: Target node ID.
        target_handle: Target port name.
        reason: Which rule the connection breaks.
    """

    source: str
    source_handle: str
    target: str
    target_handle: str
    reason: str

    def __post_init__(self) -> None:
        super().__init__(
            f"Cannot connect {self.source}.{self.source_handle} -> "
            f"{self.target}.{self.target_handle}: {self.reason}"
        )

    def describe(self) -> str:
        return (
            f"{self}.\n"
            "Actions lead to results or conditions (action_result -> node_trigger); "
            "results offer actions (result_actions -> action_owner); "
            "conditions branch to results or conditions (condition_true/false -> node_trigger)."
        )
