"""Exported dialogue document schema.

The document is the compact, relational form the game runtime consumes:
flat lists of actions, results and conditions cross-referenced by id, plus
the entry reference. Rows keep their editor ``position`` and ``handle`` so a
document can be loaded back into an identical graph.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from dialogforge.codec import Scalar  # noqa: TC001 - pydantic resolves it at runtime
from dialogforge.graph.model import (
    ActionHandles,
    CloseBehavior,
    ConditionalHandles,
    Executor,
    Operator,
    Position,
    ResultHandles,
)

DEFAULT_RENDER_DISTANCE = 15
DEFAULT_WORLD = "world"

RefType = Literal["result", "condition"]


class Ref(BaseModel):
    """Reference to an exported result or condition row."""

    id: str
    type: RefType


class Location(BaseModel):
    # int | float keeps whole coordinates integral on the wire
    x: int | float = 0
    y: int | float = 0
    z: int | float = 0
    rotation: int | float = 0
    world: str = DEFAULT_WORLD


class Interaction(BaseModel):
    """Where the NPC stands and from how far players can talk to it."""

    model_config = ConfigDict(populate_by_name=True)

    location: Location = Field(default_factory=Location)
    render_distance: int | float = Field(default=DEFAULT_RENDER_DISTANCE, alias="renderDistance")


class ActionRow(BaseModel):
    id: str
    label: str = ""
    target: Ref | None = None
    position: Position = Field(default_factory=Position)
    handle: ActionHandles = Field(default_factory=ActionHandles)


class ResultRow(BaseModel):
    id: str
    message: str = ""
    preferred: str | None = None
    actions: list[str] = Field(default_factory=list, description="Emitted action order")
    close: CloseBehavior = Field(default_factory=CloseBehavior)
    executors: list[Executor] = Field(default_factory=list)
    position: Position = Field(default_factory=Position)
    handle: ResultHandles = Field(default_factory=ResultHandles)


class ConditionRow(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    value: str = ""
    condition: Operator = Operator.EQUAL
    objective: Scalar = ""
    on_true: Ref = Field(alias="true")
    on_false: Ref = Field(alias="false")
    position: Position = Field(default_factory=Position)
    handle: ConditionalHandles = Field(default_factory=ConditionalHandles)


class Document(BaseModel):
    """A complete exported dialogue."""

    npc: str = ""
    interaction: Interaction | None = None
    actions: list[ActionRow]
    results: list[ResultRow]
    conditions: list[ConditionRow] = Field(default_factory=list)
    initial: Ref

    def to_json_dict(self) -> dict[str, Any]:
        """Dump in the wire shape; ``interaction`` is omitted when unset."""
        exclude = {"interaction"} if self.interaction is None else None
        return self.model_dump(mode="json", by_alias=True, exclude=exclude)

    def ref_types(self) -> dict[str, RefType]:
        """Map every referenceable row id to its :class:`Ref` type."""
        types: dict[str, RefType] = {row.id: "result" for row in self.results}
        types.update({row.id: "condition" for row in self.conditions})
        return types
