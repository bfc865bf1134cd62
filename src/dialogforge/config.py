"""Dialogue project configuration (``dialogue.yaml``)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any

from ruamel.yaml import YAML

from dialogforge.export.document import (
    DEFAULT_RENDER_DISTANCE,
    DEFAULT_WORLD,
    Interaction,
    Location,
)

CONFIG_FILE_NAME = "dialogue.yaml"
GRAPH_FILE_NAME = "graph.json"
DEFAULT_OUTPUT_DIR = "exports"


@dataclass
class LocationConfig:
    """Where the NPC stands in the game world."""

    x: float = 0
    y: float = 0
    z: float = 0
    rotation: float = 0
    world: str = DEFAULT_WORLD

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LocationConfig:
        return cls(
            x=data.get("x", 0),
            y=data.get("y", 0),
            z=data.get("z", 0),
            rotation=data.get("rotation", 0),
            world=data.get("world", DEFAULT_WORLD),
        )


@dataclass
class InteractionConfig:
    """NPC placement written to exported documents.

    Attributes:
        enabled: When False, exported documents carry no ``interaction``.
        location: NPC position and facing.
        render_distance: Distance from which players can talk to the NPC.
    """

    enabled: bool = True
    location: LocationConfig = field(default_factory=LocationConfig)
    render_distance: float = DEFAULT_RENDER_DISTANCE

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InteractionConfig:
        return cls(
            enabled=bool(data.get("enabled", True)),
            location=LocationConfig.from_dict(data.get("location") or {}),
            render_distance=data.get("render_distance", DEFAULT_RENDER_DISTANCE),
        )


@dataclass
class DialogueConfig:
    """Configuration for a DialogForge project."""

    name: str
    npc: str = ""
    interaction: InteractionConfig = field(default_factory=InteractionConfig)
    output_dir: str = DEFAULT_OUTPUT_DIR

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DialogueConfig:
        """Create config from dictionary.

        Args:
            data: Dictionary containing config fields.

        Returns:
            DialogueConfig instance.
        """
        return cls(
            name=str(data.get("name") or ""),
            npc=str(data.get("npc") or ""),
            interaction=InteractionConfig.from_dict(data.get("interaction") or {}),
            output_dir=data.get("output_dir", DEFAULT_OUTPUT_DIR),
        )

    def to_dict(self) -> dict[str, Any]:
        location = self.interaction.location
        return {
            "name": self.name,
            "npc": self.npc,
            "interaction": {
                "enabled": self.interaction.enabled,
                "location": {
                    "x": location.x,
                    "y": location.y,
                    "z": location.z,
                    "rotation": location.rotation,
                    "world": location.world,
                },
                "render_distance": self.interaction.render_distance,
            },
            "output_dir": self.output_dir,
        }

    def document_interaction(self) -> Interaction | None:
        """The ``interaction`` block for exported documents, or None when disabled."""
        if not self.interaction.enabled:
            return None
        location = self.interaction.location
        return Interaction(
            location=Location(
                x=location.x,
                y=location.y,
                z=location.z,
                rotation=location.rotation,
                world=location.world,
            ),
            render_distance=self.interaction.render_distance,
        )

    def apply_interaction(self, interaction: Interaction | None) -> None:
        """Adopt placement read from an imported document."""
        if interaction is None:
            self.interaction.enabled = False
            return
        location = interaction.location
        self.interaction = InteractionConfig(
            enabled=True,
            location=LocationConfig(
                x=location.x,
                y=location.y,
                z=location.z,
                rotation=location.rotation,
                world=location.world,
            ),
            render_distance=interaction.render_distance,
        )


class ProjectConfigError(Exception):
    """Raised when project configuration cannot be loaded."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load project config at {path}: {reason}")


def load_project_config(project_path: Path) -> DialogueConfig:
    """Load project configuration from dialogue.yaml.

    Args:
        project_path: Path to the project root directory.

    Returns:
        DialogueConfig instance.

    Raises:
        ProjectConfigError: If config cannot be loaded.
    """
    config_path = project_path / CONFIG_FILE_NAME

    if not config_path.exists():
        raise ProjectConfigError(config_path, "File not found")

    yaml = YAML()
    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)

        if data is None:
            raise ProjectConfigError(config_path, "Empty file")
        if not isinstance(data, dict):
            raise ProjectConfigError(config_path, "Expected a mapping at the top level")

        return DialogueConfig.from_dict(dict(data))
    except Exception as e:
        if isinstance(e, ProjectConfigError):
            raise
        raise ProjectConfigError(config_path, str(e)) from e


def save_project_config(project_path: Path, config: DialogueConfig) -> Path:
    """Write *config* to ``{project_path}/dialogue.yaml``. Returns the file path."""
    config_path = project_path / CONFIG_FILE_NAME
    yaml = YAML()
    yaml.default_flow_style = False
    with config_path.open("w", encoding="utf-8") as f:
        yaml.dump(config.to_dict(), f)
    return config_path


def create_default_config(name: str, npc: str = "") -> DialogueConfig:
    """Create a default project configuration.

    Args:
        name: Dialogue name (file stem of exported documents).
        npc: NPC identifier; empty until the author sets one.
    """
    return DialogueConfig(name=name, npc=npc)
