"""DialogForge: branching NPC dialogue authoring and export."""

__version__ = "0.4.0"
