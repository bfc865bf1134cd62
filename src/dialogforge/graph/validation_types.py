"""Check results shared by the compiler and graph inspection."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Literal

Severity = Literal["pass", "warn", "fail"]


@dataclass
class ValidationCheck:
    """Outcome of one check, optionally pinned to the node it concerns.

    Attributes:
        name: Check identifier (``dangling_action``, ``dropped_condition``...).
        severity: "pass", "warn", or "fail".
        message: What the author should know.
        node_id: Node the check is about, if any.
    """

    name: str
    severity: Severity
    message: str = ""
    node_id: str | None = None

    @classmethod
    def warn(cls, name: str, message: str, node_id: str | None = None) -> ValidationCheck:
        return cls(name=name, severity="warn", message=message, node_id=node_id)

    @classmethod
    def fail(cls, name: str, message: str, node_id: str | None = None) -> ValidationCheck:
        return cls(name=name, severity="fail", message=message, node_id=node_id)


@dataclass
class ValidationReport:
    """A bag of checks with severity roll-ups."""

    checks: list[ValidationCheck] = field(default_factory=list)

    def add(self, check: ValidationCheck) -> None:
        self.checks.append(check)

    def passed(self, name: str, message: str = "") -> None:
        self.checks.append(ValidationCheck(name=name, severity="pass", message=message))

    @property
    def has_failures(self) -> bool:
        return any(c.severity == "fail" for c in self.checks)

    @property
    def has_warnings(self) -> bool:
        return any(c.severity == "warn" for c in self.checks)

    def for_node(self, node_id: str) -> list[ValidationCheck]:
        """Checks pinned to *node_id*."""
        return [c for c in self.checks if c.node_id == node_id]

    @property
    def summary(self) -> str:
        """E.g. ``"1 failed, 3 warnings, 2 passed"``; empty string when no checks ran."""
        counts = Counter(c.severity for c in self.checks)
        labels = (("fail", "failed"), ("warn", "warnings"), ("pass", "passed"))
        return ", ".join(f"{counts[sev]} {label}" for sev, label in labels if counts[sev])
