"""Data models for deployment plans and their results."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from msideploy.execution import ExitStatus

STATUS_DRY_RUN = "dry-run"
STATUS_SKIPPED = "skipped"


class Action(Enum):
    UNINSTALL_PREAMBLE = "uninstall-preamble"
    INSTALL_PREREQ = "install-prereq"
    INSTALL_PACKAGE = "install-package"
    UNINSTALL_PACKAGE = "uninstall-package"
    REPAIR_PACKAGE = "repair-package"


@dataclass
class PlanStep:
    """One manifest entry resolved into an action.

    A step without ``argv`` records an entry that needs no action (preamble
    not installed, prerequisite already satisfied); applying it launches
    nothing.
    """

    action: Action
    target: str
    description: str
    argv: list[str] | None = None
    cwd: Path | None = None

    @property
    def is_noop(self) -> bool:
        return self.argv is None


@dataclass
class Plan:
    name: str
    steps: list[PlanStep] = field(default_factory=list)

    @property
    def actionable_steps(self) -> list[PlanStep]:
        return [s for s in self.steps if not s.is_noop]


@dataclass
class StepResult:
    action: Action
    target: str
    status: str
    message: str = ""
    returncode: int | None = None
    argv: list[str] | None = None

    @property
    def failed(self) -> bool:
        return self.status not in (
            ExitStatus.SUCCESS.value,
            ExitStatus.REBOOT_REQUIRED.value,
            STATUS_DRY_RUN,
            STATUS_SKIPPED,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action.value,
            "target": self.target,
            "status": self.status,
            "returncode": self.returncode,
            "argv": list(self.argv) if self.argv is not None else None,
            "message": self.message,
        }


__all__ = [
    "STATUS_DRY_RUN",
    "STATUS_SKIPPED",
    "Action",
    "PlanStep",
    "Plan",
    "StepResult",
]
