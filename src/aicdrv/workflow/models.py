"""Value types for workflow steps and their results."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum


class MessageLevel(str, Enum):
    """Severity of an operator-facing message."""
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


@dataclass(frozen=True)
class StepOutcome:
    """What a step action reports back to the runner.

    ``message`` replaces the step's default completion or failure text.
    ``output`` is command output meant for the operator. ``detail`` is kept
    in the result only.
    """

    succeeded: bool = True
    message: str = ""
    level: MessageLevel | None = None
    output: str = ""
    detail: str = ""


@dataclass(frozen=True)
class Step:
    """One entry in a workflow.

    A ``quiet`` step runs without a step header or progress bar; only its
    messages are shown.
    """

    name: str
    title: str
    action: Callable[[], StepOutcome]
    fatal: bool = False
    activity: str = ""
    done_message: str = ""
    failure_message: str = ""
    weight: float = 1.0
    quiet: bool = False


@dataclass(frozen=True)
class StepResult:
    """Recorded result of a step that ran."""

    name: str
    fatal: bool
    succeeded: bool
    message: str = ""
    level: MessageLevel = MessageLevel.INFO
    output: str = ""
    detail: str = ""

    @property
    def halts(self) -> bool:
        return self.fatal and not self.succeeded


@dataclass(frozen=True)
class Workflow:
    """An ordered chain of steps with its opening and closing text."""

    name: str
    steps: tuple[Step, ...]
    start_message: str = ""
    finish_messages: tuple[str, ...] = ()
    finish_banner: str = ""


@dataclass(frozen=True)
class WorkflowReport:
    """Results of one workflow run."""

    workflow: str
    results: tuple[StepResult, ...] = field(default_factory=tuple)
    aborted_at: str | None = None

    @property
    def aborted(self) -> bool:
        return self.aborted_at is not None

    @property
    def exit_code(self) -> int:
        return 1 if self.aborted else 0

    @property
    def completed_steps(self) -> tuple[str, ...]:
        return tuple(r.name for r in self.results)

    def result(self, name: str) -> StepResult | None:
        for r in self.results:
            if r.name == name:
                return r
        return None
