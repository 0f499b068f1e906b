"""Linear install/uninstall workflows built from ordered steps."""

from aicdrv.workflow.models import (
    MessageLevel,
    Step,
    StepOutcome,
    StepResult,
    Workflow,
    WorkflowReport,
)
from aicdrv.workflow.runner import Reporter, WorkflowRunner

__all__ = [
    "MessageLevel",
    "Reporter",
    "Step",
    "StepOutcome",
    "StepResult",
    "Workflow",
    "WorkflowReport",
    "WorkflowRunner",
]
