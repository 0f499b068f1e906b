"""Sequential workflow runner that stops on the first fatal failure."""

from __future__ import annotations

from aicdrv.utils.logging import get_logger
from aicdrv.workflow.models import (
    MessageLevel,
    Step,
    StepOutcome,
    StepResult,
    Workflow,
    WorkflowReport,
)

logger = get_logger(__name__)


class Reporter:
    """Receives workflow events. The base implementation ignores them."""

    def workflow_started(self, workflow: Workflow) -> None:
        pass

    def step_started(self, index: int, total: int, step: Step) -> None:
        pass

    def step_progress(self, step: Step, percent: int) -> None:
        pass

    def step_finished(self, step: Step, result: StepResult) -> None:
        pass

    def workflow_finished(self, workflow: Workflow, report: WorkflowReport) -> None:
        pass


class WorkflowRunner:
    """Runs a workflow's steps in order.

    No step is retried and nothing is rolled back. The first step that is
    fatal and fails ends the run.
    """

    def __init__(self, reporter: Reporter | None = None) -> None:
        self._reporter = reporter or Reporter()

    def run(self, workflow: Workflow) -> WorkflowReport:
        reporter = self._reporter
        total = len(workflow.steps)
        results: list[StepResult] = []

        logger.info("workflow_start", workflow=workflow.name, steps=total)
        reporter.workflow_started(workflow)

        for index, step in enumerate(workflow.steps, start=1):
            reporter.step_started(index, total, step)
            logger.info("step_start", workflow=workflow.name, step=step.name)

            outcome = self._execute(step)
            result = self._to_result(step, outcome)
            results.append(result)

            if not result.halts:
                reporter.step_progress(step, 100)
            reporter.step_finished(step, result)

            logger.info(
                "step_complete",
                workflow=workflow.name,
                step=step.name,
                succeeded=result.succeeded,
                fatal=step.fatal,
            )

            if result.halts:
                report = WorkflowReport(
                    workflow=workflow.name,
                    results=tuple(results),
                    aborted_at=step.name,
                )
                logger.info("workflow_aborted", workflow=workflow.name, step=step.name)
                reporter.workflow_finished(workflow, report)
                return report

        report = WorkflowReport(workflow=workflow.name, results=tuple(results))
        logger.info("workflow_complete", workflow=workflow.name)
        reporter.workflow_finished(workflow, report)
        return report

    def _execute(self, step: Step) -> StepOutcome:
        try:
            return step.action()
        except OSError as exc:
            logger.info("step_os_error", step=step.name, error=str(exc))
            return StepOutcome(succeeded=False, detail=str(exc))

    def _to_result(self, step: Step, outcome: StepOutcome) -> StepResult:
        if outcome.succeeded:
            message = outcome.message or step.done_message
            level = outcome.level or MessageLevel.INFO
        elif step.fatal:
            message = outcome.message or step.failure_message
            level = MessageLevel.ERROR
        else:
            message = outcome.message or step.failure_message or step.done_message
            level = outcome.level or MessageLevel.WARN

        if not message and outcome.detail and not outcome.succeeded:
            message = outcome.detail

        return StepResult(
            name=step.name,
            fatal=step.fatal,
            succeeded=outcome.succeeded,
            message=message,
            level=level,
            output=outcome.output,
            detail=outcome.detail,
        )
