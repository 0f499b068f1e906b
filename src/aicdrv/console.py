"""Operator console: colored status lines and progress bars."""

from __future__ import annotations

import time
from dataclasses import dataclass

import click

from aicdrv.workflow.models import MessageLevel, Step, StepResult, Workflow, WorkflowReport
from aicdrv.workflow.runner import Reporter

BAR_WIDTH = 50
BAR_FILL = "█"


@dataclass(frozen=True)
class Palette:
    """Colors per message level. ``enabled=False`` renders plain text."""

    info: str = "green"
    warn: str = "yellow"
    error: str = "red"
    banner: str = "yellow"
    enabled: bool = True

    def color_for(self, level: MessageLevel) -> str:
        return {
            MessageLevel.INFO: self.info,
            MessageLevel.WARN: self.warn,
            MessageLevel.ERROR: self.error,
        }[level]


def format_line(level: MessageLevel, text: str, palette: Palette) -> str:
    """Format ``[LEVEL] text`` with the tag colored per *palette*."""
    tag = f"[{level.value}]"
    if palette.enabled:
        tag = click.style(tag, fg=palette.color_for(level), bold=level is MessageLevel.WARN)
    return f"{tag} {text}"


def render_bar(percent: int, width: int = BAR_WIDTH, fill: str = BAR_FILL) -> str:
    """Render a progress bar for *percent* (clamped to 0..100)."""
    percent = max(0, min(100, percent))
    filled = width * percent // 100
    if percent == 100:
        return f"[{fill * width}] 100% Complete"
    return f"[{fill * filled}{' ' * (width - filled)}] {percent}%"


class Console(Reporter):
    """Writes workflow progress to the terminal via click."""

    def __init__(self, palette: Palette | None = None, pace: float = 0.0) -> None:
        self.palette = palette or Palette()
        self.pace = pace

    # Plain output -------------------------------------------------------

    def echo(self, text: str = "", nl: bool = True) -> None:
        click.echo(text, nl=nl)

    def status(self, text: str) -> None:
        click.echo(format_line(MessageLevel.INFO, text, self.palette))

    def warning(self, text: str) -> None:
        click.echo(format_line(MessageLevel.WARN, text, self.palette))

    def error(self, text: str) -> None:
        click.echo(format_line(MessageLevel.ERROR, text, self.palette))

    def message(self, level: MessageLevel, text: str) -> None:
        click.echo(format_line(level, text, self.palette))

    def banner(self, text: str, color: str | None = None) -> None:
        if self.palette.enabled:
            text = click.style(text, fg=color or self.palette.banner)
        click.echo(text)

    def progress(self, weight: float) -> None:
        """Draw a full progress bar, animated over ``weight * pace`` seconds."""
        duration = weight * self.pace
        if duration <= 0:
            click.echo(render_bar(100))
            return
        tick = duration / BAR_WIDTH
        click.echo("[", nl=False)
        for _ in range(BAR_WIDTH):
            time.sleep(tick)
            click.echo(BAR_FILL, nl=False)
        click.echo("] 100% Complete")

    # Reporter -----------------------------------------------------------

    def workflow_started(self, workflow: Workflow) -> None:
        if workflow.start_message:
            self.status(workflow.start_message)

    def step_started(self, index: int, total: int, step: Step) -> None:
        if step.quiet:
            return
        self.status(f"Step {index}: {step.title}...")
        if step.activity:
            self.echo(step.activity, nl=False)

    def step_progress(self, step: Step, percent: int) -> None:
        if percent >= 100 and step.weight > 0 and not step.quiet:
            self.progress(step.weight)

    def step_finished(self, step: Step, result: StepResult) -> None:
        if result.halts and step.activity:
            # Terminate the activity line left open by step_started().
            self.echo()
        if result.output:
            self.echo(result.output)
            self.echo()
        if result.message:
            self.message(result.level, result.message)

    def workflow_finished(self, workflow: Workflow, report: WorkflowReport) -> None:
        if report.aborted:
            return
        for text in workflow.finish_messages:
            self.status(text)
        if workflow.finish_banner:
            self.banner(workflow.finish_banner, color=self.palette.info)
