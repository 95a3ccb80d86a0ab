"""
Run a named pipeline of build steps in order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from ..config import DEFAULT_PIPELINE, ProjectConfig
from ..util import file_lock
from .steps import Step, StepResult, TemplateStep, build_step

logger = logging.getLogger(__name__)


@dataclass
class PipelineReport:
    """
    Summary of a pipeline run.

    Attributes:
        pipeline: Name of the pipeline that ran.
        results: Results of the steps that completed, in run order.
    """
    pipeline: str
    results: List[StepResult] = field(default_factory=list)

    def summary_rows(self) -> Iterable[tuple[str, str, str]]:
        for result in self.results:
            yield (result.name, result.kind, result.detail)

    @property
    def fragment_failures(self) -> int:
        return sum(
            len(result.template_report.failures)
            for result in self.results
            if result.template_report is not None
        )


def plan_pipeline(config: ProjectConfig, name: str = DEFAULT_PIPELINE, *, strict: bool = False) -> List[Step]:
    """
    Build the ordered list of runnable steps for a pipeline without running them.

    Args:
        config: The loaded project configuration.
        name: Pipeline name.
        strict: Force strict mode on every template step.
    """
    steps = [build_step(step_config, config) for step_config in config.pipeline(name)]
    if strict:
        for step in steps:
            if isinstance(step, TemplateStep):
                step.settings = step.settings.model_copy(update={"strict": True})
    return steps


def execute_pipeline(config: ProjectConfig, name: str = DEFAULT_PIPELINE, *, strict: bool = False) -> PipelineReport:
    """
    Run every step of the named pipeline in declaration order.

    The destination tree is locked for the duration of the run. The first
    failing step stops the pipeline; its exception propagates.

    Args:
        config: The loaded project configuration.
        name: Pipeline name (defaults to "build").
        strict: Fail template steps when any fragment fails.

    Returns:
        A PipelineReport with one result per step.
    """
    steps = plan_pipeline(config, name, strict=strict)
    report = PipelineReport(pipeline=name)
    destination = config.template_settings().destination
    with file_lock(destination):
        for index, step in enumerate(steps, start=1):
            logger.info("Running step %d/%d: %s (%s)", index, len(steps), step.name, step.kind)
            result = step.run()
            logger.info("Step %s finished: %s", step.name, result.detail)
            report.results.append(result)
    return report
