"""
Ordered build pipeline and its step implementations.
"""

from .runner import PipelineReport, execute_pipeline, plan_pipeline
from .steps import (
    CleanStep,
    CommandStep,
    CompressStep,
    ConcatStep,
    Step,
    StepError,
    StepResult,
    TemplateStep,
    build_step,
)

__all__ = [
    "PipelineReport",
    "execute_pipeline",
    "plan_pipeline",
    "CleanStep",
    "CommandStep",
    "CompressStep",
    "ConcatStep",
    "Step",
    "StepError",
    "StepResult",
    "TemplateStep",
    "build_step",
]
