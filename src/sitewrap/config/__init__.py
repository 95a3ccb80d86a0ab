"""
Configuration helpers for sitewrap projects.
"""

from .models import (
    CleanStepConfig,
    CommandStepConfig,
    CompressStepConfig,
    ConcatStepConfig,
    DEFAULT_PIPELINE,
    DEFAULT_PLACEHOLDER,
    ConfigError,
    ProjectConfig,
    StepConfig,
    TemplateSettings,
    TemplateStepConfig,
    load_config,
)
from .settings import Settings, get_settings

__all__ = [
    "CleanStepConfig",
    "CommandStepConfig",
    "CompressStepConfig",
    "ConcatStepConfig",
    "DEFAULT_PIPELINE",
    "DEFAULT_PLACEHOLDER",
    "ConfigError",
    "ProjectConfig",
    "StepConfig",
    "TemplateSettings",
    "TemplateStepConfig",
    "load_config",
    "Settings",
    "get_settings",
]
