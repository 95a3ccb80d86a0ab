"""
Pydantic models for validating and hashing sitewrap project files.
"""

from __future__ import annotations

import hashlib
import json
import tomllib
from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

DEFAULT_PLACEHOLDER = "<%= contents %>"
DEFAULT_PIPELINE = "build"


class ConfigError(RuntimeError):
    """Raised when project files cannot be loaded or validated."""


class TemplateSettings(BaseModel):
    """
    Settings for the layout-templating step.

    Attributes:
        layout: Layout document wrapped around every fragment.
        source: Root directory searched for page fragments.
        patterns: Glob patterns (relative to ``source``) selecting fragments.
        destination: Root directory receiving the mirrored output tree.
        placeholder: Token in the layout replaced by the fragment content.
        encoding: Text encoding for layout, fragments and outputs.
        escape: HTML-escape fragment content before insertion (off by default).
        on_missing_placeholder: What to do when the layout lacks the placeholder.
        max_workers: Thread pool size for fragment rendering.
        strict: Treat any fragment failure as a failed step.
    """
    layout: Path = Path("src/partials/layout.html")
    source: Path = Path("src/pages")
    patterns: List[str] = Field(default_factory=lambda: ["**/*.html"], min_length=1)
    destination: Path = Path("dist")
    placeholder: str = Field(default=DEFAULT_PLACEHOLDER, min_length=1)
    encoding: str = "utf-8"
    escape: bool = False
    on_missing_placeholder: Literal["ignore", "warn", "error"] = "warn"
    max_workers: Optional[int] = Field(default=None, ge=1)
    strict: bool = False

    model_config = {
        "extra": "forbid",
    }

    def resolved(self, base_dir: Path) -> "TemplateSettings":
        """Return a copy whose paths are absolute, anchored at base_dir."""
        return self.model_copy(
            update={
                "layout": _anchor(self.layout, base_dir),
                "source": _anchor(self.source, base_dir),
                "destination": _anchor(self.destination, base_dir),
            }
        )


class _StepBase(BaseModel):
    name: str = Field(min_length=1)

    model_config = {
        "extra": "forbid",
    }


class CleanStepConfig(_StepBase):
    """Remove build outputs before a fresh run."""
    kind: Literal["clean"]
    paths: List[Path] = Field(min_length=1)


class ConcatStepConfig(_StepBase):
    """Bundle matching files into one output, in sorted path order."""
    kind: Literal["concat"]
    source: Path = Path(".")
    patterns: List[str] = Field(min_length=1)
    destination: Path
    separator: str = "\n"


class TemplateStepConfig(_StepBase):
    """Run the compositor; unset fields fall back to the [template] table."""
    kind: Literal["template"]
    layout: Optional[Path] = None
    source: Optional[Path] = None
    patterns: Optional[List[str]] = None
    destination: Optional[Path] = None
    placeholder: Optional[str] = None
    escape: Optional[bool] = None
    strict: Optional[bool] = None

    def merge(self, base: TemplateSettings) -> TemplateSettings:
        overrides = {
            key: value
            for key, value in self.model_dump(exclude={"name", "kind"}).items()
            if value is not None
        }
        return TemplateSettings.model_validate({**base.model_dump(), **overrides})


class CommandStepConfig(_StepBase):
    """Delegate to an external program (CSS/HTML post-processing, minifiers...)."""
    kind: Literal["command"]
    argv: List[str] = Field(min_length=1)
    cwd: Optional[Path] = None
    env: Dict[str, str] = Field(default_factory=dict)
    inputs: List[Path] = Field(default_factory=list)
    outputs: List[Path] = Field(default_factory=list)


class CompressStepConfig(_StepBase):
    """Archive a directory as tar.gz."""
    kind: Literal["compress"]
    source: Path
    archive: Path


StepConfig = Annotated[
    Union[CleanStepConfig, ConcatStepConfig, TemplateStepConfig, CommandStepConfig, CompressStepConfig],
    Field(discriminator="kind"),
]


class ProjectConfig(BaseModel):
    """
    Top-level configuration for a sitewrap project.

    Attributes:
        template: Default compositor settings.
        steps: Declared build steps, in declaration order.
        pipelines: Named, ordered lists of step names.
        root: Directory relative paths are resolved against (not hashed).
    """
    template: TemplateSettings = Field(default_factory=TemplateSettings)
    steps: List[StepConfig] = Field(default_factory=list)
    pipelines: Dict[str, List[str]] = Field(default_factory=dict)
    root: Path = Field(default_factory=Path.cwd, exclude=True)

    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
    }

    @model_validator(mode="after")
    def _check_steps(self) -> "ProjectConfig":
        if not self.steps:
            self.steps = [TemplateStepConfig(name="template", kind="template")]
        seen: set[str] = set()
        for step in self.steps:
            if step.name in seen:
                raise ValueError(f"Duplicate step name '{step.name}'")
            seen.add(step.name)
        if not self.pipelines:
            self.pipelines = {DEFAULT_PIPELINE: [step.name for step in self.steps]}
        for pipeline_name, names in self.pipelines.items():
            for name in names:
                if name not in seen:
                    raise ValueError(f"Pipeline '{pipeline_name}' references unknown step '{name}'")
        return self

    @property
    def hash(self) -> str:
        """
        Deterministic hash of the normalized config, used to detect changes.
        """
        payload = self.model_dump(mode="json", round_trip=True)
        blob = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
        return hashlib.sha256(blob).hexdigest()

    def resolve(self, path: Path) -> Path:
        """Anchor a configured path at the project root."""
        return _anchor(path, self.root)

    def template_settings(self) -> TemplateSettings:
        return self.template.resolved(self.root)

    def pipeline(self, name: str = DEFAULT_PIPELINE) -> List[StepConfig]:
        """
        Return the ordered step configs for a named pipeline.

        Raises:
            ConfigError: If no pipeline has that name.
        """
        if name not in self.pipelines:
            available = ", ".join(sorted(self.pipelines)) or "none"
            raise ConfigError(f"Unknown pipeline '{name}' (available: {available})")
        by_name = {step.name: step for step in self.steps}
        return [by_name[step_name] for step_name in self.pipelines[name]]


def _anchor(path: Path, base_dir: Path) -> Path:
    candidate = Path(path).expanduser()
    if not candidate.is_absolute():
        candidate = Path(base_dir) / candidate
    return candidate.resolve()


def load_config(path: Path | str) -> ProjectConfig:
    """
    Load and validate a TOML project file into a ProjectConfig instance.

    Relative paths inside the file are resolved against its directory.

    Args:
        path: Path to the TOML project file.

    Returns:
        A validated ProjectConfig object.

    Raises:
        ConfigError: If the file is missing, unreadable, or invalid.
    """
    config_path = Path(path).expanduser().resolve()
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open("rb") as handle:
            raw_data: Dict[str, Any] = tomllib.load(handle)
    except OSError as exc:
        raise ConfigError(f"Unable to read configuration file: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in configuration file: {exc}") from exc

    raw_data = _normalize_toml_schema(raw_data)
    raw_data["root"] = config_path.parent

    try:
        return ProjectConfig.model_validate(raw_data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


def _normalize_toml_schema(data: Any) -> Dict[str, Any]:
    """
    Map TOML conveniences onto the internal model.

    Accepts the singular table array [[step]] and maps it to ``steps``.
    """
    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a TOML table/object.")
    if "steps" in data:
        raise ConfigError("Use [[step]] blocks (singular) instead of [[steps]].")
    if "root" in data:
        raise ConfigError("'root' is derived from the config file location and cannot be set.")

    normalized = dict(data)
    normalized["steps"] = _coerce_table_array(normalized.pop("step", None), "step")
    return normalized


def _coerce_table_array(value: Any, label: str) -> list[dict]:
    if value is None:
        return []
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list):
        if not all(isinstance(item, dict) for item in value):
            raise ConfigError(f"Each [[{label}]] entry must be a table/object.")
        return value
    raise ConfigError(f"Invalid [{label}] block; expected a table or array of tables.")
