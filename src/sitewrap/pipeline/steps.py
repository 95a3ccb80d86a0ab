"""
Build steps with declared inputs and outputs.
"""

from __future__ import annotations

import logging
import os
import subprocess
import tarfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ..config import (
    CleanStepConfig,
    CommandStepConfig,
    CompressStepConfig,
    ConcatStepConfig,
    ConfigError,
    ProjectConfig,
    StepConfig,
    TemplateSettings,
    TemplateStepConfig,
)
from ..template import TemplateReport, render_templates
from ..util import read_text_file, safe_remove, write_text_file

logger = logging.getLogger(__name__)


class StepError(RuntimeError):
    """Raised when a build step fails and the pipeline must stop."""


@dataclass
class StepResult:
    """
    Outcome of a single step.

    Attributes:
        name: Step name from the project file.
        kind: Step kind (clean, concat, template, command, compress).
        detail: One-line human readable summary.
        template_report: Compositor report, for template steps.
    """
    name: str
    kind: str
    detail: str = ""
    template_report: Optional[TemplateReport] = None


@dataclass
class Step:
    """Base class for pipeline steps."""
    name: str

    kind = "step"

    def inputs(self) -> List[Path]:
        return []

    def outputs(self) -> List[Path]:
        return []

    def run(self) -> StepResult:
        raise NotImplementedError


@dataclass
class CleanStep(Step):
    paths: List[Path] = field(default_factory=list)
    root: Path = Path(".")

    kind = "clean"

    def outputs(self) -> List[Path]:
        return list(self.paths)

    def run(self) -> StepResult:
        removed = [path for path in self.paths if safe_remove(path, base_dir=self.root)]
        for path in removed:
            logger.info("Removed %s", path)
        return StepResult(self.name, self.kind, f"{len(removed)} path(s) removed")


@dataclass
class ConcatStep(Step):
    source: Path = Path(".")
    patterns: List[str] = field(default_factory=list)
    destination: Path = Path("bundle.js")
    separator: str = "\n"

    kind = "concat"

    def inputs(self) -> List[Path]:
        found = set()
        for pattern in self.patterns:
            found.update(
                path
                for path in self.source.glob(pattern)
                if path.is_file() and not any(part.startswith(".") for part in path.relative_to(self.source).parts)
            )
        found.discard(self.destination)
        return sorted(found)

    def outputs(self) -> List[Path]:
        return [self.destination]

    def run(self) -> StepResult:
        files = self.inputs()
        if not files:
            logger.warning("No files matched %s under %s", ", ".join(self.patterns), self.source)
        try:
            bundle = self.separator.join(read_text_file(path) for path in files)
            write_text_file(self.destination, bundle)
        except OSError as exc:
            raise StepError(f"Step '{self.name}' could not write {self.destination}: {exc}") from exc
        logger.info("File %s created from %d source(s)", self.destination, len(files))
        return StepResult(self.name, self.kind, f"{len(files)} file(s) -> {self.destination}")


@dataclass
class TemplateStep(Step):
    settings: TemplateSettings = field(default_factory=TemplateSettings)

    kind = "template"

    def inputs(self) -> List[Path]:
        return [self.settings.layout, self.settings.source]

    def outputs(self) -> List[Path]:
        return [self.settings.destination]

    def run(self) -> StepResult:
        report = render_templates(self.settings)
        detail = f"{len(report.written)}/{report.discovered} page(s) written"
        if report.failures and self.settings.strict:
            failed = ", ".join(outcome.relative_path.as_posix() for outcome in report.failures)
            raise StepError(f"Step '{self.name}' failed for {len(report.failures)} fragment(s): {failed}")
        return StepResult(self.name, self.kind, detail, template_report=report)


@dataclass
class CommandStep(Step):
    argv: List[str] = field(default_factory=list)
    cwd: Path = Path(".")
    env: Dict[str, str] = field(default_factory=dict)
    declared_inputs: List[Path] = field(default_factory=list)
    declared_outputs: List[Path] = field(default_factory=list)

    kind = "command"

    def inputs(self) -> List[Path]:
        return list(self.declared_inputs)

    def outputs(self) -> List[Path]:
        return list(self.declared_outputs)

    def run(self) -> StepResult:
        logger.info("Running %s", " ".join(self.argv))
        try:
            completed = subprocess.run(
                self.argv,
                cwd=self.cwd,
                env={**os.environ, **self.env},
                check=False,
            )
        except OSError as exc:
            raise StepError(f"Step '{self.name}' could not start {self.argv[0]}: {exc}") from exc
        if completed.returncode != 0:
            raise StepError(f"Step '{self.name}' exited with status {completed.returncode}")
        return StepResult(self.name, self.kind, f"exit status {completed.returncode}")


@dataclass
class CompressStep(Step):
    source: Path = Path("dist")
    archive: Path = Path("dist.tar.gz")

    kind = "compress"

    def inputs(self) -> List[Path]:
        return [self.source]

    def outputs(self) -> List[Path]:
        return [self.archive]

    def run(self) -> StepResult:
        if not self.source.is_dir():
            raise StepError(f"Step '{self.name}': nothing to archive at {self.source}")
        self.archive.parent.mkdir(parents=True, exist_ok=True)
        count = 0
        try:
            with tarfile.open(self.archive, "w:gz") as tar:
                for path in sorted(self.source.rglob("*")):
                    if path == self.archive:
                        continue
                    tar.add(path, arcname=path.relative_to(self.source).as_posix(), recursive=False)
                    if path.is_file():
                        count += 1
        except (OSError, tarfile.TarError) as exc:
            raise StepError(f"Step '{self.name}' could not write {self.archive}: {exc}") from exc
        logger.info("Created %s (%d file(s))", self.archive, count)
        return StepResult(self.name, self.kind, f"{count} file(s) -> {self.archive}")


def build_step(step_config: StepConfig, project: ProjectConfig) -> Step:
    """
    Instantiate a runnable step from its configuration.

    Relative paths are anchored at the project root.
    """
    if isinstance(step_config, CleanStepConfig):
        return CleanStep(
            name=step_config.name,
            paths=[project.resolve(path) for path in step_config.paths],
            root=project.root,
        )
    if isinstance(step_config, ConcatStepConfig):
        return ConcatStep(
            name=step_config.name,
            source=project.resolve(step_config.source),
            patterns=list(step_config.patterns),
            destination=project.resolve(step_config.destination),
            separator=step_config.separator,
        )
    if isinstance(step_config, TemplateStepConfig):
        return TemplateStep(
            name=step_config.name,
            settings=step_config.merge(project.template).resolved(project.root),
        )
    if isinstance(step_config, CommandStepConfig):
        return CommandStep(
            name=step_config.name,
            argv=list(step_config.argv),
            cwd=project.resolve(step_config.cwd or Path(".")),
            env=dict(step_config.env),
            declared_inputs=[project.resolve(path) for path in step_config.inputs],
            declared_outputs=[project.resolve(path) for path in step_config.outputs],
        )
    if isinstance(step_config, CompressStepConfig):
        return CompressStep(
            name=step_config.name,
            source=project.resolve(step_config.source),
            archive=project.resolve(step_config.archive),
        )
    raise ConfigError(f"Unsupported step kind: {getattr(step_config, 'kind', step_config)!r}")
