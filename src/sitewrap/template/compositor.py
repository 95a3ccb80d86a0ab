"""
Wrap page fragments in a shared layout and mirror them into an output tree.
"""

from __future__ import annotations

import html
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from ..config import TemplateSettings
from ..util import read_text_file, write_text_file

logger = logging.getLogger(__name__)


class LayoutError(RuntimeError):
    """Raised when the layout cannot be used; no fragment is processed."""


@dataclass(frozen=True)
class FragmentOutcome:
    """
    Result of rendering a single fragment.

    Attributes:
        relative_path: Fragment path relative to the source root.
        destination: Written output file, when rendering succeeded.
        error: Failure detail, when rendering failed.
    """
    relative_path: Path
    destination: Optional[Path] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class TemplateReport:
    """
    Summary of one compositor run.

    Attributes:
        layout: Layout document used for every fragment.
        source_root: Directory fragments were discovered under.
        destination_root: Directory the mirrored tree was written to.
        discovered: Number of fragments found.
        outcomes: One entry per attempted fragment, in discovery order.
    """
    layout: Path
    source_root: Path
    destination_root: Path
    discovered: int = 0
    outcomes: List[FragmentOutcome] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.outcomes)

    @property
    def written(self) -> List[Path]:
        return [outcome.destination for outcome in self.outcomes if outcome.destination is not None]

    @property
    def failures(self) -> List[FragmentOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def ok(self) -> bool:
        return not self.failures

    def summary_rows(self) -> Iterable[tuple[str, str]]:
        yield ("Layout", str(self.layout))
        yield ("Source", str(self.source_root))
        yield ("Destination", str(self.destination_root))
        yield ("Fragments found", str(self.discovered))
        yield ("Pages written", str(len(self.written)))
        yield ("Failures", str(len(self.failures)))


def read_layout(path: Path, encoding: str = "utf-8") -> str:
    """
    Read the layout document once for the whole run.

    Raises:
        LayoutError: If the file is missing, unreadable or not valid text.
    """
    try:
        return read_text_file(path, encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise LayoutError(f"Unable to read layout {path}: {exc}") from exc


def _is_hidden(relative_path: Path) -> bool:
    return any(part.startswith(".") for part in relative_path.parts)


def discover_fragments(source_root: Path, patterns: Sequence[str]) -> List[Path]:
    """
    List fragment files under source_root matching any of the glob patterns.

    Returns paths relative to source_root, sorted and without duplicates.
    Hidden files and anything inside hidden directories are skipped. A
    missing source root yields no fragments.
    """
    if not source_root.is_dir():
        logger.warning("Source directory %s does not exist; no fragments to process.", source_root)
        return []
    found = set()
    for pattern in patterns:
        for candidate in source_root.glob(pattern):
            relative = candidate.relative_to(source_root)
            if candidate.is_file() and not _is_hidden(relative):
                found.add(relative)
    return sorted(found)


def compose_document(layout: str, fragment: str, placeholder: str, *, escape: bool = False) -> str:
    """
    Insert fragment into layout in place of the first placeholder occurrence.

    The fragment is inserted verbatim unless ``escape`` is set. A layout
    without the placeholder is returned unchanged.
    """
    content = html.escape(fragment, quote=True) if escape else fragment
    return layout.replace(placeholder, content, 1)


def mirror_path(relative_path: Path, destination_root: Path) -> Path:
    """Map a fragment's relative path onto the destination tree."""
    return destination_root / relative_path


def render_fragment(
    relative_path: Path,
    layout: str,
    settings: TemplateSettings,
) -> FragmentOutcome:
    """
    Read, compose and write one fragment.

    Never raises: any failure is returned as an outcome so sibling fragments
    are unaffected.
    """
    try:
        fragment = read_text_file(settings.source / relative_path, encoding=settings.encoding)
        document = compose_document(layout, fragment, settings.placeholder, escape=settings.escape)
        destination = mirror_path(relative_path, settings.destination)
        written = write_text_file(destination, document, encoding=settings.encoding)
    except Exception as exc:
        return FragmentOutcome(relative_path=relative_path, error=str(exc) or exc.__class__.__name__)
    return FragmentOutcome(relative_path=relative_path, destination=written)


def _check_placeholder(layout: str, settings: TemplateSettings) -> None:
    if settings.placeholder in layout:
        return
    message = f"Layout {settings.layout} does not contain the placeholder {settings.placeholder!r}"
    if settings.on_missing_placeholder == "error":
        raise LayoutError(message)
    if settings.on_missing_placeholder == "warn":
        logger.warning("%s; fragment content will be dropped.", message)


def render_templates(settings: TemplateSettings) -> TemplateReport:
    """
    Wrap every discovered fragment in the layout and write the mirrored tree.

    Fragments are rendered concurrently on a thread pool. The call returns
    only once every fragment has been attempted; failures are recorded in the
    report and logged, never raised.

    Args:
        settings: Compositor settings with absolute paths.

    Returns:
        A TemplateReport with one outcome per discovered fragment.

    Raises:
        LayoutError: If the layout is unreadable, or lacks the placeholder
            while ``on_missing_placeholder`` is ``"error"``.
    """
    layout = read_layout(settings.layout, encoding=settings.encoding)
    _check_placeholder(layout, settings)

    fragments = discover_fragments(settings.source, settings.patterns)
    report = TemplateReport(
        layout=settings.layout,
        source_root=settings.source,
        destination_root=settings.destination,
        discovered=len(fragments),
    )
    if not fragments:
        logger.info("No HTML files to process.")
        return report

    with ThreadPoolExecutor(max_workers=settings.max_workers, thread_name_prefix="sitewrap-template") as pool:
        futures = [pool.submit(render_fragment, relative, layout, settings) for relative in fragments]
        for future in futures:
            outcome = future.result()
            if outcome.ok:
                logger.info("Processed: %s", outcome.relative_path.as_posix())
            else:
                logger.error("Error processing %s: %s", outcome.relative_path.as_posix(), outcome.error)
            report.outcomes.append(outcome)

    return report
