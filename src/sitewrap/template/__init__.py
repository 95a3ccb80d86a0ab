"""
Layout templating for page fragments.
"""

from .compositor import (
    FragmentOutcome,
    LayoutError,
    TemplateReport,
    compose_document,
    discover_fragments,
    mirror_path,
    read_layout,
    render_fragment,
    render_templates,
)

__all__ = [
    "FragmentOutcome",
    "LayoutError",
    "TemplateReport",
    "compose_document",
    "discover_fragments",
    "mirror_path",
    "read_layout",
    "render_fragment",
    "render_templates",
]
