"""Novel outline generation with arc/chapter structure validation."""

from storyforge.app.services.outline.generator import OutlineGenerator
from storyforge.app.services.outline.models import (
    OutlineCheck,
    OutlineRequest,
    OutlineResult,
    OutlineState,
    OutlineStructureExpectation,
)
from storyforge.app.services.outline.validation import (
    ITEM_MARKER,
    SECTION_MARKER,
    check_outline,
    count_items,
    count_sections,
)

__all__ = [
    "ITEM_MARKER",
    "OutlineCheck",
    "OutlineGenerator",
    "OutlineRequest",
    "OutlineResult",
    "OutlineState",
    "OutlineStructureExpectation",
    "SECTION_MARKER",
    "check_outline",
    "count_items",
    "count_sections",
]
