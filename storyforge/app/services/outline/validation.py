"""Structural validation of generated outlines.

Counting is best effort: it trusts the model to have used the requested
headings. Creative formatting can under- or over-count.
"""

import re

from storyforge.app.services.outline.models import OutlineCheck, OutlineStructureExpectation

SECTION_MARKER = re.compile(r"^## Arc \d+:", re.MULTILINE)
ITEM_MARKER = re.compile(r"^### Chapter \d+:", re.MULTILINE)


def count_sections(text: str) -> int:
    """Count line-start ``## Arc <n>:`` headings."""
    return len(SECTION_MARKER.findall(text))


def count_items(text: str) -> int:
    """Count line-start ``### Chapter <n>:`` headings."""
    return len(ITEM_MARKER.findall(text))


def check_outline(text: str, expectation: OutlineStructureExpectation) -> OutlineCheck:
    return OutlineCheck(
        section_count=count_sections(text),
        item_count=count_items(text),
        expectation=expectation,
    )
