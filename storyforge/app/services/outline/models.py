"""Data models for outline generation and structural validation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from storyforge.app.core.constants import NOVEL_STRUCTURE_DEFAULTS, StoryLength


class OutlineState(str, Enum):
    """States of the generate-and-validate workflow."""
    REQUESTING = "requesting"
    VALIDATING = "validating"
    RETRYING = "retrying"
    VALIDATING_RETRY = "validating_retry"
    ACCEPTED = "accepted"
    ACCEPTED_DEGRADED = "accepted_degraded"
    FAILED = "failed"


@dataclass(frozen=True)
class OutlineStructureExpectation:
    """Required arc and chapter counts for one outline request."""
    expected_sections: int
    expected_items_per_section: int

    def __post_init__(self) -> None:
        if self.expected_sections < 1 or self.expected_items_per_section < 1:
            raise ValueError("Outline structure counts must be at least 1")

    @property
    def expected_items(self) -> int:
        return self.expected_sections * self.expected_items_per_section

    @classmethod
    def from_request(
        cls,
        length: StoryLength | str,
        number_of_arcs: Optional[int] = None,
        chapters_per_arc: Optional[int] = None,
    ) -> "OutlineStructureExpectation":
        """Use the caller's counts, falling back to the defaults for ``length``."""
        default_arcs, default_chapters = NOVEL_STRUCTURE_DEFAULTS[StoryLength(length)]
        return cls(
            expected_sections=number_of_arcs or default_arcs,
            expected_items_per_section=chapters_per_arc or default_chapters,
        )


@dataclass(frozen=True)
class OutlineCheck:
    """Marker counts found in one candidate outline."""
    section_count: int
    item_count: int
    expectation: OutlineStructureExpectation

    @property
    def sections_match(self) -> bool:
        return self.section_count == self.expectation.expected_sections

    @property
    def items_match(self) -> bool:
        return self.item_count == self.expectation.expected_items

    @property
    def matched(self) -> bool:
        return self.sections_match and self.items_match

    @property
    def distance(self) -> int:
        """Total count error; 0 exactly when ``matched``."""
        return (
            abs(self.section_count - self.expectation.expected_sections)
            + abs(self.item_count - self.expectation.expected_items)
        )


@dataclass
class OutlineRequest:
    """Story parameters for an outline generation."""
    prompt: str
    genre: str
    tone: str
    expectation: OutlineStructureExpectation
    language: Optional[str] = None
    point_of_view: Optional[str] = None
    writing_style: Optional[str] = None
    suggested_title: Optional[str] = None


@dataclass
class OutlineResult:
    """Outcome of the workflow.

    Attributes:
        outline: Text returned to the caller
        state: Terminal state (accepted or accepted_degraded)
        attempts: Number of generation calls made (1 or 2)
        check: Validation of the returned text
        transitions: Every state visited, in order
    """
    outline: str
    state: OutlineState
    attempts: int
    check: OutlineCheck
    transitions: List[OutlineState] = field(default_factory=list)
