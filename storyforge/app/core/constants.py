"""Story catalogue values shared by request validation and prompt building."""

from enum import Enum
from typing import Dict, Tuple


class StoryType(str, Enum):
    STORY = "story"
    NOVEL = "novel"


class StoryLength(str, Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class Genre(str, Enum):
    FANTASY = "fantasy"
    SCIFI = "scifi"
    MYSTERY = "mystery"
    ROMANCE = "romance"
    HORROR = "horror"
    ADVENTURE = "adventure"
    THRILLER = "thriller"
    COMEDY = "comedy"


class Tone(str, Enum):
    ADVENTUROUS = "adventurous"
    DARK = "dark"
    HUMOROUS = "humorous"
    MYSTERIOUS = "mysterious"
    ROMANTIC = "romantic"
    SUSPENSEFUL = "suspenseful"
    WHIMSICAL = "whimsical"
    DRAMATIC = "dramatic"


class PointOfView(str, Enum):
    FIRST_PERSON = "first-person"
    THIRD_LIMITED = "third-limited"
    THIRD_OMNISCIENT = "third-omniscient"
    SECOND_PERSON = "second-person"


class WritingStyle(str, Enum):
    DESCRIPTIVE = "descriptive"
    DIALOG_DRIVEN = "dialog-driven"
    MIXED = "mixed"
    ACTION_PACKED = "action-packed"
    LITERARY = "literary"


class SuggestionType(str, Enum):
    ARC_TITLE = "arc_title"
    ARC_DESCRIPTION = "arc_description"
    CHAPTER_TITLE = "chapter_title"
    CHAPTER_SUMMARY = "chapter_summary"


# (arcs, chapters per arc) used when the caller does not choose a structure
NOVEL_STRUCTURE_DEFAULTS: Dict[StoryLength, Tuple[int, int]] = {
    StoryLength.SHORT: (2, 4),
    StoryLength.MEDIUM: (3, 5),
    StoryLength.LONG: (3, 8),
}

STORY_LENGTH_GUIDES: Dict[StoryType, Dict[StoryLength, str]] = {
    StoryType.STORY: {
        StoryLength.SHORT: "approximately 300 words",
        StoryLength.MEDIUM: "approximately 600 words",
        StoryLength.LONG: "approximately 1000 words",
    },
    StoryType.NOVEL: {
        StoryLength.SHORT: "at least 1500 words",
        StoryLength.MEDIUM: "at least 3000 words",
        StoryLength.LONG: "at least 5000 words",
    },
}

ANONYMOUS_USER_KEY = "anonymous"
