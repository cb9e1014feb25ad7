"""Tests for prompt builders."""

import pytest

from storyforge.app.exceptions import InvalidSuggestionTypeError
from storyforge.app.services.outline import OutlineRequest, OutlineStructureExpectation
from storyforge.app.services.prompts import (
    build_chapter_prompt,
    build_outline_prompt,
    build_story_system_prompt,
    build_strict_outline_prompt,
    build_suggestion_prompt,
    build_title_prompt,
)


def outline_request(**overrides) -> OutlineRequest:
    values = dict(
        prompt="A lighthouse keeper finds a map",
        genre="fantasy",
        tone="mysterious",
        expectation=OutlineStructureExpectation(3, 4),
    )
    values.update(overrides)
    return OutlineRequest(**values)


class TestStoryPrompt:

    def test_short_story(self):
        prompt = build_story_system_prompt(
            story_type="story", length="short", genre="horror", tone="dark"
        )

        assert "SHORT STORY" in prompt
        assert "approximately 300 words" in prompt
        assert "- Genre: horror" in prompt
        assert "Write the ENTIRE" not in prompt

    def test_novel_with_options(self):
        prompt = build_story_system_prompt(
            story_type="novel",
            length="medium",
            genre="scifi",
            tone="suspenseful",
            language="Spanish",
            point_of_view="first-person",
            writing_style="literary",
        )

        assert "at least 3000 words" in prompt
        assert "## Chapter 1" in prompt
        assert "Write the ENTIRE novel in Spanish." in prompt
        assert "FIRST-PERSON" in prompt
        assert "Artistic prose" in prompt

    def test_unknown_point_of_view_ignored(self):
        prompt = build_story_system_prompt(
            story_type="story", length="long", genre="comedy", tone="humorous", point_of_view="fourth"
        )
        assert "PERSPECTIVE" not in prompt


class TestChapterPrompt:

    def test_includes_outline_and_previous_summaries(self):
        prompt = build_chapter_prompt(
            outline="## Arc 1: Start",
            chapter_number=3,
            chapter_title="The Storm",
            genre="adventure",
            tone="dramatic",
            chapter_summary="A storm hits.",
            previous_chapters=[{"summary": "She arrives."}, {}],
        )

        assert "## Arc 1: Start" in prompt
        assert "Chapter 1: She arrives." in prompt
        assert "Chapter 2: Content generated" in prompt
        assert "Summary: A storm hits." in prompt
        assert "## Chapter 3: The Storm" in prompt


class TestOutlinePrompts:

    def test_standard_prompt_states_counts(self):
        prompt = build_outline_prompt(outline_request(suggested_title="The Keeper"))

        assert "EXACTLY 3 arcs with EXACTLY 4 chapters in EACH arc" in prompt
        assert "Total chapters REQUIRED: 12." in prompt
        assert "# The Keeper" in prompt
        assert "- Title: The Keeper" in prompt

    def test_strict_prompt_lists_chapter_ranges(self):
        prompt = build_strict_outline_prompt(outline_request())

        assert prompt.startswith("STRICT INSTRUCTIONS - FOLLOW EXACTLY:")
        assert "Arc 1: Chapters 1-4, Arc 2: Chapters 5-8" in prompt
        assert "Total of EXACTLY 12 chapters" in prompt

    def test_language_line_for_non_english(self):
        prompt = build_outline_prompt(outline_request(language="French"))
        assert "Write the ENTIRE outline in French." in prompt


def test_title_prompt():
    prompt = build_title_prompt(prompt="A map", genre="mystery", tone="dark")
    assert "NOVEL CONCEPT: A map" in prompt
    assert "No quotes" in prompt


class TestSuggestionPrompt:

    def test_arc_title_position(self):
        prompt = build_suggestion_prompt("arc_title", {"novelTitle": "Saga", "arcNumber": 2})

        assert "NOVEL: Saga" in prompt
        assert "Middle/Rising Action" in prompt

    def test_defaults_for_empty_context(self):
        prompt = build_suggestion_prompt("chapter_summary", {})

        assert "GENRE: fiction" in prompt
        assert "CHAPTER: Chapter 1" in prompt

    def test_arc_description_uses_context(self):
        prompt = build_suggestion_prompt(
            "arc_description", {"arcTitle": "The Fall", "novelContext": "An empire crumbles."}
        )

        assert "ARC TITLE: The Fall" in prompt
        assert "An empire crumbles." in prompt

    def test_invalid_type(self):
        with pytest.raises(InvalidSuggestionTypeError) as exc_info:
            build_suggestion_prompt("villain_name", {})

        assert exc_info.value.status_code == 400
