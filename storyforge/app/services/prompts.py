"""Prompt builders for story, chapter, outline, title and suggestion generation.

The outline prompts carry the heading format and exact counts that
``services.outline.validation`` checks for; keep them in sync.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from storyforge.app.core.constants import (
    STORY_LENGTH_GUIDES,
    StoryLength,
    StoryType,
    SuggestionType,
)
from storyforge.app.exceptions import InvalidSuggestionTypeError

if TYPE_CHECKING:
    from storyforge.app.services.outline.models import OutlineRequest

POV_INSTRUCTIONS: Dict[str, str] = {
    "first-person": "Use FIRST-PERSON perspective (I, me, my) consistently.",
    "third-limited": "Use THIRD-PERSON LIMITED perspective. Stay in one character's head.",
    "third-omniscient": "Use THIRD-PERSON OMNISCIENT perspective with access to all characters' thoughts.",
    "second-person": "Use SECOND-PERSON perspective (you) consistently.",
}

STYLE_INSTRUCTIONS: Dict[str, str] = {
    "descriptive": "Rich, vivid imagery with detailed sensory descriptions.",
    "dialog-driven": "Advance the story primarily through character dialogue.",
    "mixed": "Balance description, action and dialogue naturally.",
    "action-packed": "Fast-paced with dynamic scenes and high tension.",
    "literary": "Artistic prose with deeper themes and philosophical elements.",
}


def _language_line(language: Optional[str], subject: str) -> Optional[str]:
    if language and language.lower() != "english":
        return f"- Write the ENTIRE {subject} in {language}."
    return None


def _join(lines: List[Optional[str]]) -> str:
    return "\n".join(line for line in lines if line is not None)


def build_story_system_prompt(
    *,
    story_type: StoryType,
    length: StoryLength,
    genre: str,
    tone: str,
    language: Optional[str] = None,
    point_of_view: Optional[str] = None,
    writing_style: Optional[str] = None,
) -> str:
    """System prompt for one-shot story or novel generation."""
    story_type = StoryType(story_type)
    guide = STORY_LENGTH_GUIDES[story_type][StoryLength(length)]
    role = (
        "You are a PROFESSIONAL NOVELIST writing a publication-ready novel."
        if story_type is StoryType.NOVEL
        else "You are a PROFESSIONAL SHORT STORY writer."
    )
    lines = [
        role,
        "",
        "REQUIREMENTS:",
        f"- Genre: {genre}",
        f"- Tone: {tone}",
        f"- Length: {guide}",
        "- Start with the title as a markdown heading: # Title",
    ]
    if story_type is StoryType.NOVEL:
        lines.append("- Split the novel into chapters headed ## Chapter 1, ## Chapter 2, ...")
    lines.append(_language_line(language, story_type.value))
    if point_of_view in POV_INSTRUCTIONS:
        lines += ["", f"PERSPECTIVE: {POV_INSTRUCTIONS[point_of_view]}"]
    if writing_style in STYLE_INSTRUCTIONS:
        lines += ["", f"STYLE: {STYLE_INSTRUCTIONS[writing_style]}"]
    lines += ["", "Complete every sentence. Never stop mid-sentence."]
    return _join(lines)


def build_chapter_prompt(
    *,
    outline: str,
    chapter_number: int,
    chapter_title: str,
    genre: str,
    tone: str,
    chapter_summary: Optional[str] = None,
    previous_chapters: Optional[List[Dict[str, Any]]] = None,
    language: Optional[str] = None,
    point_of_view: Optional[str] = None,
    writing_style: Optional[str] = None,
) -> str:
    """System prompt for writing one chapter of an outlined novel."""
    lines = [
        f"You are a PROFESSIONAL NOVELIST writing Chapter {chapter_number} of a novel.",
        "",
        "NOVEL CONTEXT:",
        outline,
    ]
    if previous_chapters:
        lines += ["", "PREVIOUS CHAPTERS SUMMARY:"]
        for idx, chapter in enumerate(previous_chapters, start=1):
            lines.append(f"Chapter {idx}: {chapter.get('summary') or 'Content generated'}")
    lines += [
        "",
        f"CHAPTER {chapter_number}:",
        f"Title: {chapter_title}",
    ]
    if chapter_summary:
        lines.append(f"Summary: {chapter_summary}")
    lines += [
        "",
        "WRITING REQUIREMENTS:",
        f"- Genre: {genre}",
        f"- Tone: {tone}",
        "- Target: 1200-1800 words",
        _language_line(language, "chapter"),
    ]
    if point_of_view in POV_INSTRUCTIONS:
        lines.append(f"- Perspective: {POV_INSTRUCTIONS[point_of_view]}")
    if writing_style in STYLE_INSTRUCTIONS:
        lines.append(f"- Style: {STYLE_INSTRUCTIONS[writing_style]}")
    lines += [
        "",
        f"Start with the heading: ## Chapter {chapter_number}: {chapter_title}",
        "End at a natural scene break with a complete sentence.",
    ]
    return _join(lines)


def _novel_details(request: "OutlineRequest") -> List[str]:
    lines = []
    if request.suggested_title:
        lines.append(f"- Title: {request.suggested_title}")
    lines += [
        f"- Concept: {request.prompt}",
        f"- Genre: {request.genre}",
        f"- Tone: {request.tone}",
    ]
    if request.point_of_view:
        lines.append(f"- Point of View: {request.point_of_view}")
    if request.writing_style:
        lines.append(f"- Writing Style: {request.writing_style}")
    lines.append(_language_line(request.language, "outline"))
    return lines


def build_outline_prompt(request: "OutlineRequest") -> str:
    """Standard outline prompt used for the first attempt."""
    arcs = request.expectation.expected_sections
    per_arc = request.expectation.expected_items_per_section
    total = request.expectation.expected_items
    heading = f"# {request.suggested_title}" if request.suggested_title else "# [Novel Title]"
    lines = [
        "You are a professional novel outliner. Create a detailed chapter-by-chapter "
        "outline for a novel organized into story arcs.",
        "",
        f"You MUST create EXACTLY {arcs} arcs with EXACTLY {per_arc} chapters in EACH arc.",
        f"Total chapters REQUIRED: {total}.",
        "",
        "NOVEL DETAILS:",
        *_novel_details(request),
        "",
        "FORMAT YOUR RESPONSE LIKE THIS:",
        "",
        heading,
        "",
        "**Logline:** [One sentence summary]",
        "",
        "## Main Characters",
        "- **[Character Name]**: [Description]",
        "",
        "## Arc 1: [Arc Title]",
        "**Theme:** [What this arc explores]",
        "",
        "### Chapter 1: [Chapter Title]",
        "**Summary:** [2-3 sentences]",
        "",
        "Number chapters continuously across arcs.",
        f"Include ALL {arcs} arcs with EXACTLY {per_arc} chapters each ({total} chapters).",
    ]
    return _join(lines)


def build_strict_outline_prompt(request: "OutlineRequest") -> str:
    """Stricter outline prompt used for the single corrective attempt."""
    arcs = request.expectation.expected_sections
    per_arc = request.expectation.expected_items_per_section
    total = request.expectation.expected_items
    lines = [
        "STRICT INSTRUCTIONS - FOLLOW EXACTLY:",
        "",
        "You MUST create a novel outline with:",
        f"- EXACTLY {arcs} arcs (no more, no less)",
        f"- EXACTLY {per_arc} chapters in EACH arc",
        f"- Total of EXACTLY {total} chapters",
        "",
        "Novel Details:",
        *_novel_details(request),
        "",
        "Format each arc as:",
        "## Arc [NUMBER]: [Title]",
        "",
        "Format each chapter as:",
        "### Chapter [NUMBER]: [Title]",
        "**Summary:** [2-3 sentences]",
        "",
        "Start with Arc 1, Chapter 1.",
        f"Count chapters continuously (Arc 1: Chapters 1-{per_arc}, "
        f"Arc 2: Chapters {per_arc + 1}-{per_arc * 2}, etc.)",
        f"DO NOT skip arcs or chapters. Create ALL {arcs} arcs with ALL {per_arc} chapters each.",
    ]
    return _join(lines)


def build_title_prompt(*, prompt: str, genre: str, tone: str) -> str:
    return _join([
        "Generate a captivating novel title.",
        "",
        f"NOVEL CONCEPT: {prompt}",
        f"GENRE: {genre}",
        f"TONE: {tone}",
        "",
        "Create a memorable, evocative title (2-6 words).",
        "Respond with ONLY the title, nothing else. No quotes, no explanation.",
    ])


def _arc_position(arc_number: int) -> str:
    if arc_number == 1:
        return "Beginning/Setup"
    if arc_number == 2:
        return "Middle/Rising Action"
    return "Climax/Resolution"


def build_suggestion_prompt(suggestion_type: str, context: Dict[str, Any]) -> str:
    """Prompt for a single outline-editor suggestion.

    Raises:
        InvalidSuggestionTypeError: If ``suggestion_type`` is not supported
    """
    try:
        kind = SuggestionType(suggestion_type)
    except ValueError:
        raise InvalidSuggestionTypeError(suggestion_type) from None

    genre = context.get("genre") or "fiction"
    tone = context.get("tone") or "balanced"
    arc_number = context.get("arcNumber") or 1
    chapter_number = context.get("chapterNumber") or 1
    novel_context = context.get("novelContext")

    if kind is SuggestionType.ARC_TITLE:
        lines = [
            "Generate a compelling title for a story arc.",
            "",
            f"NOVEL: {context.get('novelTitle') or 'Untitled'}",
            f"GENRE: {genre}",
            f"TONE: {tone}",
            f"ARC POSITION: {arc_number} ({_arc_position(arc_number)})",
        ]
        if novel_context:
            lines += ["", "STORY CONTEXT:", novel_context]
        if context.get("description"):
            lines += ["", f"CURRENT DESCRIPTION: {context['description']}"]
        lines += ["", "Create a 2-5 word title for this arc.", "Respond with ONLY the title, nothing else."]
    elif kind is SuggestionType.ARC_DESCRIPTION:
        lines = [
            "Generate a description for a story arc.",
            "",
            f"NOVEL: {context.get('novelTitle') or 'Untitled'}",
            f"GENRE: {genre}",
            f"TONE: {tone}",
            f"ARC TITLE: {context.get('arcTitle') or f'Arc {arc_number}'}",
        ]
        if novel_context:
            lines += ["", "STORY CONTEXT:", novel_context]
        lines += [
            "",
            "Write a 15-25 word description covering the arc's theme, key events and character goals.",
            "Respond with ONLY the description, nothing else.",
        ]
    elif kind is SuggestionType.CHAPTER_TITLE:
        lines = [
            "Generate a chapter title.",
            "",
            f"GENRE: {genre}",
            f"TONE: {tone}",
            f"CURRENT TITLE: {context.get('currentTitle') or f'Chapter {chapter_number}'}",
            f"ARC: {context.get('arcTitle') or 'Main Story'}",
        ]
        if context.get("summary"):
            lines.append(f"CHAPTER ABOUT: {context['summary']}")
        lines += ["", "Create a 2-6 word intriguing title.", "Respond with ONLY the title, nothing else."]
    else:
        lines = [
            "Generate a chapter summary.",
            "",
            f"GENRE: {genre}",
            f"TONE: {tone}",
            f"CHAPTER: {context.get('chapterTitle') or f'Chapter {chapter_number}'}",
            f"ARC: {context.get('arcTitle') or 'Main Story'}",
        ]
        if context.get("arcDescription"):
            lines.append(f"ARC THEME: {context['arcDescription']}")
        if context.get("previousChapter"):
            lines.append(f"PREVIOUS: {context['previousChapter']}")
        lines += [
            "",
            "Write 2-4 sentences with specific scenes, character actions and plot progression.",
            "Respond with ONLY the summary, nothing else.",
        ]
    return _join(lines)
