"""Request and response models for the StoryForge API.

The browser client sends camelCase keys; snake_case is accepted too.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from storyforge.app.core.constants import (
    Genre,
    PointOfView,
    StoryLength,
    StoryType,
    Tone,
    WritingStyle,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
    )


class StoryParameters(CamelModel):
    """Fields shared by every generation request that describes a story."""
    prompt: str = Field(..., min_length=1, max_length=5000)
    genre: Genre
    tone: Tone
    language: Optional[str] = Field(default=None, max_length=50)
    point_of_view: Optional[PointOfView] = None
    writing_style: Optional[WritingStyle] = None


class GenerateStoryRequest(StoryParameters):
    length: StoryLength = StoryLength.MEDIUM
    story_type: StoryType = StoryType.STORY


class GenerateOutlineRequest(StoryParameters):
    length: StoryLength = StoryLength.MEDIUM
    number_of_arcs: Optional[int] = Field(default=None, ge=1, le=20)
    chapters_per_arc: Optional[int] = Field(default=None, ge=1, le=50)
    suggested_title: Optional[str] = Field(default=None, max_length=500)


class PreviousChapter(CamelModel):
    model_config = ConfigDict(extra="allow")

    summary: Optional[str] = None


class GenerateChapterRequest(CamelModel):
    outline: str = Field(..., min_length=1)
    chapter_number: int = Field(..., ge=1)
    chapter_title: str = Field(..., min_length=1, max_length=500)
    chapter_summary: Optional[str] = None
    previous_chapters: List[PreviousChapter] = Field(default_factory=list)
    genre: Genre
    tone: Tone
    language: Optional[str] = Field(default=None, max_length=50)
    point_of_view: Optional[PointOfView] = None
    writing_style: Optional[WritingStyle] = None
    is_first_chapter_of_arc: bool = False


class GenerateTitleRequest(CamelModel):
    prompt: str = Field(..., min_length=1, max_length=5000)
    genre: Genre
    tone: Tone


class GenerateSuggestionRequest(CamelModel):
    type: str
    context: Dict[str, Any] = Field(default_factory=dict)


class OutlineResponse(BaseModel):
    outline: str


class TitleResponse(BaseModel):
    title: str


class SuggestionResponse(BaseModel):
    suggestion: str


class CreateStoryRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)
    prompt: Optional[str] = None
    genre: Optional[str] = None
    tone: Optional[str] = None
    length: Optional[str] = None
    story_type: StoryType = StoryType.STORY
    is_published: bool = False
    outline: Optional[str] = None
    chapters_data: Optional[Any] = None


class UpdateStoryRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)
    is_published: bool = False
    outline: Optional[str] = None
    chapters_data: Optional[Any] = None


class StoryPreview(BaseModel):
    """Gallery entry, serialized with snake_case keys like the stored rows."""
    id: str
    title: str
    genre: Optional[str] = None
    tone: Optional[str] = None
    story_type: str
    created_at: datetime
    preview: str
    user_id: Optional[str] = None


class StoryDetail(BaseModel):
    id: str
    title: str
    content: str
    prompt: Optional[str] = None
    genre: Optional[str] = None
    tone: Optional[str] = None
    word_count: int
    user_id: Optional[str] = None
    story_type: str
    is_published: bool
    outline: Optional[str] = None
    chapters_data: Optional[Any] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
