"""CRUD operations package.

- user.py: User rows
- credits.py: Credit balances, transactions and anonymous usage
- story.py: Stored stories and the public gallery
"""

# User operations
from storyforge.app.db.crud.user import ensure_user

# Credit operations
from storyforge.app.db.crud.credits import (
    add_credits,
    can_generate_anonymous,
    deduct_credit,
    get_anonymous_usage,
    get_or_create_user_credits,
    get_user_credits,
    track_anonymous_generation,
)

# Story operations
from storyforge.app.db.crud.story import (
    UPDATABLE_FIELDS,
    count_words,
    create_story,
    delete_story,
    get_story_by_id,
    list_published_stories,
    list_stories_by_user,
    update_story,
)

__all__ = [
    # User
    "ensure_user",
    # Credits
    "add_credits",
    "can_generate_anonymous",
    "deduct_credit",
    "get_anonymous_usage",
    "get_or_create_user_credits",
    "get_user_credits",
    "track_anonymous_generation",
    # Story
    "UPDATABLE_FIELDS",
    "count_words",
    "create_story",
    "delete_story",
    "get_story_by_id",
    "list_published_stories",
    "list_stories_by_user",
    "update_story",
]
