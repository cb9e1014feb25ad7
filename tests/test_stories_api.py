"""API tests for saving, editing and browsing stories."""

from datetime import datetime, timedelta, timezone

from storyforge.app.db.models import Story, User

NEW_STORY = {
    "title": "The Lantern Keeper",
    "content": "The light swept the dark water.",
    "prompt": "A lighthouse keeper finds a map",
    "genre": "fantasy",
    "tone": "mysterious",
}


def seed_story(api, **fields) -> str:
    values = {"title": "Seeded", "content": "Seeded content", "user_id": "owner"}
    values.update(fields)
    with api.db() as session:
        if values["user_id"] and session.get(User, values["user_id"]) is None:
            session.add(User(id=values["user_id"]))
        story = Story(**values)
        session.add(story)
        session.commit()
        return story.id


class TestSaveStory:

    def test_requires_sign_in(self, api):
        assert api.client.post("/api/stories", json=NEW_STORY).status_code == 401

    def test_saves_story_for_user(self, api):
        api.sign_in("user-1")

        resp = api.client.post("/api/stories", json=NEW_STORY)

        assert resp.status_code == 200
        story_id = resp.json()["id"]
        with api.db() as session:
            story = session.get(Story, story_id)
            assert story.user_id == "user-1"
            assert story.word_count == 6
            assert story.story_type == "story"
            assert story.is_published is False

    def test_saves_novel_with_chapters(self, api):
        api.sign_in("user-1")
        chapters = [{"number": 1, "title": "Arrival", "content": "..."}]

        resp = api.client.post(
            "/api/stories",
            json={
                **NEW_STORY,
                "storyType": "novel",
                "isPublished": True,
                "outline": "## Arc 1: Start",
                "chaptersData": chapters,
            },
        )

        detail = api.client.get(f"/api/stories/{resp.json()['id']}").json()
        assert detail["story_type"] == "novel"
        assert detail["is_published"] is True
        assert detail["chapters_data"] == chapters

    def test_missing_content_returns_422(self, api):
        api.sign_in("user-1")
        assert api.client.post("/api/stories", json={"title": "x"}).status_code == 422


class TestGetStory:

    def test_anyone_can_read_by_id(self, api):
        story_id = seed_story(api, content="one two three")

        resp = api.client.get(f"/api/stories/{story_id}")

        assert resp.status_code == 200
        body = resp.json()
        assert body["id"] == story_id
        assert body["content"] == "one two three"
        assert body["user_id"] == "owner"

    def test_unknown_id_returns_404(self, api):
        resp = api.client.get("/api/stories/does-not-exist")

        assert resp.status_code == 404
        assert resp.json() == {"error": "not_found", "message": "Story not found"}


class TestUpdateStory:

    UPDATE = {"title": "Renamed", "content": "New words here now", "isPublished": True}

    def test_owner_updates_story(self, api):
        story_id = seed_story(api, user_id="user-1")
        api.sign_in("user-1")

        resp = api.client.put(f"/api/stories/{story_id}", json=self.UPDATE)

        assert resp.json() == {"success": True, "id": story_id, "message": "Story updated successfully"}
        with api.db() as session:
            story = session.get(Story, story_id)
            assert story.title == "Renamed"
            assert story.word_count == 4
            assert story.is_published is True

    def test_requires_sign_in(self, api):
        story_id = seed_story(api)
        assert api.client.put(f"/api/stories/{story_id}", json=self.UPDATE).status_code == 401

    def test_other_user_forbidden(self, api):
        story_id = seed_story(api, user_id="owner")
        api.sign_in("intruder")

        resp = api.client.put(f"/api/stories/{story_id}", json=self.UPDATE)

        assert resp.status_code == 403
        assert resp.json()["message"] == "Forbidden - You can only update your own stories"
        with api.db() as session:
            assert session.get(Story, story_id).title == "Seeded"

    def test_unknown_id_returns_404(self, api):
        api.sign_in("user-1")
        assert api.client.put("/api/stories/missing", json=self.UPDATE).status_code == 404


class TestDeleteStory:

    def test_owner_deletes_story(self, api):
        story_id = seed_story(api, user_id="user-1")
        api.sign_in("user-1")

        resp = api.client.delete(f"/api/stories/{story_id}")

        assert resp.json() == {"success": True, "message": "Story deleted successfully"}
        assert api.client.get(f"/api/stories/{story_id}").status_code == 404

    def test_other_user_forbidden(self, api):
        story_id = seed_story(api, user_id="owner")
        api.sign_in("intruder")

        resp = api.client.delete(f"/api/stories/{story_id}")

        assert resp.status_code == 403
        assert resp.json()["error"] == "forbidden"

    def test_anonymous_story_cannot_be_deleted(self, api):
        story_id = seed_story(api, user_id=None)
        api.sign_in("user-1")

        assert api.client.delete(f"/api/stories/{story_id}").status_code == 403


class TestGallery:

    def test_lists_published_newest_first_with_preview(self, api):
        now = datetime.now(timezone.utc)
        seed_story(api, title="old", is_published=True, created_at=now - timedelta(hours=1))
        seed_story(api, title="new", is_published=True, content="x" * 500, created_at=now)
        seed_story(api, title="draft", is_published=False, created_at=now)

        resp = api.client.get("/api/stories")

        assert resp.status_code == 200
        stories = resp.json()
        assert [s["title"] for s in stories] == ["new", "old"]
        assert stories[0]["preview"] == "x" * 200
        assert "content" not in stories[0]
        assert stories[0]["story_type"] == "story"

    def test_empty_gallery(self, api):
        assert api.client.get("/api/stories").json() == []
