"""
Newsroom - Site Content Route Tests

Categories, comments, polls, pages, settings, messages and newsletter.

Run with: pytest tests/test_content.py -v
"""

import pytest
from sqlalchemy import DateTime
from sqlmodel import SQLModel

from newsroom.auth import accounts
from newsroom.auth.models import utcnow
from newsroom.content.models import Article, ArticleStatus, Category
from tests.conftest import API, headers_for


@pytest.fixture
def article(db_session, test_editor) -> Article:
    category = Category(name="Local", slug="local", owner_id=test_editor.id)
    db_session.add(category)
    db_session.commit()
    row = Article(
        title="Town hall meeting",
        slug="town-hall-meeting",
        content="The council met on Tuesday.",
        category_id=category.id,
        author_id=test_editor.id,
        status=ArticleStatus.PUBLISHED,
    )
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row


# =============================================================================
# CATEGORIES
# =============================================================================

class TestCategories:

    def test_create_list_rename_archive(self, client, test_editor):
        headers = headers_for(client, "editor")

        created = client.post(f"{API}/categories", json={"name": "Tech News"}, headers=headers)
        assert created.status_code == 201
        category = created.json()["data"]
        assert category["slug"] == "tech-news"

        renamed = client.patch(
            f"{API}/categories/{category['id']}", json={"name": "Science & Tech"}, headers=headers
        )
        assert renamed.json()["data"]["slug"] == "science-tech"

        assert len(client.get(f"{API}/categories").json()["data"]) == 1
        archived = client.delete(f"{API}/categories/{category['id']}", headers=headers)
        assert archived.json()["data"]["is_archived"] is True
        assert client.get(f"{API}/categories").json()["data"] == []

    def test_duplicate_name_conflicts(self, client, test_editor):
        headers = headers_for(client, "editor")
        client.post(f"{API}/categories", json={"name": "Sports"}, headers=headers)

        response = client.post(f"{API}/categories", json={"name": "sports"}, headers=headers)

        assert response.status_code == 409

    def test_reporter_cannot_manage(self, client, test_reporter):
        response = client.post(
            f"{API}/categories", json={"name": "Gossip"}, headers=headers_for(client, "reporter")
        )

        assert response.status_code == 403


# =============================================================================
# COMMENTS
# =============================================================================

class TestComments:

    def test_add_and_list(self, client, test_reader, article):
        response = client.post(
            f"{API}/comments/{article.id}",
            json={"content": "  Great coverage!  "},
            headers=headers_for(client, "reader"),
        )
        assert response.status_code == 201
        assert response.json()["data"]["content"] == "Great coverage!"
        assert response.json()["data"]["owner"]["username"] == "reader"

        listed = client.get(f"{API}/comments/{article.id}").json()["data"]
        assert listed["pagination"]["total"] == 1

    def test_comment_length_limits(self, client, test_reader, article):
        headers = headers_for(client, "reader")

        assert client.post(
            f"{API}/comments/{article.id}", json={"content": "   "}, headers=headers
        ).status_code == 400
        assert client.post(
            f"{API}/comments/{article.id}", json={"content": "x" * 501}, headers=headers
        ).status_code == 400

    def test_anonymous_cannot_comment(self, client, article):
        response = client.post(f"{API}/comments/{article.id}", json={"content": "hi"})

        assert response.status_code == 401

    def test_owner_cannot_delete_own_comment(self, client, test_reader, article):
        headers = headers_for(client, "reader")
        comment_id = client.post(
            f"{API}/comments/{article.id}", json={"content": "mine"}, headers=headers
        ).json()["data"]["id"]

        response = client.delete(f"{API}/comments/{comment_id}", headers=headers)

        assert response.status_code == 403

    def test_editor_deletes_comment(self, client, test_reader, test_editor, article):
        comment_id = client.post(
            f"{API}/comments/{article.id}", json={"content": "spam"}, headers=headers_for(client, "reader")
        ).json()["data"]["id"]

        response = client.delete(f"{API}/comments/{comment_id}", headers=headers_for(client, "editor"))

        assert response.status_code == 200
        assert client.get(f"{API}/comments/{article.id}").json()["data"]["comments"] == []

    def test_admin_listing_for_staff(self, client, test_reporter, test_reader):
        assert client.get(
            f"{API}/comments/admin/all", headers=headers_for(client, "reporter")
        ).status_code == 200
        assert client.get(
            f"{API}/comments/admin/all", headers=headers_for(client, "reader")
        ).status_code == 403


# =============================================================================
# POLLS
# =============================================================================

class TestPolls:

    def _create(self, client, headers, **extra):
        payload = {"question": "Best season?", "options": ["Summer", "Winter"], **extra}
        return client.post(f"{API}/polls", json=payload, headers=headers)

    def test_manage_site_required(self, client, test_editor):
        assert self._create(client, headers_for(client, "editor")).status_code == 403

    def test_needs_two_options(self, client, test_admin):
        response = self._create(client, headers_for(client, "admin"), options=["Only one"])

        assert response.status_code == 400

    def test_vote_once(self, client, test_admin):
        poll = self._create(client, headers_for(client, "admin")).json()["data"]
        option_id = poll["options"][0]["id"]

        first = client.post(f"{API}/polls/{poll['id']}/vote", json={"option_id": option_id})
        assert first.status_code == 200
        results = first.json()["data"]
        assert results["total_votes"] == 1
        assert results["results"][0]["percentage"] == 100

        again = client.post(f"{API}/polls/{poll['id']}/vote", json={"option_id": option_id})
        assert again.status_code == 403

    def test_signed_in_voters_counted_separately(self, client, test_admin, test_reader):
        poll = self._create(client, headers_for(client, "admin")).json()["data"]
        option_id = poll["options"][1]["id"]

        anonymous = client.post(f"{API}/polls/{poll['id']}/vote", json={"option_id": option_id})
        signed_in = client.post(
            f"{API}/polls/{poll['id']}/vote",
            json={"option_id": option_id},
            headers=headers_for(client, "reader"),
        )

        assert anonymous.status_code == 200
        assert signed_in.status_code == 200
        assert signed_in.json()["data"]["total_votes"] == 2

    def test_blocked_account_votes_as_anonymous(self, client, db_session, test_admin, test_reader):
        poll = self._create(client, headers_for(client, "admin")).json()["data"]
        option_id = poll["options"][0]["id"]
        reader_headers = headers_for(client, "reader")
        accounts.set_blocked(db_session, test_reader.id, True)

        as_blocked = client.post(
            f"{API}/polls/{poll['id']}/vote", json={"option_id": option_id}, headers=reader_headers
        )
        # Same client address, so the anonymous ballot is already cast
        anonymous = client.post(f"{API}/polls/{poll['id']}/vote", json={"option_id": option_id})

        assert as_blocked.status_code == 200
        assert anonymous.status_code == 403

    def test_unknown_option_is_bad_request(self, client, test_admin):
        poll = self._create(client, headers_for(client, "admin")).json()["data"]

        response = client.post(f"{API}/polls/{poll['id']}/vote", json={"option_id": "nope"})

        assert response.status_code == 400

    def test_closed_poll_is_bad_request(self, client, test_admin):
        headers = headers_for(client, "admin")
        poll = self._create(client, headers).json()["data"]
        client.patch(f"{API}/polls/{poll['id']}", json={"status": "closed"}, headers=headers)

        response = client.post(
            f"{API}/polls/{poll['id']}/vote", json={"option_id": poll["options"][0]["id"]}
        )

        assert response.status_code == 400
        assert client.get(f"{API}/polls/active").json()["data"] == []

    def test_delete_poll(self, client, test_admin):
        headers = headers_for(client, "admin")
        poll = self._create(client, headers).json()["data"]

        assert client.delete(f"{API}/polls/{poll['id']}", headers=headers).status_code == 200
        assert client.get(f"{API}/polls", headers=headers).json()["data"] == []


# =============================================================================
# PAGES
# =============================================================================

class TestPages:

    def test_slugs_are_deduplicated(self, client, test_admin):
        headers = headers_for(client, "admin")

        slugs = [
            client.post(
                f"{API}/pages", json={"title": "About Us", "content": "Who we are"}, headers=headers
            ).json()["data"]["slug"]
            for _ in range(3)
        ]

        assert slugs == ["about-us", "about-us-1", "about-us-2"]

    def test_drafts_hidden_from_public(self, client, test_admin):
        headers = headers_for(client, "admin")
        client.post(
            f"{API}/pages",
            json={"title": "Secret", "content": "Not yet", "status": "draft"},
            headers=headers,
        )
        client.post(f"{API}/pages", json={"title": "Contact", "content": "Write us"}, headers=headers)

        public = client.get(f"{API}/pages").json()["data"]
        everything = client.get(f"{API}/pages/admin-list", headers=headers).json()["data"]

        assert [p["slug"] for p in public] == ["contact"]
        assert len(everything) == 2
        assert client.get(f"{API}/pages/slug/secret").status_code == 404
        assert client.get(f"{API}/pages/slug/contact").status_code == 200

    def test_custom_slug_must_be_free(self, client, test_admin):
        headers = headers_for(client, "admin")
        client.post(f"{API}/pages", json={"title": "Terms", "content": "..."}, headers=headers)
        page = client.post(
            f"{API}/pages", json={"title": "Privacy", "content": "..."}, headers=headers
        ).json()["data"]

        clash = client.patch(f"{API}/pages/{page['id']}", json={"slug": "terms"}, headers=headers)
        renamed = client.patch(
            f"{API}/pages/{page['id']}", json={"title": "Privacy Policy"}, headers=headers
        )

        assert clash.status_code == 409
        assert renamed.json()["data"]["slug"] == "privacy-policy"

    def test_editor_cannot_manage_pages(self, client, test_editor):
        response = client.post(
            f"{API}/pages", json={"title": "X", "content": "Y"}, headers=headers_for(client, "editor")
        )

        assert response.status_code == 403


# =============================================================================
# SETTINGS
# =============================================================================

class TestSettings:

    def test_bulk_upsert_and_filter(self, client, test_admin):
        headers = headers_for(client, "admin")

        response = client.put(
            f"{API}/settings",
            json={
                "settings": [
                    {"key": "siteTitle", "value": "Daily Bugle", "type": "general"},
                    {"key": "primaryColor", "value": "#cc0000", "type": "theme"},
                    {"key": "menu", "value": [{"label": "Home", "href": "/"}], "type": "navigation"},
                    {"value": "no key"},
                    {"key": "noValue"},
                ]
            },
            headers=headers,
        )
        assert response.status_code == 200
        assert len(response.json()["data"]) == 3

        client.put(
            f"{API}/settings", json={"settings": [{"key": "siteTitle", "value": "The Bugle"}]}, headers=headers
        )

        everything = client.get(f"{API}/settings").json()["data"]
        theme = client.get(f"{API}/settings", params={"type": "theme"}).json()["data"]

        assert everything["siteTitle"] == "The Bugle"
        assert everything["menu"] == [{"label": "Home", "href": "/"}]
        assert "noValue" not in everything
        assert theme == {"primaryColor": "#cc0000"}

    def test_update_requires_manage_site(self, client, test_editor):
        response = client.put(
            f"{API}/settings",
            json={"settings": [{"key": "siteTitle", "value": "Hacked"}]},
            headers=headers_for(client, "editor"),
        )

        assert response.status_code == 403


# =============================================================================
# MESSAGES
# =============================================================================

class TestMessages:

    def test_public_submit_staff_read(self, client, test_reporter, test_reader):
        sent = client.post(
            f"{API}/messages",
            json={"name": "Jo", "email": "jo@example.com", "subject": "Tip", "message": "Look into this"},
        )
        assert sent.status_code == 201
        message_id = sent.json()["data"]["id"]

        assert client.get(f"{API}/messages", headers=headers_for(client, "reader")).status_code == 403

        staff = headers_for(client, "reporter")
        toggled = client.patch(f"{API}/messages/{message_id}/read", headers=staff)
        assert toggled.json()["data"]["is_read"] is True

        unread = client.get(f"{API}/messages", params={"is_read": "false"}, headers=staff).json()["data"]
        assert unread["pagination"]["total"] == 0

        assert client.delete(f"{API}/messages/{message_id}", headers=staff).status_code == 200
        assert client.get(f"{API}/messages/{message_id}", headers=staff).status_code == 404

    def test_invalid_email_rejected(self, client):
        response = client.post(
            f"{API}/messages", json={"name": "Jo", "email": "not-an-email", "message": "hello"}
        )

        assert response.status_code == 400


# =============================================================================
# NEWSLETTER
# =============================================================================

class TestNewsletter:

    def test_subscribe_lifecycle(self, client):
        body = {"email": "fan@example.com"}

        assert client.post(f"{API}/newsletters/subscribe", json=body).status_code == 201
        assert client.post(f"{API}/newsletters/subscribe", json=body).status_code == 409
        assert client.post(f"{API}/newsletters/unsubscribe", json=body).status_code == 200
        assert client.post(f"{API}/newsletters/subscribe", json=body).status_code == 200

    def test_unsubscribe_unknown(self, client):
        response = client.post(f"{API}/newsletters/unsubscribe", json={"email": "who@example.com"})

        assert response.status_code == 404

    def test_admin_list_and_remove(self, client, test_admin):
        client.post(f"{API}/newsletters/subscribe", json={"email": "fan@example.com"})
        headers = headers_for(client, "admin")

        subscribers = client.get(f"{API}/newsletters", headers=headers).json()["data"]
        assert [s["email"] for s in subscribers] == ["fan@example.com"]

        removed = client.delete(f"{API}/newsletters/{subscribers[0]['id']}", headers=headers)
        assert removed.status_code == 200
        assert client.get(f"{API}/newsletters", headers=headers).json()["data"] == []


# =============================================================================
# TIMESTAMPS
# =============================================================================

class TestTimestamps:

    def test_utcnow_is_timezone_aware(self):
        assert utcnow().tzinfo is not None

    def test_every_timestamp_column_stores_timezone(self):
        columns = [
            column
            for table in SQLModel.metadata.sorted_tables
            for column in table.columns
            if isinstance(column.type, DateTime)
        ]

        assert columns
        assert all(column.type.timezone for column in columns)

    def test_content_rows_get_timestamps(self, client, test_editor):
        created = client.post(
            f"{API}/categories", json={"name": "Weather"}, headers=headers_for(client, "editor")
        )
        subscribed = client.post(f"{API}/newsletters/subscribe", json={"email": "sun@example.com"})

        assert created.status_code == 201
        assert created.json()["data"]["created_at"]
        assert subscribed.status_code == 201
