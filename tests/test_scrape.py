"""Unit tests for page extraction."""

import json

import pytest

from conftest import (
    make_login_page,
    make_member_page,
    make_post,
    make_search_page,
    make_thread_page,
)
from f95api.config import settings
from f95api.errors import ParseFailure
from f95api.models import ElementType, Rating
from f95api.post_parse import ContentTreeParser
from f95api.scrape import (
    extract_login_error,
    extract_rating,
    extract_token,
    find_post,
    get_json_ld,
    parse_latest_results,
    parse_member,
    parse_posts_in_page,
    parse_search_results,
    parse_thread_metadata,
)


class TestJsonLd:
    """Tests for the structured metadata block."""

    def test_get_json_ld(self):
        """Test the JSON-LD block is decoded."""
        tree = get_json_ld(make_thread_page())

        assert tree["@type"] == "DiscussionForumPosting"
        assert tree["aggregateRating"]["ratingValue"] == "4.5"

    def test_malformed_blocks_are_skipped(self):
        """Test broken JSON-LD does not hide valid blocks."""
        html = (
            '<script type="application/ld+json">{broken</script>'
            f'<script type="application/ld+json">{json.dumps({"name": "ok"})}</script>'
        )

        assert get_json_ld(html) == {"name": "ok"}

    def test_page_without_block(self):
        """Test a page without JSON-LD yields an empty tree."""
        assert get_json_ld("<html></html>") == {}


class TestExtractRating:
    """Tests for rating extraction."""

    def test_rating(self):
        """Test numeric-as-text fields are parsed."""
        result = extract_rating(
            {"aggregateRating": {"ratingValue": "4.25", "bestRating": "5", "ratingCount": "1532"}}
        )

        assert result.value == Rating(average=4.25, best=5, count=1532)

    def test_rating_numbers(self):
        """Test plain numbers are accepted too."""
        result = extract_rating({"aggregateRating": {"ratingValue": 3, "bestRating": 5.0, "ratingCount": 10}})

        assert result.value == Rating(average=3.0, best=5, count=10)

    def test_missing_block(self):
        """Test a tree without aggregateRating fails."""
        result = extract_rating({"@type": "DiscussionForumPosting"})

        assert isinstance(result.error, ParseFailure)

    @pytest.mark.parametrize("missing", ["ratingValue", "bestRating", "ratingCount"])
    def test_missing_field(self, missing):
        """Test any missing field fails the whole extraction."""
        tree = {"ratingValue": "4", "bestRating": "5", "ratingCount": "3"}
        del tree[missing]

        result = extract_rating({"aggregateRating": tree})

        assert isinstance(result.error, ParseFailure)
        assert missing in result.error.message

    def test_malformed_field(self):
        """Test non-numeric text fails."""
        result = extract_rating({"aggregateRating": {"ratingValue": "n/a", "bestRating": "5", "ratingCount": "3"}})

        assert isinstance(result.error, ParseFailure)


class TestThreadMetadata:
    """Tests for thread page metadata."""

    def test_metadata(self):
        """Test every field of the first page is extracted."""
        result = parse_thread_metadata(make_thread_page(pages=4))

        metadata = result.value
        assert metadata.title == "My Game [v1.0]"
        assert metadata.prefixes == ["VN", "Ren'Py"]
        assert metadata.tags == ["3d game", "sandbox"]
        assert metadata.owner_id == 7
        assert metadata.creation.year == 2021
        assert metadata.creation.tzinfo is not None
        assert metadata.pages == 4
        assert "aggregateRating" in metadata.json_ld

    def test_single_page_without_navigation(self):
        """Test a thread without page navigation has one page."""
        assert parse_thread_metadata(make_thread_page()).value.pages == 1

    def test_missing_title(self):
        """Test a page that is not a thread fails."""
        result = parse_thread_metadata("<html><body>Not found</body></html>")

        assert isinstance(result.error, ParseFailure)

    def test_missing_owner(self):
        """Test a thread without owner fails."""
        html = make_thread_page().replace('data-user-id="7"', "")

        assert parse_thread_metadata(html).is_failure()


class TestPosts:
    """Tests for post parsing."""

    def test_parse_posts_in_page(self):
        """Test every post of a page is parsed in page order."""
        html = make_thread_page(posts=[make_post(30, 1), make_post(12, 2, bookmarked=True)])

        posts = parse_posts_in_page(html, ContentTreeParser()).value

        assert [p.id for p in posts] == [30, 12]
        assert posts[0].number == 1
        assert posts[0].owner.id == 7
        assert posts[0].bookmarked is False
        assert posts[1].bookmarked is True
        assert posts[0].message.strip() == "Hello world"
        assert posts[0].body[0].type == ElementType.TEXT

    def test_last_edit_defaults_to_published(self):
        """Test an unedited post has last_edit equal to published."""
        post = parse_posts_in_page(make_thread_page(posts=[make_post(1)]), ContentTreeParser()).value[0]

        assert post.last_edit == post.published

    def test_last_edit(self):
        """Test the edit date is extracted when present."""
        html = make_thread_page(posts=[make_post(1, last_edit="2021-04-01T08:00:00+0000")])

        post = parse_posts_in_page(html, ContentTreeParser()).value[0]

        assert post.last_edit.month == 4
        assert post.last_edit > post.published

    def test_page_without_posts(self):
        """Test an empty page is a valid empty list."""
        assert parse_posts_in_page(make_thread_page(), ContentTreeParser()).value == []

    def test_malformed_post(self):
        """Test a post without a date fails the page."""
        html = make_thread_page(posts=[make_post(1).replace("datetime=", "data-x=")])

        result = parse_posts_in_page(html, ContentTreeParser())

        assert isinstance(result.error, ParseFailure)

    def test_deleted_member_post(self):
        """Test a post by a deleted member is kept without an owner."""
        deleted = make_post(2).replace(
            '<a href="/members/user.7/" class="username" data-user-id="7">user7</a>',
            '<span class="username" dir="auto">Deleted member 7</span>',
        )
        html = make_thread_page(posts=[make_post(1), deleted])

        posts = parse_posts_in_page(html, ContentTreeParser()).value

        assert [p.id for p in posts] == [1, 2]
        assert posts[0].owner.id == 7
        assert posts[1].owner is None

    def test_guest_owner_in_span(self):
        """Test an author rendered as a span with an ID is still resolved."""
        guest = make_post(3).replace(
            '<a href="/members/user.7/" class="username" data-user-id="7">user7</a>',
            '<span class="username" data-user-id="9">guest</span>',
        )

        post = parse_posts_in_page(make_thread_page(posts=[guest]), ContentTreeParser()).value[0]

        assert post.owner.id == 9

    def test_find_post(self):
        """Test a single post is located by ID."""
        html = make_thread_page(posts=[make_post(5), make_post(6), make_post(7)])

        assert find_post(html, 6, ContentTreeParser()).value.id == 6
        assert isinstance(find_post(html, 8, ContentTreeParser()).error, ParseFailure)


class TestSearchResults:
    """Tests for search result extraction."""

    def test_relative_links_resolved(self):
        """Test links are absolute and HTTPS."""
        html = make_search_page(["/threads/a.1/", "threads/b.2/", "http://f95zone.to/threads/c.3/"])

        assert parse_search_results(html, 30) == [
            f"{settings.base_url}/threads/a.1/",
            f"{settings.base_url}/threads/b.2/",
            "https://f95zone.to/threads/c.3/",
        ]

    def test_truncated_to_limit(self):
        """Test at most limit links are returned."""
        html = make_search_page([f"/threads/t.{i}/" for i in range(10)])

        assert len(parse_search_results(html, 4)) == 4

    def test_no_results(self):
        """Test a page without rows is empty."""
        assert parse_search_results("<html><body></body></html>", 30) == []

    def test_latest_results(self, latest_payload):
        """Test thread IDs are read from the latest listing."""
        assert parse_latest_results(latest_payload, 2).value == [11, 22]

    def test_latest_results_error_status(self):
        """Test an error status fails."""
        result = parse_latest_results({"status": "error", "msg": "Invalid"}, 30)

        assert isinstance(result.error, ParseFailure)

    def test_latest_results_malformed_item(self):
        """Test an item without thread ID fails."""
        result = parse_latest_results({"status": "ok", "msg": {"data": [{"title": "x"}]}}, 30)

        assert isinstance(result.error, ParseFailure)


class TestMembersAndLogin:
    """Tests for member pages and login forms."""

    def test_parse_member(self):
        """Test the member profile is extracted."""
        user = parse_member(make_member_page(), 7).value

        assert user.id == 7
        assert user.name == "Alice"
        assert user.title == "Active Member"
        assert user.avatar == f"{settings.base_url}/data/avatars/l/0/7.jpg"
        assert user.joined.year == 2019
        assert user.message_count == 1234

    def test_parse_member_without_name(self):
        """Test a page without member header fails."""
        assert isinstance(parse_member("<html></html>", 7).error, ParseFailure)

    def test_extract_token(self):
        """Test the form token is preferred, the page token is the fallback."""
        assert extract_token(make_login_page(token="abc")) == "abc"
        assert extract_token(make_thread_page()) == "page-token"
        assert extract_token("<html></html>") is None

    def test_extract_login_error(self):
        """Test the error banner text."""
        assert extract_login_error(make_login_page(error="Incorrect password.")) == "Incorrect password."
        assert extract_login_error(make_login_page()) == ""
