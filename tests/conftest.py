"""Pytest configuration and shared fixtures for F95API tests."""

import asyncio
import json
import sys
from typing import Any, Optional

import httpx
import pytest
from loguru import logger

from f95api.config import settings
from f95api.errors import NetworkError
from f95api.result import Failure, Success

# =============================================================================
# Test Configuration
# =============================================================================


@pytest.fixture(scope="function", autouse=True)
def reset_loguru():
    """Reset loguru handlers before each test to prevent I/O errors."""
    logger.remove()
    logger.add(
        sys.stderr,
        level="ERROR",
        format="{time} {level} {message}",
        catch=True,
    )
    yield
    logger.remove()


# =============================================================================
# HTML Builders
# =============================================================================


DEFAULT_RATING = {"ratingValue": "4.5", "bestRating": "5", "ratingCount": "120"}


def make_post(
    post_id: int,
    number: Optional[int] = None,
    owner_id: int = 7,
    published: str = "2021-03-01T10:00:00+0000",
    last_edit: Optional[str] = None,
    body: str = "Hello <b>world</b>",
    bookmarked: bool = False,
) -> str:
    """Render an ``article.message`` element as the platform does."""
    edit = (
        f'<div class="message-lastEdit">Last edited: <time datetime="{last_edit}">x</time></div>'
        if last_edit
        else ""
    )
    bookmark = "bookmarkLink is-bookmarked" if bookmarked else "bookmarkLink"
    return f"""
    <article class="message message--post" data-content="post-{post_id}">
      <h4 class="message-name">
        <a href="/members/user.{owner_id}/" class="username" data-user-id="{owner_id}">user{owner_id}</a>
      </h4>
      <div class="message-attribution-main">
        <a href="/posts/{post_id}/"><time datetime="{published}">Mar 1, 2021</time></a>
      </div>
      <ul class="message-attribution-opposite">
        <li><a class="{bookmark}" href="/posts/{post_id}/bookmark">Bookmark</a></li>
        <li><a href="/threads/game.1/post-{post_id}">#{number or post_id}</a></li>
      </ul>
      <article class="message-body"><div class="bbWrapper">{body}</div></article>
      {edit}
    </article>
    """


def make_thread_page(
    posts: list[str] | None = None,
    title: str = "My Game [v1.0]",
    prefixes: tuple[str, ...] = ("VN", "Ren'Py"),
    tags: tuple[str, ...] = ("3d game", "sandbox"),
    owner_id: int = 7,
    creation: str = "2021-01-01T12:00:00+0000",
    pages: int = 1,
    rating: Optional[dict[str, str]] = DEFAULT_RATING,
) -> str:
    """Render a thread page with its navigation, metadata and posts."""
    json_ld: dict[str, Any] = {"@context": "https://schema.org", "@type": "DiscussionForumPosting"}
    if rating is not None:
        json_ld["aggregateRating"] = {"@type": "AggregateRating", **rating}

    nav = ""
    if pages > 1:
        items = "".join(f'<li><a href="page-{i}">{i}</a></li>' for i in range(1, pages + 1))
        nav = f'<ul class="pageNav-main">{items}</ul>'

    labels = "".join(f'<span class="label">{prefix}</span>' for prefix in prefixes)
    tag_links = "".join(f'<a class="tagItem" href="/tags/{tag}/">{tag}</a>' for tag in tags)

    return f"""
    <html data-csrf="page-token">
      <head><script type="application/ld+json">{json.dumps(json_ld)}</script></head>
      <body>
        <h1 class="p-title-value">{labels}{title}</h1>
        <div class="p-description">
          <a href="/members/owner.{owner_id}/" class="username" data-user-id="{owner_id}">owner</a>
          <time datetime="{creation}">Jan 1, 2021</time>
        </div>
        <div class="tagList">{tag_links}</div>
        {nav}
        {"".join(posts or [])}
      </body>
    </html>
    """


def make_search_page(links: list[str]) -> str:
    """Render a forum search result page."""
    rows = "".join(
        f'<li class="block-row"><div class="contentRow">'
        f'<h3 class="contentRow-title"><a href="{link}">Result</a></h3></div></li>'
        for link in links
    )
    return f'<html><body><ol class="block-body">{rows}</ol></body></html>'


def make_member_page(name: str = "Alice", joined: str = "2019-05-04T08:00:00+0000") -> str:
    """Render a member profile page."""
    return f"""
    <html><body>
      <span class="avatarWrapper"><img src="/data/avatars/l/0/7.jpg" alt="{name}"></span>
      <h1 class="memberHeader-name"><span class="username">{name}</span></h1>
      <span class="userTitle">Active Member</span>
      <div class="memberHeader-blurb"><time datetime="{joined}">May 4, 2019</time></div>
      <a href="/search/member?user_id=7">1,234</a>
    </body></html>
    """


def make_login_page(token: str = "login-token", error: str = "") -> str:
    """Render the login form (optionally with the error banner)."""
    banner = f'<div class="blockMessage blockMessage--error">{error}</div>' if error else ""
    return f"""
    <html><body>
      {banner}
      <form><input type="hidden" name="_xfToken" value="{token}"></form>
    </body></html>
    """


# =============================================================================
# Fakes
# =============================================================================


class FakeFetcher:
    """In-memory ``IHTMLFetcher``.

    Unknown URLs answer HTTP 404. ``delays`` (seconds per URL) makes
    concurrent requests complete out of order.
    """

    def __init__(
        self,
        pages: Optional[dict[str, Any]] = None,
        documents: Optional[dict[str, Any]] = None,
        responses: Optional[dict[str, Any]] = None,
        delays: Optional[dict[str, float]] = None,
    ) -> None:
        self.pages = pages or {}
        self.documents = documents or {}
        self.responses = responses or {}
        self.delays = delays or {}
        self.requested: list[str] = []
        self.in_flight = 0
        self.peak_in_flight = 0
        self.completed: list[str] = []
        self.submitted: list[tuple[str, dict[str, str]]] = []

    @staticmethod
    def _wrap(url: str, value: Any):
        if value is None:
            return Failure(NetworkError(f"HTTP 404 while fetching {url}", url=url, status_code=404))
        if isinstance(value, (Success, Failure)):
            return value
        return Success(value)

    async def _answer(self, url: str, table: dict[str, Any]):
        self.requested.append(url)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        await asyncio.sleep(self.delays.get(url, 0))
        self.in_flight -= 1
        self.completed.append(url)
        return self._wrap(url, table.get(url))

    async def fetch_html(self, url: str):
        return await self._answer(url, self.pages)

    async def fetch_json(self, url: str):
        return await self._answer(url, self.documents)

    async def fetch_post_response(self, url: str, data: dict[str, str]):
        self.submitted.append((url, data))
        value = self.responses.get(url, httpx.Response(200, text="<html></html>"))
        if isinstance(value, str):
            value = httpx.Response(200, text=value)
        return self._wrap(url, value)


class FakeSession:
    """Read-only ``ISessionProvider``."""

    def __init__(self, token: Optional[str] = "session-token", is_logged: bool = True) -> None:
        self.token = token
        self.is_logged = is_logged


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def thread_id() -> int:
    return 4242


@pytest.fixture
def thread_url(thread_id: int) -> str:
    return settings.thread_url(thread_id)


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def latest_payload() -> dict[str, Any]:
    """Latest listing answer with three threads."""
    return {
        "status": "ok",
        "msg": {
            "data": [
                {"thread_id": 11, "title": "First"},
                {"thread_id": 22, "title": "Second"},
                {"thread_id": 33, "title": "Third"},
            ],
            "pagination": {"page": 1, "total": 1},
        },
    }
