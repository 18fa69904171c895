"""Extraction of structured data from platform pages.

CSS selectors for the XenForo markup used by the platform are grouped in the
``*Selectors`` classes; they are the only part of the library that knows
about the page layout.

Public extractors return a ``Result`` and fail with ``ParseFailure`` when an
expected fragment is absent or malformed.
"""

import json
from typing import Any, Optional

from bs4 import BeautifulSoup, Tag
from loguru import logger
from pydantic import ValidationError

from f95api.errors import ParseFailure
from f95api.interfaces import IContentParser
from f95api.models import PlatformUser, Post, Rating, ThreadMetadata, UserRef
from f95api.result import Failure, Result, Success
from f95api.utils import absolute_url, safe_get

# =============================================================================
# Selectors
# =============================================================================


class ThreadSelectors:
    TITLE = "h1.p-title-value"
    PREFIXES = "h1.p-title-value span.label"
    TAGS = "a.tagItem"
    OWNER = "div.p-description a.username[data-user-id]"
    CREATION = "div.p-description time[datetime]"
    LAST_PAGE = "ul.pageNav-main > li:last-child > a"
    POSTS_IN_PAGE = "article.message[data-content^='post-']"
    JSON_LD = "script[type='application/ld+json']"


class PostSelectors:
    NUMBER = "ul.message-attribution-opposite > li:last-child > a"
    PUBLISHED = "div.message-attribution-main time[datetime]"
    LAST_EDIT = "div.message-lastEdit time[datetime]"
    OWNER = "h4.message-name .username[data-user-id]"
    BOOKMARKED = "a.bookmarkLink.is-bookmarked"
    BODY = "article.message-body div.bbWrapper"


class SearchSelectors:
    RESULT_ROW = "ol.block-body > li.block-row"
    RESULT_LINK = "h3.contentRow-title a[href]"


class MemberSelectors:
    NAME = "h1.memberHeader-name span.username"
    TITLE = "span.userTitle"
    AVATAR = "span.avatarWrapper img"
    JOINED = "div.memberHeader-blurb time[datetime]"
    MESSAGES = "a[href*='/search/member']"


class LoginSelectors:
    TOKEN = "input[name='_xfToken']"
    ERROR = "div.blockMessage--error"


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _text(node: Optional[Tag]) -> str:
    return node.get_text(" ", strip=True) if node else ""


def _attr(node: Optional[Tag], name: str) -> Optional[str]:
    if node is None:
        return None
    value = node.get(name)
    return value.strip() if isinstance(value, str) else None


# =============================================================================
# Structured Metadata (JSON-LD)
# =============================================================================


def get_json_ld(html: str | BeautifulSoup) -> dict[str, Any]:
    """Locate the JSON-LD data islands of a page and merge them.

    Malformed blocks are skipped; later blocks override earlier keys.

    Returns:
        Generic key/value tree (empty if the page has none)
    """
    soup = _soup(html) if isinstance(html, str) else html
    tree: dict[str, Any] = {}
    for script in soup.select(ThreadSelectors.JSON_LD):
        try:
            data = json.loads(script.string or script.get_text())
        except ValueError:
            logger.warning("Skipping malformed JSON-LD block")
            continue
        if isinstance(data, dict):
            tree.update(data)
    return tree


def extract_rating(json_ld: dict[str, Any]) -> Result[ParseFailure, Rating]:
    """Read the aggregate rating of a thread from its JSON-LD tree.

    The ``aggregateRating`` object stores numbers as text. Any missing or
    malformed field fails the whole extraction.
    """
    tree = safe_get(json_ld, "aggregateRating")
    if not isinstance(tree, dict):
        return Failure(ParseFailure("Structured metadata has no aggregateRating"))

    try:
        rating = Rating(
            average=float(tree["ratingValue"]),
            best=int(float(tree["bestRating"])),
            count=int(float(tree["ratingCount"])),
        )
    except KeyError as exc:
        return Failure(ParseFailure(f"aggregateRating is missing {exc.args[0]}"))
    except (TypeError, ValueError, OverflowError) as exc:
        return Failure(ParseFailure(f"Malformed aggregateRating: {exc}"))

    return Success(rating)


# =============================================================================
# Threads and Posts
# =============================================================================


def parse_thread_metadata(html: str) -> Result[ParseFailure, ThreadMetadata]:
    """Extract the thread data shown on its first page.

    Returns:
        Title, tags, prefixes, owner ID, creation date, number of pages and
        the JSON-LD tree
    """
    soup = _soup(html)

    title_node = soup.select_one(ThreadSelectors.TITLE)
    if title_node is None:
        return Failure(ParseFailure("Thread title not found"))

    # Prefix labels are children of the title; the title is the bare text
    title = "".join(title_node.find_all(string=True, recursive=False)).strip()

    owner_id = _attr(soup.select_one(ThreadSelectors.OWNER), "data-user-id")
    creation = _attr(soup.select_one(ThreadSelectors.CREATION), "datetime")
    last_page = _text(soup.select_one(ThreadSelectors.LAST_PAGE))

    try:
        metadata = ThreadMetadata(
            title=title,
            tags=[_text(tag) for tag in soup.select(ThreadSelectors.TAGS)],
            prefixes=[_text(prefix) for prefix in soup.select(ThreadSelectors.PREFIXES)],
            owner_id=owner_id,
            creation=creation,
            pages=int(last_page) if last_page else 1,
            json_ld=get_json_ld(soup),
        )
    except (ValidationError, ValueError) as exc:
        return Failure(ParseFailure(f"Malformed thread page: {exc}"))

    return Success(metadata)


def _parse_post(article: Tag, content_parser: IContentParser) -> Post:
    """Parse a single ``article.message`` element.

    Raises:
        ParseFailure: If a required fragment is missing
        ValidationError: If a fragment has an unexpected format
    """
    sid = (_attr(article, "data-content") or "").replace("post-", "")
    number = _text(article.select_one(PostSelectors.NUMBER)).replace("#", "").replace(",", "")
    published = _attr(article.select_one(PostSelectors.PUBLISHED), "datetime")
    last_edit = _attr(article.select_one(PostSelectors.LAST_EDIT), "datetime")
    owner_id = _attr(article.select_one(PostSelectors.OWNER), "data-user-id")
    body = article.select_one(PostSelectors.BODY)

    if body is None:
        raise ParseFailure(f"Post {sid or '?'} has no body")

    return Post(
        id=sid,
        number=number,
        published=published,
        last_edit=last_edit or published,
        owner=UserRef(id=owner_id) if owner_id else None,
        bookmarked=article.select_one(PostSelectors.BOOKMARKED) is not None,
        message=body.get_text(),
        body=tuple(content_parser.parse(body)),
    )


def parse_posts_in_page(
    html: str,
    content_parser: IContentParser,
) -> Result[ParseFailure, list[Post]]:
    """Parse every post rendered on a thread page, in page order."""
    soup = _soup(html)
    posts: list[Post] = []

    for article in soup.select(ThreadSelectors.POSTS_IN_PAGE):
        try:
            posts.append(_parse_post(article, content_parser))
        except ParseFailure as exc:
            return Failure(exc)
        except ValidationError as exc:
            return Failure(ParseFailure(f"Malformed post: {exc}"))

    return Success(posts)


def find_post(
    html: str,
    post_id: int,
    content_parser: IContentParser,
) -> Result[ParseFailure, Post]:
    """Parse the post with the given ID from a page that contains it."""
    article = _soup(html).select_one(f"article.message[data-content='post-{post_id}']")
    if article is None:
        return Failure(ParseFailure(f"Post {post_id} not found in page"))

    try:
        return Success(_parse_post(article, content_parser))
    except ParseFailure as exc:
        return Failure(exc)
    except ValidationError as exc:
        return Failure(ParseFailure(f"Malformed post: {exc}"))


# =============================================================================
# Search Results
# =============================================================================


def parse_search_results(html: str, limit: int) -> list[str]:
    """Extract at most ``limit`` thread URLs from a thread-search result page.

    Relative links are resolved against the platform base URL.
    """
    urls: list[str] = []
    for row in _soup(html).select(SearchSelectors.RESULT_ROW)[:limit]:
        href = _attr(row.select_one(SearchSelectors.RESULT_LINK), "href")
        if href:
            urls.append(absolute_url(href))
    return urls


def parse_latest_results(payload: Any, limit: int) -> Result[ParseFailure, list[int]]:
    """Extract at most ``limit`` thread IDs from the latest-listing JSON.

    Expected shape: ``{"status": "ok", "msg": {"data": [{"thread_id": 1}, ...]}}``
    """
    if safe_get(payload, "status") != "ok":
        return Failure(ParseFailure(f"Latest listing answered status {safe_get(payload, 'status')!r}"))

    data = safe_get(payload, "msg", "data", default=[])
    if not isinstance(data, list):
        return Failure(ParseFailure("Latest listing has no data list"))

    try:
        return Success([int(item["thread_id"]) for item in data[:limit]])
    except (KeyError, TypeError, ValueError) as exc:
        return Failure(ParseFailure(f"Malformed latest listing item: {exc}"))


# =============================================================================
# Users and Login
# =============================================================================


def parse_member(html: str, user_id: int) -> Result[ParseFailure, PlatformUser]:
    """Extract the public profile shown on a member page."""
    soup = _soup(html)
    name = _text(soup.select_one(MemberSelectors.NAME))
    if not name:
        return Failure(ParseFailure(f"Member {user_id} has no name"))

    avatar = _attr(soup.select_one(MemberSelectors.AVATAR), "src")
    messages = _text(soup.select_one(MemberSelectors.MESSAGES)).replace(",", "")

    try:
        user = PlatformUser(
            id=user_id,
            name=name,
            title=_text(soup.select_one(MemberSelectors.TITLE)) or None,
            avatar=absolute_url(avatar) if avatar else None,
            joined=_attr(soup.select_one(MemberSelectors.JOINED), "datetime"),
            message_count=int(messages) if messages.isdigit() else None,
        )
    except (ValidationError, ValueError) as exc:
        return Failure(ParseFailure(f"Malformed member page: {exc}"))

    return Success(user)


def extract_token(html: str) -> Optional[str]:
    """Anti-CSRF token embedded in a page form, if present."""
    soup = _soup(html)
    token = _attr(soup.select_one(LoginSelectors.TOKEN), "value")
    if token:
        return token
    return _attr(soup.find("html"), "data-csrf")


def extract_login_error(html: str) -> str:
    """Error banner shown by the login form (empty when login succeeded)."""
    return _text(_soup(html).select_one(LoginSelectors.ERROR)).replace("\n", "")
