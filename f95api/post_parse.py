"""Content-tree parser for post bodies.

Turns the ``div.bbWrapper`` fragment of a post into a flat-ish sequence of
typed ``PostElement`` values. Only the node kinds the rest of the library
cares about are modelled (text, links, images, spoilers); any other markup
is unwrapped and its content kept.
"""

import re

from bs4 import BeautifulSoup, NavigableString, Tag

from f95api.models import ElementType, PostElement

_WHITESPACE_RE = re.compile(r"\s+")

SPOILER_TITLE = "span.bbCodeSpoiler-button-title"
SPOILER_CONTENT = "div.bbCodeBlock-content"
BLOCK_TAGS = frozenset({"div", "p", "li", "blockquote", "h1", "h2", "h3", "h4", "table", "tr", "td"})


class ContentTreeParser:
    """Default ``IContentParser`` implementation based on BeautifulSoup."""

    def parse(self, fragment: Tag | str) -> list[PostElement]:
        """Parse a post body.

        Args:
            fragment: Body element, or its HTML source

        Returns:
            Typed elements in document order
        """
        if isinstance(fragment, str):
            fragment = BeautifulSoup(fragment, "html.parser")
        return self._merge_text(self._parse_children(fragment))

    def _parse_children(self, node: Tag) -> list[PostElement]:
        elements: list[PostElement] = []
        for child in node.children:
            if isinstance(child, NavigableString):
                # Whitespace between inline tags separates words
                text = _WHITESPACE_RE.sub(" ", str(child))
                if text:
                    elements.append(PostElement(type=ElementType.TEXT, text=text))
            elif isinstance(child, Tag):
                elements.extend(self._parse_tag(child))
        return elements

    def _parse_tag(self, tag: Tag) -> list[PostElement]:
        if tag.name in ("script", "style"):
            return []

        if tag.name == "br":
            return [PostElement(type=ElementType.TEXT, text=" ")]

        if tag.name == "div" and "bbCodeSpoiler" in (tag.get("class") or []):
            title = tag.select_one(SPOILER_TITLE)
            content = tag.select_one(SPOILER_CONTENT)
            return [
                PostElement(
                    type=ElementType.SPOILER,
                    text=title.get_text(strip=True) if title else "Spoiler",
                    children=tuple(self.parse(content)) if content else (),
                )
            ]

        if tag.name == "a":
            return [
                PostElement(
                    type=ElementType.LINK,
                    text=tag.get_text(" ", strip=True),
                    href=tag.get("href"),
                    children=tuple(e for e in self._parse_children(tag) if e.type != ElementType.TEXT),
                )
            ]

        if tag.name == "img":
            return [
                PostElement(
                    type=ElementType.IMAGE,
                    text=tag.get("alt", ""),
                    src=tag.get("data-src") or tag.get("src"),
                )
            ]

        if tag.name in BLOCK_TAGS:
            space = PostElement(type=ElementType.TEXT, text=" ")
            return [space, *self._parse_children(tag), space]

        return self._parse_children(tag)

    @staticmethod
    def _merge_text(elements: list[PostElement]) -> list[PostElement]:
        """Join adjacent text nodes and trim the outer whitespace."""
        merged: list[PostElement] = []
        for element in elements:
            if merged and element.type == ElementType.TEXT and merged[-1].type == ElementType.TEXT:
                merged[-1] = PostElement(type=ElementType.TEXT, text=merged[-1].text + element.text)
            else:
                merged.append(element)
        result: list[PostElement] = []
        for element in merged:
            if element.type == ElementType.TEXT:
                text = _WHITESPACE_RE.sub(" ", element.text).strip()
                if not text:
                    continue
                element = PostElement(type=ElementType.TEXT, text=text)
            result.append(element)
        return result
