"""Featured content list rendering for Featured Feed.

A ``FeatureList`` holds featured items, newest first, and renders the
currently publishable ones as an Atom feed or as an HTML list.

Item fields are inserted into the markup as-is. Items are trusted,
pre-sanitized input; nothing here escapes them.
"""

import time
from collections.abc import Mapping

from .config import FeedConfig
from .logging_config import create_execution_logger
from .models import FeatureItem, FormatError, to_datetime

ATOM_NAMESPACE = "http://www.w3.org/2005/Atom"


class FeatureList:
    """A list of featured content."""

    def __init__(
        self,
        config: FeedConfig | None = None,
        items: list | None = None,
        execution_id: str | None = None,
    ):
        """Initialize an empty (or pre-populated) features list.

        Args:
            config: Presentation settings, defaults to ``FeedConfig()``
            items: Items to feature, newest first; FeatureItem or mappings
            execution_id: Execution ID for logging context
        """
        self.config = config or FeedConfig()
        self.items = list(items) if items else []
        # counters from the most recent render
        self.published = 0
        self.skipped = 0
        self.rendered = 0
        self.logger = create_execution_logger("features", execution_id)

    def get_items(self, now: float | None = None) -> list[FeatureItem]:
        """Get list of items currently publishable.

        Does not touch the render counters; malformed items are logged
        and left out.

        Args:
            now: Epoch seconds to compare publish times against,
                defaults to the current time

        Returns:
            All items without a publish time or with one in the past,
            in their original order
        """
        items, _ = self._publishable(now)
        return items

    def to_atom(self) -> str:
        """Format features list as an Atom feed."""
        now = time.time()
        items, skipped = self._publishable(now)
        r = (
            '<?xml version="1.0" encoding="utf-8"?>\n'
            f'<feed xmlns="{ATOM_NAMESPACE}">'
            f"<title>{self.config.title}</title>"
            f"<updated>{self.get_atom_date(now)}</updated>"
            "<author>"
            f"<name>{self.config.author}</name>"
            f"<uri>{self.config.site_url}</uri>"
            "</author>"
            f"<id>{self.config.id}</id>"
        )
        for item in items:
            r += self.get_atom_entry(item)
        r += "</feed>"

        self._count(len(items), skipped, len(items))
        self.logger.log_render("atom", len(items))
        return r

    def to_html(self, max_features: int = 3) -> str:
        """Format features list as HTML.

        Args:
            max_features: Number of features to output, all when negative

        Returns:
            HTML list fragment
        """
        published, skipped = self._publishable()
        items = published[:max_features] if max_features >= 0 else published

        r = '<ul class="no-style linklist feature">'
        for item in items:
            r += self.get_item_html(item)
        r += "</ul>"

        self._count(len(published), skipped, len(items))
        self.logger.log_render("html", len(items))
        return r

    def get_atom_date(self, timestamp: float) -> str:
        """Format an epoch timestamp as an ISO8601 UTC date.

        Raises:
            FormatError: If the timestamp is outside years 1-9999
        """
        return to_datetime(timestamp).strftime("%Y-%m-%dT%H:%M:%SZ")

    def get_atom_entry(self, item: FeatureItem) -> str:
        """Format an item as an Atom entry element."""
        r = (
            "<entry>"
            f"<id>{item.id}</id>"
            f"<title>{item.title}</title>"
            f"<updated>{self.get_atom_date(item.modified)}</updated>"
            '<link rel="alternate" type="text/html" '
            f'href="{self.get_link(item.link)}"/>'
            '<summary type="html"><![CDATA['
            f'<img src="{self.get_link(item.thumbnail)}" '
            'width="100" align="left" hspace="10"/>'
            f"{item.content}"
            "]]></summary>"
        )
        if item.tags is not None:
            for tag in item.tags:
                r += f'<category term="{tag}"/>'
        r += "</entry>"
        return r

    def get_item_html(self, item: FeatureItem) -> str:
        """Format an item as an HTML list element.

        Links are used as given, without ``get_link``.
        """
        return (
            "<li>"
            f'<a href="{item.link}">'
            f"<h4>{item.title}</h4>"
            f'<img class="feature-image" src="{item.thumbnail}" alt=""/>'
            "</a>"
            f"<p>{item.content}</p>"
            "</li>"
        )

    def featured_html(self, item: FeatureItem | Mapping) -> str:
        """Format an item as the main featured block.

        Raises:
            FormatError: If the item is missing a required field
        """
        item = self._coerce(item)
        return (
            '<div class="main-featured">'
            '<h2 style="margin-bottom:.5em;">'
            f'<a href="{item.link}">{item.title}</a>'
            "</h2>"
            '<div class="row">'
            '<div class="one-of-four column">'
            f'<img class="main-featured-image" src="{item.image}" alt=""/>'
            "</div>"
            f'<div class="three-of-four column">{item.content}</div>'
            "</div>"
            "</div>"
        )

    def get_link(self, link: str) -> str:
        """Get an absolute link from a relative link.

        Anything starting with "http" is already absolute.
        """
        if link.startswith("http"):
            return link
        return self.config.site_url + self.config.base_url + link

    def _publishable(self, now: float | None = None) -> tuple[list[FeatureItem], int]:
        if now is None:
            now = time.time()

        items = []
        skipped = 0
        for raw_item in self.items:
            try:
                item = self._coerce(raw_item)
            except FormatError as e:
                skipped += 1
                self.logger.log_item_skipped(e.item_id, str(e))
                continue
            if item.is_published(now):
                items.append(item)
        return items, skipped

    def _count(self, published: int, skipped: int, rendered: int) -> None:
        self.published = published
        self.skipped = skipped
        self.rendered = rendered

    @staticmethod
    def _coerce(item: FeatureItem | Mapping) -> FeatureItem:
        if isinstance(item, FeatureItem):
            return item.validate()
        return FeatureItem.from_dict(item)

