"""Atom feed document backed by BeautifulSoup."""

from bs4 import BeautifulSoup, Tag

from pollster.utils.timestamps import parse_timestamp

FEED_URN_PREFIX = "urn:feed:"


def entry_id_from_urn(urn: str) -> str:
    """
    Reduce an entry urn to the bare entry id.

    'urn:feed:<feed id>:<entry id>' -> '<entry id>', anything else is returned stripped.
    """
    urn = urn.strip()
    if urn.startswith(FEED_URN_PREFIX):
        return urn.rsplit(":", 1)[-1]
    return urn


def feed_id_from_resource(resource_id: str) -> str:
    """
    Reduce a changed resource id to the feed id it belongs to.

    'urn:feed:<feed id>' and 'urn:feed:<feed id>:<entry id>' -> '<feed id>',
    anything else is returned stripped.
    """
    resource_id = resource_id.strip()
    if resource_id.startswith(FEED_URN_PREFIX):
        return resource_id.removeprefix(FEED_URN_PREFIX).split(":", 1)[0]
    return resource_id


def _child_text(tag: Tag, name: str) -> str | None:
    child = tag.find(name, recursive=False)
    if child is None:
        return None
    return child.get_text(strip=True) or None


class AtomDocument:
    """Read-only view over an Atom <feed> document."""

    def __init__(self, soup: BeautifulSoup) -> None:
        """Initialize AtomDocument."""
        self.soup = soup
        self.feed: Tag = soup.find("feed") or soup
        self._latest_entry: Tag | None = self._find_latest_entry()

    @classmethod
    def from_text(cls, text: str) -> "AtomDocument":
        return cls(BeautifulSoup(text, "html.parser"))

    def entries(self) -> list[Tag]:
        return self.feed.find_all("entry", recursive=False)

    def _find_latest_entry(self) -> Tag | None:
        entries = self.entries()
        if not entries:
            return None
        # max keeps the first of equals, so document order breaks ties
        return max(
            entries,
            key=lambda entry: parse_timestamp(_child_text(entry, "updated")) or 0,
        )

    def feed_id(self) -> str | None:
        return _child_text(self.feed, "id")

    def updated(self) -> str | None:
        return _child_text(self.feed, "updated")

    def has_entries(self) -> bool:
        return self._latest_entry is not None

    def latest_entry_id(self) -> str | None:
        if self._latest_entry is None:
            return None
        urn = _child_text(self._latest_entry, "id")
        return entry_id_from_urn(urn) if urn else None

    def latest_entry_updated(self) -> str | None:
        if self._latest_entry is None:
            return None
        return _child_text(self._latest_entry, "updated")

    def __repr__(self) -> str:
        """Represent AtomDocument as string."""
        return (
            f"AtomDocument(id={self.feed_id()}, updated={self.updated()}, "
            f"entries={len(self.entries())})"
        )
