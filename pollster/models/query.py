"""Query model and its canonical topic form."""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Query(BaseModel):
    """
    What to fetch from a feed source.

    Any extra key-value fields are kept and take part in the topic, so two queries
    describe the same topic iff their canonical serializations are equal.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    feed_id: str = Field(alias="feedId", min_length=1)
    after: str | None = None
    count: int | None = Field(default=None, ge=1)

    @property
    def topic(self) -> str:
        """Canonical, key-order independent serialization used as the lookup key."""
        return json.dumps(
            self.to_params(),
            sort_keys=True,
            separators=(",", ":"),
            default=str,
        )

    def to_params(self) -> dict[str, Any]:
        """Return the alias keyed fields that are set."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def with_updates(self, **changes: Any) -> "Query":
        """Return a copy with the given fields replaced."""
        return self.model_copy(update=changes)
