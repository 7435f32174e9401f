"""Pydantic models for checklist scanning."""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict


class GroupBy(str, Enum):
    """Heading level used to name destination lists."""

    H4 = "h4"
    H3 = "h3"
    H2 = "h2"


@dataclass
class ScanOptions:
    """Filters and grouping applied while scanning a document."""

    exclude_completed: bool = False
    include_toplevel: bool = False
    group_by: GroupBy = GroupBy.H4


@dataclass
class HeadingContext:
    """Headings in effect at the current line.

    Each level keeps the raw heading text (emojis and markup preserved)
    and a cleaned copy. Setting a level clears every deeper level.
    """

    outer_raw: str = ""
    outer: str = ""
    middle_raw: str = ""
    middle: str = ""
    inner_raw: str = ""
    inner: str = ""

    def set_outer(self, raw: str, cleaned: str) -> None:
        """Open a level-2 heading."""
        self.outer_raw, self.outer = raw, cleaned
        self.middle_raw = self.middle = ""
        self.inner_raw = self.inner = ""

    def set_middle(self, raw: str, cleaned: str) -> None:
        """Open a level-3 heading."""
        self.middle_raw, self.middle = raw, cleaned
        self.inner_raw = self.inner = ""

    def set_inner(self, raw: str, cleaned: str) -> None:
        """Open a level-4 heading."""
        self.inner_raw, self.inner = raw, cleaned

    @property
    def path(self) -> str:
        """Cleaned levels joined outer to inner, empty ones skipped."""
        return " / ".join(p for p in (self.outer, self.middle, self.inner) if p)


class WorkItem(BaseModel):
    """A checklist line destined to become a Trello card."""

    model_config = ConfigDict(frozen=True)

    title: str
    group_key: str
    description: str
    is_done: bool = False
