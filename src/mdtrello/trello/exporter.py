"""Create Trello lists and cards from scanned work items."""

import asyncio
from dataclasses import dataclass, field

import structlog

from mdtrello.checklist.models import WorkItem
from mdtrello.trello.client import RemoteList, TrelloClient

log = structlog.get_logger()

# Pause between card creations to stay under Trello's rate limits
SINGLE_LIST_DELAY = 0.2
GROUPED_DELAY = 0.18


@dataclass
class ExportResult:
    """Outcome of an export run."""

    total: int
    created: int = 0
    lists: int = 0
    failures: list[str] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)


def group_items(items: list[WorkItem]) -> dict[str, list[WorkItem]]:
    """Group items by list name, keeping first-occurrence order."""
    groups: dict[str, list[WorkItem]] = {}
    for item in items:
        groups.setdefault(item.group_key, []).append(item)
    return groups


class BoardExporter:
    """Sends work items to a Trello board one card at a time."""

    def __init__(
        self,
        client: TrelloClient,
        board_id: str,
        single_list_delay: float = SINGLE_LIST_DELAY,
        grouped_delay: float = GROUPED_DELAY,
    ):
        self.client = client
        self.board_id = board_id
        self.single_list_delay = single_list_delay
        self.grouped_delay = grouped_delay

    async def export(
        self, items: list[WorkItem], list_id: str | None = None
    ) -> ExportResult:
        """Export items, to one list if list_id is given, else grouped."""
        if list_id:
            return await self.export_to_list(items, list_id)
        return await self.export_grouped(items)

    async def export_to_list(self, items: list[WorkItem], list_id: str) -> ExportResult:
        """Create every card on a single existing list.

        Args:
            items: Work items in document order.
            list_id: Destination Trello list ID.

        Returns:
            Export counts.
        """
        result = ExportResult(total=len(items), lists=1)
        print(f"Found {len(items)} items. Creating cards in provided list {list_id}...")

        await self._create_cards(items, list_id, None, self.single_list_delay, result)

        print(f"Done. Created {result.created}/{result.total} cards.")
        return result

    async def export_grouped(self, items: list[WorkItem]) -> ExportResult:
        """Create one list per group key and file each card under it.

        Lists that already exist on the board (exact name match) are
        reused. Errors fetching or creating lists propagate.

        Args:
            items: Work items in document order.

        Returns:
            Export counts.
        """
        groups = group_items(items)
        known_lists = await self.client.get_open_lists(self.board_id)
        log.debug("board_lists_fetched", board_id=self.board_id, count=len(known_lists))

        result = ExportResult(total=len(items), lists=len(groups))
        print(
            f"Found {len(items)} items across {len(groups)} groups. "
            "Creating lists and cards..."
        )

        for list_name, group in groups.items():
            list_id = await self.ensure_list(list_name, known_lists)
            print(f"Using list: {list_name} ({list_id}) - {len(group)} items")
            await self._create_cards(
                group, list_id, list_name, self.grouped_delay, result
            )

        print(
            f"Done. Created {result.created}/{result.total} cards "
            f"in {result.lists} lists."
        )
        return result

    async def ensure_list(self, name: str, known_lists: list[RemoteList]) -> str:
        """Return the ID of the named list, creating it if needed.

        Newly created lists are appended to known_lists.
        """
        for remote in known_lists:
            if remote.name == name:
                return remote.id

        created = await self.client.create_list(name, self.board_id, pos="top")
        known_lists.append(created)
        return created.id

    async def _create_cards(
        self,
        items: list[WorkItem],
        list_id: str,
        list_name: str | None,
        delay: float,
        result: ExportResult,
    ) -> None:
        for index, item in enumerate(items):
            if index:
                await asyncio.sleep(delay)
            try:
                await self.client.create_card(list_id, item.title, item.description)
            except Exception as e:
                log.error(
                    "card_failed",
                    title=item.title,
                    list_name=list_name or list_id,
                    error=str(e),
                )
                result.failures.append(item.title)
                continue
            result.created += 1
            log.debug("card_created", title=item.title, list_id=list_id)
