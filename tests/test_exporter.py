"""Tests for the Trello client and board exporter."""

import json

import httpx
import pytest

from mdtrello.checklist import GroupBy, ScanOptions, WorkItem, scan_document
from mdtrello.trello import (
    BoardExporter,
    RemoteList,
    TrelloAPIError,
    TrelloClient,
    group_items,
)


class FakeTrello:
    """In-memory stand-in for the Trello API behind httpx.MockTransport."""

    def __init__(self, lists: list[dict] | None = None):
        self.lists = list(lists or [])
        self.cards: list[dict] = []
        self.requests: list[httpx.Request] = []
        self.fail_cards: set[str] = set()
        self.fail_lists = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "GET" and path.endswith("/lists"):
            return httpx.Response(200, json=self.lists)

        body = json.loads(request.content) if request.content else {}

        if request.method == "POST" and path == "/1/lists":
            if self.fail_lists:
                return httpx.Response(403, text="forbidden")
            created = {"id": f"L{len(self.lists) + 1}", "name": body["name"]}
            self.lists.append(created)
            return httpx.Response(200, json=created)

        if request.method == "POST" and path == "/1/cards":
            if body["name"] in self.fail_cards:
                return httpx.Response(429, text="rate limited")
            card = {"id": f"C{len(self.cards) + 1}", **body}
            self.cards.append(card)
            return httpx.Response(200, json=card)

        return httpx.Response(404, text="not found")


@pytest.fixture
def fake() -> FakeTrello:
    return FakeTrello(lists=[{"id": "L0", "name": "Existing", "closed": False}])


@pytest.fixture
async def client(fake: FakeTrello):
    """Trello client wired to the fake API."""
    trello = TrelloClient("k", "t", transport=httpx.MockTransport(fake.handler))
    yield trello
    await trello.close()


@pytest.fixture
def exporter(client: TrelloClient) -> BoardExporter:
    return BoardExporter(client, "B1", single_list_delay=0, grouped_delay=0)


def make_item(title: str, group: str = "General", is_done: bool = False) -> WorkItem:
    return WorkItem(
        title=title,
        group_key=group,
        description=f"Status: {'Completed' if is_done else 'Pending'}",
        is_done=is_done,
    )


class TestTrelloClient:
    """Test the HTTP client."""

    async def test_auth_query_params(self, client: TrelloClient, fake: FakeTrello):
        """Test key and token are attached to every call."""
        await client.get_open_lists("B1")
        await client.create_card("L0", "Card", "desc")

        for request in fake.requests:
            assert request.url.params["key"] == "k"
            assert request.url.params["token"] == "t"

    async def test_get_open_lists(self, client: TrelloClient, fake: FakeTrello):
        """Test fetching open lists on a board."""
        lists = await client.get_open_lists("B1")
        assert lists == [RemoteList(id="L0", name="Existing")]
        assert fake.requests[0].url.path == "/1/boards/B1/lists"
        assert fake.requests[0].url.params["filter"] == "open"

    async def test_create_list_body(self, client: TrelloClient, fake: FakeTrello):
        """Test list creation sends name, board and position."""
        created = await client.create_list("New", "B1")
        assert created.name == "New"
        assert json.loads(fake.requests[0].content) == {
            "name": "New",
            "idBoard": "B1",
            "pos": "top",
        }

    async def test_error_response(self, client: TrelloClient, fake: FakeTrello):
        """Test non-2xx responses raise a descriptive error."""
        fake.fail_cards.add("Bad")
        with pytest.raises(TrelloAPIError) as exc_info:
            await client.create_card("L0", "Bad", "")

        err = exc_info.value
        assert err.status_code == 429
        assert err.body == "rate limited"
        assert str(err) == "Trello API 429 Too Many Requests: rate limited"


class TestGroupItems:
    """Test grouping of work items."""

    def test_first_occurrence_order(self):
        """Test keys keep the order they first appear in."""
        items = [make_item("1", "B"), make_item("2", "A"), make_item("3", "B")]
        groups = group_items(items)
        assert list(groups) == ["B", "A"]
        assert [i.title for i in groups["B"]] == ["1", "3"]


class TestSingleListExport:
    """Test exporting to a provided list."""

    async def test_all_cards_to_list(self, exporter: BoardExporter, fake: FakeTrello):
        """Test every card goes to the given list without list discovery."""
        items = [make_item("one", "A"), make_item("two", "B")]
        result = await exporter.export(items, list_id="L9")

        assert result.created == 2
        assert [c["idList"] for c in fake.cards] == ["L9", "L9"]
        assert [c["name"] for c in fake.cards] == ["one", "two"]
        assert all(r.method == "POST" for r in fake.requests)

    async def test_summary_output(self, exporter: BoardExporter, capsys):
        """Test progress and summary lines."""
        await exporter.export_to_list([make_item("one")], "L9")
        out = capsys.readouterr().out
        assert "Found 1 items. Creating cards in provided list L9..." in out
        assert "Done. Created 1/1 cards." in out


class TestGroupedExport:
    """Test exporting with one list per group."""

    async def test_reuses_existing_list(self, exporter: BoardExporter, fake: FakeTrello):
        """Test a group matching a board list does not create a new one."""
        result = await exporter.export([make_item("one", "Existing")])

        assert result.created == 1
        assert fake.cards[0]["idList"] == "L0"
        assert len(fake.lists) == 1

    async def test_creates_missing_lists(self, exporter: BoardExporter, fake: FakeTrello):
        """Test new lists are created at the top of the board."""
        await exporter.export([make_item("one", "Fresh")])

        assert [lst["name"] for lst in fake.lists] == ["Existing", "Fresh"]
        assert fake.cards[0]["idList"] == "L2"

    async def test_repeated_heading_shares_list(
        self, exporter: BoardExporter, fake: FakeTrello
    ):
        """Test a heading that appears twice maps to a single list."""
        content = (
            "## Backend\n### Tasks\n  - [ ] api\n"
            "## Frontend\n### UI\n  - [ ] button\n"
            "## Ops\n### Tasks\n  - [ ] deploy\n"
        )
        items = scan_document(content, ScanOptions(group_by=GroupBy.H3))
        result = await exporter.export(items)

        created_lists = [r for r in fake.requests if r.url.path == "/1/lists"]
        assert len(created_lists) == 2
        tasks_id = next(lst["id"] for lst in fake.lists if lst["name"] == "Tasks")
        assert [c["name"] for c in fake.cards if c["idList"] == tasks_id] == [
            "api",
            "deploy",
        ]
        assert result.lists == 2

    async def test_ensure_list_updates_cache(self, exporter: BoardExporter, fake: FakeTrello):
        """Test a created list is reused on the next lookup."""
        known: list[RemoteList] = []
        first = await exporter.ensure_list("Dup", known)
        second = await exporter.ensure_list("Dup", known)

        assert first == second
        assert len(known) == 1
        assert len([r for r in fake.requests if r.method == "POST"]) == 1

    async def test_lists_fetched_before_creation(
        self, exporter: BoardExporter, fake: FakeTrello
    ):
        """Test the board lists are read once, first."""
        await exporter.export([make_item("a", "X"), make_item("b", "Y")])

        gets = [i for i, r in enumerate(fake.requests) if r.method == "GET"]
        assert gets == [0]

    async def test_card_failure_continues(
        self, exporter: BoardExporter, fake: FakeTrello, capsys
    ):
        """Test one failed card does not stop the run."""
        fake.fail_cards.add("bad")
        items = [make_item("good", "A"), make_item("bad", "A"), make_item("next", "B")]
        result = await exporter.export(items)

        assert result.created == 2
        assert result.failures == ["bad"]
        assert [c["name"] for c in fake.cards] == ["good", "next"]
        assert "Done. Created 2/3 cards in 2 lists." in capsys.readouterr().out

    async def test_list_failure_propagates(self, exporter: BoardExporter, fake: FakeTrello):
        """Test list creation errors abort the export."""
        fake.fail_lists = True
        with pytest.raises(TrelloAPIError):
            await exporter.export([make_item("one", "Fresh")])
        assert fake.cards == []


class TestDelays:
    """Test the pause between card calls."""

    async def test_sleeps_between_cards(self, client: TrelloClient, monkeypatch):
        """Test one delay per gap between consecutive cards."""
        delays: list[float] = []

        async def fake_sleep(seconds: float) -> None:
            delays.append(seconds)

        monkeypatch.setattr("mdtrello.trello.exporter.asyncio.sleep", fake_sleep)
        exporter = BoardExporter(client, "B1")

        await exporter.export_to_list([make_item("a"), make_item("b"), make_item("c")], "L0")
        assert delays == [0.2, 0.2]

        delays.clear()
        await exporter.export_grouped([make_item("a", "X"), make_item("b", "X")])
        assert delays == [0.18]
