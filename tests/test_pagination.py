"""Tests for page fetching and bulk collection."""

import math

import pytest
from httpx import Response

from tests.fixtures.card_fixtures import BOARD_ID, LIST_ID, make_actions, make_cards, shuffled
from tests.helpers import card_ids
from trello_mcp import pagination
from trello_mcp.client import NotFoundError, RateLimitedError, UnknownAPIError
from trello_mcp.pagination import (
    ClientSideCursorStrategy,
    NativeCursorStrategy,
    PaginationHelper,
    strategy_for,
)

LIST_CARDS = f"/lists/{LIST_ID}/cards"
BOARD_ACTIONS = f"/boards/{BOARD_ID}/actions"


@pytest.fixture
def helper(trello_client):
    """Pagination helper without pacing delays."""
    return PaginationHelper(trello_client, delay=0)


class TestStrategySelection:
    """Test strategy selection by collection type."""

    def test_list_cards_use_client_side_strategy(self):
        assert isinstance(strategy_for("/lists/abc/cards"), ClientSideCursorStrategy)
        assert isinstance(strategy_for("lists/abc/cards/"), ClientSideCursorStrategy)

    def test_other_collections_use_native_strategy(self):
        assert isinstance(strategy_for("/boards/abc/actions"), NativeCursorStrategy)
        assert isinstance(strategy_for("/boards/abc/cards"), NativeCursorStrategy)
        assert isinstance(strategy_for("/lists/abc/actions"), NativeCursorStrategy)


class TestClientSidePages:
    """Test cursor windows rebuilt over the cards-in-list collection."""

    async def test_first_page_is_ordered_by_position(self, helper, stub_api):
        cards = make_cards(30)
        stub_api.stub_list_cards(LIST_ID, shuffled(cards))

        page = await helper.fetch_page(LIST_CARDS, limit=10)

        assert card_ids(page.items) == card_ids(cards[:10])
        assert page.has_more is True
        assert page.next_cursor == cards[9]["id"]

    async def test_cursor_returns_items_strictly_after_it(self, helper, stub_api):
        cards = make_cards(30)
        stub_api.stub_list_cards(LIST_ID, shuffled(cards))

        page = await helper.fetch_page(LIST_CARDS, limit=10, cursor=cards[4]["id"])

        assert card_ids(page.items) == card_ids(cards[5:15])
        assert page.next_cursor == cards[14]["id"]

    async def test_short_final_page_has_no_cursor(self, helper, stub_api):
        cards = make_cards(25)
        stub_api.stub_list_cards(LIST_ID, cards)

        page = await helper.fetch_page(LIST_CARDS, limit=10, cursor=cards[19]["id"])

        assert card_ids(page.items) == card_ids(cards[20:])
        assert page.has_more is False
        assert page.next_cursor is None

    async def test_cursor_at_last_item_returns_empty_page(self, helper, stub_api):
        cards = make_cards(5)
        stub_api.stub_list_cards(LIST_ID, cards)

        page = await helper.fetch_page(LIST_CARDS, limit=10, cursor=cards[-1]["id"])

        assert page.items == []
        assert page.has_more is False
        assert page.next_cursor is None

    async def test_unknown_cursor_is_end_of_stream(self, helper, stub_api):
        stub_api.stub_list_cards(LIST_ID, make_cards(5))

        page = await helper.fetch_page(LIST_CARDS, limit=10, cursor="no-such-card")

        assert page.items == []
        assert page.has_more is False

    async def test_exactly_full_collection_needs_confirming_request(self, helper, stub_api):
        cards = make_cards(10)
        stub_api.stub_list_cards(LIST_ID, cards)

        first = await helper.fetch_page(LIST_CARDS, limit=10)
        assert first.has_more is True
        assert first.next_cursor == cards[-1]["id"]

        second = await helper.fetch_page(LIST_CARDS, limit=10, cursor=first.next_cursor)
        assert second.items == []
        assert second.has_more is False

    async def test_identical_requests_are_idempotent(self, helper, stub_api):
        cards = make_cards(40)
        stub_api.stub_list_cards(LIST_ID, shuffled(cards))

        first = await helper.fetch_page(LIST_CARDS, limit=15, cursor=cards[3]["id"])
        second = await helper.fetch_page(LIST_CARDS, limit=15, cursor=cards[3]["id"])

        assert first == second

    async def test_cards_without_position_keep_relative_order(self, helper, stub_api):
        cards = [
            {"id": "b", "name": "B", "pos": 200.0},
            {"id": "x", "name": "X"},
            {"id": "a", "name": "A", "pos": 100.0},
            {"id": "y", "name": "Y", "pos": None},
        ]
        stub_api.stub_list_cards(LIST_ID, cards)

        page = await helper.fetch_page(LIST_CARDS, limit=10)

        assert card_ids(page.items) == ["x", "y", "a", "b"]

    async def test_fields_projection_always_includes_id(self, helper, stub_api):
        route = stub_api.stub_list_cards(LIST_ID, make_cards(3))

        page = await helper.fetch_page(LIST_CARDS, limit=10, fields=["name", "pos"])

        params = route.calls.last.request.url.params
        assert params["fields"] == "id,name,pos"
        assert params["key"] == "test_api_key"
        assert params["token"] == "test_token"
        assert "limit" not in params
        assert "before" not in params
        assert set(page.items[0]) == {"id", "name", "pos"}

    async def test_projection_without_pos_still_orders_by_position(self, helper, stub_api):
        cards = make_cards(30)
        route = stub_api.stub_list_cards(LIST_ID, shuffled(cards))

        page = await helper.fetch_page(LIST_CARDS, limit=5, fields=["name"])

        assert route.calls.last.request.url.params["fields"] == "id,name,pos"
        assert card_ids(page.items) == card_ids(cards[:5])
        assert page.items[0] == {"id": cards[0]["id"], "name": cards[0]["name"]}
        assert page.next_cursor == cards[4]["id"]

    async def test_id_only_drain_is_ordered_by_position(self, helper, stub_api):
        cards = make_cards(150)
        stub_api.stub_list_cards(LIST_ID, shuffled(cards))

        result = await helper.fetch_all(LIST_CARDS, fields=["id"])

        assert card_ids(result.items) == card_ids(cards)
        assert set(result.items[0]) == {"id"}

    async def test_non_array_body_raises_unknown_api_error(self, helper, respx_mock):
        respx_mock.get(LIST_CARDS).mock(return_value=Response(200, json={"message": "oops"}))

        with pytest.raises(UnknownAPIError) as exc_info:
            await helper.fetch_page(LIST_CARDS, limit=10)

        assert exc_info.value.endpoint == LIST_CARDS
        assert "Expected a JSON array" in exc_info.value.message

    async def test_malformed_elements_raise_unknown_api_error(self, helper, respx_mock):
        respx_mock.get(BOARD_ACTIONS).mock(
            return_value=Response(200, json=[{"id": "a1"}, "not-an-object"])
        )

        with pytest.raises(UnknownAPIError, match="Expected objects with an id"):
            await helper.fetch_page(BOARD_ACTIONS, limit=10)

    async def test_limit_out_of_range_raises(self, helper):
        with pytest.raises(ValueError, match="Invalid limit"):
            await helper.fetch_page(LIST_CARDS, limit=0)
        with pytest.raises(ValueError, match="Invalid limit"):
            await helper.fetch_page(LIST_CARDS, limit=101)

    async def test_missing_list_raises_not_found(self, helper, stub_api):
        stub_api.stub_error_response(LIST_CARDS, status_code=404)

        with pytest.raises(NotFoundError):
            await helper.fetch_page(LIST_CARDS, limit=10)


class TestNativePages:
    """Test pages windowed by Trello's own limit/before parameters."""

    async def test_passes_limit_and_before_to_trello(self, helper, stub_api):
        actions = make_actions(30)
        route = stub_api.stub_board_actions(BOARD_ID, actions)

        page = await helper.fetch_page(BOARD_ACTIONS, limit=10, cursor=actions[9]["id"])

        params = route.calls.last.request.url.params
        assert params["limit"] == "10"
        assert params["before"] == actions[9]["id"]
        assert card_ids(page.items) == card_ids(actions[10:20])
        assert page.has_more is True
        assert page.next_cursor == actions[19]["id"]

    async def test_short_page_ends_collection(self, helper, stub_api):
        actions = make_actions(7)
        stub_api.stub_board_actions(BOARD_ID, actions)

        page = await helper.fetch_page(BOARD_ACTIONS, limit=10)

        assert len(page.items) == 7
        assert page.has_more is False
        assert page.next_cursor is None


class TestFetchAll:
    """Test bulk collection under a safety cap."""

    @pytest.mark.parametrize(("total", "page_size"), [(250, 100), (37, 10), (5, 100)])
    async def test_pages_concatenate_to_full_collection(self, helper, stub_api, total, page_size):
        cards = make_cards(total)
        route = stub_api.stub_list_cards(LIST_ID, shuffled(cards))

        result = await helper.fetch_all(LIST_CARDS, limit=page_size, max_items=10_000)

        assert card_ids(result.items) == card_ids(cards)
        assert result.truncated is False
        assert result.pages_fetched == math.ceil(total / page_size)
        assert route.call_count == result.pages_fetched

    async def test_boundary_collection_costs_one_empty_page(self, helper, stub_api):
        cards = make_cards(200)
        stub_api.stub_list_cards(LIST_ID, cards)

        result = await helper.fetch_all(LIST_CARDS, max_items=5000)

        assert len(result.items) == 200
        assert result.pages_fetched == 3
        assert result.truncated is False

    async def test_cap_reached_reports_truncated(self, helper, stub_api):
        stub_api.stub_list_cards(LIST_ID, make_cards(250))

        result = await helper.fetch_all(LIST_CARDS, max_items=100)

        assert len(result.items) == 100
        assert result.truncated is True
        assert result.pages_fetched == 1

    async def test_large_cap_drains_collection(self, helper, stub_api):
        stub_api.stub_list_cards(LIST_ID, make_cards(250))

        result = await helper.fetch_all(LIST_CARDS, max_items=5000)

        assert len(result.items) == 250
        assert result.truncated is False

    async def test_cap_inside_a_page_trims_result(self, helper, stub_api):
        cards = make_cards(250)
        stub_api.stub_list_cards(LIST_ID, cards)

        result = await helper.fetch_all(LIST_CARDS, max_items=150)

        assert card_ids(result.items) == card_ids(cards[:150])
        assert result.truncated is True
        assert result.pages_fetched == 2

    async def test_no_duplicates_across_pages(self, helper, stub_api):
        stub_api.stub_list_cards(LIST_ID, shuffled(make_cards(333)))

        result = await helper.fetch_all(LIST_CARDS, max_items=10_000)

        ids = card_ids(result.items)
        assert len(ids) == len(set(ids)) == 333

    async def test_pauses_between_pages_only(self, trello_client, stub_api, monkeypatch):
        pauses: list[float] = []

        async def fake_pause(seconds):
            pauses.append(seconds)

        monkeypatch.setattr(pagination, "pause_between_requests", fake_pause)
        stub_api.stub_list_cards(LIST_ID, make_cards(250))

        result = await PaginationHelper(trello_client).fetch_all(LIST_CARDS, max_items=5000)

        assert result.pages_fetched == 3
        assert pauses == [0.1, 0.1]

    async def test_on_page_reports_progress(self, helper, stub_api):
        stub_api.stub_list_cards(LIST_ID, make_cards(250))
        reports: list[tuple[int, int]] = []

        async def on_page(fetched, page_number):
            reports.append((fetched, page_number))

        await helper.fetch_all(LIST_CARDS, max_items=5000, on_page=on_page)

        assert reports == [(100, 1), (200, 2), (250, 3)]

    async def test_native_collection_advances_before_cursor(self, helper, stub_api):
        actions = make_actions(45)
        route = stub_api.stub_board_actions(BOARD_ID, actions)

        result = await helper.fetch_all(BOARD_ACTIONS, limit=20, max_items=1000)

        assert card_ids(result.items) == card_ids(actions)
        befores = [call.request.url.params.get("before") for call in route.calls]
        assert befores == [None, actions[19]["id"], actions[39]["id"]]

    async def test_failure_on_later_page_aborts(self, helper, respx_mock):
        cards = make_cards(150)
        respx_mock.get(LIST_CARDS).mock(
            side_effect=[Response(200, json=cards), Response(429, text="rate limited")]
        )

        with pytest.raises(RateLimitedError):
            await helper.fetch_all(LIST_CARDS, max_items=5000)

    async def test_invalid_cap_raises(self, helper):
        with pytest.raises(ValueError, match="max_items"):
            await helper.fetch_all(LIST_CARDS, max_items=0)
