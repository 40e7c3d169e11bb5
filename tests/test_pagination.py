"""Unit tests for cumulative pagination."""
from processor.models import Event, PaginationState
from processor.pagination import PaginatedView, advance, has_more, visible_slice


def make_events(count):
    return [Event(id=f'e{i}', name=f'Event {i}') for i in range(1, count + 1)]


class TestPaginationFunctions:
    """Test cases for the slice helpers."""

    def test_visible_slice_is_cumulative(self):
        events = make_events(45)

        assert len(visible_slice(events, 1, 20)) == 20
        assert visible_slice(events, 2, 20) == events[:40]
        assert len(visible_slice(events, 3, 20)) == 45

    def test_has_more(self):
        events = make_events(45)

        assert has_more(events, 1, 20)
        assert has_more(events, 2, 20)
        assert not has_more(events, 3, 20)

    def test_exact_multiple_has_no_more(self):
        assert not has_more(make_events(40), 2, 20)

    def test_empty(self):
        assert visible_slice([], 1, 20) == []
        assert not has_more([], 1, 20)

    def test_advance_stops_when_exhausted(self):
        events = make_events(25)
        state = PaginationState(page_size=20)

        state = advance(events, state)
        assert state.current_page == 2

        # Further calls never move past the data
        assert advance(events, state) == state
        assert advance(events, advance(events, state)).current_page == 2


class TestPaginatedView:
    """Test cases for PaginatedView."""

    def test_load_more_sequence(self):
        view = PaginatedView(make_events(45), PaginationState(page_size=20))

        assert len(view.visible) == 20
        assert view.has_more

        view = view.advance()
        assert view.state.current_page == 2
        assert len(view.visible) == 40
        assert view.has_more

        view = view.advance()
        assert len(view.visible) == 45
        assert not view.has_more

        assert view.advance().state.current_page == 3

    def test_advance_returns_new_view(self):
        view = PaginatedView(make_events(45))

        advanced = view.advance()

        assert view.state.current_page == 1
        assert advanced.state.current_page == 2

    def test_visible_preserves_order(self):
        events = make_events(5)

        assert PaginatedView(events, PaginationState(page_size=2)).visible == events[:2]

    def test_empty_view(self):
        view = PaginatedView([])

        assert view.is_empty
        assert view.total == 0
        assert view.visible == []
        assert not view.has_more

    def test_reset(self):
        assert PaginationState(page_size=10, current_page=4).reset() == PaginationState(page_size=10)
