import pytest

from swim.errors import SelectionAborted
from swim.ports import PortEntry
from swim.selector import (
    Backspace, Cancel, Char, Confirm, ContainerSummary, Down, Phase, Up, initial_state, select_container, update,
)

CONTAINERS = (
    ContainerSummary("1" * 64, "web-frontend", (PortEntry("0.0.0.0", "8080", "80"),)),
    ContainerSummary("2" * 64, "postgres"),
    ContainerSummary("3" * 64, "Web-Backend"),
)


def feed(state, *events):
    for event in events:
        state = update(state, event)
    return state


def typed(text):
    return [Char(c) for c in text]


def test_initial_state_highlights_first_container():
    state = initial_state(CONTAINERS)
    assert state.phase is Phase.BROWSING
    assert state.highlighted is CONTAINERS[0]


def test_filter_is_case_insensitive_and_keeps_listing_order():
    state = feed(initial_state(CONTAINERS), *typed("WEB"))
    assert state.visible == (CONTAINERS[0], CONTAINERS[2])


def test_confirm_selects_highlighted_container():
    state = feed(initial_state(CONTAINERS), *typed("web"), Down(), Confirm())
    assert state.phase is Phase.CONFIRMED
    assert state.selected_id == CONTAINERS[2].id


def test_cursor_is_clamped_to_visible_entries():
    state = feed(initial_state(CONTAINERS), Up(), Up())
    assert state.cursor == 0
    state = feed(state, Down(), Down(), Down(), Down())
    assert state.highlighted is CONTAINERS[-1]


def test_typing_resets_cursor():
    state = feed(initial_state(CONTAINERS), Down(), Down(), Char("e"))
    assert state.cursor == 0


def test_backspace_widens_filter():
    state = feed(initial_state(CONTAINERS), *typed("postx"))
    assert state.visible == ()
    state = update(state, Backspace())
    assert state.visible == (CONTAINERS[1],)


def test_confirm_with_no_matches_stays_browsing():
    state = feed(initial_state(CONTAINERS), *typed("redis"))
    confirmed = update(state, Confirm())
    assert confirmed.phase is Phase.BROWSING
    assert confirmed == state


def test_cancel_never_confirms():
    state = feed(initial_state(CONTAINERS), *typed("post"), Cancel(), Confirm())
    assert state.phase is Phase.CANCELLED
    assert state.selected_id is None


def test_events_after_confirm_are_ignored():
    state = feed(initial_state(CONTAINERS), Confirm(), Cancel(), Down())
    assert state.phase is Phase.CONFIRMED
    assert state.selected_id == CONTAINERS[0].id


def test_unknown_event_is_rejected():
    with pytest.raises(TypeError):
        update(initial_state(CONTAINERS), "enter")


def test_select_container_without_containers_never_runs_the_loop():
    def driver(state):
        pytest.fail("the picker must not start without containers")

    with pytest.raises(SelectionAborted):
        select_container([], driver)


def test_select_container_returns_confirmed_id():
    assert select_container(CONTAINERS, lambda state: feed(state, *typed("post"), Confirm())) == CONTAINERS[1].id


def test_select_container_cancelled():
    with pytest.raises(SelectionAborted, match="no container selected"):
        select_container(CONTAINERS, lambda state: update(state, Cancel()))
