"""Container selection as a small finite state machine.

The machine is pure: :func:`update` takes a state and an input event and
returns the next state. Rendering and keyboard handling live in
:mod:`swim.picker`, which feeds events in and draws whatever state comes out.

Filtering is a case-insensitive substring match against the container's
display name. Matches keep the order the engine listed the containers in.
"""
import enum
from dataclasses import dataclass, replace
from typing import Callable, Optional, Sequence, Tuple

import structlog

from swim.errors import SelectionAborted
from swim.ports import PortEntry

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ContainerSummary:
    id: str
    display_name: str
    published_ports: Tuple[PortEntry, ...] = ()

    @property
    def short_id(self) -> str:
        return self.id[:12]


class Phase(enum.Enum):
    BROWSING = "browsing"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


# Input events
@dataclass(frozen=True)
class Char:
    char: str


@dataclass(frozen=True)
class Backspace:
    pass


@dataclass(frozen=True)
class Up:
    pass


@dataclass(frozen=True)
class Down:
    pass


@dataclass(frozen=True)
class Confirm:
    pass


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class SelectorState:
    containers: Tuple[ContainerSummary, ...]
    query: str = ""
    cursor: int = 0
    phase: Phase = Phase.BROWSING
    selected_id: Optional[str] = None

    @property
    def visible(self) -> Tuple[ContainerSummary, ...]:
        needle = self.query.lower()
        return tuple(c for c in self.containers if needle in c.display_name.lower())

    @property
    def highlighted(self) -> Optional[ContainerSummary]:
        visible = self.visible
        if not visible:
            return None
        return visible[self.cursor]

    @property
    def done(self) -> bool:
        return self.phase is not Phase.BROWSING


def initial_state(containers: Sequence[ContainerSummary]) -> SelectorState:
    return SelectorState(containers=tuple(containers))


def update(state: SelectorState, event) -> SelectorState:
    """Advance the selection by one input event."""
    if state.done:
        return state

    if isinstance(event, Cancel):
        return replace(state, phase=Phase.CANCELLED, selected_id=None)

    if isinstance(event, Confirm):
        chosen = state.highlighted
        if chosen is None:
            return state
        return replace(state, phase=Phase.CONFIRMED, selected_id=chosen.id)

    if isinstance(event, Char):
        return replace(state, query=state.query + event.char, cursor=0)

    if isinstance(event, Backspace):
        return replace(state, query=state.query[:-1], cursor=0)

    if isinstance(event, (Up, Down)):
        count = len(state.visible)
        if not count:
            return state
        step = -1 if isinstance(event, Up) else 1
        return replace(state, cursor=min(max(state.cursor + step, 0), count - 1))

    raise TypeError(f"unknown selector event: {event!r}")


#: Runs the interactive loop and returns the final state.
Driver = Callable[[SelectorState], SelectorState]


def select_container(containers: Sequence[ContainerSummary], driver: Driver) -> str:
    """Let the operator pick one of ``containers`` and return its id.

    :param containers: running containers, in listing order
    :param driver: runs the event loop from the initial state to a terminal one
    :raises SelectionAborted: if there is nothing to pick or the operator cancelled
    """
    if not containers:
        raise SelectionAborted("no running containers to select from")

    final = driver(initial_state(containers))
    if final.phase is not Phase.CONFIRMED:
        log.debug("Selection cancelled", query=final.query)
        raise SelectionAborted("no container selected")

    log.debug("Container selected", container=final.selected_id)
    return final.selected_id
