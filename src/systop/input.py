"""Modal key handling: Normal navigation vs. Search text entry."""

from dataclasses import dataclass, field
from enum import Enum

from systop.logging import get_logger
from systop.models import Query

log = get_logger(__name__)


class KeyKind(Enum):
    """Whether a key went down or came up."""

    PRESS = "press"
    RELEASE = "release"


@dataclass(slots=True, frozen=True)
class KeyEvent:
    """A terminal key event.

    ``code`` is either a single printable character or a key name such as
    ``"escape"``, ``"backspace"``, ``"enter"``, ``"up"`` or ``"down"``.
    """

    code: str
    modifiers: frozenset[str] = field(default_factory=frozenset)
    kind: KeyKind = KeyKind.PRESS

    @property
    def is_ctrl_c(self) -> bool:
        return "ctrl" in self.modifiers and self.code.lower() == "c"

    @property
    def is_character(self) -> bool:
        return len(self.code) == 1 and self.code.isprintable() and "ctrl" not in self.modifiers


class Mode(Enum):
    """Active input interpretation."""

    NORMAL = "normal"
    SEARCH = "search"


class Command(Enum):
    """What the scheduler must do after a key was handled."""

    NOOP = "noop"
    QUIT = "quit"
    CURSOR_DOWN = "cursor_down"
    CURSOR_UP = "cursor_up"
    QUERY_CHANGED = "query_changed"
    MODE_CHANGED = "mode_changed"


@dataclass(slots=True, frozen=True)
class NormalState:
    """Navigation mode. Keeps the last query so it goes on filtering."""

    query: Query = field(default_factory=Query)

    mode = Mode.NORMAL


@dataclass(slots=True, frozen=True)
class SearchState:
    """Text entry mode. Owns the query being edited."""

    query: Query = field(default_factory=lambda: Query(active=True))

    mode = Mode.SEARCH


InputState = NormalState | SearchState

_NORMAL_KEYS = {
    "j": Command.CURSOR_DOWN,
    "down": Command.CURSOR_DOWN,
    "k": Command.CURSOR_UP,
    "up": Command.CURSOR_UP,
    "q": Command.QUIT,
    "escape": Command.QUIT,
}


class InputMachine:
    """
    Routes key events according to the current mode.

    Transitions replace the state object rather than flipping flags. The
    machine never touches selection or history; navigation is returned as a
    Command for the caller to apply.
    """

    def __init__(self) -> None:
        self._state: InputState = NormalState()

    @property
    def state(self) -> InputState:
        return self._state

    @property
    def mode(self) -> Mode:
        return self._state.mode

    @property
    def query(self) -> Query:
        return self._state.query

    def handle(self, event: KeyEvent) -> Command:
        """
        Interpret one key event.

        Args:
            event: The key event; releases are ignored.

        Returns:
            The command the caller should apply.
        """
        if event.kind is not KeyKind.PRESS:
            return Command.NOOP
        if event.is_ctrl_c:
            return Command.QUIT
        if isinstance(self._state, SearchState):
            return self._handle_search(event)
        return self._handle_normal(event)

    def _handle_normal(self, event: KeyEvent) -> Command:
        if event.modifiers - {"shift"}:
            return Command.NOOP
        if event.code == "s":
            self._state = SearchState(query=Query(text=self._state.query.text, active=True))
            log.debug("mode_changed", mode=Mode.SEARCH.value)
            return Command.MODE_CHANGED
        return _NORMAL_KEYS.get(event.code, Command.NOOP)

    def _handle_search(self, event: KeyEvent) -> Command:
        query = self._state.query
        if event.code in ("escape", "enter"):
            self._state = NormalState(query=Query(text=query.text, active=False))
            log.debug("mode_changed", mode=Mode.NORMAL.value, query=query.text)
            return Command.MODE_CHANGED
        if event.code == "backspace":
            if not query.text:
                return Command.NOOP
            self._state = SearchState(query=query.backspace())
            return Command.QUERY_CHANGED
        if event.is_character:
            self._state = SearchState(query=query.insert(event.code))
            return Command.QUERY_CHANGED
        return Command.NOOP
