"""Tests for modal key handling."""

import pytest

from systop.input import (
    Command,
    InputMachine,
    KeyEvent,
    KeyKind,
    Mode,
    NormalState,
    SearchState,
)


def press(code: str, *modifiers: str) -> KeyEvent:
    return KeyEvent(code=code, modifiers=frozenset(modifiers))


def type_text(machine: InputMachine, text: str) -> None:
    for char in text:
        machine.handle(press(char))


class TestKeyEvent:
    """Tests for KeyEvent helpers."""

    def test_ctrl_c_detection(self):
        """Test ctrl+c is recognised in either case."""
        assert press("c", "ctrl").is_ctrl_c
        assert press("C", "ctrl").is_ctrl_c
        assert not press("c").is_ctrl_c

    def test_character_detection(self):
        """Test only printable single characters count as text."""
        assert press("a").is_character
        assert press(" ").is_character
        assert not press("escape").is_character
        assert not press("a", "ctrl").is_character


class TestNormalMode:
    """Tests for navigation mode."""

    def test_initial_state(self):
        """Test the machine starts in Normal mode with an empty query."""
        machine = InputMachine()
        assert machine.mode is Mode.NORMAL
        assert isinstance(machine.state, NormalState)
        assert machine.query.text == ""

    @pytest.mark.parametrize("code", ["j", "down"])
    def test_down_keys(self, code):
        """Test j and Down move the cursor down."""
        assert InputMachine().handle(press(code)) is Command.CURSOR_DOWN

    @pytest.mark.parametrize("code", ["k", "up"])
    def test_up_keys(self, code):
        """Test k and Up move the cursor up."""
        assert InputMachine().handle(press(code)) is Command.CURSOR_UP

    @pytest.mark.parametrize("event", [press("q"), press("escape"), press("c", "ctrl")])
    def test_quit_keys(self, event):
        """Test q, Esc and ctrl+c quit from Normal mode."""
        assert InputMachine().handle(event) is Command.QUIT

    def test_unknown_key_is_noop(self):
        """Test unbound keys do nothing."""
        machine = InputMachine()
        assert machine.handle(press("x")) is Command.NOOP
        assert machine.handle(press("f5")) is Command.NOOP
        assert machine.handle(press("j", "ctrl")) is Command.NOOP
        assert machine.mode is Mode.NORMAL

    def test_release_events_ignored(self):
        """Test key releases are never acted on."""
        machine = InputMachine()
        event = KeyEvent(code="q", kind=KeyKind.RELEASE)

        assert machine.handle(event) is Command.NOOP

    def test_s_enters_search(self):
        """Test s switches to Search mode with an active query."""
        machine = InputMachine()

        assert machine.handle(press("s")) is Command.MODE_CHANGED
        assert machine.mode is Mode.SEARCH
        assert isinstance(machine.state, SearchState)
        assert machine.query.active is True


class TestSearchMode:
    """Tests for text entry mode."""

    def test_characters_append(self):
        """Test typed characters build the query."""
        machine = InputMachine()
        machine.handle(press("s"))

        assert machine.handle(press("p")) is Command.QUERY_CHANGED
        type_text(machine, "y")

        assert machine.query.text == "py"

    def test_navigation_letters_are_text(self):
        """Test j, k, s and q are typed, not interpreted, while searching."""
        machine = InputMachine()
        machine.handle(press("s"))

        type_text(machine, "jksq")

        assert machine.query.text == "jksq"
        assert machine.mode is Mode.SEARCH

    def test_backspace(self):
        """Test backspace removes the last character."""
        machine = InputMachine()
        machine.handle(press("s"))
        type_text(machine, "abc")

        assert machine.handle(press("backspace")) is Command.QUERY_CHANGED
        assert machine.query.text == "ab"

    def test_backspace_on_empty_is_noop(self):
        """Test backspace with no text does nothing."""
        machine = InputMachine()
        machine.handle(press("s"))

        assert machine.handle(press("backspace")) is Command.NOOP
        assert machine.query.text == ""

    @pytest.mark.parametrize("code", ["escape", "enter"])
    def test_leave_search_keeps_text(self, code):
        """Test Esc and Enter return to Normal mode with the text kept."""
        machine = InputMachine()
        machine.handle(press("s"))
        type_text(machine, "fire")

        assert machine.handle(press(code)) is Command.MODE_CHANGED
        assert machine.mode is Mode.NORMAL
        assert machine.query.text == "fire"
        assert machine.query.active is False

    def test_reentering_search_continues_text(self):
        """Test the query persists across Search sessions."""
        machine = InputMachine()
        machine.handle(press("s"))
        type_text(machine, "fi")
        machine.handle(press("escape"))
        machine.handle(press("s"))
        type_text(machine, "re")

        assert machine.query.text == "fire"

    def test_ctrl_c_quits_from_search(self):
        """Test ctrl+c quits while searching."""
        machine = InputMachine()
        machine.handle(press("s"))

        assert machine.handle(press("c", "ctrl")) is Command.QUIT

    def test_unknown_named_key_is_noop(self):
        """Test non-text keys leave the query alone."""
        machine = InputMachine()
        machine.handle(press("s"))
        type_text(machine, "a")

        assert machine.handle(press("f1")) is Command.NOOP
        assert machine.query.text == "a"
