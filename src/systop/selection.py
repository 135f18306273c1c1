"""Cursor over the filtered process list."""


class SelectionState:
    """
    Row cursor that stays inside the current filtered list.

    The cursor is None exactly when the list is empty; otherwise it is a
    valid index. Call clamp() whenever the list length may have changed.
    """

    def __init__(self, cursor: int | None = None) -> None:
        self._cursor = cursor
        self._length = 0

    @property
    def cursor(self) -> int | None:
        """Current row index, or None when there are no rows."""
        return self._cursor

    def clamp(self, length: int) -> int | None:
        """Fit the cursor to a list of ``length`` rows and return it."""
        self._length = length
        if length <= 0:
            self._cursor = None
        elif self._cursor is None:
            self._cursor = 0
        else:
            self._cursor = min(max(self._cursor, 0), length - 1)
        return self._cursor

    def select_next(self) -> int | None:
        """Move down one row, stopping at the last row."""
        if self._length <= 0:
            return self.clamp(self._length)
        if self._cursor is None:
            self._cursor = 0
        else:
            self._cursor = min(self._cursor + 1, self._length - 1)
        return self._cursor

    def select_previous(self) -> int | None:
        """Move up one row, stopping at the first row."""
        if self._length <= 0:
            return self.clamp(self._length)
        if self._cursor is None:
            self._cursor = 0
        else:
            self._cursor = max(self._cursor - 1, 0)
        return self._cursor
