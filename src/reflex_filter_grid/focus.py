"""Focus token and cursor tracking for filter inputs across re-renders.

When the grid's rows or loading flag change, the table re-renders and
the browser would normally drop focus from the filter input the user is
typing in.  :class:`FocusTracker` remembers *which* filter input was
focused (column key + filter key) and the last known cursor offset, so a
post-render effect can put focus and caret back.  The restore target is
looked up by element id (see :attr:`FocusToken.element_id`), never by
element identity, because the element itself is replaced.

State machine::

    BLURRED --focus--> FOCUSED --keystroke--> DIRTY --keystroke--> DIRTY
    FOCUSED/DIRTY --blur--> BLUR_PENDING --grace elapsed--> BLURRED
    BLUR_PENDING --focus (same compound filter)--> FOCUSED
    DIRTY --external re-render--> FOCUSED (same offset)
"""

import enum
from dataclasses import dataclass, replace

DEFAULT_BLUR_GRACE: float = 0.15


def filter_id(column_key: str, filter_key: str) -> str:
    """Identifier of one filter control: ``"<column>-<filter>"``."""
    return f"{column_key}-{filter_key}"


def filter_element_id(column_key: str, filter_key: str) -> str:
    """DOM id of the input rendered for a filter control."""
    return f"filter-{filter_id(column_key, filter_key)}"


def infer_cursor_offset(previous: str, current: str, fallback: int | None = None) -> int:
    """Infer where the caret sits after an edit turned *previous* into *current*.

    * Insertion -> just after the inserted characters.
    * Deletion -> at the deletion point.
    * Same length (replacement or no change) -> *fallback*, or the end
      of *current* when no fallback is known.

    Examples:
        ``infer_cursor_offset("abc", "abXc")`` -> ``3``
        ``infer_cursor_offset("abc", "abcd")`` -> ``4``
        ``infer_cursor_offset("abcd", "acd")`` -> ``1``
    """
    default = len(current) if fallback is None else max(0, min(fallback, len(current)))
    delta = len(current) - len(previous)
    if delta == 0:
        return default

    shared = min(len(previous), len(current))
    first_diff = shared
    for i in range(shared):
        if previous[i] != current[i]:
            first_diff = i
            break

    if delta > 0:
        return first_diff + delta
    return first_diff


class FocusState(enum.Enum):
    BLURRED = "blurred"
    FOCUSED = "focused"
    DIRTY = "dirty"
    BLUR_PENDING = "blur_pending"


@dataclass(frozen=True)
class FocusToken:
    """Which filter input holds focus, and where its caret is."""

    column_key: str
    filter_key: str
    offset: int = 0

    @property
    def filter_id(self) -> str:
        return filter_id(self.column_key, self.filter_key)

    @property
    def element_id(self) -> str:
        return filter_element_id(self.column_key, self.filter_key)

    def clamped(self, value_length: int) -> "FocusToken":
        """Copy with the offset limited to ``[0, value_length]``."""
        return replace(self, offset=max(0, min(self.offset, value_length)))


class FocusTracker:
    """Tracks the focused filter input of one grid.

    Args:
        blur_grace: Seconds a blur waits before it is committed, so focus
            can move to another control of the same compound filter.
    """

    def __init__(self, blur_grace: float = DEFAULT_BLUR_GRACE) -> None:
        self.blur_grace = blur_grace
        self.state: FocusState = FocusState.BLURRED
        self.token: FocusToken | None = None
        self._offsets: dict[str, int] = {}
        self._blur_seq = 0

    @property
    def has_focus(self) -> bool:
        return self.state in (FocusState.FOCUSED, FocusState.DIRTY)

    def focus(
        self,
        column_key: str,
        filter_key: str,
        offset: int | None = None,
        value_length: int = 0,
    ) -> FocusToken:
        """A filter input received focus; any pending blur is abandoned.

        Without an explicit *offset* the last offset recorded for this
        input is reused, or the end of its value on first focus.
        """
        self._blur_seq += 1
        fid = filter_id(column_key, filter_key)
        if offset is None:
            offset = self._offsets.get(fid, value_length)
        self._offsets[fid] = offset
        self.token = FocusToken(column_key, filter_key, offset)
        self.state = FocusState.FOCUSED
        return self.token

    def record_keystroke(
        self,
        column_key: str,
        filter_key: str,
        previous: str,
        current: str,
        cursor: int | None = None,
    ) -> FocusToken:
        """Record an edit of a filter input and the inferred caret offset.

        Args:
            column_key: Column owning the edited filter.
            filter_key: Key of the edited filter.
            previous: Value before the edit.
            current: Value after the edit.
            cursor: Caret position reported by the browser, if any.  Used
                when the edit does not change the value length.
        """
        if self.token is None or self.token.filter_id != filter_id(column_key, filter_key):
            self.focus(column_key, filter_key, value_length=len(previous))
        offset = infer_cursor_offset(previous, current, cursor)
        self._offsets[filter_id(column_key, filter_key)] = offset
        self.token = FocusToken(column_key, filter_key, offset)
        self.state = FocusState.DIRTY
        return self.token

    def begin_blur(self) -> int:
        """Start the blur grace period; returns the sequence to complete it with."""
        self._blur_seq += 1
        if self.state is not FocusState.BLURRED:
            self.state = FocusState.BLUR_PENDING
        return self._blur_seq

    def complete_blur(self, seq: int) -> bool:
        """Commit the blur started with *seq* unless focus came back meanwhile."""
        if seq != self._blur_seq or self.state is not FocusState.BLUR_PENDING:
            return False
        self.state = FocusState.BLURRED
        self.token = None
        return True

    def on_rerender(self, current_value: str | None) -> FocusToken | None:
        """Return the restore target after an external re-render.

        Only a focused (or dirty) input is restored; the offset is clamped
        to the length of the input's value after the re-render.
        """
        if not self.has_focus or self.token is None:
            return None
        self.state = FocusState.FOCUSED
        return self.token.clamped(len(current_value or ""))

    def reset(self) -> None:
        self._blur_seq += 1
        self.state = FocusState.BLURRED
        self.token = None
        self._offsets.clear()
