"""SegmentedCodeCapture — state of a fixed-length one-time-passcode input.

The host UI renders ``n`` single-character boxes and forwards every
keystroke, backspace and paste here.  Each call returns a
:class:`CaptureSignal` telling the host where focus should go and whether
the code was just completed.  The engine knows nothing about whether a
code is *valid*; it only detects "all cells filled" and hands the digits
on.

Rules:
    - a cell is ``""`` or exactly one ASCII digit
    - non-numeric input and malformed pastes are ignored (no exception)
    - a mutation that leaves every cell filled emits the code once, through
      the returned signal and the optional ``on_complete`` callback; calls
      that change nothing never re-emit
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from followup_rules.constants import DEFAULT_CODE_LENGTH

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class CaptureSignal:
    """What the host should do after an input event.

    ``focus`` is the cell index to move focus to (None: leave focus
    alone).  ``completed`` carries the full code when this call completed
    the sequence.
    """

    focus: Optional[int] = None
    completed: Optional[str] = None


class SegmentedCodeCapture:
    """Cell array with focus-transfer and paste-distribution rules.

    Args:
        length: number of cells (default from ``FOLLOWUP_CODE_LENGTH``)
        on_complete: called with the code whenever a mutation completes it
    """

    def __init__(
        self,
        length: int = DEFAULT_CODE_LENGTH,
        on_complete: Callable[[str], None] | None = None,
    ) -> None:
        if length < 1:
            raise ValueError(f"code length must be positive, got {length}")
        self._length = length
        self._cells: list[str] = [""] * length
        self._on_complete = on_complete

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def length(self) -> int:
        return self._length

    @property
    def cells(self) -> tuple[str, ...]:
        return tuple(self._cells)

    @property
    def code(self) -> str:
        return "".join(self._cells)

    @property
    def is_full(self) -> bool:
        return all(self._cells)

    # ------------------------------------------------------------------
    # Input events
    # ------------------------------------------------------------------

    def set_digit(self, index: int, raw: str) -> CaptureSignal:
        """Handle a keystroke (or native deletion) in cell ``index``.

        Only the last character of ``raw`` is kept, so typing into a filled
        cell overwrites it.  An empty ``raw`` clears the cell.
        """
        self._check_index(index)

        if raw == "":
            self._cells[index] = ""
            return CaptureSignal()

        if not _DIGITS.fullmatch(raw):
            logger.debug("capture: ignoring non-numeric input %r at cell %d", raw, index)
            return CaptureSignal()

        digit = raw[-1]
        changed = self._cells[index] != digit
        self._cells[index] = digit

        focus = index + 1 if index < self._length - 1 else None
        return CaptureSignal(focus=focus, completed=self._emit_if_full(changed))

    def backspace_at(self, index: int) -> CaptureSignal:
        """Handle backspace in cell ``index``.

        A filled cell is left to the host's native deletion (which then
        arrives as ``set_digit(index, "")``).  On an empty cell focus moves
        back one cell; nothing is deleted.
        """
        self._check_index(index)
        if self._cells[index] == "" and index > 0:
            return CaptureSignal(focus=index - 1)
        return CaptureSignal()

    def paste_at(self, start: int, text: str) -> CaptureSignal:
        """Distribute pasted digits one per cell from ``start``.

        ``text`` is truncated to the cells remaining after ``start``; if the
        truncated text holds anything but digits, the paste is ignored.
        """
        self._check_index(start)
        chunk = text[: self._length - start]
        if not chunk or not _DIGITS.fullmatch(chunk):
            logger.debug("capture: ignoring paste %r at cell %d", text, start)
            return CaptureSignal()

        changed = False
        for offset, ch in enumerate(chunk):
            if self._cells[start + offset] != ch:
                self._cells[start + offset] = ch
                changed = True

        focus = self._length - 1 if self.is_full else start + len(chunk) - 1
        return CaptureSignal(focus=focus, completed=self._emit_if_full(changed))

    def reset(self) -> None:
        """Clear every cell (e.g. after the verifier rejected the code)."""
        self._cells = [""] * self._length

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _emit_if_full(self, changed: bool) -> str | None:
        if not changed or not self.is_full:
            return None
        code = self.code
        if self._on_complete is not None:
            self._on_complete(code)
        return code

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self._length:
            raise IndexError(f"cell index {index} out of range for length {self._length}")
