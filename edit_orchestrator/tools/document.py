"""
Editor capability surface.

``EditorSurface`` is the contract the editor tools call into: a single
document addressed by flat character index. ``TextDocument`` is the
in-memory implementation used by the CLI, the HTTP bridge and the tests.
It tracks text, inline and block format spans, and the user's selection,
and records every mutation so a browser widget can replay them.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Union

logger = logging.getLogger(__name__)

FormatValue = Union[str, bool]


@dataclass(frozen=True)
class Selection:
    """Text selected by the user."""

    start: int
    length: int


@dataclass
class FormatSpan:
    """A format applied to a range of the document."""

    kind: str  # "inline" or "block"
    style: str
    index: int
    length: int
    value: FormatValue


class EditorSurface(Protocol):
    """Operations the editor tools may perform on a document."""

    @property
    def text(self) -> str: ...

    def insert_text(self, text: str, index: int) -> None: ...

    def delete_text(self, index: int, length: int) -> None: ...

    def rewrite_text(self, replacement_text: str, index: int, length: int) -> None: ...

    def format_inline(self, style: str, index: int, length: int, value: str) -> None: ...

    def format_block(self, style: str, index: int, length: int, value: str) -> None: ...

    def locate_text(self, text: str, occurrence: int) -> Optional[int]: ...

    def locate_place(self, place: str) -> int: ...

    def get_selection(self) -> Optional[Selection]: ...


def coerce_format_value(value: str) -> FormatValue:
    """Map the strings "true"/"false" to booleans, leave anything else alone."""
    if value == "true":
        return True
    if value == "false":
        return False
    return value


def _map_position(position: int, start: int, end: int) -> int:
    """Where ``position`` lands after deleting ``[start, end)``."""
    if position <= start:
        return position
    if position < end:
        return start
    return position - (end - start)


class TextDocument:
    """In-memory editor document."""

    def __init__(self, text: str = "", selection: Optional[Selection] = None) -> None:
        self._text = text
        self._spans: list[FormatSpan] = []
        self._selection: Optional[Selection] = None
        self._operations: list[dict[str, Any]] = []
        if selection is not None:
            self.select(selection.start, selection.length)

    @property
    def text(self) -> str:
        return self._text

    def __len__(self) -> int:
        return len(self._text)

    @property
    def spans(self) -> list[FormatSpan]:
        return list(self._spans)

    @property
    def operations(self) -> list[dict[str, Any]]:
        """Applied mutations, oldest first."""
        return [dict(op) for op in self._operations]

    # -- user side ---------------------------------------------------------

    def select(self, start: int, length: int) -> None:
        start = self._clamp_index(start)
        self._selection = Selection(start, self._clamp_length(start, length))

    def clear_selection(self) -> None:
        self._selection = None

    def get_selection(self) -> Optional[Selection]:
        if self._selection is None or self._selection.length == 0:
            return None
        return self._selection

    # -- mutations ---------------------------------------------------------

    def insert_text(self, text: str, index: int) -> None:
        if text.startswith("\n"):
            text = text[1:]
        index = self._clamp_index(index)
        self._insert(text, index)
        self._record("insert_text", index=index, text=text)

    def delete_text(self, index: int, length: int) -> None:
        index = self._clamp_index(index)
        length = self._clamp_length(index, length)
        self._delete(index, length)
        self._record("delete_text", index=index, length=length)

    def rewrite_text(self, replacement_text: str, index: int, length: int) -> None:
        index = self._clamp_index(index)
        length = self._clamp_length(index, length)
        self._delete(index, length)
        self._insert(replacement_text, index)
        self._record(
            "rewrite_text", index=index, length=length, text=replacement_text
        )

    def format_inline(self, style: str, index: int, length: int, value: str) -> None:
        index = self._clamp_index(index)
        length = self._clamp_length(index, length)
        coerced = coerce_format_value(value)
        self._spans.append(FormatSpan("inline", style, index, length, coerced))
        self._record(
            "format_inline", style=style, index=index, length=length, value=coerced
        )

    def format_block(self, style: str, index: int, length: int, value: str) -> None:
        """Apply a block format to every line touched by the range."""
        index = self._clamp_index(index)
        end = index + self._clamp_length(index, length)
        line_start = self._text.rfind("\n", 0, index) + 1
        line_end = self._text.find("\n", end)
        if line_end == -1:
            line_end = len(self._text)
        coerced = coerce_format_value(value)
        self._spans.append(
            FormatSpan("block", style, line_start, line_end - line_start, coerced)
        )
        self._record(
            "format_block",
            style=style,
            index=line_start,
            length=line_end - line_start,
            value=coerced,
        )

    # -- queries -----------------------------------------------------------

    def locate_text(self, text: str, occurrence: int) -> Optional[int]:
        """
        Find the ``occurrence``-th (1-based) match of ``text``.

        Scans left to right, resuming one character after the previous
        match, so overlapping matches count.

        Returns:
            The start index of the match, or None when there are fewer
            than ``occurrence`` matches.
        """
        if not text or occurrence < 1:
            return None
        index = -1
        for _ in range(occurrence):
            index = self._text.find(text, index + 1)
            if index == -1:
                return None
        return index

    def locate_place(self, place: str) -> int:
        if place == "beginning":
            return 0
        if place == "middle":
            return len(self._text) // 2
        if place == "end":
            return len(self._text)
        raise ValueError(f"Unknown place in editor: {place!r}")

    def formats_at(self, index: int) -> dict[str, FormatValue]:
        """Effective formats at ``index``; later spans win, False clears."""
        formats: dict[str, FormatValue] = {}
        for span in self._spans:
            if span.index <= index < span.index + span.length:
                if span.value is False:
                    formats.pop(span.style, None)
                else:
                    formats[span.style] = span.value
        return formats

    # -- internals ---------------------------------------------------------

    def _clamp_index(self, index: int) -> int:
        return max(0, min(int(index), len(self._text)))

    def _clamp_length(self, index: int, length: int) -> int:
        return max(0, min(int(length), len(self._text) - index))

    def _insert(self, text: str, index: int) -> None:
        if not text:
            return
        size = len(text)
        self._text = self._text[:index] + text + self._text[index:]
        for span in self._spans:
            if span.index >= index:
                span.index += size
            elif index < span.index + span.length:
                span.length += size
        if self._selection is not None:
            start, length = self._selection.start, self._selection.length
            if start >= index:
                start += size
            elif index < start + length:
                length += size
            self._selection = Selection(start, length)

    def _delete(self, index: int, length: int) -> None:
        if length <= 0:
            return
        end = index + length
        self._text = self._text[:index] + self._text[end:]
        kept = []
        for span in self._spans:
            span_start = _map_position(span.index, index, end)
            span_end = _map_position(span.index + span.length, index, end)
            if span_end > span_start:
                span.index, span.length = span_start, span_end - span_start
                kept.append(span)
        self._spans = kept
        if self._selection is not None:
            sel_start = _map_position(self._selection.start, index, end)
            sel_end = _map_position(
                self._selection.start + self._selection.length, index, end
            )
            self._selection = Selection(sel_start, sel_end - sel_start)

    def _record(self, op: str, **params: Any) -> None:
        logger.debug(f"Document {op} {params}")
        self._operations.append({"op": op, **params})
