"""
Buffered CSV writer.

Rows are kept in memory and rendered on demand. When a buffer limit and an
output path are both set, add_line() appends the buffer to the file once the
limit is reached and starts over with an empty buffer.

Values are never escaped: a value containing the quote character or the
column delimiter renders ambiguously.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

from .encoding import convert_encoding, start_encoder
from .errors import FlushFailed, InvalidEnclosureRule, UnsupportedEncoding
from .rules import (
    DEFAULT_COLUMN_DELIMITER,
    DEFAULT_ENCLOSURE_RULE,
    DEFAULT_LINE_DELIMITER,
    DEFAULT_MAX_BUFFERED_ROWS,
    OUTPUT_ENCODING,
    QUOTE,
    SUPPORTED_ENCODINGS,
    EnclosureRule,
    canonical_encoding,
)

logger = logging.getLogger(__name__)

PathType = Union[str, "os.PathLike[str]"]
Row = List[Any]


def _join_row(values, delimiter, quote, enclose: bool):
    if enclose:
        return quote + (quote + delimiter + quote).join(values) + quote
    return delimiter.join(values)


class CSVWriter:
    def __init__(
        self,
        output_path: Optional[PathType] = None,
        *,
        supported_encodings: Optional[Iterable[str]] = None,
    ) -> None:
        self._supported: FrozenSet[str] = (
            frozenset(supported_encodings) if supported_encodings is not None else SUPPORTED_ENCODINGS
        )
        self._rows: List[Row] = []
        self.reset_config()
        self._output_path = output_path

    # --- configuration ---

    def set_enclosure_rule(self, rule: Union[EnclosureRule, int]) -> "CSVWriter":
        if isinstance(rule, bool) or not isinstance(rule, int):
            raise InvalidEnclosureRule(rule)
        try:
            self._enclosure_rule = EnclosureRule(rule)
        except ValueError:
            raise InvalidEnclosureRule(rule) from None
        return self

    def get_enclosure_rule(self) -> EnclosureRule:
        return self._enclosure_rule

    def set_column_delimiter(self, delimiter: str) -> "CSVWriter":
        self._column_delimiter = delimiter
        return self

    def get_column_delimiter(self) -> str:
        return self._column_delimiter

    def set_line_delimiter(self, delimiter: str) -> "CSVWriter":
        self._line_delimiter = delimiter
        return self

    def get_line_delimiter(self) -> str:
        return self._line_delimiter

    def set_max_buffered_rows(self, count: int) -> "CSVWriter":
        """Rows to buffer before flushing to the output path. 0 means no limit."""
        self._max_buffered_rows = int(count)
        return self

    def get_max_buffered_rows(self) -> int:
        return self._max_buffered_rows

    def set_output_path(self, path: Optional[PathType]) -> "CSVWriter":
        self._output_path = path
        return self

    def get_output_path(self) -> Optional[PathType]:
        return self._output_path

    def set_encodings(self, source: str, target: str) -> "CSVWriter":
        """
        Convert rendered output from `source` to `target`.

        Both names must be known encodings ("UTF-8", "ISO-8859-1", ...);
        UnsupportedEncoding names the first one that is not.
        """
        resolved = []
        for name in (source, target):
            codec = canonical_encoding(name, self._supported)
            if codec is None:
                raise UnsupportedEncoding(name)
            resolved.append(codec)

        self._source_encoding, self._target_encoding = source, target
        self._source_codec, self._target_codec = resolved
        return self

    def get_encodings(self) -> Tuple[Optional[str], Optional[str]]:
        return self._source_encoding, self._target_encoding

    @property
    def converts(self) -> bool:
        return self._source_codec is not None and self._target_codec is not None

    @property
    def output_encoding(self) -> str:
        return self._target_codec if self.converts else OUTPUT_ENCODING

    def reset_config(self) -> "CSVWriter":
        self._column_delimiter = DEFAULT_COLUMN_DELIMITER
        self._line_delimiter = DEFAULT_LINE_DELIMITER
        self._enclosure_rule = DEFAULT_ENCLOSURE_RULE
        self._max_buffered_rows = DEFAULT_MAX_BUFFERED_ROWS
        self._output_path = None
        self._source_encoding = self._target_encoding = None
        self._source_codec = self._target_codec = None
        return self

    def clear_buffer(self) -> "CSVWriter":
        self._rows = []
        return self

    def reset(self) -> "CSVWriter":
        return self.reset_config().clear_buffer()

    # --- buffer ---

    @property
    def rows(self) -> Tuple[Row, ...]:
        return tuple(list(r) for r in self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def add_line(self, values: Sequence[Any]) -> "CSVWriter":
        """
        Append one row. Flushes to the output path (append mode) once the
        buffer limit is reached; raises FlushFailed and keeps the buffer if
        that write fails.
        """
        self._rows.append(list(values))
        if self._should_flush():
            self._flush()
        return self

    def add_lines(self, rows: Iterable[Sequence[Any]]) -> "CSVWriter":
        for values in rows:
            self.add_line(values)
        return self

    def _should_flush(self) -> bool:
        return (
            self._max_buffered_rows > 0
            and bool(self._output_path)
            and len(self._rows) >= self._max_buffered_rows
        )

    def _flush(self) -> None:
        path = self._output_path
        if not self.save():
            logger.error("buffer flush failed: %s (%d rows kept)", path, len(self._rows))
            raise FlushFailed(path)
        logger.debug("flushed %d rows to %s", len(self._rows), path)
        self.clear_buffer()

    # --- rendering ---

    def _text_value(self, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode(OUTPUT_ENCODING, errors="replace")
        return str(value)

    def _source_value(self, value: Any) -> Union[str, bytes]:
        # bytes values are taken to be in the source encoding already
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        return self._text_value(value)

    def _render_text(self) -> str:
        enclose = self._enclosure_rule == EnclosureRule.ALL
        lines = [
            _join_row([self._text_value(v) for v in row], self._column_delimiter, QUOTE, enclose)
            for row in self._rows
        ]
        return self._line_delimiter.join(lines)

    def _render_source_bytes(self) -> bytes:
        # one encoder for the whole payload so a byte-order mark is written once, up front
        encoder, preamble = start_encoder(self._source_codec)
        quote = QUOTE if self._enclosure_rule == EnclosureRule.ALL else ""
        parts = [preamble]

        def put(piece: Union[str, bytes]) -> None:
            parts.append(piece if isinstance(piece, bytes) else encoder.encode(piece))

        for i, row in enumerate(self._rows):
            if i:
                put(self._line_delimiter)
            put(quote)
            for j, value in enumerate(row):
                if j:
                    put(quote + self._column_delimiter + quote)
                put(self._source_value(value))
            put(quote)
        return b"".join(parts)

    def render_report(self) -> Tuple[bytes, Dict[str, Any]]:
        """Rendered bytes in the output encoding, plus the conversion report (empty without encodings)."""
        if not self.converts:
            return self._render_text().encode(OUTPUT_ENCODING), {}
        return convert_encoding(self._render_source_bytes(), self._source_codec, self._target_codec)

    def render_bytes(self) -> bytes:
        return self.render_report()[0]

    def render_csv(self) -> str:
        """Buffered rows as CSV text. Does not modify the buffer."""
        if not self.converts:
            return self._render_text()
        return self.render_bytes().decode(self._target_codec, errors="replace")

    # --- persistence ---

    def save(self, path: Optional[PathType] = None, append: bool = True) -> bool:
        """
        Write the rendered CSV plus one trailing line delimiter.

        Falls back to the configured output path. Returns False, without
        raising, when there is no path or the file cannot be written.
        The buffer is left as is.
        """
        target = path or self._output_path
        if not target:
            return False

        payload = self.render_bytes()
        encoder, preamble = start_encoder(self.output_encoding)
        suffix = encoder.encode(self._line_delimiter)
        if not payload:
            suffix = preamble + suffix
        try:
            with open(target, "ab" if append else "wb") as fh:
                fh.write(payload + suffix)
        except (OSError, ValueError) as exc:
            logger.warning("could not write %s: %s", target, exc)
            return False
        return True
