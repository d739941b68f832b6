"""Prometheus text exposition parser"""
import math
import re
from typing import Iterator, List, Optional, Tuple, Union

from .errors import ParseError
from .models import Label, MetadataEntry, MetadataKind, Sample, METRIC_NAME_LABEL


METRIC_NAME_RE = re.compile(r"[a-zA-Z_:][a-zA-Z0-9_:]*")
LABEL_NAME_RE = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")
METADATA_RE = re.compile(r"#[ \t]+(TYPE|HELP)(?=[ \t]|$)[ \t]*")
TOKEN_RE = re.compile(r"[^ \t]+")
TIMESTAMP_RE = re.compile(r"[+-]?[0-9]+")
INF_RE = re.compile(r"[+-]?(inf|infinity)", re.IGNORECASE)

METRIC_TYPES = frozenset({"counter", "gauge", "histogram", "summary", "untyped"})

# Escape sequences allowed inside quoted label values
LABEL_VALUE_ESCAPES = {"\\": "\\", '"': '"', "n": "\n"}

WHITESPACE = " \t"

Entry = Union[MetadataEntry, Sample]


class ExpositionParser:
    """Lazy, single-pass parser over one exposition payload.

    Iterating yields ``MetadataEntry`` and ``Sample`` objects in input order.
    The first malformed construct raises ``ParseError``; nothing after it is
    produced. The parser cannot be restarted once consumed.
    """

    def __init__(self, body: bytes):
        self.body = body
        self._entries = self._generate()

    def __iter__(self) -> "ExpositionParser":
        return self

    def __next__(self) -> Entry:
        return next(self._entries)

    def _generate(self) -> Iterator[Entry]:
        text = self._decode()
        for lineno, line in enumerate(text.split("\n"), start=1):
            if line.endswith("\r"):
                line = line[:-1]
            stripped = line.lstrip(WHITESPACE)
            if not stripped:
                continue

            offset = len(line) - len(stripped)
            if stripped.startswith("#"):
                entry = self._parse_comment(line, lineno, offset)
                if entry is not None:
                    yield entry
                continue

            yield self._parse_sample(line, lineno, offset)

    def _decode(self) -> str:
        try:
            return self.body.decode("utf-8")
        except UnicodeDecodeError as e:
            line_start = self.body.rfind(b"\n", 0, e.start) + 1
            raise ParseError(
                f"invalid UTF-8 in payload: {e.reason}",
                self.body.count(b"\n", 0, e.start) + 1,
                e.start - line_start + 1,
            ) from None

    def _parse_comment(self, line: str, lineno: int, pos: int) -> Optional[MetadataEntry]:
        match = METADATA_RE.match(line, pos)
        if not match:
            # Plain comment
            return None

        kind = MetadataKind(match.group(1))
        pos = match.end()
        name_match = METRIC_NAME_RE.match(line, pos)
        if not name_match:
            raise ParseError(f"expected metric name after {kind.value}", lineno, pos + 1)

        name = name_match.group()
        pos = name_match.end()
        if pos < len(line) and line[pos] not in WHITESPACE:
            raise ParseError(f"invalid metric name in {kind.value} line", lineno, pos + 1)

        if kind is MetadataKind.HELP:
            return MetadataEntry(kind, name, line[pos:].lstrip(WHITESPACE))

        tokens = list(TOKEN_RE.finditer(line, pos))
        if not tokens:
            raise ParseError(f"expected metric type after metric name {name!r}", lineno, len(line) + 1)
        metric_type = tokens[0].group()
        if metric_type not in METRIC_TYPES:
            raise ParseError(f"invalid metric type {metric_type!r}", lineno, tokens[0].start() + 1)
        if len(tokens) > 1:
            raise ParseError(f"unexpected token {tokens[1].group()!r} after metric type", lineno, tokens[1].start() + 1)
        return MetadataEntry(kind, name, metric_type)

    def _parse_sample(self, line: str, lineno: int, pos: int) -> Sample:
        name_match = METRIC_NAME_RE.match(line, pos)
        if not name_match:
            raise ParseError(f"invalid metric name starting at {line[pos]!r}", lineno, pos + 1)

        labels = [Label(METRIC_NAME_LABEL, name_match.group())]
        pos = name_match.end()
        if pos < len(line) and line[pos] == "{":
            pos = self._parse_label_block(line, lineno, pos + 1, labels)

        if pos >= len(line) or line[pos] not in WHITESPACE:
            if pos < len(line):
                raise ParseError(f"unexpected character {line[pos]!r} after metric", lineno, pos + 1)
            raise ParseError("expected value after metric", lineno, pos + 1)

        tokens = list(TOKEN_RE.finditer(line, pos))
        if not tokens:
            raise ParseError("expected value after metric", lineno, len(line) + 1)
        if len(tokens) > 2:
            raise ParseError(f"unexpected token {tokens[2].group()!r} after timestamp", lineno, tokens[2].start() + 1)

        value = self._parse_value(tokens[0].group(), lineno, tokens[0].start() + 1)
        timestamp = None
        if len(tokens) == 2:
            timestamp = self._parse_timestamp(tokens[1].group(), lineno, tokens[1].start() + 1)

        return Sample(labels=tuple(labels), value=value, timestamp=timestamp)

    def _parse_label_block(self, line: str, lineno: int, pos: int, labels: List[Label]) -> int:
        """Parse labels after '{' and return the position past the closing '}'"""
        length = len(line)
        while True:
            pos = _skip_whitespace(line, pos)
            if pos >= length:
                raise ParseError("unterminated label block", lineno, pos + 1)
            if line[pos] == "}":
                return pos + 1

            name_match = LABEL_NAME_RE.match(line, pos)
            if not name_match:
                raise ParseError(f"invalid label name starting at {line[pos]!r}", lineno, pos + 1)
            name = name_match.group()

            pos = _skip_whitespace(line, name_match.end())
            if pos >= length:
                raise ParseError("unterminated label block", lineno, pos + 1)
            if line[pos] != "=":
                raise ParseError(f"expected '=' after label name {name!r}", lineno, pos + 1)

            pos = _skip_whitespace(line, pos + 1)
            if pos >= length:
                raise ParseError("unterminated label block", lineno, pos + 1)
            if line[pos] != '"':
                raise ParseError(f"expected quoted value for label {name!r}", lineno, pos + 1)

            value, pos = self._parse_label_value(line, lineno, pos + 1)
            if name == METRIC_NAME_LABEL:
                raise ParseError("metric name given twice via __name__ label", lineno, name_match.start() + 1)
            if any(label.name == name for label in labels):
                raise ParseError(f"duplicate label name {name!r}", lineno, name_match.start() + 1)
            labels.append(Label(name, value))

            pos = _skip_whitespace(line, pos)
            if pos >= length:
                raise ParseError("unterminated label block", lineno, pos + 1)
            if line[pos] == ",":
                pos += 1
            elif line[pos] != "}":
                raise ParseError(f"expected ',' or '}}' after label {name!r}", lineno, pos + 1)

    def _parse_label_value(self, line: str, lineno: int, pos: int) -> Tuple[str, int]:
        """Parse a quoted label value starting after the opening quote"""
        chars = []
        length = len(line)
        while pos < length:
            char = line[pos]
            if char == '"':
                return "".join(chars), pos + 1
            if char == "\\":
                if pos + 1 >= length:
                    break
                escaped = LABEL_VALUE_ESCAPES.get(line[pos + 1])
                if escaped is None:
                    raise ParseError(f"malformed escape sequence '\\{line[pos + 1]}' in label value", lineno, pos + 1)
                chars.append(escaped)
                pos += 2
                continue
            chars.append(char)
            pos += 1
        raise ParseError("unterminated label value", lineno, pos + 1)

    def _parse_value(self, token: str, lineno: int, column: int) -> float:
        # float() accepts digit separators, the exposition format does not
        if "_" not in token:
            try:
                value = float(token)
            except ValueError:
                pass
            else:
                # Out-of-range literals overflow to inf instead of failing
                if not math.isinf(value) or INF_RE.fullmatch(token):
                    return value
        raise ParseError(f"invalid sample value {token!r}", lineno, column)

    def _parse_timestamp(self, token: str, lineno: int, column: int) -> int:
        if not TIMESTAMP_RE.fullmatch(token):
            raise ParseError(f"invalid timestamp {token!r}", lineno, column)
        return int(token)


def _skip_whitespace(line: str, pos: int) -> int:
    while pos < len(line) and line[pos] in WHITESPACE:
        pos += 1
    return pos


def iter_entries(body: bytes) -> Iterator[Entry]:
    """Parse an exposition payload into metadata entries and samples"""
    return ExpositionParser(body)
