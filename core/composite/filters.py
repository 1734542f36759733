"""
Composite Scope — LDAP Filters
=================================
RFC 1960 style filters over service properties, e.g.

    (&(objectClass=org.example.Greeter)(language=en*))

Supported operators: & | ! = ~= >= <= presence (=*) and substrings (a*b).
Keys match case-insensitively. Multi-valued properties match if any
element matches.

Parsing raises InvalidFilterError. Matching never raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from core.composite.versions import InvalidVersionError, Version


class InvalidFilterError(ValueError):
    """Filter text is malformed."""

    def __init__(self, text: str, position: int, reason: str):
        self.text = text
        self.position = position
        self.reason = reason
        super().__init__(
            f"Invalid filter '{text}' at position {position}: {reason}"
        )


class FilterOp:
    AND = "&"
    OR = "|"
    NOT = "!"
    EQUAL = "="
    APPROX = "~="
    GREATER = ">="
    LESS = "<="
    PRESENT = "=*"
    SUBSTRING = "*="


# ══════════════════════════════════════════════════════════════
# FILTER TREE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Filter:
    """
    Immutable parsed filter node.

    Composite nodes (AND/OR/NOT) use `operands`; item nodes use
    `attribute` + `value` (`value` is a tuple of substring pieces for
    SUBSTRING, where None marks a leading/trailing wildcard).
    """

    op: str
    attribute: str = ""
    value: Any = None
    operands: Tuple["Filter", ...] = ()
    text: str = ""

    @classmethod
    def parse(cls, text: str) -> "Filter":
        if not isinstance(text, str) or not text.strip():
            raise InvalidFilterError(str(text), 0, "filter must be non-empty")
        parser = _FilterParser(text.strip())
        return parser.parse()

    def match(self, properties: Optional[Mapping[str, Any]]) -> bool:
        lookup = _case_insensitive(properties)
        return self._match(lookup)

    def _match(self, lookup: Mapping[str, Any]) -> bool:
        if self.op == FilterOp.AND:
            return all(f._match(lookup) for f in self.operands)
        if self.op == FilterOp.OR:
            return any(f._match(lookup) for f in self.operands)
        if self.op == FilterOp.NOT:
            return not self.operands[0]._match(lookup)

        key = self.attribute.lower()
        if key not in lookup:
            return False
        if self.op == FilterOp.PRESENT:
            return True

        value = lookup[key]
        if isinstance(value, (list, tuple, set, frozenset)):
            return any(self._compare(v) for v in value)
        return self._compare(value)

    def _compare(self, actual: Any) -> bool:
        if actual is None:
            return False
        if self.op == FilterOp.SUBSTRING:
            return _match_substring(str(actual), self.value)
        if self.op == FilterOp.APPROX:
            return _normalize(str(actual)) == _normalize(self.value)

        try:
            left, right = _coerce(actual, self.value)
        except (ValueError, InvalidVersionError):
            return False

        if self.op == FilterOp.EQUAL:
            return left == right
        if self.op == FilterOp.GREATER:
            return left >= right
        if self.op == FilterOp.LESS:
            return left <= right
        return False

    def __str__(self) -> str:
        return self.text


def _case_insensitive(properties: Optional[Mapping[str, Any]]) -> dict:
    if not properties:
        return {}
    return {str(k).lower(): v for k, v in properties.items()}


def _normalize(value: str) -> str:
    return "".join(value.split()).lower()


def _coerce(actual: Any, expected: str) -> tuple:
    """Convert the filter operand to the type of the property value."""
    if isinstance(actual, bool):
        return actual, expected.strip().lower() == "true"
    if isinstance(actual, int):
        return actual, int(expected.strip())
    if isinstance(actual, float):
        return actual, float(expected.strip())
    if isinstance(actual, Version):
        return actual, Version.parse(expected)
    return str(actual), expected


def _match_substring(actual: str, pieces: Tuple[Optional[str], ...]) -> bool:
    # pieces: (initial|None, any..., final|None)
    initial, *middle, final = pieces
    position = 0
    if initial is not None:
        if not actual.startswith(initial):
            return False
        position = len(initial)
    for piece in middle:
        index = actual.find(piece, position)
        if index < 0:
            return False
        position = index + len(piece)
    if final is not None:
        return len(actual) - len(final) >= position and actual.endswith(final)
    return True


# ══════════════════════════════════════════════════════════════
# PARSER
# ══════════════════════════════════════════════════════════════

class _FilterParser:
    def __init__(self, text: str):
        self._text = text
        self._pos = 0

    def parse(self) -> Filter:
        result = self._parse_filter()
        self._skip_ws()
        if self._pos != len(self._text):
            self._fail("unexpected trailing characters")
        return result

    def _fail(self, reason: str):
        raise InvalidFilterError(self._text, self._pos, reason)

    def _skip_ws(self) -> None:
        while self._pos < len(self._text) and self._text[self._pos].isspace():
            self._pos += 1

    def _peek(self) -> str:
        if self._pos >= len(self._text):
            self._fail("unexpected end of filter")
        return self._text[self._pos]

    def _expect(self, char: str) -> None:
        if self._peek() != char:
            self._fail(f"expected '{char}'")
        self._pos += 1

    def _parse_filter(self) -> Filter:
        self._skip_ws()
        start = self._pos
        self._expect("(")
        self._skip_ws()
        char = self._peek()

        if char in (FilterOp.AND, FilterOp.OR):
            self._pos += 1
            operands = self._parse_list()
            if not operands:
                self._fail(f"'{char}' requires at least one operand")
            node = Filter(op=char, operands=tuple(operands))
        elif char == FilterOp.NOT:
            self._pos += 1
            operand = self._parse_filter()
            self._skip_ws()
            node = Filter(op=FilterOp.NOT, operands=(operand,))
        else:
            node = self._parse_item()

        self._expect(")")
        return Filter(
            op=node.op,
            attribute=node.attribute,
            value=node.value,
            operands=node.operands,
            text=self._text[start:self._pos],
        )

    def _parse_list(self) -> list:
        operands = []
        self._skip_ws()
        while self._peek() == "(":
            operands.append(self._parse_filter())
            self._skip_ws()
        return operands

    def _parse_item(self) -> Filter:
        attribute = self._parse_attribute()
        char = self._peek()

        if char == "~":
            self._pos += 1
            self._expect("=")
            return Filter(
                op=FilterOp.APPROX, attribute=attribute,
                value=self._parse_value(),
            )
        if char == ">":
            self._pos += 1
            self._expect("=")
            return Filter(
                op=FilterOp.GREATER, attribute=attribute,
                value=self._parse_value(),
            )
        if char == "<":
            self._pos += 1
            self._expect("=")
            return Filter(
                op=FilterOp.LESS, attribute=attribute,
                value=self._parse_value(),
            )
        if char != "=":
            self._fail("expected comparison operator")
        self._pos += 1

        pieces = self._parse_substring_pieces()
        if pieces == [None, None]:
            return Filter(op=FilterOp.PRESENT, attribute=attribute)
        if len(pieces) == 1:
            return Filter(
                op=FilterOp.EQUAL, attribute=attribute, value=pieces[0],
            )
        return Filter(
            op=FilterOp.SUBSTRING, attribute=attribute, value=tuple(pieces),
        )

    def _parse_attribute(self) -> str:
        self._skip_ws()
        start = self._pos
        while self._pos < len(self._text) and self._text[self._pos] not in "=~<>()":
            self._pos += 1
        attribute = self._text[start:self._pos].strip()
        if not attribute:
            self._fail("missing attribute name")
        return attribute

    def _parse_value(self) -> str:
        value, wildcard = self._read_chunk()
        if wildcard:
            self._fail("wildcard not allowed for this operator")
        return value

    def _read_chunk(self) -> tuple:
        """Read up to ')' or an unescaped '*'. Returns (text, hit_star)."""
        chars = []
        while True:
            char = self._peek()
            if char == ")":
                return "".join(chars), False
            if char == "*":
                self._pos += 1
                return "".join(chars), True
            if char == "(":
                self._fail("unescaped '(' in value")
            if char == "\\":
                self._pos += 1
                char = self._peek()
            chars.append(char)
            self._pos += 1

    def _parse_substring_pieces(self) -> list:
        # "abc"   → ["abc"]
        # "*"     → [None, None]
        # "a*b*c" → ["a", "b", "c"]; "*b*" → [None, "b", None]
        pieces = []
        while True:
            chunk, star = self._read_chunk()
            pieces.append(chunk)
            if not star:
                break
        if len(pieces) == 1:
            return pieces

        result = [pieces[0] or None]
        result.extend(p for p in pieces[1:-1] if p)
        result.append(pieces[-1] or None)
        return result
