from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Literal

from .errors import MalformedInputError

TokenKind = Literal["tag", "universal", "id", "class", "attribute", "pseudo", "combinator"]

_ESCAPE = r"\\(?:[0-9a-fA-F]{1,6}[ \t\n\r\f]?|[^\n\r\f0-9a-fA-F])"
_NAME_START = rf"(?:[_a-zA-Z\u00a0-\U0010ffff]|{_ESCAPE})"
_NAME_CHAR = rf"(?:[-\w\u00a0-\U0010ffff]|{_ESCAPE})"
_IDENT = re.compile(rf"--{_NAME_CHAR}*|-?{_NAME_START}{_NAME_CHAR}*")
_NAME = re.compile(rf"{_NAME_CHAR}+")
_WHITESPACE = " \t\n\r\f"
_COMBINATORS = ">+~"


@dataclass(frozen=True, slots=True)
class SelectorToken:
    kind: TokenKind
    value: str


def tokenize_selector(selector: str) -> list[list[SelectorToken]]:
    """Split a selector list into groups of simple-selector and combinator tokens."""
    text = selector.strip()
    if not text:
        raise MalformedInputError("Selector is empty")

    groups: list[list[SelectorToken]] = []
    current: list[SelectorToken] = []
    position = 0
    length = len(text)

    while position < length:
        char = text[position]

        if char in _WHITESPACE:
            position = _skip_whitespace(text, position)
            if position < length and text[position] not in _COMBINATORS + "," and current:
                if current[-1].kind != "combinator":
                    current.append(SelectorToken("combinator", " "))
            continue

        if char in _COMBINATORS:
            if current and current[-1].kind == "combinator":
                if current[-1].value != " ":
                    raise MalformedInputError(f"Invalid selector: {selector}")
                current.pop()
            if not current:
                raise MalformedInputError(f"Invalid selector: {selector}")
            current.append(SelectorToken("combinator", char))
            position = _skip_whitespace(text, position + 1)
            continue

        if char == ",":
            groups.append(_close_group(current, selector))
            current = []
            position = _skip_whitespace(text, position + 1)
            continue

        if char in "#.":
            match = (_NAME if char == "#" else _IDENT).match(text, position + 1)
            if not match:
                raise MalformedInputError(f"Invalid selector: {selector}")
            current.append(SelectorToken("id" if char == "#" else "class", char + match.group(0)))
            position = match.end()
            continue

        if char == "[":
            end = _scan_balanced(text, position, "[", "]", selector)
            current.append(SelectorToken("attribute", text[position:end]))
            position = end
            continue

        if char == ":":
            start = position
            position += 2 if text.startswith("::", position) else 1
            match = _IDENT.match(text, position)
            if not match:
                raise MalformedInputError(f"Invalid selector: {selector}")
            position = match.end()
            if position < length and text[position] == "(":
                position = _scan_balanced(text, position, "(", ")", selector)
            current.append(SelectorToken("pseudo", text[start:position]))
            continue

        if char == "*":
            current.append(SelectorToken("universal", "*"))
            position += 1
            continue

        match = _IDENT.match(text, position)
        if not match:
            raise MalformedInputError(f"Invalid selector: {selector}")
        current.append(SelectorToken("tag", match.group(0)))
        position = match.end()

    groups.append(_close_group(current, selector))
    return groups


def token_count(selector: str) -> int:
    groups = tokenize_selector(selector)
    if len(groups) != 1:
        raise MalformedInputError(f"Expected exactly one selector, got {len(groups)}: {selector}")
    return len(groups[0])


def is_tag_only(selector: str) -> bool:
    try:
        groups = tokenize_selector(selector)
    except MalformedInputError:
        return False
    return len(groups) == 1 and len(groups[0]) == 1 and groups[0][0].kind == "tag"


def _skip_whitespace(text: str, position: int) -> int:
    while position < len(text) and text[position] in _WHITESPACE:
        position += 1
    return position


def _close_group(tokens: list[SelectorToken], selector: str) -> list[SelectorToken]:
    if tokens and tokens[-1].kind == "combinator" and tokens[-1].value == " ":
        tokens = tokens[:-1]
    if not tokens or tokens[-1].kind == "combinator":
        raise MalformedInputError(f"Invalid selector: {selector}")
    return tokens


def _scan_balanced(text: str, start: int, opening: str, closing: str, selector: str) -> int:
    depth = 0
    quote: str | None = None
    position = start
    while position < len(text):
        char = text[position]
        if char == "\\":
            position += 2
            continue
        if quote:
            if char == quote:
                quote = None
        elif char in "'\"":
            quote = char
        elif char == opening:
            depth += 1
        elif char == closing:
            depth -= 1
            if depth == 0:
                return position + 1
        position += 1
    raise MalformedInputError(f"Invalid selector: {selector}")
