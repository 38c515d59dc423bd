from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import re
from typing import Mapping
from urllib.parse import urlsplit

from .errors import InvalidPatternError

COMPONENTS: tuple[str, ...] = ("protocol", "username", "password", "hostname", "port", "pathname", "search", "hash")

DEFAULT_PORTS = {"http": "80", "https": "443", "ws": "80", "wss": "443", "ftp": "21"}

_SEGMENT_DEFAULTS = {"hostname": r"[^.]+", "pathname": r"[^/]+"}
_CASE_INSENSITIVE = frozenset({"protocol", "hostname"})
_NAME = re.compile(r"[A-Za-z_$][\w$]*")
_MODIFIERS = "?+*"
_PROTOCOL = re.compile(r"^([A-Za-z*][A-Za-z0-9+.\-*]*)://")
_HOST_PORT = re.compile(r"^(?P<hostname>.*?)(?::(?P<port>\d+|\*))?$")


class _PatternSyntaxError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class CompiledURLPattern:
    source: str | Mapping[str, str]
    components: tuple[tuple[str, re.Pattern[str]], ...]

    def test(self, url: str) -> bool:
        values = url_components(url)
        return all(regex.fullmatch(values[name]) for name, regex in self.components)


def url_components(url: str) -> dict[str, str]:
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    try:
        port = str(parts.port) if parts.port is not None else ""
    except ValueError:
        port = ""
    if DEFAULT_PORTS.get(scheme) == port:
        port = ""
    return {
        "protocol": scheme,
        "username": parts.username or "",
        "password": parts.password or "",
        "hostname": (parts.hostname or "").lower(),
        "port": port,
        "pathname": parts.path or ("/" if parts.netloc else ""),
        "search": parts.query,
        "hash": parts.fragment,
    }


def compile_url_pattern(pattern: str | Mapping[str, str]) -> CompiledURLPattern:
    """Compile a URLPattern-style string or component mapping.

    Raises ``InvalidPatternError`` naming the component key for mappings.
    """
    if isinstance(pattern, str):
        return _compile_string(pattern)

    compiled: list[tuple[str, re.Pattern[str]]] = []
    for key, value in pattern.items():
        if key not in COMPONENTS:
            raise InvalidPatternError(f"Unknown URL pattern key {key!r}", pattern=pattern, key=key)
        try:
            compiled.append((key, compile_component(str(value), key)))
        except _PatternSyntaxError as exc:
            raise InvalidPatternError(
                f"Pattern for {key} not recognized as valid pattern: {value} ({exc})",
                pattern=pattern,
                key=key,
            ) from exc
    return CompiledURLPattern(dict(pattern), tuple(compiled))


def url_matches_url_patterns(patterns: list[str | Mapping[str, str]], url: str) -> bool:
    matched = False
    for pattern in patterns:
        if compile_url_pattern(pattern).test(url):
            matched = True
    return matched


@lru_cache(maxsize=256)
def _compile_string(pattern: str) -> CompiledURLPattern:
    try:
        parts = split_pattern_string(pattern)
        compiled = tuple((key, compile_component(value, key)) for key, value in parts.items())
    except _PatternSyntaxError as exc:
        raise InvalidPatternError(f"URL pattern not recognized as valid pattern: {pattern} ({exc})", pattern=pattern) from exc
    return CompiledURLPattern(pattern, compiled)


def split_pattern_string(pattern: str) -> dict[str, str]:
    """Split an absolute URL pattern into components; unspecified ones are wildcards."""
    match = _PROTOCOL.match(pattern)
    if match is None:
        raise _PatternSyntaxError("expected an absolute pattern such as https://example.com/*")
    result = {name: "*" for name in COMPONENTS}
    result["protocol"] = match.group(1)

    rest = pattern[match.end():]
    rest, hash_part = _split_top_level(rest, "#")
    rest, search_part = _split_top_level(rest, "?")
    authority_end = _find_top_level(rest, "/")
    authority = rest if authority_end < 0 else rest[:authority_end]
    result["pathname"] = "/" if authority_end < 0 else rest[authority_end:]
    if search_part is not None:
        result["search"] = search_part
    if hash_part is not None:
        result["hash"] = hash_part

    if "@" in authority:
        userinfo, _, authority = authority.rpartition("@")
        username, _, password = userinfo.partition(":")
        result["username"] = username
        result["password"] = password or "*"
    host_port = _HOST_PORT.match(authority)
    assert host_port is not None
    if not host_port.group("hostname"):
        raise _PatternSyntaxError("missing hostname")
    result["hostname"] = host_port.group("hostname")
    result["port"] = host_port.group("port") or ""
    return result


def _find_top_level(text: str, separator: str) -> int:
    depth = 0
    index = 0
    while index < len(text):
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if char in "({":
            depth += 1
        elif char in ")}":
            depth -= 1
        elif char == separator and depth == 0:
            modifier = separator == "?" and index > 0 and (text[index - 1] in ")}*" or _ends_param(text[:index]))
            if not modifier:
                return index
        index += 1
    return -1


def _ends_param(prefix: str) -> bool:
    return re.search(r":[A-Za-z_$][\w$]*$", prefix) is not None


def _split_top_level(text: str, separator: str) -> tuple[str, str | None]:
    index = _find_top_level(text, separator)
    if index < 0:
        return text, None
    return text[:index], text[index + 1:]


def compile_component(pattern: str, component: str) -> re.Pattern[str]:
    segment = _SEGMENT_DEFAULTS.get(component, r".+")
    body = _translate(pattern, segment, component == "pathname")
    flags = re.DOTALL | (re.IGNORECASE if component in _CASE_INSENSITIVE else 0)
    try:
        return re.compile(body, flags)
    except re.error as exc:
        raise _PatternSyntaxError(str(exc)) from exc


def _translate(pattern: str, segment: str, is_path: bool) -> str:
    parts: list[str] = []
    index = 0
    while index < len(pattern):
        char = pattern[index]
        part: str | None = None
        if char == "\\":
            if index + 1 >= len(pattern):
                raise _PatternSyntaxError("trailing escape")
            parts.append(re.escape(pattern[index + 1]))
            index += 2
            continue
        if char == ":":
            name = _NAME.match(pattern, index + 1)
            if name is None:
                raise _PatternSyntaxError(f"missing parameter name at {index}")
            index = name.end()
            body = segment
            if index < len(pattern) and pattern[index] == "(":
                body, index = _regex_group(pattern, index)
            part = f"(?:{body})"
        elif char == "(":
            body, index = _regex_group(pattern, index)
            part = f"(?:{body})"
        elif char == "*":
            part = "(?:.*)"
            index += 1
        elif char == "{":
            end = pattern.find("}", index)
            if end < 0:
                raise _PatternSyntaxError(f"unbalanced group at {index}")
            part = f"(?:{_translate(pattern[index + 1:end], segment, is_path)})"
            index = end + 1
        elif char in "})":
            raise _PatternSyntaxError(f"unexpected {char!r} at {index}")
        else:
            parts.append(re.escape(char))
            index += 1
            continue

        modifier = pattern[index] if index < len(pattern) and pattern[index] in _MODIFIERS else ""
        if modifier:
            index += 1
            if is_path and parts and parts[-1] == "/":
                parts.pop()
                part = f"(?:/{part})"
            part = f"(?:{part}){modifier}"
        parts.append(part)
    return "".join(parts)


def _regex_group(pattern: str, start: int) -> tuple[str, int]:
    depth = 0
    index = start
    while index < len(pattern):
        char = pattern[index]
        if char == "\\":
            index += 2
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                body = pattern[start + 1:index]
                if not body:
                    raise _PatternSyntaxError(f"empty regular expression group at {start}")
                try:
                    re.compile(body)
                except re.error as exc:
                    raise _PatternSyntaxError(f"invalid regular expression {body!r}: {exc}") from exc
                return body, index + 1
        index += 1
    raise _PatternSyntaxError(f"unbalanced parenthesis at {start}")
