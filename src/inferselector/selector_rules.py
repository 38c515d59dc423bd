from __future__ import annotations

import fnmatch
from math import log2
import re
from typing import Callable, Iterable, Union

from .errors import MalformedInputError
from .models import Usefulness
from .selector_tokens import tokenize_selector

# Attributes whose values are expected to be unique on a page.
UNIQUE_ATTRIBUTES: tuple[str, ...] = (
    "id",
    "name",
    "role",
    "data-cy",
    "data-testid",
    "data-id",
    "data-test",
    "data-test-id",
)

# Markers the host extension writes into pages it modifies.
STARTER_DATA_ATTR = "data-pb-extension-point"
MARKER_DATA_ATTR = "data-pb-uuid"
CONTENT_READY_ATTR = "data-pb-ready"

SelectorPattern = Union[str, re.Pattern[str], Callable[[str], bool]]

RANDOM_THRESHOLD = 0.5
LONG_TOKEN_LENGTH = 16
ENTROPY_FLOOR = 4.0
ENTROPY_SPAN = 0.5

_SUSPICIOUS_PATTERNS = (
    re.compile(r"[A-Za-z]\d+[A-Za-z]"),
    re.compile(r"^[.#][-_]"),
    re.compile(r"[-_]$"),
)
_CONSONANT_RUN = re.compile(r"[bcdfghjklmnpqrstvwxz]{5,}", re.IGNORECASE)
_VOWEL_RUN = re.compile(r"[aeiou]{4,}", re.IGNORECASE)


def attribute_selector_regex(*attributes: str) -> re.Pattern[str]:
    """Match attribute selectors such as ``[name='x']`` or ``[name]`` for the given names."""
    alternatives = "|".join(rf"^\[{re.escape(attribute)}(=|]$)" for attribute in attributes)
    return re.compile(alternatives)


UNSTABLE_SELECTORS: tuple[SelectorPattern, ...] = (
    # Ember component ids
    re.compile(r"#ember"),
    # Vue scoped style attributes
    re.compile(r"^\[data-v-"),
    # Angular emulated encapsulation
    re.compile(r"^\[_ngcontent-"),
    re.compile(r"^\[_nghost-"),
    attribute_selector_regex(STARTER_DATA_ATTR, MARKER_DATA_ATTR, CONTENT_READY_ATTR, "style"),
)


def normalize_space(value: str | None, limit: int = 200) -> str:
    if not value:
        return ""
    compact = re.sub(r"\s+", " ", str(value)).strip()
    return compact[:limit] if compact else ""


def shannon_entropy(value: str) -> float:
    text = value.strip()
    if not text:
        return 0.0
    total = len(text)
    frequencies: dict[str, int] = {}
    for char in text:
        frequencies[char] = frequencies.get(char, 0) + 1

    entropy = 0.0
    for count in frequencies.values():
        probability = count / total
        entropy -= probability * log2(probability)
    return entropy


def digit_ratio(value: str) -> float:
    alnum = [char for char in value if char.isalnum()]
    if not alnum:
        return 0.0
    digits = sum(1 for char in alnum if char.isdigit())
    return digits / len(alnum)


def matches_any_pattern(value: str, patterns: Iterable[SelectorPattern | None]) -> bool:
    """String patterns are wildcard globs (``*``), compiled patterns are searched."""
    for pattern in patterns:
        if pattern is None:
            continue
        if isinstance(pattern, str):
            if value == pattern or fnmatch.fnmatchcase(value, pattern):
                return True
        elif isinstance(pattern, re.Pattern):
            if pattern.search(value):
                return True
        elif pattern(value):
            return True
    return False


def compile_pattern(value: str) -> SelectorPattern:
    """``/regex/`` strings become compiled patterns, anything else stays a glob."""
    if len(value) >= 2 and value.startswith("/") and value.endswith("/"):
        return re.compile(value[1:-1])
    return value


def _strip_prefix(token: str) -> str:
    return token[1:] if token[:1] in (".", "#") else token


def _case_transition_factor(body: str) -> float:
    # Uppercase runs and the first lower-to-upper flip are not counted.
    case_flips = 0
    transitions = 0
    for previous, current in zip(body, body[1:]):
        if previous.islower() and current.isupper():
            case_flips += 1
        elif previous.isalpha() and current.isdigit():
            transitions += 1
        elif previous.isdigit() and current.isalpha():
            transitions += 1
    transitions += max(0, case_flips - 1)
    return min(1.0, transitions / len(body) * 3)


def _pronounceability_factor(body: str) -> float:
    letters = "".join(char for char in body if char.isalpha()).lower()
    longest = max((len(run) for run in _CONSONANT_RUN.findall(letters)), default=0)
    score = 0.0
    if longest >= 6:
        score = 0.6
    elif longest >= 5:
        score = 0.4
    if _VOWEL_RUN.search(letters):
        score = max(score, 0.35)
    return score


def _entropy_factor(body: str) -> float:
    if len(body) < LONG_TOKEN_LENGTH:
        return 0.0
    entropy = shannon_entropy(body.lower())
    return max(0.0, min(1.0, (entropy - ENTROPY_FLOOR) / ENTROPY_SPAN))


def random_detector_factor(token: str) -> float:
    """Noisy-or combination of independent "looks generated" signals, 0..1."""
    body = _strip_prefix(token)
    if len(body) < 2:
        return 0.0
    factors = (
        min(1.0, digit_ratio(body) * 2),
        _case_transition_factor(body),
        _pronounceability_factor(body),
        _entropy_factor(body),
    )
    remaining = 1.0
    for factor in factors:
        remaining *= 1.0 - factor
    return round(1.0 - remaining, 2)


def letters_factor(token: str) -> float:
    if not token:
        return 0.0
    letters = sum(1 for char in token if char.isalpha())
    return round(1 - letters / len(token), 2)


def is_suspicious(token: str) -> bool:
    return any(pattern.search(token) for pattern in _SUSPICIOUS_PATTERNS)


def guess_usefulness(token: str) -> Usefulness:
    detector = random_detector_factor(token)
    letters = letters_factor(token)
    suspicious = is_suspicious(token)
    try:
        groups = tokenize_selector(token)
    except MalformedInputError:
        return Usefulness(token, detector, letters, suspicious, is_random=False)
    tag_only = len(groups) == 1 and len(groups[0]) == 1 and groups[0][0].kind == "tag"
    looks_random = suspicious or letters >= RANDOM_THRESHOLD or detector >= RANDOM_THRESHOLD
    return Usefulness(
        string=token,
        detector_factor=detector,
        letters_factor=letters,
        is_suspicious=suspicious,
        is_random=looks_random and not tag_only,
    )


def is_random_string(value: str) -> bool:
    """Classify a bare class or id value the way a class selector would be classified."""
    token = value if value[:1] in (".", "#") else f".{value}"
    return guess_usefulness(token).is_random
