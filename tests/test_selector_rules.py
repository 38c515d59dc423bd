import re

import pytest

from inferselector.selector_rules import (
    attribute_selector_regex,
    compile_pattern,
    digit_ratio,
    guess_usefulness,
    is_random_string,
    is_suspicious,
    letters_factor,
    matches_any_pattern,
    random_detector_factor,
)


@pytest.mark.parametrize("token", [".Nav-item", ".navItem", ".contacts", ".titleline", "#grandparent"])
def test_readable_tokens_are_not_random(token: str) -> None:
    assert guess_usefulness(token).is_random is False


@pytest.mark.parametrize("token", [".ePGuZuxBTv9BWrjZL4l3", ".mt-3", "#r4nd0m", ".-hidden", ".label_"])
def test_generated_tokens_are_random(token: str) -> None:
    assert guess_usefulness(token).is_random is True


def test_tag_only_tokens_are_never_random() -> None:
    usefulness = guess_usefulness("h1")
    assert usefulness.is_random is False
    assert usefulness.string == "h1"


def test_untokenizable_input_is_treated_as_not_random() -> None:
    usefulness = guess_usefulness("a[")
    assert usefulness.is_random is False


def test_usefulness_factors_are_rounded_and_bounded() -> None:
    usefulness = guess_usefulness(".ePGuZuxBTv9BWrjZL4l3")
    assert 0.0 <= usefulness.detector_factor <= 1.0
    assert 0.0 <= usefulness.letters_factor <= 1.0
    assert usefulness.letters_factor == round(usefulness.letters_factor, 2)
    assert usefulness.is_suspicious is True


def test_letters_factor_counts_non_letters() -> None:
    assert letters_factor(".mt-3") == 0.6
    assert letters_factor("abc") == 0.0
    assert letters_factor("") == 0.0


def test_suspicious_patterns() -> None:
    assert is_suspicious(".r4nd0m")
    assert is_suspicious("#_private")
    assert is_suspicious(".trailing-")
    assert not is_suspicious(".Nav-item")


def test_random_detector_ignores_short_tokens() -> None:
    assert random_detector_factor(".a") == 0.0
    assert random_detector_factor(".x1") >= 0.5


def test_digit_ratio_over_alphanumerics() -> None:
    assert digit_ratio("ab12") == 0.5
    assert digit_ratio("--") == 0.0


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("iauoff23", True),
        ("asij340snlslnakdi9", True),
        ("aksjhd93rqansld00s", True),
        ("i3349fj9", True),
        ("grandparent", False),
        ("parent", False),
        ("zoolander", False),
        ("queue", False),
        ("iAmAUnique", False),
    ],
)
def test_is_random_string_classifies_bare_values(value: str, expected: bool) -> None:
    assert is_random_string(value) is expected


def _assert_attribute_regex(regex: re.Pattern[str], attribute: str) -> None:
    assert regex.search(f"[{attribute}]")
    assert regex.search(f"[{attribute}=anything]")
    assert regex.search(f"[{attribute}='anything']")

    assert not regex.search(f"[no{attribute}]")
    assert not regex.search(f"[no-{attribute}]")
    assert not regex.search(f"[{attribute}d]")
    assert not regex.search(f"[{attribute}-user]")
    assert not regex.search(f"[{attribute}]:checked")


def test_attribute_selector_regex() -> None:
    single = attribute_selector_regex("name")
    _assert_attribute_regex(single, "name")
    assert single.pattern == r"^\[name(=|]$)"

    multiple = attribute_selector_regex("name", "aria-label")
    _assert_attribute_regex(multiple, "name")
    _assert_attribute_regex(multiple, "aria-label")


def test_matches_any_pattern_kinds() -> None:
    patterns = ["#exact", ".btn-*", re.compile(r"^\[data-v-"), lambda value: value.endswith("!"), None]
    assert matches_any_pattern("#exact", patterns)
    assert matches_any_pattern(".btn-primary", patterns)
    assert matches_any_pattern("[data-v-12ab]", patterns)
    assert matches_any_pattern("hey!", patterns)
    assert not matches_any_pattern(".card", patterns)


def test_compile_pattern_slash_delimited_regex() -> None:
    compiled = compile_pattern("/^\\.slds-/")
    assert isinstance(compiled, re.Pattern)
    assert compiled.search(".slds-card")
    assert compile_pattern(".static-*") == ".static-*"


@pytest.mark.parametrize("token", [".HTMLParser", ".ABC", ".getElementById"])
def test_acronyms_and_camel_case_are_not_random(token: str) -> None:
    assert guess_usefulness(token).is_random is False


def test_repeated_case_flips_look_random() -> None:
    assert random_detector_factor(".xKqTzLm") >= 0.5
    assert guess_usefulness(".xKqTzLm").is_random is True
