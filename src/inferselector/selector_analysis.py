from __future__ import annotations

from . import dom
from .errors import MalformedInputError
from .models import Annotation
from .selector_rules import guess_usefulness
from .selector_tokens import tokenize_selector

INVALID_SELECTOR_MESSAGE = "Invalid selector."
RANDOM_SELECTOR_MESSAGE = (
    "Selector appears to contain generated or utility values. "
    "This may indicate a value that changes across page reloads or application updates."
)

# https://api.jquery.com/category/selectors/jquery-selector-extensions/
JQUERY_EXTENSIONS: tuple[str, ...] = (
    ":animated",
    ":button",
    ":checkbox",
    ":contains",
    ":eq",
    ":even",
    ":file",
    ":first",
    ":gt",
    ":header",
    ":hidden",
    ":image",
    ":input",
    ":last",
    ":lt",
    ":odd",
    ":parent",
    ":password",
    ":radio",
    ":reset",
    ":selected",
    ":submit",
    ":text",
    ":visible",
)


def find_jquery_extensions(selector: str) -> list[str]:
    # Plain substring search; may report extensions quoted inside attribute values.
    return [extension for extension in JQUERY_EXTENSIONS if extension in selector]


def is_parseable_selector(selector: str) -> bool:
    try:
        tokenize_selector(selector)
    except MalformedInputError:
        return False
    return True


def is_native_selector(selector: str) -> bool:
    return dom.is_valid_selector(selector) and not find_jquery_extensions(selector)


def analyze_selector(selector: str, *, watch: bool = False) -> list[Annotation]:
    """Annotations for an authored selector.

    Reports unparseable selectors as errors, jQuery extensions as info (or a
    warning in ``watch`` mode) and generated-looking tokens as warnings.
    """
    if not selector:
        return []

    annotations: list[Annotation] = []
    valid = is_parseable_selector(selector)
    if not valid:
        annotations.append(Annotation(INVALID_SELECTOR_MESSAGE, "error", selector))

    if guess_usefulness(selector).is_random:
        annotations.append(Annotation(RANDOM_SELECTOR_MESSAGE, "warning", selector))

    if valid and not is_native_selector(selector):
        extensions = find_jquery_extensions(selector)
        if watch:
            message = (
                "Using a non-native CSS selector in watch mode. "
                "Watching selectors that use jQuery extensions may slow down the page."
            )
        else:
            message = (
                "Using a non-native CSS selector. Selectors that use jQuery extensions "
                "may slow down the page if the element is not available on page load."
            )
        if extensions:
            noun = "extension" if len(extensions) == 1 else "extensions"
            message = f"{message} JQuery {noun} found: {', '.join(extensions)}"
        annotations.append(
            Annotation(message, "warning" if watch else "info", selector, details=tuple(extensions))
        )

    return annotations
