from __future__ import annotations


class InferSelectorError(Exception):
    """Base class for errors raised deliberately by the engine."""


class BusinessError(InferSelectorError):
    """User-content or configuration error with an actionable message."""


class MalformedInputError(BusinessError, ValueError):
    pass


class InvalidSelectorError(BusinessError, ValueError):
    def __init__(self, selector: str, detail: str = "") -> None:
        self.selector = selector
        self.detail = detail
        message = f"Invalid selector: {selector}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class InvalidPatternError(BusinessError):
    def __init__(self, message: str, *, pattern: object, key: str | None = None) -> None:
        self.pattern = pattern
        self.key = key
        super().__init__(message)


class SelectorInferenceError(InferSelectorError):
    def __init__(self, message: str = "Automatic selector generation failed", *, tag_name: str = "") -> None:
        self.tag_name = tag_name
        super().__init__(message)
