from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Literal, Mapping, Union

if TYPE_CHECKING:
    import re

    from bs4 import Tag

SelectorType = Literal["id", "tag", "class", "attribute", "nthoftype", "nthchild"]
AnnotationLevel = Literal["error", "warning", "info"]


@dataclass(frozen=True, slots=True)
class Usefulness:
    string: str
    detector_factor: float
    letters_factor: float
    is_suspicious: bool
    is_random: bool


@dataclass(frozen=True, slots=True)
class SelectorCandidate:
    selector: str
    token_count: int
    starts_with_unique: bool
    is_structural: bool
    preference: int


@dataclass(frozen=True, slots=True)
class ExtractedValue:
    attributes: Mapping[str, str]
    text: str


@dataclass(frozen=True, slots=True)
class RequiredSelector:
    selector: str
    kind: Literal["required"] = "required"


@dataclass(frozen=True, slots=True)
class SelectorTemplate:
    match_selector: str
    extraction_rules: tuple[tuple[str, str], ...]
    template: str
    kind: Literal["template"] = "template"


AncestorOverride = Union[RequiredSelector, SelectorTemplate]

# Templates are tried before required selectors on every ancestor.
OVERRIDE_PRIORITY: dict[str, int] = {"template": 0, "required": 1}

SitePredicate = Callable[["Tag", str], bool]


def _never(element: Tag, location: str) -> bool:
    return False


@dataclass(frozen=True, slots=True)
class SiteSelectorHint:
    name: str
    site_validator: SitePredicate = _never
    bad_patterns: tuple[str | re.Pattern[str], ...] = ()
    overrides: tuple[AncestorOverride, ...] = ()
    stable_anchors: tuple[str | re.Pattern[str], ...] = ()
    unique_attributes: tuple[str, ...] = ()

    @property
    def ordered_overrides(self) -> tuple[AncestorOverride, ...]:
        return tuple(sorted(self.overrides, key=lambda item: OVERRIDE_PRIORITY[item.kind]))

    @property
    def required_selectors(self) -> tuple[str, ...]:
        return tuple(item.selector for item in self.overrides if isinstance(item, RequiredSelector))

    @property
    def selector_templates(self) -> tuple[SelectorTemplate, ...]:
        return tuple(item for item in self.overrides if isinstance(item, SelectorTemplate))


@dataclass(slots=True)
class ElementInfo:
    selectors: list[str]
    tag_name: str
    parent: ElementInfo | None = None
    is_multi: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "selectors": list(self.selectors),
            "tagName": self.tag_name,
            "parent": self.parent.to_dict() if self.parent else None,
            "isMulti": self.is_multi,
        }


@dataclass(frozen=True, slots=True)
class AvailabilityRule:
    match_patterns: tuple[str, ...] = ()
    url_patterns: tuple[str | Mapping[str, str], ...] = ()
    selectors: tuple[str, ...] = ()
    all_frames: bool = True


@dataclass(frozen=True, slots=True)
class Annotation:
    message: str
    level: AnnotationLevel
    selector: str
    details: tuple[str, ...] = field(default_factory=tuple)
