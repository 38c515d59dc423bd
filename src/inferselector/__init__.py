from __future__ import annotations

from .availability import DocumentContext, is_available, normalize_availability
from .browser_context import PlaywrightFrameContext, frame_contexts, snapshot_frame
from .errors import (
    BusinessError,
    InferSelectorError,
    InvalidPatternError,
    InvalidSelectorError,
    MalformedInputError,
    SelectorInferenceError,
)
from .markup_inference import MarkupGeneralizer, infer_button_html, infer_panel_html
from .models import AvailabilityRule, ElementInfo, RequiredSelector, SelectorTemplate, SiteSelectorHint, Usefulness
from .scoring import selector_preference, sort_by_preference
from .selector_generator import SelectorSynthesizer, css_escape
from .selector_inference import (
    MultiElementInferencer,
    SingleElementInferencer,
    find_container,
    infer_element_selector,
    infer_multi_element_selector,
)
from .selector_rules import guess_usefulness, is_random_string
from .site_hints import DEFAULT_SITE_HINTS, SiteHintResolver

__version__ = "0.1.0"

__all__ = [
    "AvailabilityRule",
    "BusinessError",
    "DEFAULT_SITE_HINTS",
    "DocumentContext",
    "ElementInfo",
    "InferSelectorError",
    "InvalidPatternError",
    "InvalidSelectorError",
    "MalformedInputError",
    "MarkupGeneralizer",
    "MultiElementInferencer",
    "PlaywrightFrameContext",
    "RequiredSelector",
    "SelectorInferenceError",
    "SelectorSynthesizer",
    "SelectorTemplate",
    "SingleElementInferencer",
    "SiteHintResolver",
    "SiteSelectorHint",
    "Usefulness",
    "css_escape",
    "find_container",
    "frame_contexts",
    "guess_usefulness",
    "infer_button_html",
    "infer_element_selector",
    "infer_multi_element_selector",
    "infer_panel_html",
    "is_available",
    "is_random_string",
    "normalize_availability",
    "selector_preference",
    "snapshot_frame",
    "sort_by_preference",
]
