from __future__ import annotations

import json
import logging
from pathlib import Path
import re
import tempfile
from typing import Any, Mapping, Sequence

from .errors import BusinessError
from .models import AncestorOverride, RequiredSelector, SiteSelectorHint
from .override_logic import build_selector_template
from .selector_rules import SelectorPattern, compile_pattern
from .site_hints import site_validator

LOGGER = logging.getLogger("inferselector.config")

CONFIG_DIR = Path.home() / ".inferselector"
HINTS_PATH = CONFIG_DIR / "site_hints.json"


def _string_list(entry: Mapping[str, Any], key: str, name: str) -> tuple[str, ...]:
    value = entry.get(key, [])
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise BusinessError(f"Site hint {name!r}: {key} must be a list of strings")
    return tuple(value)


def _patterns(entry: Mapping[str, Any], key: str, name: str) -> tuple[SelectorPattern, ...]:
    try:
        return tuple(compile_pattern(value) for value in _string_list(entry, key, name))
    except re.error as exc:
        raise BusinessError(f"Site hint {name!r}: invalid regular expression in {key}: {exc}") from exc


def _override_from_config(raw: Any, name: str) -> AncestorOverride:
    if not isinstance(raw, dict):
        raise BusinessError(f"Site hint {name!r}: overrides must be objects")
    if "required" in raw:
        return RequiredSelector(str(raw["required"]))
    if "template" in raw:
        extract = raw.get("extract", {})
        if not isinstance(extract, dict):
            raise BusinessError(f"Site hint {name!r}: template extract must be an object")
        return build_selector_template(
            str(raw.get("match", "*")),
            {str(key): str(value) for key, value in extract.items()},
            str(raw["template"]),
        )
    raise BusinessError(f"Site hint {name!r}: unknown override kind {sorted(raw)}")


def hint_from_config(entry: Mapping[str, Any]) -> SiteSelectorHint:
    if not isinstance(entry, Mapping):
        raise BusinessError("Site hint entries must be objects")
    name = str(entry.get("name", "") or "")
    if not name:
        raise BusinessError("Site hint entry is missing a name")

    hostnames = _string_list(entry, "hostnames", name)
    match_patterns = _string_list(entry, "match_patterns", name)
    selector = entry.get("selector")
    if not (hostnames or match_patterns or selector):
        raise BusinessError(f"Site hint {name!r}: needs hostnames, match_patterns or selector")

    overrides = entry.get("overrides", [])
    if not isinstance(overrides, list):
        raise BusinessError(f"Site hint {name!r}: overrides must be a list")

    return SiteSelectorHint(
        name=name,
        site_validator=site_validator(
            hostnames=hostnames,
            match_patterns=match_patterns,
            selector=str(selector) if selector else None,
        ),
        bad_patterns=_patterns(entry, "bad_patterns", name),
        overrides=tuple(_override_from_config(item, name) for item in overrides),
        stable_anchors=_patterns(entry, "stable_anchors", name),
        unique_attributes=_string_list(entry, "unique_attributes", name),
    )


def load_site_hints(config_path: Path | None = None) -> tuple[SiteSelectorHint, ...]:
    path = config_path or HINTS_PATH
    if not path.exists() or not path.is_file():
        return ()

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, TypeError) as exc:
        LOGGER.warning("Ignoring unreadable site hint config %s: %s", path, exc)
        return ()

    if isinstance(payload, dict):
        payload = payload.get("hints", [])
    if not isinstance(payload, list):
        LOGGER.warning("Ignoring site hint config %s: expected a list of hints", path)
        return ()

    hints = tuple(hint_from_config(entry) for entry in payload)
    LOGGER.info("Loaded %d site hint(s) from %s", len(hints), path)
    return hints


def save_site_hints(entries: Sequence[Mapping[str, Any]], config_path: Path | None = None) -> tuple[bool, str | None]:
    path = config_path or HINTS_PATH

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return False, f"Could not create config folder: {exc}"

    payload = json.dumps({"hints": [dict(entry) for entry in entries]}, ensure_ascii=True, indent=2, sort_keys=True)
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            handle.write(payload)
            handle.flush()
            temp_path = Path(handle.name)

        temp_path.replace(path)
    except OSError as exc:
        if temp_path and temp_path.exists():
            temp_path.unlink(missing_ok=True)
        return False, f"Could not write site hints: {exc}"

    return True, None
