from __future__ import annotations

import argparse
from dataclasses import asdict
import json
import logging
from pathlib import Path
import sys
from typing import Any, Sequence

from . import dom
from .availability import DocumentContext, is_available
from .errors import BusinessError, InferSelectorError
from .hint_config import load_site_hints
from .markup_inference import MarkupGeneralizer
from .selector_analysis import analyze_selector
from .selector_generator import SelectorSynthesizer
from .selector_inference import MultiElementInferencer, SingleElementInferencer
from .selector_rules import guess_usefulness
from .site_hints import DEFAULT_SITE_HINTS, SiteHintResolver

LOGGER = logging.getLogger("inferselector.cli")


def _read_document(path: str) -> Any:
    return dom.parse_document(Path(path).read_text(encoding="utf-8"))


def _select(document: Any, selector: str, what: str) -> list[Any]:
    found = dom.resolve(selector, document)
    if not found:
        raise BusinessError(f"No element matches {what} selector {selector!r}")
    return found


def _resolver(args: argparse.Namespace) -> SiteHintResolver:
    hints = (*load_site_hints(Path(args.hints) if args.hints else None), *DEFAULT_SITE_HINTS)
    return SiteHintResolver(hints, location=args.url or "")


def _cmd_infer(args: argparse.Namespace) -> Any:
    document = _read_document(args.html)
    elements = _select(document, args.selector, "target")
    root = _select(document, args.root, "root")[0] if args.root else None
    synthesizer = SelectorSynthesizer(_resolver(args))

    if args.multi or args.expand:
        info = MultiElementInferencer(synthesizer).infer(elements, root, args.exclude_random, args.expand)
    else:
        info = SingleElementInferencer(synthesizer).infer(elements[0], root, args.exclude_random)
    return info.to_dict()


def _cmd_markup(args: argparse.Namespace) -> Any:
    document = _read_document(args.html)
    container = _select(document, args.container, "container")[0]
    selected = _select(container, args.selected, "selected")
    generalizer = MarkupGeneralizer("panel" if args.panel else "button")
    return {"html": generalizer.generalize(container, selected)}


def _cmd_check(args: argparse.Namespace) -> Any:
    raw = args.rule
    if not raw.lstrip().startswith("{"):
        raw = Path(raw).read_text(encoding="utf-8")
    try:
        rule = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise BusinessError(f"Availability rule is not valid JSON: {exc}") from exc
    if not isinstance(rule, dict):
        raise BusinessError("Availability rule must be a JSON object")
    document = _read_document(args.html) if args.html else None
    context = DocumentContext(url=args.url, document=document, is_top_frame=not args.subframe)
    return {"url": args.url, "available": is_available(rule, context)}


def _cmd_classify(args: argparse.Namespace) -> Any:
    return [asdict(guess_usefulness(token)) for token in args.tokens]


def _cmd_analyze(args: argparse.Namespace) -> Any:
    return [asdict(annotation) for annotation in analyze_selector(args.selector, watch=args.watch)]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="inferselector", description="Infer robust CSS selectors for page elements.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    infer = commands.add_parser("infer", help="Infer selectors for elements in an HTML file.")
    infer.add_argument("html", help="Path to an HTML file.")
    infer.add_argument("selector", help="Selector for the element(s) to describe.")
    infer.add_argument("--root", help="Selector for the root element inference is relative to.")
    infer.add_argument("--multi", action="store_true", help="Infer one selector for all matched elements.")
    infer.add_argument("--expand", action="store_true", help="Widen the selector to similar elements.")
    infer.add_argument("--exclude-random", action="store_true", help="Skip generated-looking class names.")
    infer.add_argument("--url", help="Page location used to pick site hints.")
    infer.add_argument("--hints", help="Path to a site hint JSON file.")
    infer.set_defaults(handler=_cmd_infer)

    markup = commands.add_parser("markup", help="Generalize example buttons or panels into a template.")
    markup.add_argument("html", help="Path to an HTML file.")
    markup.add_argument("container", help="Selector for the container element.")
    markup.add_argument("selected", help="Selector for the example element(s) inside the container.")
    markup.add_argument("--panel", action="store_true", help="Generalize panels instead of buttons.")
    markup.set_defaults(handler=_cmd_markup)

    check = commands.add_parser("check", help="Evaluate an availability rule for a URL.")
    check.add_argument("rule", help="Availability rule as JSON text or a path to a JSON file.")
    check.add_argument("url", help="URL of the frame.")
    check.add_argument("--html", help="HTML file providing the frame's document.")
    check.add_argument("--subframe", action="store_true", help="Treat the frame as a sub-frame.")
    check.set_defaults(handler=_cmd_check)

    classify = commands.add_parser("classify", help="Guess whether selector tokens look generated.")
    classify.add_argument("tokens", nargs="+", help="Selector tokens such as .btn-primary.")
    classify.set_defaults(handler=_cmd_classify)

    analyze = commands.add_parser("analyze", help="Report problems with an authored selector.")
    analyze.add_argument("selector")
    analyze.add_argument("--watch", action="store_true", help="The selector is watched for new elements.")
    analyze.set_defaults(handler=_cmd_analyze)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    if sys.version_info < (3, 11):
        raise SystemExit(
            "inferselector requires Python 3.11+. "
            f"Current interpreter: {sys.executable} (Python {sys.version.split()[0]})"
        )
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        result = args.handler(args)
    except InferSelectorError as exc:
        LOGGER.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
