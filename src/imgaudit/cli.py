# src/imgaudit/cli.py
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from imgaudit.controllers.audit_controller import AuditController
from imgaudit.controllers.report_controller import ReportController
from imgaudit.managers.config_manager import config_manager
from imgaudit.services.image_collect_service import ImageCollectService
from imgaudit.utils.configure_logging import configure_logger

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_AUDIT_FAILED = 1
EXIT_INPUT_ERROR = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="imgaudit",
        description="Check that images on a page declare explicit width and height."
    )
    parser.add_argument("--log-level", type=str, default=None, help="Logging level (overrides settings.json).")
    parser.add_argument(
        "--set", dest="overrides", action="append", default=[], metavar="KEY=VALUE",
        help="Override a setting for this run, e.g. --set report.format=json (repeatable)."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # 1. Subcommand: AUDIT
    audit_parser = subparsers.add_parser("audit", help="Audit a JSON artifacts file")
    audit_parser.add_argument("file", type=Path, help="JSON file with ImageElements or pages.")
    _add_report_options(audit_parser)
    audit_parser.add_argument("--workers", type=int, default=None, help="Number of worker processes.")

    # 2. Subcommand: COLLECT
    collect_parser = subparsers.add_parser("collect", help="Print the ImageElements artifact of an HTML file")
    collect_parser.add_argument("file", type=Path, help="HTML file.")
    collect_parser.add_argument("--base-url", type=str, default=None, help="Base URL to resolve image sources.")

    # 3. Subcommand: SCAN
    scan_parser = subparsers.add_parser("scan", help="Collect and audit HTML files")
    scan_parser.add_argument("files", type=Path, nargs="+", help="HTML files.")
    scan_parser.add_argument("--base-url", type=str, default=None, help="Base URL to resolve image sources.")
    _add_report_options(scan_parser)

    return parser


def _add_report_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--format", choices=["json", "text"], default=None, help="Output format.")
    parser.add_argument("--no-progress", action="store_true", help="Hide the progress bar.")


def _load_pages(path: Path) -> List[Tuple[str, Dict[str, Any]]]:
    """
    Reads an artifacts document: either a single page ({"ImageElements": [...]})
    or several ({"pages": [{"url": ..., "artifacts": {...}}]}).
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError("expected a JSON object at the top level")
    if "pages" in data:
        pages = data["pages"]
        if not isinstance(pages, list):
            raise ValueError("'pages' must be a list")
        return [(str(p.get("url", "")), p.get("artifacts") or {}) for p in pages]
    return [(str(data.get("url", path.name)), data)]


def _emit(results, controller: AuditController, fmt: str) -> int:
    reporter = ReportController()
    if fmt == "json":
        print(json.dumps({"pages": reporter.to_dict(results), "stats": controller.summary()}, indent=2))
    else:
        print(reporter.to_text(results, controller.summary()))
    return EXIT_OK if all(r.passed for r in results) else EXIT_AUDIT_FAILED


def _handle_audit(args: argparse.Namespace) -> int:
    try:
        pages = _load_pages(args.file)
    except (OSError, ValueError, AttributeError) as e:
        print(f"❌ Could not read {args.file}: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    workers = args.workers if args.workers is not None else int(config_manager.get_nested("audit.workers", 1))
    show_progress = not args.no_progress and bool(config_manager.get_nested("audit.show_progress", True))

    controller = AuditController()
    results = controller.run(pages, workers=max(1, workers), show_progress=show_progress)
    return _emit(results, controller, args.format or config_manager.get_nested("report.format", "text"))


def _handle_collect(args: argparse.Namespace) -> int:
    try:
        html = args.file.read_text(encoding="utf-8")
    except OSError as e:
        print(f"❌ Could not read {args.file}: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    images = ImageCollectService().collect(html, base_url=args.base_url)
    artifacts = {"ImageElements": [img.model_dump(by_alias=True) for img in images]}
    print(json.dumps(artifacts, indent=2))
    return EXIT_OK


def _handle_scan(args: argparse.Namespace) -> int:
    collector = ImageCollectService()
    pages = []
    for path in args.files:
        try:
            html = path.read_text(encoding="utf-8")
        except OSError as e:
            print(f"❌ Could not read {path}: {e}", file=sys.stderr)
            return EXIT_INPUT_ERROR
        images = collector.collect(html, base_url=args.base_url)
        pages.append((str(path), {"ImageElements": images}))

    show_progress = not args.no_progress and bool(config_manager.get_nested("audit.show_progress", True))
    controller = AuditController()
    results = controller.run(pages, show_progress=show_progress)
    return _emit(results, controller, args.format or config_manager.get_nested("report.format", "text"))


HANDLERS = {
    "audit": _handle_audit,
    "collect": _handle_collect,
    "scan": _handle_scan,
}


def _apply_overrides(overrides: List[str]) -> bool:
    """Applies KEY=VALUE pairs to the in-memory configuration."""
    for override in overrides:
        key, sep, value = override.partition("=")
        if not sep or not key.strip():
            print(f"❌ Invalid setting '{override}', expected KEY=VALUE.", file=sys.stderr)
            return False
        if not config_manager.set_nested(key.strip(), value):
            print(f"❌ Could not set '{key.strip()}'.", file=sys.stderr)
            return False
    return True


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    if not _apply_overrides(args.overrides):
        return EXIT_INPUT_ERROR

    configure_logger(
        args.log_level or config_manager.get_nested("debug.level", "WARNING"),
        module_specific_levels=config_manager.get_nested("logging.modules"),
        silenced_loggers=config_manager.get_nested("logging.silenced"),
    )
    logger.debug("Running command '%s'", args.command)
    return HANDLERS[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
