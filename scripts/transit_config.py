"""Command-line access to the transit display configuration."""

from __future__ import annotations

import argparse
from pathlib import Path
import sys
import time

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from src.config import load_config
from src.interchange import InterchangeParseError
from src.log_setup import configure_logging
from src.sync import PanelController
from src.sync.importer import ImportRejectedError


def _print_status(message: str, level: str) -> None:
    print(f"[{level}] {message}")


def _show(controller: PanelController) -> int:
    session = controller.session
    settings = session.settings
    print(session.routes_summary())
    for binding in session.ordered_bindings():
        name = binding.route_name or session.route_name(binding.route_id)
        stop = binding.stop_name or session.stop_name(binding.stop_id) or binding.stop_id
        headsign = f" -> {binding.headsign}" if binding.headsign else ""
        print(f"  {name}{headsign} @ {stop} (offset {binding.offset})")
    print(f"time display: {settings.time_display}  units: {settings.time_units}  list mode: {settings.list_mode}")
    print(f"api server: {settings.base_url}")
    for abbreviation in session.abbreviations:
        print(f"  abbreviation: {abbreviation.from_!r} -> {abbreviation.to!r}")
    for style in session.styles:
        print(f"  style: {style.route_id} as {style.display_name!r} in {style.color}")
    return 0


def _import(controller: PanelController, path: str) -> int:
    text = Path(path).read_text(encoding="utf-8")
    try:
        result = controller.import_yaml(text)
    except (InterchangeParseError, ImportRejectedError) as exc:
        print(f"Import failed: {exc}", file=sys.stderr)
        return 1
    if result.failures:
        print(f"Import wrote with errors: {', '.join(sorted(result.failures))}", file=sys.stderr)
        return 1
    print(f"Imported {len(result.written)} entities.")
    return 0


def _watch(controller: PanelController) -> int:
    def _changed(payload: dict) -> None:
        print(f"{payload.get('id')}: {payload.get('state')}")

    subscriber = controller.subscribe_events(on_change=_changed)
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        subscriber.stop()
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", default="config/config.yaml", help="Path to config YAML")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("show", help="Print the device configuration")
    subparsers.add_parser("export", help="Print the configuration as YAML")
    import_parser = subparsers.add_parser("import", help="Import a YAML configuration file")
    import_parser.add_argument("path")
    add_parser = subparsers.add_parser("add-route", help="Show a route at a stop")
    add_parser.add_argument("route_id")
    add_parser.add_argument("stop_id")
    remove_parser = subparsers.add_parser("remove-route", help="Stop showing a route at a stop")
    remove_parser.add_argument("route_id")
    remove_parser.add_argument("stop_id")
    subparsers.add_parser("save", help="Write the current configuration back to the device")
    subparsers.add_parser("watch", help="Follow switch changes made on the device")
    args = parser.parse_args()

    config = load_config(args.config)
    configure_logging(config.log)
    controller = PanelController.from_config(config, on_status=_print_status)
    controller.load()

    if args.command == "show":
        return _show(controller)
    if args.command == "export":
        print(controller.export_yaml(), end="")
        return 0
    if args.command == "import":
        return _import(controller, args.path)
    if args.command == "add-route":
        if not controller.add_route(args.route_id, args.stop_id):
            print("Route already configured.")
    elif args.command == "remove-route":
        if not controller.remove_route(args.route_id, args.stop_id):
            print("Route was not configured.")
    elif args.command == "watch":
        return _watch(controller)

    if args.command == "save" or not controller.auto_save:
        result = controller.save()
    else:
        controller.orchestrator.flush()
        result = controller.orchestrator.last_result
    return 0 if result is None or result.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
