"""Main CLI entry point."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional


def main(argv: Optional[list[str]] = None) -> None:
    """Parse args and dispatch to subcommands."""
    parser = argparse.ArgumentParser(prog="edgepatch", description="Deploy content patches to the edge")
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        metavar="YAML_PATH",
        help="Load settings from YAML (default: EDGEPATCH_* environment variables)",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        metavar="DB_PATH",
        help="Override the SQLite store path",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("deploy", "Merge suggestion patches into stored configs"),
        ("rollback", "Remove suggestion patches from stored configs"),
        ("preview", "Write a preview config and fetch both renderings"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "input",
            type=Path,
            help="JSON file with {site, opportunity, suggestions}",
        )
        sub.add_argument(
            "--output",
            type=Path,
            default=None,
            help="Write the JSON result to file (default: stdout)",
        )

    show_parser = subparsers.add_parser("show", help="Print the stored config for a URL")
    show_parser.add_argument("--url", required=True, help="Page URL")
    show_parser.add_argument(
        "--preview",
        action="store_true",
        help="Read from the preview namespace",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command in ("deploy", "rollback", "preview"):
        _run_operation(args)
    elif args.command == "show":
        _run_show(args)
    else:
        parser.print_help()


def _load_settings(args: argparse.Namespace):
    from edgepatch.settings import EdgeSettings

    settings = EdgeSettings.from_yaml(args.settings) if args.settings else EdgeSettings.from_env()
    if args.db:
        settings = settings.model_copy(update={"store_path": str(args.db)})
    return settings


def _load_input(path: Path) -> tuple[Any, Any, list]:
    """Parse {site, opportunity, suggestions} from a JSON file."""
    from edgepatch.models import Opportunity, Site, Suggestion

    data = json.loads(path.read_text())
    for key in ("site", "opportunity", "suggestions"):
        if key not in data:
            raise SystemExit(f"{path}: missing '{key}'")
    site = Site.model_validate(data["site"])
    opportunity = Opportunity.model_validate(data["opportunity"])
    suggestions = [Suggestion.model_validate(s) for s in data["suggestions"]]
    return site, opportunity, suggestions


def _emit(payload: dict, output: Optional[Path]) -> None:
    text = json.dumps(payload, indent=2, default=str)
    if output:
        output.write_text(text, encoding="utf-8")
        print(f"Wrote result to {output}")
    else:
        print(text)


def _run_operation(args: argparse.Namespace) -> None:
    """Run deploy, rollback or preview."""
    from edgepatch.client import EdgeConfigClient
    from edgepatch.errors import EdgePatchError

    site, opportunity, suggestions = _load_input(args.input)
    with EdgeConfigClient.from_settings(_load_settings(args)) as client:
        operation = getattr(client, args.command)
        try:
            result = operation(site, opportunity, suggestions)
        except EdgePatchError as e:
            print(json.dumps({"error": e.to_dict()}, indent=2), file=sys.stderr)
            raise SystemExit(1) from e
    _emit(result.model_dump(mode="json"), args.output)


def _run_show(args: argparse.Namespace) -> None:
    """Run show command."""
    from edgepatch.client import EdgeConfigClient
    from edgepatch.errors import EdgePatchError

    with EdgeConfigClient.from_settings(_load_settings(args)) as client:
        try:
            config = client.fetch_config(args.url, preview=args.preview)
        except EdgePatchError as e:
            raise SystemExit(e.message) from e
    if config is None:
        print(f"No config stored for {args.url}", file=sys.stderr)
        raise SystemExit(1)
    print(json.dumps(config.to_wire(), indent=2))


if __name__ == "__main__":
    main()
