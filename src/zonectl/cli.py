"""Command-line entry point for zonectl."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import AppConfig, load_config
from .controller import ZoneController, ZoneOutcome, configure_logging
from .exporter import records_to_json, records_to_yaml, write_export
from .models import ZoneCtlError, ZoneDeclaration, count_executable
from .providers import build_provider
from .retry import RetryPolicy
from .rtypes import ensure_absolute
from .yaml_loader import load_desired_zone


def _build_parser() -> argparse.ArgumentParser:
    """Create the CLI parser."""
    parser = argparse.ArgumentParser(description="Reconcile DNS zones with their declared state.")
    parser.add_argument("--log-level", help="Override log level (default from config).")

    subparsers = parser.add_subparsers(dest="command", required=True)
    plan_parser = subparsers.add_parser("plan", help="Show the corrections needed for each zone.")
    _register_common_arguments(plan_parser)

    apply_parser = subparsers.add_parser("apply", help="Compute and execute corrections.")
    _register_common_arguments(apply_parser)
    apply_parser.add_argument("--yes", action="store_true", help="Skip confirmation prompt.")

    pull_parser = subparsers.add_parser("pull", help="Fetch current zone records from the provider.")
    pull_parser.add_argument("--zone", required=True, help="Zone name to pull.")
    pull_parser.add_argument("--output", help="Path to write the exported state (default stdout).")
    pull_parser.add_argument(
        "--format",
        choices=["yaml", "json"],
        default="yaml",
        help="Serialization format for the exported state.",
    )

    return parser


def _register_common_arguments(subparser: argparse.ArgumentParser) -> None:
    """Register arguments shared by plan/apply."""
    subparser.add_argument(
        "--desired",
        required=True,
        action="append",
        help="Path to a desired-state YAML file. Can be repeated.",
    )
    subparser.add_argument("--zone", help="Zone name (overrides YAML, single file only).")
    subparser.add_argument(
        "-e",
        "--var",
        action="append",
        help="Template variable in KEY=VALUE form. Can be repeated.",
    )


def _parse_template_vars(values: list[str] | None) -> dict[str, str]:
    """Convert KEY=VALUE pairs into a dict."""
    result: dict[str, str] = {}
    if not values:
        return result
    for value in values:
        if "=" not in value:
            raise ZoneCtlError(f"Invalid template var '{value}', expected KEY=VALUE.")
        key, val = value.split("=", 1)
        result[key] = val
    return result


def _load_declarations(config: AppConfig, args: argparse.Namespace) -> list[ZoneDeclaration]:
    """Load every desired-state file named on the command line."""
    if args.zone and len(args.desired) > 1:
        raise ZoneCtlError("--zone can only be combined with a single --desired file.")
    template_vars = _parse_template_vars(args.var)
    return [
        load_desired_zone(Path(path), config.default_record_ttl, zone_hint=args.zone, template_vars=template_vars)
        for path in args.desired
    ]


def _emit_outcome(outcome: ZoneOutcome) -> None:
    """Print each zone's corrections, numbered like an audit log."""
    print(f"******************** Zone: {outcome.origin.rstrip('.')}")
    if outcome.error is not None:
        print(f"ERROR: {outcome.error}")
        return
    corrections = outcome.plan.all_corrections if outcome.plan else []
    for index, correction in enumerate(corrections, start=1):
        prefix = "INFO" if correction.is_report_only else f"#{index}"
        print(f"{prefix}: {correction.description}")
    executable = count_executable(corrections)
    if executable:
        print(f"{executable} corrections computed.")
    else:
        print("No changes detected.")
    for result in outcome.results:
        if not result.success:
            print(f"FAILURE! {result.error}")


def _confirm(count: int) -> bool:
    """Prompt the operator to confirm apply."""
    prompt = f"Apply {count} corrections? [y/N]: "
    response = input(prompt).strip().lower()  # noqa: S322
    return response in {"y", "yes"}


def _run(controller: ZoneController, declarations: list[ZoneDeclaration], apply: bool, assume_yes: bool) -> int:
    """Execute plan or apply, returning the process exit code."""
    outcomes = controller.reconcile_zones(declarations, apply=False)
    for outcome in outcomes:
        _emit_outcome(outcome)
    pending = sum(count_executable(o.plan.all_corrections) for o in outcomes if o.plan)
    failed = any(outcome.error is not None for outcome in outcomes)
    if not apply or not pending:
        return 2 if failed else 0
    if not assume_yes and not _confirm(pending):
        print("Apply aborted by user.")
        return 2 if failed else 0
    exit_code = 2 if failed else 0
    for outcome in outcomes:
        if outcome.plan is None:
            continue
        outcome.results = controller.apply(outcome.plan)
        if not outcome.success:
            _emit_outcome(outcome)
            exit_code = max(exit_code, 1)
    return exit_code


def _run_pull(controller: ZoneController, config: AppConfig, args: argparse.Namespace) -> None:
    """Execute the pull command."""
    origin = ensure_absolute(args.zone).lower()
    records = controller.fetch_current(origin)
    if args.format == "json":
        content = records_to_json(origin, records, config.default_record_ttl)
    else:
        content = records_to_yaml(origin, records, config.default_record_ttl)
    if args.output:
        write_export(Path(args.output), content)
        print(f"Wrote zone state to {args.output}")
    else:
        print(content)


def main() -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args()
    try:
        config = load_config()
        configure_logging(args.log_level or config.log_level)
        retry = RetryPolicy(max_attempts=config.retry_max_attempts, interval=config.retry_interval)
        controller = ZoneController(build_provider(config), retry=retry, max_workers=config.max_workers)
        if args.command in {"plan", "apply"}:
            declarations = _load_declarations(config, args)
            sys.exit(_run(controller, declarations, apply=args.command == "apply", assume_yes=getattr(args, "yes", False)))
        elif args.command == "pull":
            _run_pull(controller, config, args)
        else:  # pragma: no cover - argparse ensures we never reach here
            parser.error(f"Unsupported command {args.command}")
    except ZoneCtlError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)
    except Exception as exc:  # noqa: BLE001
        print(f"Unexpected error: {exc}", file=sys.stderr)
        sys.exit(3)


if __name__ == "__main__":
    main()
