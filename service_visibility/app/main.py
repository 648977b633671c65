"""
Visibility service wiring and administrative command line.

Usage:
    python -m service_visibility.app.main status  [--store data.json]
    python -m service_visibility.app.main migrate [--store data.json] [--confirm]
    python -m service_visibility.app.main check --settings s.json --context c.json
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from shared.config import ServiceConfig, get_config
from shared.errors import MigrationLockedError, ValidationError, VisibilityLogicException
from shared.logging import clear_context, configure_logging, get_logger, set_request_id
from shared.metrics import MetricsCollector, get_metrics_collector

from .conditions import DictSubjectContext, SubjectContext, VisibilityAggregator, VisibilityResult, default_modules
from .migrations import MigrationReport, MigrationRunner, MigrationStatus
from .persistence import PersistStore, create_store


class VisibilityService:
    """Holds the aggregator and migration runner for one host process.

    Build it once at start-up and hand it to whatever renders content or
    triggers migrations.
    """

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        store: Optional[PersistStore] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.config = config or get_config()
        self.logger = get_logger("visibility.service")
        self.metrics = metrics or get_metrics_collector(self.config.service_name)
        self.store = store or create_store(self.config)

        self.aggregator = VisibilityAggregator(default_modules(), metrics=self.metrics)
        self.runner = MigrationRunner(
            self.store,
            current_version=self.config.current_version,
            version_option=self.config.version_option,
            lock_ttl_seconds=self.config.lock_ttl_seconds,
            metrics=self.metrics,
        )

    def check(self, settings: Mapping[str, Any], context: SubjectContext) -> VisibilityResult:
        """Decide whether content with these settings is shown to the subject."""
        return self.aggregator.evaluate(settings, context)

    def migration_pending(self) -> bool:
        return self.runner.has_pending()

    def migrate(self, confirmed: bool = False) -> MigrationReport:
        return self.runner.run(confirmed=confirmed)


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Visibility Logic administration.")
    parser.add_argument("--store", default=None, help="Path to the JSON store (file backend)")
    parser.add_argument("--log-level", default=None, help="Override VISIBILITY_LOG_LEVEL")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show pending migrations")

    migrate = sub.add_parser("migrate", help="Apply pending migrations")
    migrate.add_argument("--confirm", action="store_true", help="Also run migrations that need confirmation")

    check = sub.add_parser("check", help="Evaluate visibility for one content item")
    check.add_argument("--settings", type=Path, required=True, help="JSON file with the item settings")
    check.add_argument("--context", type=Path, required=True, help="JSON file with attributes and roles")

    return parser.parse_args(argv)


def _load_json(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, ValueError, RecursionError) as e:
        raise ValidationError(f"Cannot read {path}: {e}", {"path": str(path)})


def _print_error(error: VisibilityLogicException) -> None:
    print(json.dumps(error.to_response().model_dump(), indent=2))


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    overrides = {"log_level": args.log_level} if args.log_level else {}
    if args.store:
        overrides["store_path"] = args.store
    try:
        config = get_config(**overrides)
    except PydanticValidationError as e:
        _print_error(ValidationError("Invalid configuration", {"errors": [err["msg"] for err in e.errors()]}))
        return 1
    # stdout carries the JSON report
    configure_logging(config.service_name, config.log_level, stream=sys.stderr)
    set_request_id()

    try:
        service = VisibilityService(config)

        if args.command == "status":
            pending = service.runner.pending_versions()
            print(json.dumps({"pending_versions": pending, "migration_pending": bool(pending)}, indent=2))
            return 0

        if args.command == "migrate":
            report = service.migrate(confirmed=args.confirm)
            print(json.dumps({**report.to_dict(), "message": report.message}, indent=2))
            return 1 if report.status == MigrationStatus.PARTIAL_FAILURE else 0

        settings = _load_json(args.settings)
        context = _load_json(args.context)
        if not isinstance(context, Mapping):
            raise ValidationError("Context file must hold a JSON object", {"path": str(args.context)})

        result = service.check(settings, DictSubjectContext.from_dict(context))
        print(json.dumps({
            "visible": result.visible,
            "reason": result.reason,
            "module_results": result.module_results,
        }, indent=2))
        return 0

    except MigrationLockedError as e:
        _print_error(e)
        return 2
    except VisibilityLogicException as e:
        _print_error(e)
        return 1
    finally:
        clear_context()


if __name__ == "__main__":
    raise SystemExit(main())
