"""
Migration runner for stored content trees.
"""

import json
from typing import Any, Dict, List, Optional

from packaging.version import InvalidVersion, Version

from shared.errors import MigrationError, MigrationLockedError, TreeDepthError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..persistence.store import PersistStore
from .models import MigrationReport, MigrationStatus, MigrationStep
from .steps import MIGRATIONS


VERSION_OPTION = "visibility_db_version"


def decode_tree(raw: Any) -> Optional[List[Any]]:
    """Return the stored tree as a list of nodes, or None when it cannot be migrated."""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except (ValueError, RecursionError):
            return None
    if not isinstance(raw, list) or not raw:
        return None
    return raw


class MigrationRunner:
    """Apply pending schema upgrades to every stored content item.

    Applied versions live in the store under a single option holding
    ``{"1.3.0": true, ...}``. The map is read fresh on every call. Steps
    run in ascending version order; the first failing step stops the run
    and is left unmarked so the next run retries it.
    """

    def __init__(
        self,
        store: PersistStore,
        steps: Optional[List[MigrationStep]] = None,
        current_version: str = "1.3.0",
        version_option: str = VERSION_OPTION,
        lock_ttl_seconds: int = 600,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.logger = get_logger("visibility.migrations.runner")
        self.store = store
        try:
            self.steps = sorted(steps if steps is not None else MIGRATIONS, key=lambda s: s.parsed_version)
            self.current_version = Version(current_version)
        except InvalidVersion as e:
            raise MigrationError(f"Invalid migration version: {e}")
        self.version_option = version_option
        self.lock_ttl_seconds = lock_ttl_seconds
        self.metrics = metrics

        versions = [step.version for step in self.steps]
        if len(set(versions)) != len(versions):
            raise MigrationError("Duplicate migration versions", {"versions": versions})

    def load_state(self) -> Dict[str, bool]:
        """Read the applied-version map from the store."""
        state = self.store.get(self.version_option, {})
        if not isinstance(state, dict):
            # Anything else predates version tracking
            self.logger.warning("Ignoring malformed version state", value_type=type(state).__name__)
            return {}
        return {str(version): bool(applied) for version, applied in state.items()}

    def pending_versions(self) -> List[str]:
        """Versions that are due and not yet applied, manual ones included."""
        state = self.load_state()
        return [
            step.version for step in self.steps
            if not state.get(step.version) and self._is_due(step)
        ]

    def has_pending(self) -> bool:
        return bool(self.pending_versions())

    def run(self, confirmed: bool = False) -> MigrationReport:
        """Run every pending step. Manual steps need ``confirmed=True``.

        Raises MigrationLockedError when another run holds the lock.
        """
        if not self.store.acquire_lock(self.lock_ttl_seconds):
            self.logger.warning("Migration already in progress")
            raise MigrationLockedError()

        try:
            report = self._run_steps(confirmed)
        finally:
            self.store.release_lock()

        if self.metrics:
            self.metrics.increment_counter("migration_runs_total", status=report.status.value)
        self.logger.info(
            "Migration run finished",
            status=report.status.value,
            applied=report.applied_versions,
            skipped=report.skipped_versions,
            failed=report.failed_version
        )
        return report

    def _run_steps(self, confirmed: bool) -> MigrationReport:
        try:
            state = self.load_state()
        except Exception as e:
            self.logger.error("Cannot load version state", error=str(e))
            return MigrationReport(status=MigrationStatus.PARTIAL_FAILURE, error=str(e))

        applied: List[str] = []
        skipped: List[str] = []
        failed_version: Optional[str] = None
        error: Optional[str] = None
        items_rewritten = 0

        for step in self.steps:
            if state.get(step.version) or not self._is_due(step):
                continue

            if step.confirm and not confirmed:
                self.logger.info("Manual migration awaiting confirmation", version=step.version)
                skipped.append(step.version)
                continue

            try:
                if self.metrics:
                    with self.metrics.time_operation("migration_step_duration_seconds", version=step.version):
                        rewritten = self._apply_step(step)
                else:
                    rewritten = self._apply_step(step)
            except Exception as e:
                self.logger.error("Migration step failed", version=step.version, error=str(e))
                if self.metrics:
                    self.metrics.record_error("migration_step")
                failed_version = step.version
                error = str(e)
                break

            state[step.version] = True
            applied.append(step.version)
            items_rewritten += rewritten
            self.logger.info("Migration step applied", version=step.version, items=rewritten)

        if applied:
            try:
                self.store.set(self.version_option, state)
            except Exception as e:
                self.logger.error("Cannot save version state", versions=applied, error=str(e))
                return MigrationReport(
                    status=MigrationStatus.PARTIAL_FAILURE,
                    skipped_versions=skipped,
                    failed_version=failed_version or applied[-1],
                    error=str(e),
                    items_rewritten=items_rewritten
                )

        if failed_version is not None:
            status = MigrationStatus.PARTIAL_FAILURE
        elif applied:
            status = MigrationStatus.SUCCESS
        else:
            status = MigrationStatus.NOOP

        return MigrationReport(
            status=status,
            applied_versions=applied,
            skipped_versions=skipped,
            failed_version=failed_version,
            error=error,
            items_rewritten=items_rewritten
        )

    def _apply_step(self, step: MigrationStep) -> int:
        rewritten = 0
        for item_id in self.store.list_items():
            tree = decode_tree(self.store.read_item(item_id))
            if tree is None:
                self.logger.debug("Skipping item without a content tree", item_id=item_id, version=step.version)
                continue

            try:
                new_tree = [step.transform(node) for node in tree]
                changed = new_tree != tree
            except (TreeDepthError, RecursionError) as e:
                self.logger.warning(
                    "Skipping item nested too deeply to migrate",
                    item_id=item_id,
                    version=step.version,
                    error=str(e)
                )
                continue

            if changed:
                self.store.write_item(item_id, new_tree)
                rewritten += 1

        if self.metrics and rewritten:
            self.metrics.increment_counter("migration_items_rewritten_total", amount=rewritten, version=step.version)
        return rewritten

    def _is_due(self, step: MigrationStep) -> bool:
        return step.parsed_version <= self.current_version
