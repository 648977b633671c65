"""
Visibility aggregator: combines every enabled condition module into one decision.
"""

import time
from typing import Dict, List, Mapping, Optional

from shared.errors import ConditionRegistrationError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from .base import ConditionModule, is_switch_on
from .models import ConditionSettings, SubjectContext, VisibilityResult, setting_key
from .user_meta import UserMetaCondition
from .user_role import UserRoleCondition


class VisibilityAggregator:
    """Ordered registry of condition modules.

    Content is visible only when every enabled module agrees. Disabled
    modules are ignored, so an item with no enabled modules is visible.
    A module that raises counts as not satisfied.
    """

    def __init__(self, modules: Optional[List[ConditionModule]] = None, metrics: Optional[MetricsCollector] = None):
        self.logger = get_logger("visibility.conditions.aggregator")
        self.metrics = metrics
        self._modules: Dict[str, ConditionModule] = {}
        for module in modules or []:
            self.register(module)

    @property
    def modules(self) -> List[ConditionModule]:
        return list(self._modules.values())

    def register(self, module: ConditionModule) -> ConditionModule:
        """Register a condition module. Names must be unique."""
        if not module.name:
            raise ConditionRegistrationError("Condition module has no name", {"module": repr(module)})
        if module.name in self._modules:
            raise ConditionRegistrationError(
                f"Condition module '{module.name}' already registered",
                {"module": module.name}
            )

        self._modules[module.name] = module
        self.logger.info("Condition module registered", module=module.name)
        return module

    def unregister(self, name: str) -> bool:
        """Remove a condition module by name."""
        if name in self._modules:
            del self._modules[name]
            self.logger.info("Condition module removed", module=name)
            return True
        return False

    def get_module(self, name: str) -> Optional[ConditionModule]:
        return self._modules.get(name)

    def evaluate(self, settings: ConditionSettings, context: SubjectContext) -> VisibilityResult:
        """Evaluate all enabled modules for one content item."""
        start_time = time.time()
        if not isinstance(settings, Mapping):
            settings = {}

        if not is_switch_on(settings.get(setting_key("enabled"))):
            return self._finish(VisibilityResult(
                visible=True,
                reason="Visibility logic disabled",
                evaluation_time_ms=(time.time() - start_time) * 1000
            ))

        module_results: Dict[str, bool] = {}
        for module in self._modules.values():
            try:
                if not module.enabled(settings):
                    continue
                module_results[module.name] = bool(module.evaluate(settings, context))
            except Exception as e:
                self.logger.error("Condition module error", module=module.name, error=str(e))
                if self.metrics:
                    self.metrics.increment_counter("condition_errors_total", module=module.name)
                module_results[module.name] = False

        visible = all(module_results.values())
        if not module_results:
            reason = "No enabled conditions"
        elif visible:
            reason = "All conditions met"
        else:
            failed = [name for name, passed in module_results.items() if not passed]
            reason = f"Conditions not met: {', '.join(failed)}"

        return self._finish(VisibilityResult(
            visible=visible,
            module_results=module_results,
            reason=reason,
            evaluation_time_ms=(time.time() - start_time) * 1000
        ))

    def is_visible(self, settings: ConditionSettings, context: SubjectContext) -> bool:
        """Shortcut returning only the decision."""
        return self.evaluate(settings, context).visible

    def _finish(self, result: VisibilityResult) -> VisibilityResult:
        self.logger.debug(
            "Visibility evaluation result",
            visible=result.visible,
            reason=result.reason,
            modules=result.module_results
        )
        if self.metrics:
            self.metrics.increment_counter(
                "visibility_evaluations_total",
                visible="true" if result.visible else "false"
            )
        return result


def default_modules() -> List[ConditionModule]:
    """Condition modules shipped with the service, in evaluation order."""
    return [UserRoleCondition(), UserMetaCondition()]
