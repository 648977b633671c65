"""
Condition module interface.
"""

from abc import ABC, abstractmethod
from typing import Any, List

from .models import ConditionSettings, ControlSpec, SubjectContext, setting_key


def is_switch_on(value: Any) -> bool:
    """Switcher controls store "yes" when on and "" when off."""
    if isinstance(value, str):
        return value.strip().lower() in ("yes", "1", "true", "on")
    return bool(value)


class ConditionModule(ABC):
    """A single, independently registered visibility condition.

    Modules know nothing about each other. The aggregator asks each one
    whether it is enabled for a content item and, if so, whether the
    subject satisfies it.
    """

    #: Unique module name, also the key used in VisibilityResult.module_results
    name: str = ""

    #: Settings key holding this module's on/off switch
    enabled_key: str = ""

    def enabled(self, settings: ConditionSettings) -> bool:
        """Return True when the module is switched on for these settings."""
        return is_switch_on(settings.get(setting_key(self.enabled_key)))

    @abstractmethod
    def evaluate(self, settings: ConditionSettings, context: SubjectContext) -> bool:
        """Return True when the subject satisfies this condition."""

    def settings_schema(self) -> List[ControlSpec]:
        """Describe the controls a host renders to configure this module."""
        return []

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
