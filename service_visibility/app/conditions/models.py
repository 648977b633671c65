"""
Condition data models for the Visibility service.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence
from enum import Enum


# Settings keys written by the current schema carry this prefix
SECTION_PREFIX = "ecl-"

ConditionSettings = Mapping[str, Any]


def setting_key(name: str) -> str:
    """Return the namespaced settings key for a condition field."""
    return f"{SECTION_PREFIX}{name}"


class ControlType(str, Enum):
    """Control kinds a host can render for a condition field."""
    SWITCHER = "switcher"
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    TEXT = "text"
    QUERY = "query"


@dataclass(frozen=True)
class ControlSpec:
    """Host-side description of one configurable condition field."""
    key: str
    label: str
    control_type: ControlType
    default: Any = None
    options: Dict[str, str] = field(default_factory=dict)
    description: Optional[str] = None
    # Show the control only when these settings hold
    condition: Dict[str, Any] = field(default_factory=dict)


class SubjectContext(ABC):
    """Read-only view of the acting subject's attributes."""

    @abstractmethod
    def attribute(self, name: str) -> Any:
        """Return the attribute value, or None when absent."""

    @property
    def roles(self) -> Sequence[str]:
        return ()


class DictSubjectContext(SubjectContext):
    """Subject context backed by a plain mapping of attributes."""

    def __init__(
        self,
        attributes: Optional[Mapping[str, Any]] = None,
        roles: Optional[Sequence[str]] = None,
    ):
        self._attributes = dict(attributes or {})
        self._roles = tuple(roles or ())

    def attribute(self, name: str) -> Any:
        return self._attributes.get(name)

    @property
    def roles(self) -> Sequence[str]:
        return self._roles

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DictSubjectContext":
        """Build a context from {"attributes": ..., "roles": ...}."""
        return cls(
            attributes=data.get("attributes") or {},
            roles=data.get("roles") or [],
        )


@dataclass
class VisibilityResult:
    """Result of a visibility evaluation."""
    visible: bool
    module_results: Dict[str, bool] = field(default_factory=dict)
    evaluation_time_ms: float = 0.0
    reason: Optional[str] = None

    @property
    def failed_modules(self) -> List[str]:
        return [name for name, passed in self.module_results.items() if not passed]
