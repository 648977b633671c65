"""
Condition evaluation package.

Condition modules each own a slice of an item's settings and decide, for
a given subject, whether their condition holds. The aggregator ANDs the
results of every enabled module into one visibility decision.

Modules of interest:
- models: settings keys, subject context and result types.
- base: the ConditionModule interface.
- user_meta / user_role: shipped modules.
- aggregator: module registry and the combined decision.
"""

from .aggregator import VisibilityAggregator, default_modules
from .base import ConditionModule
from .models import DictSubjectContext, SubjectContext, VisibilityResult, SECTION_PREFIX, setting_key
from .user_meta import UserMetaCondition
from .user_role import UserRoleCondition

__all__ = [
    "ConditionModule",
    "DictSubjectContext",
    "SECTION_PREFIX",
    "SubjectContext",
    "UserMetaCondition",
    "UserRoleCondition",
    "VisibilityAggregator",
    "VisibilityResult",
    "default_modules",
    "setting_key",
]
