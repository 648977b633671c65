"""
Schema upgrade steps.

1.3.0 moves the legacy role fields (``ecl_role_visible``,
``ecl_role_hidden``, ``ecl_enabled``) into the namespaced role condition
settings. Column nodes keep their own settings; their children are still
rewritten. A legacy key is removed only when its value has been carried
over. Nodes that already hold role conditions keep them, so a second pass
over a rewritten tree changes nothing.
"""

from typing import Any, List

from ..conditions.models import setting_key
from ..operators import is_empty
from .models import ContentNode, MigrationStep
from .walker import walk_tree


EXEMPT_TYPE_130 = "column"

LEGACY_ROLE_VISIBLE = "ecl_role_visible"
LEGACY_ROLE_HIDDEN = "ecl_role_hidden"
LEGACY_ENABLED = "ecl_enabled"


def _rewrite_130(node: ContentNode) -> ContentNode:
    if node.get("elType") == EXEMPT_TYPE_130:
        return node

    settings = node.get("settings")
    if not isinstance(settings, dict):
        return node

    conditions_key = setting_key("user_role_conditions")
    if conditions_key not in settings:
        visible = settings.get(LEGACY_ROLE_VISIBLE)
        hidden = settings.get(LEGACY_ROLE_HIDDEN)

        if not is_empty(visible):
            settings[conditions_key] = settings.pop(LEGACY_ROLE_VISIBLE)
            settings[setting_key("show_hide")] = "yes"
        elif not is_empty(hidden):
            settings[conditions_key] = settings.pop(LEGACY_ROLE_HIDDEN)
            settings[setting_key("show_hide")] = ""

    if not is_empty(settings.get(LEGACY_ENABLED)):
        settings.pop(LEGACY_ENABLED)
        settings[setting_key("enabled")] = "yes"
        settings[setting_key("user_role_enabled")] = "yes"

    return node


def upgrade_130(node: Any) -> Any:
    """Rewrite one root node (and its descendants) to the 1.3.0 schema."""
    return walk_tree(node, _rewrite_130)


MIGRATIONS: List[MigrationStep] = [
    MigrationStep(
        version="1.3.0",
        transform=upgrade_130,
        confirm=False,
        description="Move legacy role visibility fields into the role condition settings",
    ),
]
