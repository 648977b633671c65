"""
User role condition: show or hide content for subjects holding selected roles.
"""

from typing import List

from .base import ConditionModule
from .models import ConditionSettings, ControlSpec, ControlType, SubjectContext, setting_key
from .user_meta import as_name_list


class UserRoleCondition(ConditionModule):
    """Match the subject's roles against the configured role list.

    ``show_hide`` is "yes" to show content to matching subjects and ""
    to hide it from them.
    """

    name = "user_role"
    enabled_key = "user_role_enabled"

    def evaluate(self, settings: ConditionSettings, context: SubjectContext) -> bool:
        wanted = set(as_name_list(settings.get(setting_key("user_role_conditions"))))
        if not wanted:
            return True

        matched = bool(wanted & set(context.roles))
        if settings.get(setting_key("show_hide")) == "yes":
            return matched
        return not matched

    def settings_schema(self) -> List[ControlSpec]:
        enabled = {setting_key(self.enabled_key): "yes"}
        return [
            ControlSpec(
                key=setting_key(self.enabled_key),
                label="Enable",
                control_type=ControlType.SWITCHER,
                default="",
            ),
            ControlSpec(
                key=setting_key("show_hide"),
                label="Show/Hide",
                control_type=ControlType.SWITCHER,
                default="yes",
                description="Show content to the selected roles, or hide it from them",
                condition=enabled,
            ),
            ControlSpec(
                key=setting_key("user_role_conditions"),
                label="Roles",
                control_type=ControlType.MULTI_SELECT,
                default=[],
                condition=enabled,
            ),
        ]
