"""
User meta condition: compares stored subject attributes against a configured operator.
"""

from typing import Any, List

from shared.logging import get_logger

from ..operators import Operator, evaluate_operator
from .base import ConditionModule
from .models import ConditionSettings, ControlSpec, ControlType, SubjectContext, setting_key


OPERATOR_LABELS = {
    Operator.NONE.value: "None",
    Operator.EMPTY.value: "Empty",
    Operator.NOT_EMPTY.value: "Not empty",
    Operator.SPECIFIC_VALUE.value: "Is equal to",
    Operator.SPECIFIC_VALUE_MULTIPLE.value: "Is equal to one of",
    Operator.NOT_SPECIFIC_VALUE.value: "Not equal to",
    Operator.CONTAIN.value: "Contains",
    Operator.NOT_CONTAIN.value: "Does not contain",
    Operator.IS_BETWEEN.value: "Between",
    Operator.LESS_THAN.value: "Less than",
    Operator.GREATER_THAN.value: "Greater than",
    Operator.IS_ARRAY.value: "Is array",
    Operator.IS_ARRAY_AND_CONTAINS.value: "Is array and contains",
}

VALUE_OPERATORS = [
    Operator.SPECIFIC_VALUE.value,
    Operator.SPECIFIC_VALUE_MULTIPLE.value,
    Operator.NOT_SPECIFIC_VALUE.value,
    Operator.CONTAIN.value,
    Operator.NOT_CONTAIN.value,
    Operator.IS_BETWEEN.value,
    Operator.LESS_THAN.value,
    Operator.GREATER_THAN.value,
    Operator.IS_ARRAY_AND_CONTAINS.value,
]


def as_name_list(value: Any) -> List[str]:
    """Normalize a multi-select setting to a list of non-empty strings."""
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, (list, tuple)):
        return [item for item in value if isinstance(item, str) and item]
    return []


class UserMetaCondition(ConditionModule):
    """Every selected attribute must satisfy the configured operator."""

    name = "user_meta"
    enabled_key = "user_meta_enabled"

    def __init__(self):
        self.logger = get_logger("visibility.conditions.user_meta")

    def evaluate(self, settings: ConditionSettings, context: SubjectContext) -> bool:
        attributes = as_name_list(settings.get(setting_key("user_meta_options")))
        operator = settings.get(setting_key("user_meta_status")) or Operator.NONE.value
        value = settings.get(setting_key("user_meta_value"))
        value_2 = settings.get(setting_key("user_meta_value_2"))

        for attribute in attributes:
            subject = context.attribute(attribute)
            if not evaluate_operator(operator, subject, value, value_2):
                self.logger.debug(
                    "User meta condition not met",
                    attribute=attribute,
                    operator=operator
                )
                return False

        return True

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
                key=setting_key("user_meta_options"),
                label="Meta Name",
                control_type=ControlType.QUERY,
                default=[],
                condition=enabled,
            ),
            ControlSpec(
                key=setting_key("user_meta_status"),
                label="Meta Condition",
                control_type=ControlType.SELECT,
                default=Operator.NONE.value,
                options=dict(OPERATOR_LABELS),
                description="Select the condition for the User Meta value",
                condition=enabled,
            ),
            ControlSpec(
                key=setting_key("user_meta_value"),
                label="Condition Value",
                control_type=ControlType.TEXT,
                description="Comma separated for 'one of' and array checks; numeric for range checks",
                condition={**enabled, setting_key("user_meta_status"): VALUE_OPERATORS},
            ),
            ControlSpec(
                key=setting_key("user_meta_value_2"),
                label="Condition Value 2",
                control_type=ControlType.TEXT,
                condition={**enabled, setting_key("user_meta_status"): Operator.IS_BETWEEN.value},
            ),
        ]
