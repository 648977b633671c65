"""
Unit tests for the condition operator registry.
"""

import pytest

from service_visibility.app.operators import (
    OPERATORS, Operator, evaluate_operator, is_empty, is_numeric, register_operator, split_values, to_int
)


class TestOperatorHelpers:
    """Test cases for the numeric and emptiness helpers."""

    @pytest.mark.parametrize("value", [5, -3, 2.5, "10", " 42 ", "-7", "3.9", "1e3", ".5"])
    def test_is_numeric_true(self, value):
        """Test values that parse as numbers."""
        assert is_numeric(value) is True

    @pytest.mark.parametrize("value", ["abc", "", None, True, False, [], "1,5", "12abc", "inf", float("nan")])
    def test_is_numeric_false(self, value):
        """Test values that do not parse as numbers."""
        assert is_numeric(value) is False

    def test_to_int_truncates_toward_zero(self):
        """Test integer truncation."""
        assert to_int("3.9") == 3
        assert to_int("-3.9") == -3
        assert to_int(7.99) == 7
        assert to_int("1e3") == 1000

    @pytest.mark.parametrize("value", [None, "", "0", 0, 0.0, False, [], {}])
    def test_is_empty_true(self, value):
        """Test values considered empty."""
        assert is_empty(value) is True

    @pytest.mark.parametrize("value", ["a", "00", 1, True, ["x"], {"k": "v"}])
    def test_is_empty_false(self, value):
        """Test values considered present."""
        assert is_empty(value) is False

    def test_split_values(self):
        """Test comma splitting of operands."""
        assert split_values("a,b,c") == ["a", "b", "c"]
        assert split_values("a, b") == ["a", " b"]
        assert split_values(None) == []


class TestOperators:
    """Test cases for each operator."""

    def test_none_operator_passes(self):
        """Test that an unconfigured operator does not filter."""
        assert evaluate_operator("none", "anything") is True

    def test_empty(self):
        """Test empty and not_empty."""
        assert evaluate_operator("empty", None) is True
        assert evaluate_operator("empty", "") is True
        assert evaluate_operator("empty", "value") is False
        assert evaluate_operator("not_empty", "value") is True
        assert evaluate_operator("not_empty", None) is False

    def test_specific_value(self):
        """Test exact string equality."""
        assert evaluate_operator("specific_value", "gold", "gold") is True
        assert evaluate_operator("specific_value", "Gold", "gold") is False
        assert evaluate_operator("specific_value", None, "gold") is False

    def test_specific_value_is_type_strict(self):
        """Test that a non-string subject never equals the string operand."""
        assert evaluate_operator("specific_value", 5, "5") is False
        assert evaluate_operator("not_specific_value", 5, "5") is True

    def test_specific_value_multiple(self):
        """Test equality against a comma separated list."""
        assert evaluate_operator("specific_value_multiple", "b", "a,b,c") is True
        assert evaluate_operator("specific_value_multiple", "x", "a,b,c") is False
        assert evaluate_operator("specific_value_multiple", None, "a,b,c") is False

    def test_specific_value_multiple_keeps_whitespace(self):
        """Test that operand items are compared exactly, spaces included."""
        assert evaluate_operator("specific_value_multiple", " b", "a, b,c") is True
        assert evaluate_operator("specific_value_multiple", "b", "a, b,c") is False

    def test_not_specific_value(self):
        """Test negated equality."""
        assert evaluate_operator("not_specific_value", "gold", "silver") is True
        assert evaluate_operator("not_specific_value", "gold", "gold") is False

    def test_contain(self):
        """Test substring presence and absence."""
        assert evaluate_operator("contain", "premium-member", "premium") is True
        assert evaluate_operator("contain", "basic-member", "premium") is False
        assert evaluate_operator("not_contain", "basic-member", "premium") is True
        assert evaluate_operator("not_contain", "premium-member", "premium") is False

    def test_contain_absent_subject(self):
        """Test that an absent attribute reads as an empty string."""
        assert evaluate_operator("contain", None, "premium") is False
        assert evaluate_operator("not_contain", None, "premium") is True

    def test_contain_list_subject_fails_closed(self):
        """Test that containers are not searched as strings."""
        assert evaluate_operator("contain", ["premium"], "premium") is False
        assert evaluate_operator("not_contain", ["premium"], "premium") is False

    def test_is_between(self):
        """Test inclusive numeric range."""
        assert evaluate_operator("is_between", 5, "1", "10") is True
        assert evaluate_operator("is_between", 15, "1", "10") is False
        assert evaluate_operator("is_between", "abc", "1", "10") is False
        assert evaluate_operator("is_between", "1", "1", "10") is True
        assert evaluate_operator("is_between", "10", "1", "10") is True

    def test_is_between_truncates(self):
        """Test integer truncation before comparing."""
        assert evaluate_operator("is_between", "10.9", "1", "10") is True

    def test_is_between_missing_upper_bound(self):
        """Test that a missing second operand fails closed."""
        assert evaluate_operator("is_between", 5, "1") is False

    def test_less_than(self):
        """Test strict less-than."""
        assert evaluate_operator("less_than", "3", "5") is True
        assert evaluate_operator("less_than", "5", "5") is False
        assert evaluate_operator("less_than", "7", "5") is False
        assert evaluate_operator("less_than", "x", "5") is False

    def test_greater_than(self):
        """Test strict greater-than."""
        assert evaluate_operator("greater_than", 7, "5") is True
        assert evaluate_operator("greater_than", 5, "5") is False
        assert evaluate_operator("greater_than", 7, "five") is False

    def test_is_array(self):
        """Test list detection."""
        assert evaluate_operator("is_array", ["a"]) is True
        assert evaluate_operator("is_array", []) is True
        assert evaluate_operator("is_array", "a") is False
        assert evaluate_operator("is_array", None) is False

    def test_is_array_and_contains(self):
        """Test list intersection with a comma separated operand."""
        assert evaluate_operator("is_array_and_contains", ["red", "blue"], "green,blue") is True
        assert evaluate_operator("is_array_and_contains", ["red"], "green,blue") is False
        assert evaluate_operator("is_array_and_contains", "blue", "green,blue") is False
        assert evaluate_operator("is_array_and_contains", [1, 2], "2,3") is True
        assert evaluate_operator("is_array_and_contains", ["blue"], "green, blue") is False

    def test_unknown_operator_fails_closed(self):
        """Test that unrecognized operators evaluate to False."""
        assert evaluate_operator("matches_regex", "a", "a") is False
        assert evaluate_operator(None, "a", "a") is False

    def test_enum_operator_accepted(self):
        """Test passing Operator members instead of strings."""
        assert evaluate_operator(Operator.GREATER_THAN, 7, "5") is True

    @pytest.mark.parametrize("operator", [op.value for op in Operator])
    @pytest.mark.parametrize("subject", [None, "", "abc", 3, [1, "a"], {"k": 1}, object()])
    def test_operators_never_raise(self, operator, subject):
        """Test that odd subjects and operands never raise."""
        result = evaluate_operator(operator, subject, {"bad": "operand"}, ["also", "bad"])
        assert isinstance(result, bool)

    def test_overflow_fails_closed(self):
        """Test that numbers too large to truncate evaluate to False."""
        assert evaluate_operator("less_than", "1e400", "5") is False


class TestOperatorRegistration:
    """Test cases for registering extra operators."""

    def test_register_operator(self):
        """Test that a registered operator is used."""
        register_operator("starts_with", lambda subject, value, value_2: str(subject).startswith(value))
        try:
            assert evaluate_operator("starts_with", "premium", "pre") is True
            assert evaluate_operator("starts_with", "basic", "pre") is False
        finally:
            OPERATORS.pop("starts_with", None)

    def test_raising_operator_fails_closed(self):
        """Test that an operator raising an exception evaluates to False."""
        def broken(subject, value, value_2):
            raise RuntimeError("boom")

        register_operator("broken", broken)
        try:
            assert evaluate_operator("broken", "a") is False
        finally:
            OPERATORS.pop("broken", None)
