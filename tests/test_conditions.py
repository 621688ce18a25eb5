"""Tests for condition filtering, condition sets and value validation."""

import pytest

from policycraft.conditions import (
    ConditionSet,
    active_conditions,
    is_active,
    validate_condition_value,
)
from policycraft.models import (
    Attribute,
    AttributeCondition,
    AttributeConstraints,
    DataType,
    DateRange,
)


class TestActiveConditions:
    @pytest.mark.parametrize("value", [None, ""])
    def test_sentinels_are_inactive(self, value):
        assert not is_active(value)

    @pytest.mark.parametrize("value", [0, False, "0", [], "IT"])
    def test_other_values_are_active(self, value):
        assert is_active(value)

    def test_filter_preserves_order(self):
        conditions = [
            AttributeCondition("a", "equals", "1"),
            AttributeCondition("b", "equals", ""),
            AttributeCondition("c", "equals", "3"),
            AttributeCondition("d", "equals", None),
        ]
        assert [c.name for c in active_conditions(conditions)] == ["a", "c"]

    def test_filter_is_idempotent(self):
        conditions = [
            AttributeCondition("a", "equals", "1"),
            AttributeCondition("b", "equals", ""),
        ]
        once = active_conditions(conditions)
        assert active_conditions(once) == once

    def test_none_input(self):
        assert active_conditions(None) == []


class TestConditionSet:
    def test_conditions_follow_selection_order(self, department, clearance):
        cs = ConditionSet([clearance, department])
        cs.set_value("department", "IT")
        cs.set_value("clearance", 3)
        assert [c.name for c in cs.conditions()] == ["clearance", "department"]

    def test_select_is_idempotent(self, department):
        cs = ConditionSet()
        cs.select(department)
        cs.select(department)
        assert len(cs) == 1

    def test_default_operator_inferred_from_value(self, department, clearance):
        cs = ConditionSet([department, clearance])
        cs.set_value("department", ["IT", "HR"])
        cs.set_value("clearance", 3)
        operators = {c.name: c.operator for c in cs.conditions()}
        assert operators == {"department": "in", "clearance": "equals"}

    def test_explicit_operator_wins(self, clearance):
        cs = ConditionSet([clearance])
        cs.set_value("clearance", 3)
        cs.set_operator("clearance", "greater_than")
        assert cs.conditions() == [AttributeCondition("clearance", "greater_than", 3)]

    def test_unset_values_are_filtered(self, department, clearance):
        cs = ConditionSet([department, clearance])
        cs.set_value("department", "IT")
        assert [c.name for c in cs.conditions()] == ["department"]

    def test_deselect_drops_value_and_operator(self, department):
        cs = ConditionSet([department])
        cs.set_value("department", "IT")
        cs.set_operator("department", "not_equals")
        cs.deselect("department")
        assert not cs.is_selected("department")
        assert cs.values == {}
        assert cs.operators == {}

    def test_set_value_on_unselected_attribute_is_ignored(self, department):
        cs = ConditionSet()
        cs.set_value("department", "IT")
        cs.set_operator("department", "in")
        assert cs.values == {}
        assert cs.operators == {}
        assert cs.conditions() == []

    def test_set_selection_keeps_surviving_values(self, department, clearance):
        cs = ConditionSet([department, clearance])
        cs.set_value("department", "IT")
        cs.set_value("clearance", 3)
        cs.set_selection([clearance])
        assert cs.values == {"clearance": 3}
        assert [a.id for a in cs.attributes] == ["clearance"]

    def test_set_selection_appends_new_attributes(self, department, clearance):
        cs = ConditionSet([department])
        cs.set_selection([department, clearance])
        assert [a.id for a in cs.attributes] == ["department", "clearance"]

    def test_conditions_use_attribute_name(self):
        attr = Attribute(
            id="cost_center", name="costCenter", display_name="Cost_Center"
        )
        cs = ConditionSet([attr])
        cs.set_value("cost_center", "42")
        assert cs.conditions()[0].name == "costCenter"

    def test_errors_keyed_by_attribute_id(self, department, clearance):
        cs = ConditionSet([department, clearance])
        cs.set_value("department", "Marketing")
        cs.set_value("clearance", 4)
        assert cs.errors() == {"department": "Value must be one of: IT, HR, Finance"}


class TestValidateConditionValue:
    def test_inactive_value_is_acceptable(self, clearance):
        assert validate_condition_value(clearance, "") == ""
        assert validate_condition_value(clearance, None) == ""

    def test_enum_membership(self, department):
        assert validate_condition_value(department, "IT") == ""
        assert (
            validate_condition_value(department, "Sales")
            == "Value must be one of: IT, HR, Finance"
        )

    def test_number_bounds(self, clearance):
        assert validate_condition_value(clearance, 3) == ""
        assert validate_condition_value(clearance, "5") == ""
        assert validate_condition_value(clearance, 0) == "Value must be at least 1"
        assert validate_condition_value(clearance, 6) == "Value cannot exceed 5"
        assert validate_condition_value(clearance, "high") == "Value must be a number"
        assert validate_condition_value(clearance, True) == "Value must be a number"

    def test_dates(self, expires_on):
        assert validate_condition_value(expires_on, "2024-06-01") == ""
        assert (
            validate_condition_value(expires_on, "someday")
            == "Value must be a valid date"
        )

    def test_date_range(self, expires_on):
        year = DateRange("2024-01-01", "2024-12-31")
        assert validate_condition_value(expires_on, year) == ""
        assert (
            validate_condition_value(
                expires_on, {"start": "2024-01-01", "end": "never"}
            )
            == "Value must be a valid date"
        )

    def test_range_on_string_attribute(self):
        attr = Attribute(id="team", name="team", display_name="Team")
        assert (
            validate_condition_value(attr, DateRange("a", "b"))
            == "Ranges are only supported for date and number attributes"
        )

    def test_incomplete_range(self, clearance):
        assert (
            validate_condition_value(clearance, {"start": 1})
            == "Range must have a start and an end"
        )

    def test_boolean(self, connected):
        assert validate_condition_value(connected, True) == ""
        assert validate_condition_value(connected, "false") == ""
        assert (
            validate_condition_value(connected, "maybe")
            == "Value must be true or false"
        )

    def test_string_constraints(self):
        attr = Attribute(
            id="code",
            name="code",
            display_name="Code",
            data_type=DataType.STRING,
            constraints=AttributeConstraints(
                min_length=2, max_length=4, pattern=r"[A-Z]+"
            ),
        )
        assert validate_condition_value(attr, "ABC") == ""
        assert (
            validate_condition_value(attr, "A")
            == "Value must be at least 2 characters"
        )
        assert (
            validate_condition_value(attr, "ABCDE")
            == "Value cannot exceed 4 characters"
        )
        assert (
            validate_condition_value(attr, "ab")
            == "Value does not match the required pattern"
        )


class TestMultiValue:
    @pytest.fixture
    def roles(self) -> Attribute:
        return Attribute(
            id="roles",
            name="roles",
            display_name="Roles",
            is_multi_value=True,
            constraints=AttributeConstraints(enum_values=["admin", "editor"]),
        )

    def test_single_value_rejects_collection(self, department):
        assert (
            validate_condition_value(department, ["IT", "HR"])
            == "Value must be a single value"
        )
        assert (
            validate_condition_value(department, ("IT",))
            == "Value must be a single value"
        )

    def test_multi_value_rejects_scalar(self, roles):
        assert (
            validate_condition_value(roles, "admin")
            == "Value must be a list of values"
        )

    def test_multi_value_subset_of_enum(self, roles):
        assert validate_condition_value(roles, ["admin", "editor"]) == ""
        assert validate_condition_value(roles, []) == ""
        assert (
            validate_condition_value(roles, ["admin", "owner"])
            == "Value must be one of: admin, editor"
        )

    def test_ranges_are_exempt(self, clearance):
        assert validate_condition_value(clearance, DateRange(1, 3)) == ""
        assert validate_condition_value(clearance, [1, 3], "between") == ""
        assert (
            validate_condition_value(clearance, [1, 9], "between")
            == "Value cannot exceed 5"
        )

    def test_malformed_between_list(self, clearance):
        assert (
            validate_condition_value(clearance, [1, 2, 3], "between")
            == "Range must have a start and an end"
        )

    def test_condition_set_passes_operator(self, department, clearance):
        cs = ConditionSet([department, clearance])
        cs.set_value("department", ["IT", "HR"])
        cs.set_value("clearance", [2, 4])
        cs.set_operator("clearance", "between")
        assert cs.errors() == {"department": "Value must be a single value"}
