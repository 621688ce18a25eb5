"""Tests for natural-language policy rendering."""

from datetime import datetime

import pytest

from policycraft.assembly import assemble_policy
from policycraft.conditions import ConditionSet
from policycraft.models import (
    ActionClause,
    AdditionalResource,
    AttributeCondition,
    DateRange,
    Effect,
    Lookups,
    ObjectClause,
    Policy,
    Rule,
    SubjectClause,
)
from policycraft.renderer import condition_count, render, render_short
from policycraft.wizard import FormState

NOW = datetime(2026, 2, 28, 12, 0, 0)


def _policy(
    subject_conditions=None,
    resource_conditions=None,
    actions=("read",),
    resources=("documents",),
    subject="alice",
    **kwargs,
) -> Policy:
    rules = [
        Rule(
            id=f"rule-0-{i}",
            subject=SubjectClause(subject, list(subject_conditions or [])),
            action=ActionClause(action, action),
            object=ObjectClause(resource, list(resource_conditions or [])),
        )
        for i, (action, resource) in enumerate(
            (a, r) for a in actions for r in resources
        )
    ]
    return Policy(
        name="Test policy",
        rules=rules,
        subjects=[subject],
        actions=list(actions),
        resources=list(resources),
        **kwargs,
    )


# --------------------------------------------------------------------------- #
# End-to-end scenarios
# --------------------------------------------------------------------------- #


class TestScenarios:
    def test_single_subject_condition(self, lookups):
        policy = _policy([AttributeCondition("department", "equals", "IT")])
        assert render(policy, lookups) == (
            "This policy ALLOWS Alice (when department is IT) "
            "to perform read actions on Documents."
        )

    def test_multiple_actions_and_resources(self, lookups):
        policy = _policy(actions=("read", "write"), resources=("documents", "database"))
        assert render(policy, lookups) == (
            "This policy ALLOWS Alice to perform read and write actions "
            "on Documents and Database."
        )

    def test_three_actions_use_oxford_comma(self, lookups):
        policy = _policy(actions=("read", "write", "delete"))
        assert "to perform read, write, and delete actions" in render(policy, lookups)

    def test_deny(self, lookups):
        policy = _policy(effect=Effect.DENY)
        assert render(policy, lookups).startswith("This policy DENIES Alice")

    def test_resource_conditions(self, lookups):
        policy = _policy(
            resource_conditions=[
                AttributeCondition("classification", "in", ["internal", "confidential"])
            ]
        )
        assert render(policy, lookups) == (
            "This policy ALLOWS Alice to perform read actions on Documents "
            "(where classification is one of internal or confidential)."
        )

    def test_both_condition_sets(self, lookups):
        policy = _policy(
            subject_conditions=[
                AttributeCondition("department", "equals", "IT"),
                AttributeCondition("clearance", "greater_than_or_equal", 3),
            ],
            resource_conditions=[
                AttributeCondition(
                    "expires_on", "between", DateRange("2026-01-01", "2026-12-31")
                )
            ],
        )
        assert render(policy, lookups) == (
            "This policy ALLOWS Alice (when department is IT, and clearance is "
            "greater than or equal to 3) to perform read actions on Documents "
            "(where expires_on is between 01/01/2026 and 12/31/2026)."
        )

    def test_inactive_conditions_omit_parenthetical(self, lookups):
        policy = _policy([AttributeCondition("department", "equals", "")])
        assert "(when" not in render(policy, lookups)

    def test_additional_resources(self, lookups):
        policy = _policy(
            additional_resources=[
                AdditionalResource(
                    "vpn", [AttributeCondition("connected", "equals", True)]
                ),
                AdditionalResource("reports"),
            ]
        )
        assert render(policy, lookups).endswith(
            "on Documents if Corporate VPN (when connected is true) and Reports."
        )


# --------------------------------------------------------------------------- #
# Fallbacks
# --------------------------------------------------------------------------- #


class TestFallbacks:
    def test_unknown_subject_renders_raw_id(self, lookups):
        policy = _policy(subject="user-42")
        sentence = render(policy, lookups)
        assert sentence.startswith("This policy ALLOWS user-42 to perform")

    def test_empty_lookups(self):
        policy = _policy(
            [AttributeCondition("dept", "equals", "IT")],
            actions=("read", "write"),
        )
        assert render(policy, Lookups()) == (
            "This policy ALLOWS alice (when dept is IT) to perform read and write "
            "actions on documents."
        )

    def test_no_lookups_argument(self):
        assert render(_policy()) == render(_policy(), Lookups())

    def test_action_falls_back_to_stored_display_name(self):
        policy = _policy()
        policy.rules[0].action = ActionClause("read", "Read Files")
        assert "to perform read files actions" in render(policy, Lookups())

    def test_unknown_operator_renders_as_is(self, lookups):
        policy = _policy([AttributeCondition("department", "sounds_like", "IT")])
        assert "(when department is IT)" in render(policy, lookups)

    def test_unparseable_date_renders_raw(self, lookups):
        policy = _policy(
            resource_conditions=[
                AttributeCondition("expires_on", "before", "end of Q3")
            ]
        )
        assert "(where expires_on is before end of Q3)" in render(policy, lookups)

    def test_selections_missing_falls_back_to_rules(self, lookups):
        policy = _policy(actions=("read", "write"))
        policy.subjects = []
        policy.actions = []
        policy.resources = []
        assert render(policy, lookups) == (
            "This policy ALLOWS Alice to perform read and write actions on Documents."
        )

    def test_empty_policy_does_not_raise(self):
        sentence = render(Policy(name="x"))
        assert sentence == "This policy ALLOWS  to perform  actions on ."


# --------------------------------------------------------------------------- #
# Determinism and wizard integration
# --------------------------------------------------------------------------- #


class TestDeterminism:
    def test_same_inputs_same_output(self, lookups):
        policy = _policy(
            [AttributeCondition("department", "in", ["IT", "HR"])],
            actions=("read", "write"),
        )
        assert render(policy, lookups) == render(policy, lookups)

    def test_assembled_policy_renders(self, lookups, department):
        conditions = ConditionSet([department])
        conditions.set_value("department", "IT")
        state = FormState(
            name="IT reads documents",
            subjects=["alice"],
            actions=["read"],
            resources=["documents"],
            subject_conditions=conditions,
        )
        policy = assemble_policy(state, lookups=lookups, now=NOW)
        assert render(policy, lookups) == (
            "This policy ALLOWS Alice (when department is IT) "
            "to perform read actions on Documents."
        )


class TestRenderShort:
    def test_short_enough_is_unchanged(self, lookups):
        policy = _policy()
        assert render_short(policy, lookups) == render(policy, lookups)

    def test_truncates_with_ellipsis(self, lookups):
        policy = _policy(actions=("read", "write", "delete"))
        short = render_short(policy, lookups, max_length=40)
        assert len(short) == 40
        assert short.endswith("...")
        assert short[:-3] == render(policy, lookups)[:37]

    @pytest.mark.parametrize("length", [120, 200])
    def test_default_length_bound(self, lookups, length):
        policy = _policy(
            [AttributeCondition("department", "in", ["IT", "HR", "Finance"])],
            actions=("read", "write", "delete"),
            resources=("documents", "database", "reports"),
        )
        assert len(render_short(policy, lookups, length)) <= length


class TestConditionCount:
    def test_counts_active_conditions(self):
        policy = _policy(
            [
                AttributeCondition("department", "equals", "IT"),
                AttributeCondition("clearance", "equals", ""),
            ],
            [AttributeCondition("classification", "equals", "public")],
            additional_resources=[
                AdditionalResource(
                    "vpn", [AttributeCondition("connected", "equals", True)]
                )
            ],
        )
        assert condition_count(policy) == 3

    def test_no_rules(self):
        assert condition_count(Policy(name="x")) == 0
