"""Assembles the submission payload from wizard form state."""

import logging
from datetime import datetime

from policycraft.errors import IncompleteFormError
from policycraft.models import (
    ActionClause,
    AdditionalResource,
    Lookups,
    ObjectClause,
    Policy,
    PolicyStatus,
    Rule,
    SubjectClause,
)
from policycraft.wizard import FormState, invalid_steps

logger = logging.getLogger(__name__)


def build_rules(
    state: FormState, lookups: Lookups | None = None, now: datetime | None = None
) -> list[Rule]:
    """Build one rule per (action, resource) pair, action-major.

    Every rule uses the first selected subject and the same subject and
    resource conditions.

    Args:
        state: The form state to read selections and conditions from.
        lookups: Reference data used to resolve action display names.
            Misses fall back to the raw action ID.
        now: Timestamp embedded in rule IDs. Defaults to the current time.

    Returns:
        ``len(actions) * len(resources)`` rules.
    """
    lookups = lookups or Lookups()
    stamp = int((now or datetime.now()).timestamp() * 1000)
    subject_id = state.subjects[0] if state.subjects else ""
    subject_conditions = state.subject_conditions.conditions()
    resource_conditions = state.resource_conditions.conditions()

    rules: list[Rule] = []
    for action_index, action_id in enumerate(state.actions):
        action = lookups.find_action(action_id)
        if action is not None and action.display_name:
            display_name = action.display_name
        else:
            display_name = action_id
        for resource_index, resource_id in enumerate(state.resources):
            rule_index = action_index * len(state.resources) + resource_index
            rules.append(
                Rule(
                    id=f"rule-{stamp}-{rule_index}",
                    subject=SubjectClause(subject_id, list(subject_conditions)),
                    action=ActionClause(action_id, display_name),
                    object=ObjectClause(resource_id, list(resource_conditions)),
                )
            )
    return rules


def draft_policy(
    state: FormState,
    status: PolicyStatus = PolicyStatus.DRAFT,
    lookups: Lookups | None = None,
    now: datetime | None = None,
) -> Policy:
    """Build a Policy from the form state without validating it.

    Used for the live preview while the form is still incomplete.
    """
    additional = []
    for resource_id in state.additional_resources:
        condition_set = state.additional_resource_conditions.get(resource_id)
        conditions = condition_set.conditions() if condition_set else []
        additional.append(AdditionalResource(resource_id, conditions))

    return Policy(
        name=state.name.strip(),
        description=state.description.strip(),
        effect=state.effect,
        status=status,
        priority=state.priority,
        rules=build_rules(state, lookups, now),
        subjects=list(state.subjects),
        actions=list(state.actions),
        resources=list(state.resources),
        additional_resources=additional,
        workspace_id=state.workspace_id,
        application_id=state.application_id,
        environment_id=state.environment_id,
    )


def assemble_policy(
    state: FormState,
    status: PolicyStatus = PolicyStatus.DRAFT,
    lookups: Lookups | None = None,
    now: datetime | None = None,
) -> Policy:
    """Materialize a Policy from the form state.

    Validation is re-checked here rather than inferred from the wizard
    position.

    Args:
        state: The completed form state.
        status: DRAFT for "Save as Draft", ACTIVE for "Publish".
        lookups: Reference data for display-name resolution.
        now: Timestamp used for rule IDs.

    Returns:
        The Policy to hand to the persistence layer.

    Raises:
        IncompleteFormError: If any required step is invalid.
    """
    failing = invalid_steps(state)
    if failing:
        logger.info(
            "Rejected %s submission, invalid steps: %s",
            status.value,
            ", ".join(step.value for step in failing),
        )
        raise IncompleteFormError(failing)

    policy = draft_policy(state, status, lookups, now)
    logger.debug("Assembled policy %r with %d rules", policy.name, len(policy.rules))
    return policy
