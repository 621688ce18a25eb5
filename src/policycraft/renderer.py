"""Deterministic natural-language rendering of a policy.

The same function backs the live review step and list views, so a given
policy and lookup tables always produce the same sentence. Lookup misses
degrade to raw identifiers; rendering never raises on partial data.
"""

import logging

from policycraft.conditions import active_conditions
from policycraft.formatting import format_conditions, join_with_oxford_and
from policycraft.models import Effect, Lookups, Policy

logger = logging.getLogger(__name__)

EFFECT_WORDS = {
    Effect.ALLOW: "ALLOWS",
    Effect.DENY: "DENIES",
}

SHORT_SUMMARY_LENGTH = 120


def _unique(ids: list[str]) -> list[str]:
    return list(dict.fromkeys(ids))


def _subject_name(policy: Policy, lookups: Lookups) -> str:
    if policy.subjects:
        subject_id = policy.subjects[0]
    elif policy.rules:
        subject_id = policy.rules[0].subject.type
    else:
        return ""
    subject = lookups.find_subject(subject_id)
    if subject is None or not subject.display_name:
        logger.debug("Subject %s not in lookups, rendering raw id", subject_id)
        return subject_id
    return subject.display_name


def _action_names(policy: Policy, lookups: Lookups) -> list[str]:
    action_ids = policy.actions or _unique([r.action.name for r in policy.rules])
    stored = {r.action.name: r.action.display_name for r in policy.rules}
    names = []
    for action_id in action_ids:
        action = lookups.find_action(action_id)
        if action is not None and action.display_name:
            names.append(action.display_name.lower())
        elif stored.get(action_id):
            names.append(stored[action_id].lower())
        else:
            names.append(action_id)
    return names


def _resource_names(policy: Policy, lookups: Lookups) -> list[str]:
    resource_ids = policy.resources or _unique([r.object.type for r in policy.rules])
    names = []
    for resource_id in resource_ids:
        resource = lookups.find_resource(resource_id)
        if resource is not None and resource.display_name:
            names.append(resource.display_name)
        else:
            names.append(resource_id)
    return names


def _additional_clause(policy: Policy, lookups: Lookups) -> str:
    parts = []
    for additional in policy.additional_resources:
        resource = lookups.find_additional_resource(additional.id)
        if resource is not None:
            label = resource.display_name or resource.name or additional.id
        else:
            label = additional.id
        conditions = format_conditions(additional.attributes, lookups.attributes)
        parts.append(f"{label} (when {conditions})" if conditions else label)
    if not parts:
        return ""
    return f" if {join_with_oxford_and(parts)}"


def render(policy: Policy, lookups: Lookups | None = None) -> str:
    """Render a policy as one human-readable sentence.

    Args:
        policy: The policy to describe. Subject and resource conditions
            are read from its first rule, which every rule shares.
        lookups: Reference data for display names. May be empty.

    Returns:
        A sentence such as "This policy ALLOWS Alice (when department is
        IT) to perform read actions on Documents."
    """
    lookups = lookups or Lookups()
    first_rule = policy.rules[0] if policy.rules else None

    sentence = f"This policy {EFFECT_WORDS.get(policy.effect, 'ALLOWS')} "
    sentence += _subject_name(policy, lookups)

    if first_rule is not None:
        when = format_conditions(first_rule.subject.attributes, lookups.attributes)
        if when:
            sentence += f" (when {when})"

    sentence += f" to perform {join_with_oxford_and(_action_names(policy, lookups))}"
    sentence += f" actions on {join_with_oxford_and(_resource_names(policy, lookups))}"

    if first_rule is not None:
        where = format_conditions(first_rule.object.attributes, lookups.attributes)
        if where:
            sentence += f" (where {where})"

    sentence += _additional_clause(policy, lookups)
    return sentence + "."


def render_short(
    policy: Policy,
    lookups: Lookups | None = None,
    max_length: int = SHORT_SUMMARY_LENGTH,
) -> str:
    """Render a policy, truncated with "..." to fit a list-view column."""
    summary = render(policy, lookups)
    if len(summary) <= max_length:
        return summary
    return summary[: max(max_length - 3, 0)] + "..."


def condition_count(policy: Policy) -> int:
    """Number of active conditions shown in the rendered sentence."""
    if not policy.rules:
        total = 0
    else:
        rule = policy.rules[0]
        total = len(active_conditions(rule.subject.attributes)) + len(
            active_conditions(rule.object.attributes)
        )
    return total + sum(
        len(active_conditions(a.attributes)) for a in policy.additional_resources
    )
