"""Loading and saving policy documents and lookup tables.

Documents use the persisted camelCase shape. Lookup tables are tolerant:
null, non-list or partial data is treated as empty rather than failing.
Policy documents are strict, since a malformed document is a persistence
problem, and raise PolicyDocumentError.
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from policycraft.attributes import attribute_id_from_display_name
from policycraft.conditions import ConditionSet
from policycraft.errors import PolicyDocumentError
from policycraft.models import (
    Action,
    ActionClause,
    AdditionalResource,
    Attribute,
    AttributeCategory,
    AttributeCondition,
    AttributeConstraints,
    DataType,
    DateConfig,
    DateRange,
    Effect,
    Lookups,
    ObjectClause,
    Policy,
    PolicyMetadata,
    PolicyStatus,
    Resource,
    Rule,
    Subject,
    SubjectClause,
)
from policycraft.operators import default_operator
from policycraft.wizard import FormState

logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------- #
# Lookup tables
# --------------------------------------------------------------------------- #


def _entries(data: Any, key: str) -> list[dict]:
    if not isinstance(data, dict):
        return []
    raw = data.get(key)
    if not isinstance(raw, list):
        if raw is not None:
            logger.debug("Lookup table %r is not a list, treating as empty", key)
        return []
    return [entry for entry in raw if isinstance(entry, dict)]


def _entry_id(entry: dict) -> str | None:
    value = entry.get("id") or entry.get("_id")
    return str(value) if value else None


def _reference(entry: dict) -> dict | None:
    entry_id = _entry_id(entry)
    if entry_id is None:
        return None
    return {
        "id": entry_id,
        "display_name": str(entry.get("displayName") or entry.get("name") or ""),
        "name": str(entry.get("name") or ""),
        "kind": str(entry.get("type") or entry.get("category") or ""),
    }


def _category(value: Any) -> AttributeCategory | None:
    try:
        return AttributeCategory(value)
    except ValueError:
        logger.debug("Unknown attribute category %r ignored", value)
        return None


def _optional_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _optional_int(value: Any) -> int | None:
    number = _optional_number(value)
    return int(number) if number is not None else None


def attribute_from_dict(entry: dict) -> Attribute | None:
    """Build an Attribute from a lookup entry, or None if it has no identity."""
    display_name = str(entry.get("displayName") or entry.get("name") or "")
    attribute_id = _entry_id(entry) or (
        attribute_id_from_display_name(display_name) if display_name else None
    )
    if attribute_id is None:
        return None

    try:
        data_type = DataType(entry.get("dataType", "string"))
    except ValueError:
        logger.debug("Attribute %s has unknown data type, using string", attribute_id)
        data_type = DataType.STRING

    raw_categories = entry.get("categories")
    categories: tuple[AttributeCategory, ...] = ()
    if isinstance(raw_categories, list):
        categories = tuple(
            c for c in (_category(v) for v in raw_categories) if c is not None
        )
    legacy = _category(entry["category"]) if entry.get("category") else None

    raw_constraints = entry.get("constraints")
    if not isinstance(raw_constraints, dict):
        raw_constraints = {}
    enum_values = raw_constraints.get("enumValues")
    constraints = AttributeConstraints(
        enum_values=list(enum_values) if isinstance(enum_values, list) else None,
        min_value=_optional_number(raw_constraints.get("minValue")),
        max_value=_optional_number(raw_constraints.get("maxValue")),
        min_length=_optional_int(raw_constraints.get("minLength")),
        max_length=_optional_int(raw_constraints.get("maxLength")),
        pattern=raw_constraints.get("pattern") or None,
    )

    raw_date_config = entry.get("dateConfig")
    include_time = (
        bool(raw_date_config.get("includeTime"))
        if isinstance(raw_date_config, dict)
        else False
    )

    return Attribute(
        id=attribute_id,
        name=str(entry.get("name") or attribute_id),
        display_name=display_name or attribute_id,
        data_type=data_type,
        categories=categories,
        category=legacy,
        is_required=bool(entry.get("isRequired", False)),
        is_multi_value=bool(entry.get("isMultiValue", False)),
        constraints=constraints,
        date_config=DateConfig(include_time=include_time),
        active=bool(entry.get("active", True)),
        description=str(entry.get("description") or ""),
    )


def lookups_from_dict(data: Any) -> Lookups:
    """Build lookup tables from a mapping of raw API responses.

    Missing, null or non-list tables become empty; entries without an
    identifier are skipped.
    """

    def _refs(key: str, cls: type) -> list:
        built = []
        for entry in _entries(data, key):
            fields = _reference(entry)
            if fields is None:
                logger.debug("Skipping %s entry without an id", key)
                continue
            built.append(cls(**fields))
        return built

    attributes = []
    for entry in _entries(data, "attributes"):
        attribute = attribute_from_dict(entry)
        if attribute is None:
            logger.debug("Skipping attribute entry without an id or name")
            continue
        attributes.append(attribute)

    return Lookups(
        subjects=_refs("subjects", Subject),
        actions=_refs("actions", Action),
        resources=_refs("resources", Resource),
        additional_resources=_refs("additionalResources", Resource),
        attributes=attributes,
    )


def load_lookups(path: str) -> Lookups:
    """Load lookup tables from a YAML file.

    Args:
        path: Filesystem path to a YAML file with ``subjects``,
            ``actions``, ``resources``, ``additionalResources`` and
            ``attributes`` lists.

    Returns:
        The parsed Lookups. An empty file yields empty tables.
    """
    with open(Path(path)) as f:
        data = yaml.safe_load(f)
    return lookups_from_dict(data)


# --------------------------------------------------------------------------- #
# Policy documents
# --------------------------------------------------------------------------- #


def _decode_value(value: Any) -> Any:
    if isinstance(value, dict) and set(value) == {"start", "end"}:
        return DateRange(value["start"], value["end"])
    return value


def _encode_value(value: Any) -> Any:
    if isinstance(value, DateRange):
        return {"start": value.start, "end": value.end}
    if isinstance(value, tuple):
        return list(value)
    return value


def _conditions_from(raw: Any, where: str) -> list[AttributeCondition]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise PolicyDocumentError(f"{where}.attributes must be a list")
    conditions = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict) or "name" not in item:
            raise PolicyDocumentError(
                f"{where}.attributes[{i}] is missing required field: name"
            )
        value = _decode_value(item.get("value"))
        conditions.append(
            AttributeCondition(
                name=str(item["name"]),
                operator=str(item.get("operator") or default_operator(value)),
                value=value,
            )
        )
    return conditions


def _conditions_to(conditions: list[AttributeCondition]) -> list[dict]:
    return [
        {"name": c.name, "operator": c.operator, "value": _encode_value(c.value)}
        for c in conditions
    ]


def _id_list(data: dict, key: str) -> list[str]:
    raw = data.get(key) or []
    if not isinstance(raw, list):
        raise PolicyDocumentError(f"Policy field {key!r} must be a list")
    return [str(v) for v in raw]


def _rule_from(raw: Any, index: int) -> Rule:
    where = f"rules[{index}]"
    if not isinstance(raw, dict):
        raise PolicyDocumentError(f"Rule at index {index} must be a mapping")
    for section, key in (("subject", "type"), ("action", "name"), ("object", "type")):
        part = raw.get(section)
        if not isinstance(part, dict) or key not in part:
            raise PolicyDocumentError(
                f"{where} is missing required field: {section}.{key}"
            )
    action = raw["action"]
    return Rule(
        id=str(raw.get("id", f"rule-{index}")),
        subject=SubjectClause(
            type=str(raw["subject"]["type"]),
            attributes=_conditions_from(
                raw["subject"].get("attributes"), f"{where}.subject"
            ),
        ),
        action=ActionClause(
            name=str(action["name"]),
            display_name=str(action.get("displayName") or action["name"]),
        ),
        object=ObjectClause(
            type=str(raw["object"]["type"]),
            attributes=_conditions_from(
                raw["object"].get("attributes"), f"{where}.object"
            ),
        ),
    )


def policy_from_dict(data: Any) -> Policy:
    """Parse a persisted policy document.

    Raises:
        PolicyDocumentError: If the document is not a mapping, lacks a
            name, has an unknown effect or status, or has malformed rules.
    """
    if not isinstance(data, dict):
        raise PolicyDocumentError("Policy document must be a mapping")
    if "name" not in data:
        raise PolicyDocumentError("Policy is missing required field: name")

    try:
        effect = Effect(data.get("effect", Effect.ALLOW.value))
    except ValueError:
        raise PolicyDocumentError(
            f"Policy effect must be Allow or Deny, got {data.get('effect')!r}"
        ) from None
    try:
        status = PolicyStatus(data.get("status", PolicyStatus.DRAFT.value))
    except ValueError:
        raise PolicyDocumentError(
            "Policy status must be Draft, Active or Inactive, "
            f"got {data.get('status')!r}"
        ) from None

    raw_rules = data.get("rules") or []
    if not isinstance(raw_rules, list):
        raise PolicyDocumentError("Policy field 'rules' must be a list")

    raw_additional = data.get("additionalResources") or []
    if not isinstance(raw_additional, list):
        raise PolicyDocumentError("Policy field 'additionalResources' must be a list")
    additional = []
    for i, item in enumerate(raw_additional):
        if not isinstance(item, dict) or "id" not in item:
            raise PolicyDocumentError(
                f"additionalResources[{i}] is missing required field: id"
            )
        additional.append(
            AdditionalResource(
                id=str(item["id"]),
                attributes=_conditions_from(
                    item.get("attributes"), f"additionalResources[{i}]"
                ),
            )
        )

    raw_metadata = data.get("metadata") or {}
    if not isinstance(raw_metadata, dict):
        raise PolicyDocumentError("Policy field 'metadata' must be a mapping")
    metadata = PolicyMetadata(
        created_by=str(raw_metadata.get("createdBy", "")),
        last_modified_by=str(raw_metadata.get("lastModifiedBy", "")),
        tags=list(raw_metadata.get("tags") or []),
        version=str(raw_metadata.get("version", "1.0.0")),
        is_system=bool(raw_metadata.get("isSystem", False)),
        is_custom=bool(raw_metadata.get("isCustom", True)),
    )

    priority = data.get("priority")
    if priority is not None and (
        isinstance(priority, bool) or not isinstance(priority, (int, str))
    ):
        raise PolicyDocumentError("Policy field 'priority' must be an integer")
    try:
        priority = int(priority) if priority is not None else None
    except ValueError:
        raise PolicyDocumentError(
            "Policy field 'priority' must be an integer"
        ) from None

    return Policy(
        id=str(data.get("id") or data.get("_id") or ""),
        name=str(data["name"]),
        description=str(data.get("description") or ""),
        effect=effect,
        status=status,
        priority=priority,
        rules=[_rule_from(raw, i) for i, raw in enumerate(raw_rules)],
        subjects=_id_list(data, "subjects"),
        actions=_id_list(data, "actions"),
        resources=_id_list(data, "resources"),
        additional_resources=additional,
        metadata=metadata,
        workspace_id=data.get("workspaceId"),
        application_id=data.get("applicationId"),
        environment_id=data.get("environmentId"),
    )


def policy_to_dict(policy: Policy) -> dict:
    """Serialize a Policy to the persisted document shape."""
    document: dict[str, Any] = {
        "id": policy.id,
        "name": policy.name,
        "description": policy.description,
        "effect": policy.effect.value,
        "status": policy.status.value,
        "rules": [
            {
                "id": rule.id,
                "subject": {
                    "type": rule.subject.type,
                    "attributes": _conditions_to(rule.subject.attributes),
                },
                "action": {
                    "name": rule.action.name,
                    "displayName": rule.action.display_name,
                },
                "object": {
                    "type": rule.object.type,
                    "attributes": _conditions_to(rule.object.attributes),
                },
            }
            for rule in policy.rules
        ],
        "subjects": list(policy.subjects),
        "actions": list(policy.actions),
        "resources": list(policy.resources),
        "additionalResources": [
            {"id": a.id, "attributes": _conditions_to(a.attributes)}
            for a in policy.additional_resources
        ],
        "metadata": {
            "createdBy": policy.metadata.created_by,
            "lastModifiedBy": policy.metadata.last_modified_by,
            "tags": list(policy.metadata.tags),
            "version": policy.metadata.version,
            "isSystem": policy.metadata.is_system,
            "isCustom": policy.metadata.is_custom,
        },
    }
    if policy.priority is not None:
        document["priority"] = policy.priority
    for key, value in (
        ("workspaceId", policy.workspace_id),
        ("applicationId", policy.application_id),
        ("environmentId", policy.environment_id),
    ):
        if value is not None:
            document[key] = value
    return document


def load_policies(path: str) -> list[Policy]:
    """Load policy documents from a YAML file.

    The file holds either a top-level ``policies`` list or a single
    policy mapping.

    Raises:
        PolicyDocumentError: If the file or any policy in it is malformed.
    """
    with open(Path(path)) as f:
        data = yaml.safe_load(f)

    if isinstance(data, dict) and "policies" in data:
        raw_policies = data["policies"]
        if not isinstance(raw_policies, list):
            raise PolicyDocumentError("'policies' must be a list")
        return [policy_from_dict(raw) for raw in raw_policies]
    return [policy_from_dict(data)]


def dump_policies(policies: list[Policy]) -> str:
    """Serialize policies to YAML in the shape load_policies reads."""
    return yaml.safe_dump(
        {"policies": [policy_to_dict(p) for p in policies]},
        sort_keys=False,
    )


# --------------------------------------------------------------------------- #
# Wizard form state
# --------------------------------------------------------------------------- #


def _condition_set_from(raw: Any, lookups: Lookups, where: str) -> ConditionSet:
    if raw is None:
        return ConditionSet()
    if not isinstance(raw, list):
        raise PolicyDocumentError(f"{where} must be a list")
    condition_set = ConditionSet()
    for i, item in enumerate(raw):
        if not isinstance(item, dict) or "attributeId" not in item:
            raise PolicyDocumentError(
                f"{where}[{i}] is missing required field: attributeId"
            )
        attribute = lookups.find_attribute(str(item["attributeId"]))
        if attribute is None:
            logger.debug(
                "Dropping condition on unknown attribute %s", item["attributeId"]
            )
            continue
        condition_set.select(attribute)
        condition_set.set_value(attribute.id, _decode_value(item.get("value")))
        if item.get("operator"):
            condition_set.set_operator(attribute.id, str(item["operator"]))
    return condition_set


def form_state_from_dict(data: Any, lookups: Lookups | None = None) -> FormState:
    """Build wizard form state from a request body.

    Conditions reference attributes by ``attributeId``; conditions on
    attributes missing from the lookups are dropped.

    Raises:
        PolicyDocumentError: If the body has the wrong shape.
    """
    lookups = lookups or Lookups()
    if not isinstance(data, dict):
        raise PolicyDocumentError("Form must be a mapping")

    try:
        effect = Effect(data.get("effect", Effect.ALLOW.value))
    except ValueError:
        raise PolicyDocumentError(
            f"Policy effect must be Allow or Deny, got {data.get('effect')!r}"
        ) from None

    raw_additional = data.get("additionalResourceConditions") or {}
    if not isinstance(raw_additional, dict):
        raise PolicyDocumentError("additionalResourceConditions must be a mapping")

    priority = data.get("priority")
    if priority is not None and (
        isinstance(priority, bool) or not isinstance(priority, int)
    ):
        raise PolicyDocumentError("Form field 'priority' must be an integer")

    return FormState(
        name=str(data.get("name") or ""),
        description=str(data.get("description") or ""),
        subjects=_id_list(data, "subjects"),
        actions=_id_list(data, "actions"),
        resources=_id_list(data, "resources"),
        additional_resources=_id_list(data, "additionalResources"),
        subject_conditions=_condition_set_from(
            data.get("subjectConditions"), lookups, "subjectConditions"
        ),
        resource_conditions=_condition_set_from(
            data.get("resourceConditions"), lookups, "resourceConditions"
        ),
        additional_resource_conditions={
            str(resource_id): _condition_set_from(
                raw, lookups, f"additionalResourceConditions.{resource_id}"
            )
            for resource_id, raw in raw_additional.items()
        },
        effect=effect,
        priority=priority,
        workspace_id=data.get("workspaceId"),
        application_id=data.get("applicationId"),
        environment_id=data.get("environmentId"),
    )
