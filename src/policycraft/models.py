"""Data models for policycraft policy authoring.

Pure data structures. No business logic, no imports beyond stdlib.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Effect(Enum):
    """Overall effect of a policy."""

    ALLOW = "Allow"
    DENY = "Deny"


class PolicyStatus(Enum):
    """Lifecycle status of a policy."""

    DRAFT = "Draft"
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class DataType(Enum):
    """Value type of an attribute.

    ARRAY and OBJECT are legacy types that older documents still carry.
    """

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    ARRAY = "array"
    OBJECT = "object"


class AttributeCategory(Enum):
    """Where an attribute may be used in a condition."""

    SUBJECT = "subject"
    RESOURCE = "resource"
    ACTION = "action"
    ENVIRONMENT = "environment"
    ADDITIONAL_RESOURCE = "additional-resource"


@dataclass
class AttributeConstraints:
    """Constraints on the values a condition may use for an attribute.

    Attributes:
        enum_values: Closed set of permitted values. When non-empty the
            attribute is a picklist.
        min_value: Inclusive lower numeric bound.
        max_value: Inclusive upper numeric bound.
        min_length: Minimum string length.
        max_length: Maximum string length.
        pattern: Regular expression a string value must fully match.
    """

    enum_values: list[Any] | None = None
    min_value: float | None = None
    max_value: float | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None


@dataclass
class DateConfig:
    """Rendering options for date attributes.

    Attributes:
        include_time: Render the time of day as ``HH:MM AM/PM``.
    """

    include_time: bool = False


@dataclass
class Attribute:
    """A typed, constrained attribute usable in conditions.

    Attributes:
        id: Stable identifier derived from the display name.
        name: Machine key used in conditions.
        display_name: Human label.
        data_type: The attribute's value type.
        categories: Categories the attribute belongs to.
        category: Legacy single-valued category, consulted only when
            ``categories`` is empty.
        is_required: Whether a condition on this attribute is mandatory.
        is_multi_value: Whether condition values are collections.
        constraints: Value constraints.
        date_config: Rendering options for date values.
        active: Whether the attribute is offered during authoring.
        description: Free-form description.
    """

    id: str
    name: str
    display_name: str
    data_type: DataType = DataType.STRING
    categories: tuple[AttributeCategory, ...] = ()
    category: AttributeCategory | None = None
    is_required: bool = False
    is_multi_value: bool = False
    constraints: AttributeConstraints = field(default_factory=AttributeConstraints)
    date_config: DateConfig = field(default_factory=DateConfig)
    active: bool = True
    description: str = ""


@dataclass(frozen=True)
class DateRange:
    """An inclusive range used by the ``between`` operator."""

    start: Any
    end: Any


@dataclass
class AttributeCondition:
    """An (attribute, operator, value) triple.

    A ``value`` of None or ``""`` marks the condition inactive.
    """

    name: str
    operator: str
    value: Any = None


@dataclass
class SubjectClause:
    """The subject side of a rule."""

    type: str
    attributes: list[AttributeCondition] = field(default_factory=list)


@dataclass
class ActionClause:
    """The action of a rule."""

    name: str
    display_name: str


@dataclass
class ObjectClause:
    """The resource side of a rule."""

    type: str
    attributes: list[AttributeCondition] = field(default_factory=list)


@dataclass
class Rule:
    """One (action, resource) pairing within a policy."""

    id: str
    subject: SubjectClause
    action: ActionClause
    object: ObjectClause


@dataclass
class AdditionalResource:
    """A secondary resource whose conditions gate the policy."""

    id: str
    attributes: list[AttributeCondition] = field(default_factory=list)


@dataclass
class PolicyMetadata:
    """Bookkeeping carried on a persisted policy."""

    created_by: str = ""
    last_modified_by: str = ""
    tags: list[str] = field(default_factory=list)
    version: str = "1.0.0"
    is_system: bool = False
    is_custom: bool = True


@dataclass
class Policy:
    """A policy aggregate.

    Attributes:
        id: Policy identifier, empty until persisted.
        name: Policy name.
        effect: Allow or Deny.
        status: Draft, Active or Inactive.
        rules: Cartesian product of actions x resources.
        subjects: Selected subject IDs.
        actions: Selected action IDs.
        resources: Selected resource IDs.
        additional_resources: Secondary resources with conditions.
        description: Free-form description.
        priority: Optional priority.
        metadata: Bookkeeping fields.
        workspace_id: Opaque tenancy ID.
        application_id: Opaque tenancy ID.
        environment_id: Opaque tenancy ID.
    """

    name: str
    effect: Effect = Effect.ALLOW
    status: PolicyStatus = PolicyStatus.DRAFT
    rules: list[Rule] = field(default_factory=list)
    subjects: list[str] = field(default_factory=list)
    actions: list[str] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)
    additional_resources: list[AdditionalResource] = field(default_factory=list)
    id: str = ""
    description: str = ""
    priority: int | None = None
    metadata: PolicyMetadata = field(default_factory=PolicyMetadata)
    workspace_id: str | None = None
    application_id: str | None = None
    environment_id: str | None = None


@dataclass
class Subject:
    """A user, group or role that policies apply to."""

    id: str
    display_name: str = ""
    name: str = ""
    kind: str = "user"


@dataclass
class Action:
    """An operation a subject may perform."""

    id: str
    display_name: str = ""
    name: str = ""
    kind: str = ""


@dataclass
class Resource:
    """A resource that actions are performed on."""

    id: str
    display_name: str = ""
    name: str = ""
    kind: str = ""


@dataclass
class Lookups:
    """Reference data fetched once per authoring session.

    Every ``find_*`` method returns None on a miss.
    """

    subjects: list[Subject] = field(default_factory=list)
    actions: list[Action] = field(default_factory=list)
    resources: list[Resource] = field(default_factory=list)
    additional_resources: list[Resource] = field(default_factory=list)
    attributes: list[Attribute] = field(default_factory=list)

    def find_subject(self, subject_id: str) -> Subject | None:
        return next((s for s in self.subjects if s.id == subject_id), None)

    def find_action(self, action_id: str) -> Action | None:
        return next((a for a in self.actions if a.id == action_id), None)

    def find_resource(self, resource_id: str) -> Resource | None:
        return next((r for r in self.resources if r.id == resource_id), None)

    def find_additional_resource(self, resource_id: str) -> Resource | None:
        """Look up a secondary resource, falling back to primary resources."""
        for resource in self.additional_resources:
            if resource.id == resource_id:
                return resource
        return self.find_resource(resource_id)

    def find_attribute(self, key: str) -> Attribute | None:
        """Find an attribute by id, then by machine name."""
        for attribute in self.attributes:
            if attribute.id == key:
                return attribute
        for attribute in self.attributes:
            if attribute.name == key:
                return attribute
        return None
