"""Authoring wizard: per-step validity guards and navigation.

Guards are independent named predicates keyed by Step. A topology is an
ordered tuple of steps, so the five-step and three-step flows share the
same guard functions.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from policycraft.conditions import ConditionSet
from policycraft.models import Effect

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 100


class Step(Enum):
    """A step of the policy authoring wizard."""

    BASIC_INFO = "basic_info"
    SUBJECT_SELECTION = "subject_selection"
    ACTION_SELECTION = "action_selection"
    RESOURCE_SELECTION = "resource_selection"
    ACTIONS_AND_RESOURCES = "actions_and_resources"
    ADDITIONAL_RESOURCES = "additional_resources"
    REVIEW = "review"


FIVE_STEP: tuple[Step, ...] = (
    Step.BASIC_INFO,
    Step.SUBJECT_SELECTION,
    Step.ACTION_SELECTION,
    Step.RESOURCE_SELECTION,
    Step.REVIEW,
)

THREE_STEP: tuple[Step, ...] = (
    Step.BASIC_INFO,
    Step.SUBJECT_SELECTION,
    Step.ACTIONS_AND_RESOURCES,
)

SIX_STEP: tuple[Step, ...] = (
    Step.BASIC_INFO,
    Step.SUBJECT_SELECTION,
    Step.ACTION_SELECTION,
    Step.RESOURCE_SELECTION,
    Step.ADDITIONAL_RESOURCES,
    Step.REVIEW,
)

TOPOLOGIES: dict[str, tuple[Step, ...]] = {
    "five-step": FIVE_STEP,
    "three-step": THREE_STEP,
    "six-step": SIX_STEP,
}


@dataclass
class FormState:
    """Mutable state of one authoring session.

    Attributes:
        name: Policy name as typed (trimmed only on submit).
        description: Policy description as typed.
        subjects: Selected subject IDs, in selection order.
        actions: Selected action IDs, in selection order.
        resources: Selected resource IDs, in selection order.
        additional_resources: Selected secondary resource IDs.
        subject_conditions: Conditions on the subject.
        resource_conditions: Conditions on the resources.
        additional_resource_conditions: Conditions keyed by secondary
            resource ID.
        effect: Policy effect. The wizard always authors Allow policies,
            edits of existing policies may carry Deny.
        priority: Optional policy priority.
        workspace_id: Opaque tenancy ID.
        application_id: Opaque tenancy ID.
        environment_id: Opaque tenancy ID.
    """

    name: str = ""
    description: str = ""
    subjects: list[str] = field(default_factory=list)
    actions: list[str] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)
    additional_resources: list[str] = field(default_factory=list)
    subject_conditions: ConditionSet = field(default_factory=ConditionSet)
    resource_conditions: ConditionSet = field(default_factory=ConditionSet)
    additional_resource_conditions: dict[str, ConditionSet] = field(
        default_factory=dict
    )
    effect: Effect = Effect.ALLOW
    priority: int | None = None
    workspace_id: str | None = None
    application_id: str | None = None
    environment_id: str | None = None

    def remove_additional_resource(self, resource_id: str) -> None:
        """Deselect a secondary resource along with its conditions."""
        self.additional_resources = [
            r for r in self.additional_resources if r != resource_id
        ]
        self.additional_resource_conditions.pop(resource_id, None)


def _name_is_valid(state: FormState) -> bool:
    return NAME_MIN_LENGTH <= len(state.name.strip()) <= NAME_MAX_LENGTH


def _has_subject(state: FormState) -> bool:
    return len(state.subjects) > 0


def _has_action(state: FormState) -> bool:
    return len(state.actions) > 0


def _has_resource(state: FormState) -> bool:
    return len(state.resources) > 0


def _always(state: FormState) -> bool:
    return True


STEP_GUARDS: dict[Step, Callable[[FormState], bool]] = {
    Step.BASIC_INFO: _name_is_valid,
    Step.SUBJECT_SELECTION: _has_subject,
    Step.ACTION_SELECTION: _has_action,
    Step.RESOURCE_SELECTION: _has_resource,
    Step.ACTIONS_AND_RESOURCES: lambda s: _has_action(s) and _has_resource(s),
    Step.ADDITIONAL_RESOURCES: _always,
    Step.REVIEW: _always,
}

REQUIRED_STEPS: tuple[Step, ...] = (
    Step.BASIC_INFO,
    Step.SUBJECT_SELECTION,
    Step.ACTION_SELECTION,
    Step.RESOURCE_SELECTION,
)


def is_step_valid(step: Step, state: FormState) -> bool:
    """Evaluate the guard for a step against the current form state."""
    return STEP_GUARDS[step](state)


def invalid_steps(
    state: FormState, steps: tuple[Step, ...] = REQUIRED_STEPS
) -> list[Step]:
    """Return the steps whose guards currently fail, in order."""
    return [step for step in steps if not is_step_valid(step, state)]


def name_error(name: str) -> str:
    """Live validation message for the policy name field.

    An empty field shows no error so that an untouched field is not
    reported as invalid.
    """
    if name.strip() == "":
        return ""
    if len(name) < NAME_MIN_LENGTH:
        return f"Policy name must be at least {NAME_MIN_LENGTH} characters"
    if len(name) > NAME_MAX_LENGTH:
        return f"Policy name cannot exceed {NAME_MAX_LENGTH} characters"
    return ""


class Wizard:
    """Forward/back navigation over a topology, gated by step guards.

    Guards are re-evaluated on every query, so validity always reflects
    the current form state.

    Attributes:
        state: The form state being authored.
        steps: The ordered steps of the topology.
        index: Position of the current step.
    """

    def __init__(
        self, state: FormState | None = None, steps: tuple[Step, ...] = FIVE_STEP
    ) -> None:
        if not steps:
            raise ValueError("A wizard needs at least one step")
        self.state = state if state is not None else FormState()
        self.steps = steps
        self.index = 0

    @property
    def current_step(self) -> Step:
        return self.steps[self.index]

    @property
    def is_last_step(self) -> bool:
        return self.index == len(self.steps) - 1

    def is_current_step_valid(self) -> bool:
        return is_step_valid(self.current_step, self.state)

    def can_go_next(self) -> bool:
        return not self.is_last_step and self.is_current_step_valid()

    def can_go_back(self) -> bool:
        return self.index > 0

    def next(self) -> bool:
        """Advance one step. Returns False when the move is blocked."""
        if not self.can_go_next():
            return False
        self.index += 1
        return True

    def back(self) -> bool:
        """Go back one step. Returns False on the first step."""
        if not self.can_go_back():
            return False
        self.index -= 1
        return True

    def invalid_steps(self) -> list[Step]:
        """Steps before the last whose guards currently fail.

        In a topology that ends on an editing step (three-step) the last
        step is included, since submission happens from it.
        """
        gated = self.steps if self.steps[-1] != Step.REVIEW else self.steps[:-1]
        return invalid_steps(self.state, gated)

    def is_complete(self) -> bool:
        """Whether every gated step validates right now."""
        return not self.invalid_steps()
