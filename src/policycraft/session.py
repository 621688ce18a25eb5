"""Authoring session: ties the wizard, lookups, renderer and activity log."""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Any, Callable

from policycraft.activity import ActivityLog
from policycraft.assembly import assemble_policy, draft_policy
from policycraft.attributes import attributes_for_category
from policycraft.errors import IncompleteFormError
from policycraft.models import (
    Attribute,
    AttributeCategory,
    Lookups,
    Policy,
    PolicyStatus,
)
from policycraft.renderer import render
from policycraft.wizard import FIVE_STEP, FormState, Step, Wizard

logger = logging.getLogger(__name__)


class AuthoringSession:
    """One author's pass through the policy wizard.

    Emits events for UI consumers:

    - ``step_changed``: the new current Step
    - ``submitted``: the ActivityEntry for an accepted submission
    - ``rejected``: the IncompleteFormError for a refused submission

    Attributes:
        lookups: Reference data fetched for this session.
        activity_log: Where accepted submissions are recorded.
        wizard: Navigation state over the form.
        callbacks: Registered event callbacks.
    """

    def __init__(
        self,
        lookups: Lookups | None = None,
        activity_log: ActivityLog | None = None,
        steps: tuple[Step, ...] = FIVE_STEP,
        state: FormState | None = None,
    ) -> None:
        self.lookups = lookups or Lookups()
        self.activity_log = activity_log if activity_log is not None else ActivityLog()
        self.wizard = Wizard(state, steps)
        self.callbacks: dict[str, list[Callable]] = defaultdict(list)

    @property
    def state(self) -> FormState:
        return self.wizard.state

    def on(self, event: str, callback: Callable) -> None:
        """Register a callback for an event."""
        self.callbacks[event].append(callback)

    def _emit(self, event: str, data: Any) -> None:
        for callback in self.callbacks.get(event, []):
            callback(data)

    def subject_attribute_options(self) -> list[Attribute]:
        """Attributes offered as subject conditions."""
        return attributes_for_category(
            self.lookups.attributes, AttributeCategory.SUBJECT
        )

    def resource_attribute_options(self) -> list[Attribute]:
        """Attributes offered as resource conditions."""
        return attributes_for_category(
            self.lookups.attributes, AttributeCategory.RESOURCE
        )

    def next(self) -> bool:
        moved = self.wizard.next()
        if moved:
            self._emit("step_changed", self.wizard.current_step)
        return moved

    def back(self) -> bool:
        moved = self.wizard.back()
        if moved:
            self._emit("step_changed", self.wizard.current_step)
        return moved

    def preview(self) -> str:
        """Render the policy as currently entered, complete or not."""
        return render(draft_policy(self.state, lookups=self.lookups), self.lookups)

    def save_draft(self, now: datetime | None = None) -> Policy:
        """Submit the policy with Draft status."""
        return self._submit(PolicyStatus.DRAFT, now)

    def publish(self, now: datetime | None = None) -> Policy:
        """Submit the policy with Active status."""
        return self._submit(PolicyStatus.ACTIVE, now)

    def _submit(self, status: PolicyStatus, now: datetime | None) -> Policy:
        """Assemble, render and record a submission.

        Raises:
            IncompleteFormError: If any required step fails at submit time.
        """
        try:
            policy = assemble_policy(self.state, status, self.lookups, now)
        except IncompleteFormError as exc:
            self._emit("rejected", exc)
            raise

        entry = self.activity_log.log(policy, render(policy, self.lookups))
        logger.info("Policy %r submitted as %s", policy.name, status.value)
        self._emit("submitted", entry)
        return policy
