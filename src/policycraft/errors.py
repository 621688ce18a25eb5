"""Exceptions raised at the edges of the authoring core.

Validation failures and lookup misses inside the core never raise; these
cover malformed documents and submissions of incomplete forms.
"""


class PolicycraftError(Exception):
    """Base class for policycraft errors."""


class PolicyDocumentError(PolicycraftError, ValueError):
    """A persisted policy or lookup document has the wrong shape."""


class AttributeValueError(PolicycraftError, ValueError):
    """A new enum value was rejected for an attribute."""


class IncompleteFormError(PolicycraftError):
    """A submission was attempted while a wizard step is invalid.

    Attributes:
        invalid_steps: The steps whose guards failed at submit time.
    """

    def __init__(self, invalid_steps: list) -> None:
        self.invalid_steps = list(invalid_steps)
        names = ", ".join(step.value for step in self.invalid_steps)
        super().__init__(f"Please complete all required fields ({names})")
