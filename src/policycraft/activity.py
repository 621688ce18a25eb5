"""Append-only activity log of policy submissions."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

from policycraft.models import Policy, PolicyStatus


@dataclass
class ActivityEntry:
    """An immutable record of one submission.

    Attributes:
        policy: The submitted policy.
        summary: The rendered sentence the author confirmed.
        id: Unique entry identifier (UUID4).
        timestamp: When the entry was created.
    """

    policy: Policy
    summary: str
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def status(self) -> PolicyStatus:
        return self.policy.status


class ActivityLog:
    """Append-only log of submitted policies.

    Attributes:
        entries: The ordered list of activity entries.
    """

    def __init__(self) -> None:
        self.entries: list[ActivityEntry] = []

    def log(self, policy: Policy, summary: str) -> ActivityEntry:
        """Create and append an entry for a submitted policy."""
        entry = ActivityEntry(policy=policy, summary=summary)
        self.entries.append(entry)
        return entry

    def get_entries(self) -> list[ActivityEntry]:
        """Return all entries in chronological order."""
        return list(self.entries)

    def get_published(self) -> list[ActivityEntry]:
        """Return only entries for policies published as Active."""
        return [e for e in self.entries if e.status == PolicyStatus.ACTIVE]
