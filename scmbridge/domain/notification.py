"""
Commit notification domain objects for scmbridge.

A NotificationRequest is built per inbound "a commit happened" call and
is never persisted. DispatchOutcome records what the dispatcher did with
it, for logging, CLI output and tests.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, FrozenSet


@dataclass(frozen=True)
class NotificationRequest:
    """
    Inbound commit notification.

    Attributes:
        repository_identifier: URL of the repository that changed
        commit_id: SHA-1 of the new commit, if the caller knows it
        branches_csv: Comma-separated branch names, if the caller knows them
    """
    repository_identifier: str
    commit_id: Optional[str] = None
    branches_csv: Optional[str] = None

    def branches(self) -> FrozenSet[str]:
        """Branch tokens from branches_csv; empty means 'any branch'."""
        if not self.branches_csv:
            return frozenset()
        return frozenset(b.strip() for b in self.branches_csv.split(',') if b.strip())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'url': self.repository_identifier,
            'sha1': self.commit_id,
            'branches': self.branches_csv,
        }


@dataclass
class DispatchOutcome:
    """
    What a notify() call did.

    triggered holds job names in trigger order; each name appears once.
    """
    request: NotificationRequest
    candidates: List[str] = field(default_factory=list)
    opted_out: List[str] = field(default_factory=list)
    triggered: List[str] = field(default_factory=list)
    skipped: Dict[str, str] = field(default_factory=dict)
    trigger_failures: Dict[str, str] = field(default_factory=dict)

    @property
    def triggered_count(self) -> int:
        return len(self.triggered)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'type': 'notify',
            'url': self.request.repository_identifier,
            'triggered': list(self.triggered),
            'candidates': list(self.candidates),
        }
        if self.request.commit_id:
            result['sha1'] = self.request.commit_id
        if self.request.branches_csv:
            result['branches'] = sorted(self.request.branches())
        if self.opted_out:
            result['opted_out'] = list(self.opted_out)
        if self.skipped:
            result['skipped'] = dict(self.skipped)
        if self.trigger_failures:
            result['trigger_failures'] = dict(self.trigger_failures)
        return result
