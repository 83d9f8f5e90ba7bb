"""
Push outcome domain objects for scmbridge.

Provides the per-action and per-build result types the publisher returns,
so a build record can show which pushes succeeded, which failed and why.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional

from .push_action import PushKind


class ActionStatus(Enum):
    """Status of an individual push action."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


class PublishStatus(Enum):
    """Overall status of a publish() call."""
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    SKIPPED_POLICY_GATE = "skipped_policy_gate"
    SKIPPED_MATRIX_CHILD = "skipped_matrix_child"
    NOTHING_TO_PUSH = "nothing_to_push"


class PublishState(Enum):
    """States a publish() call moves through."""
    PENDING = "pending"
    PUSHING_TAGS = "pushing_tags"
    PUSHING_BRANCHES = "pushing_branches"
    PUSHING_NOTES = "pushing_notes"
    DONE = "done"


PHASE_STATES = {
    PushKind.TAG: PublishState.PUSHING_TAGS,
    PushKind.BRANCH: PublishState.PUSHING_BRANCHES,
    PushKind.NOTE: PublishState.PUSHING_NOTES,
}


@dataclass
class ActionOutcome:
    """
    What happened to one push action.

    ref is the expanded name (tag, branch or notes namespace); remote_url is
    empty when the remote name could not be resolved.
    """
    kind: PushKind
    remote_name: str
    ref: str
    status: ActionStatus
    remote_url: str = ""
    forced: bool = False
    message: Optional[str] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == ActionStatus.FAILED

    def describe(self) -> str:
        """One line for the build log."""
        text = f"{self.kind.value} {self.ref} -> {self.remote_name}"
        if self.status == ActionStatus.FAILED:
            return f"{text}: failed: {self.error}"
        if self.message:
            return f"{text}: {self.status.value} ({self.message})"
        return f"{text}: {self.status.value}"

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'kind': self.kind.value,
            'remote': self.remote_name,
            'ref': self.ref,
            'status': self.status.value,
        }
        if self.remote_url:
            result['url'] = self.remote_url
        if self.forced:
            result['forced'] = True
        if self.message:
            result['message'] = self.message
        if self.error:
            result['error'] = self.error
        return result


@dataclass
class PublishResult:
    """
    Result of publishing one build unit.

    A no-op result (policy gate, matrix child, nothing configured) is not a
    failure: success stays True and outcomes stay empty.
    """
    build: str
    status: PublishStatus = PublishStatus.SUCCESS
    outcomes: List[ActionOutcome] = field(default_factory=list)
    states: List[PublishState] = field(default_factory=lambda: [PublishState.PENDING])

    @property
    def success(self) -> bool:
        """True if no action failed."""
        return self.status != PublishStatus.PARTIAL_FAILURE

    @property
    def is_noop(self) -> bool:
        return self.status in (
            PublishStatus.SKIPPED_POLICY_GATE,
            PublishStatus.SKIPPED_MATRIX_CHILD,
            PublishStatus.NOTHING_TO_PUSH,
        )

    @property
    def succeeded(self) -> List[ActionOutcome]:
        return [o for o in self.outcomes if o.status == ActionStatus.SUCCESS]

    @property
    def failed(self) -> List[ActionOutcome]:
        return [o for o in self.outcomes if o.status == ActionStatus.FAILED]

    @property
    def skipped(self) -> List[ActionOutcome]:
        return [o for o in self.outcomes if o.status == ActionStatus.SKIPPED]

    def enter(self, state: PublishState) -> None:
        self.states.append(state)

    def add_outcome(self, outcome: ActionOutcome) -> None:
        """Record an action outcome and update the overall status."""
        self.outcomes.append(outcome)
        if outcome.failed:
            self.status = PublishStatus.PARTIAL_FAILURE

    def finish(self, status: Optional[PublishStatus] = None) -> 'PublishResult':
        if status is not None:
            self.status = status
        self.enter(PublishState.DONE)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'publish',
            'build': self.build,
            'status': self.status.value,
            'success': self.success,
            'succeeded': len(self.succeeded),
            'skipped': len(self.skipped),
            'failed': len(self.failed),
            'actions': [o.to_dict() for o in self.outcomes],
        }
