"""
Completed build domain objects for scmbridge.

CompletedBuild is what the host hands the publisher when a build unit
finishes. Matrix handling is explicit: a per-axis sub-build carries
is_matrix_child=True and the aggregating parent is_aggregation_root=True.
Only is_matrix_child changes what the publisher does (it publishes
nothing); a matrix parent publishes exactly like a plain build, once for
all of its axes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Tuple

from .remote import RemoteConfig


class BuildResult(Enum):
    """Build outcome, best first."""
    SUCCESS = "SUCCESS"
    UNSTABLE = "UNSTABLE"
    FAILURE = "FAILURE"
    NOT_BUILT = "NOT_BUILT"
    ABORTED = "ABORTED"

    @classmethod
    def parse(cls, value: str) -> 'BuildResult':
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown build result: {value}") from None


@dataclass(frozen=True)
class MergeTarget:
    """Branch a pre-build merge integrated the built revision into."""
    remote_name: str
    branch: str


@dataclass(frozen=True)
class CompletedBuild:
    """
    A finished build unit.

    Attributes:
        job_name: Name of the job that ran
        number: Build number
        result: Build outcome
        commit: SHA-1 of the revision actually built
        workspace: Working copy the build ran in
        remotes: The job's configured remotes
        branch: Branch the build was for, if any
        characteristic_env: Build identity variables (override inherited ones)
        is_aggregation_root: True for the parent of a matrix build (informational)
        is_matrix_child: True for a per-axis sub-build of a matrix build
        merge_target: Where a pre-build merge came from, if one ran
    """
    job_name: str
    number: int
    result: BuildResult
    commit: str
    workspace: str
    remotes: Tuple[RemoteConfig, ...] = field(default_factory=tuple)
    branch: Optional[str] = None
    characteristic_env: Dict[str, str] = field(default_factory=dict)
    is_aggregation_root: bool = False
    is_matrix_child: bool = False
    merge_target: Optional[MergeTarget] = None

    def __post_init__(self):
        object.__setattr__(self, 'remotes', tuple(self.remotes or ()))
        if self.is_aggregation_root and self.is_matrix_child:
            raise ValueError("A build cannot be both a matrix parent and a matrix child")

    @property
    def display_name(self) -> str:
        return f"{self.job_name} #{self.number}"

    def find_remote(self, name: str) -> Optional[RemoteConfig]:
        """Remote with the given (effective) name, or None."""
        for remote in self.remotes:
            if remote.effective_name == name:
                return remote
        return None
