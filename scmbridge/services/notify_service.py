"""
Commit notification service for scmbridge.

Decides which configured jobs care about an inbound "a commit happened"
notification and fires each selected job's polling trigger once.
Used by the `scmbridge notify` command.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Iterable, FrozenSet, Optional, Tuple

from ..domain.job import Job
from ..domain.notification import NotificationRequest, DispatchOutcome
from ..domain.remote_url import matches

logger = logging.getLogger(__name__)


class JobDecision(Enum):
    """How the dispatcher judged one job."""
    NOT_CANDIDATE = "not_candidate"
    OPTED_OUT = "opted_out"
    NO_BRANCH_MATCH = "no_branch_match"
    SELECTED = "selected"
    UNREADABLE = "unreadable"


class CommitNotifier:
    """
    Dispatches commit notifications to jobs.

    A job is a candidate when any of its remotes names the notified
    repository. Candidates that opted out of notifications are dropped,
    the rest are filtered by branch (when the notification names branches)
    and triggered exactly once each.

    Example:
        notifier = CommitNotifier()
        request = NotificationRequest("git@github.com:org/app.git", branches_csv="master")
        outcome = notifier.notify(request, registry.list_jobs())
        print(outcome.triggered)
    """

    def __init__(self, parallel: int = 1):
        """
        Initialize CommitNotifier.

        Args:
            parallel: Number of jobs evaluated concurrently (1 = sequential)
        """
        self.parallel = max(1, parallel)

    def evaluate(
        self,
        job: Job,
        request: NotificationRequest,
        branches: Optional[FrozenSet[str]] = None
    ) -> JobDecision:
        """
        Decide whether a job should be triggered by a notification.

        Raises whatever the job raises when its configuration is unreadable.
        """
        if branches is None:
            branches = request.branches()

        matching = [
            remote for remote in job.remotes()
            if matches(request.repository_identifier, remote.url)
        ]
        if not matching:
            return JobDecision.NOT_CANDIDATE

        if job.is_notify_commit_disabled():
            return JobDecision.OPTED_OUT

        if not branches:
            return JobDecision.SELECTED

        specs = job.branch_specs()
        for remote in matching:
            for spec in specs:
                for branch in branches:
                    if spec.matches(branch, remote.effective_name):
                        logger.debug(
                            f"{job.name}: {branch} matches {spec} on {remote.effective_name}"
                        )
                        return JobDecision.SELECTED

        return JobDecision.NO_BRANCH_MATCH

    def notify(self, request: NotificationRequest, jobs: Iterable[Job]) -> DispatchOutcome:
        """
        Trigger every job interested in a notification.

        Args:
            request: The inbound notification
            jobs: Jobs to consider

        Returns:
            DispatchOutcome listing candidates and triggered jobs
        """
        logger.info(
            f"Received notification for uri = {request.repository_identifier} ; "
            f"sha1 = {request.commit_id} ; branches = {sorted(request.branches())}"
        )

        outcome = DispatchOutcome(request=request)
        branches = request.branches()
        lock = threading.Lock()
        triggered_names = set()

        def handle(job: Job) -> None:
            decision, error = self._decide(job, request, branches)

            with lock:
                if decision == JobDecision.UNREADABLE:
                    outcome.skipped[job.name] = error
                    return
                if decision == JobDecision.NOT_CANDIDATE:
                    return
                outcome.candidates.append(job.name)
                if decision == JobDecision.OPTED_OUT:
                    logger.info(f"{job.name} ignores commit notifications")
                    outcome.opted_out.append(job.name)
                    return
                if decision != JobDecision.SELECTED or job.name in triggered_names:
                    return
                triggered_names.add(job.name)

            self._trigger(job, outcome, lock)

        if self.parallel > 1:
            with ThreadPoolExecutor(max_workers=self.parallel) as executor:
                list(executor.map(handle, jobs))
        else:
            for job in jobs:
                handle(job)

        if not outcome.triggered:
            logger.info(f"No jobs triggered for {request.repository_identifier}")
        return outcome

    def _decide(
        self,
        job: Job,
        request: NotificationRequest,
        branches: FrozenSet[str]
    ) -> Tuple[JobDecision, str]:
        try:
            return self.evaluate(job, request, branches), ""
        except Exception as e:
            logger.warning(f"Skipping {job.name}: unreadable configuration: {e}")
            return JobDecision.UNREADABLE, str(e)

    def _trigger(self, job: Job, outcome: DispatchOutcome, lock: threading.Lock) -> None:
        logger.info(f"Triggering the polling of {job.name}")
        try:
            job.trigger_poll()
        except Exception as e:
            logger.error(f"Polling trigger of {job.name} failed: {e}")
            with lock:
                outcome.trigger_failures[job.name] = str(e)
            return
        with lock:
            outcome.triggered.append(job.name)
