"""
Post-build publishing service for scmbridge.

Pushes the result of a finished build back to its remotes: tags first,
then branches, then notes. Each action succeeds or fails on its own and
every outcome is recorded for the build log.
Used by the `scmbridge publish` command.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Callable, Iterator, List, Mapping, Optional, Set, Tuple

from ..domain.build import BuildResult, CompletedBuild
from ..domain.operation import (
    ActionOutcome,
    ActionStatus,
    PHASE_STATES,
    PublishResult,
    PublishStatus,
)
from ..domain.push_action import PushAction, PushKind, PublishPolicy
from ..domain.remote_url import matches
from ..errors import ConfigurationError, ScmBridgeError
from ..infra.environment import EnvironmentResolver, expand
from ..infra.git_client import GitClient

logger = logging.getLogger(__name__)

PHASE_ORDER = (PushKind.TAG, PushKind.BRANCH, PushKind.NOTE)


@dataclass
class PublishOptions:
    """Options for publishing."""
    action_timeout: float = 300.0  # Seconds one git call may take
    parallel: int = 1  # Concurrent pushes within one phase (1 = sequential)


@dataclass
class _PreparedPush:
    """A push action with its remote resolved and its fields expanded."""
    action: PushAction
    remote_name: str
    remote_url: str
    ref: str
    text: str = ""
    forced: bool = False
    message: Optional[str] = None


class GitPublisher:
    """
    Publishes a completed build to its remotes.

    Example:
        publisher = GitPublisher(GitClient(timeout=120))
        result = publisher.publish(build, job.publish_policy())
        for outcome in result.outcomes:
            print(outcome.describe())
    """

    def __init__(
        self,
        git_client: Optional[GitClient] = None,
        resolver: Optional[EnvironmentResolver] = None,
        options: Optional[PublishOptions] = None
    ):
        """
        Initialize GitPublisher.

        Args:
            git_client: Transport used for tags, notes and pushes
            resolver: Builds the ${VAR} expansion environment
            options: Timeout and parallelism settings
        """
        self.git = git_client or GitClient()
        self.resolver = resolver or EnvironmentResolver()
        self.options = options or PublishOptions()

    def publish(
        self,
        build: CompletedBuild,
        policy: PublishPolicy,
        env: Optional[Mapping[str, str]] = None
    ) -> PublishResult:
        """
        Push tags, branches and notes for a finished build.

        Per-axis matrix sub-builds, builds stopped by the success gate and
        publishers with nothing configured return a no-op result.

        Args:
            build: The finished build unit
            policy: Publisher configuration
            env: Expansion environment (resolved from the build if None)

        Returns:
            PublishResult with one outcome per attempted action

        Raises:
            ConfigurationError: if the build has no commit or workspace
        """
        result = PublishResult(build=build.display_name)

        if build.is_matrix_child:
            logger.debug(f"{build.display_name}: matrix sub-build, publishing at parent completion")
            return result.finish(PublishStatus.SKIPPED_MATRIX_CHILD)

        if policy.push_only_if_build_succeeds and build.result != BuildResult.SUCCESS:
            logger.info(
                f"{build.display_name}: build result is {build.result.value}, "
                f"pushes are only made for successful builds"
            )
            return result.finish(PublishStatus.SKIPPED_POLICY_GATE)

        if not policy.has_anything_to_push:
            return result.finish(PublishStatus.NOTHING_TO_PUSH)

        if not build.commit:
            raise ConfigurationError(f"{build.display_name}: no built revision to push")
        if not build.workspace:
            raise ConfigurationError(f"{build.display_name}: no workspace to push from")

        if env is None:
            env = self.resolver.resolve(build)

        pushed: List[Tuple[PushKind, str, str]] = []
        for kind in PHASE_ORDER:
            result.enter(PHASE_STATES[kind])
            actions = list(policy.actions(kind))
            if kind == PushKind.BRANCH and policy.push_merge:
                merge_action = self._merge_action(build)
                if merge_action is not None:
                    actions.insert(0, merge_action)
            if actions:
                self._run_phase(kind, actions, build, policy, env, pushed, result)

        for outcome in result.outcomes:
            log = logger.error if outcome.failed else logger.info
            log(f"{build.display_name}: {outcome.describe()}")

        return result.finish()

    def _merge_action(self, build: CompletedBuild) -> Optional[PushAction]:
        if build.merge_target is None:
            logger.info(f"{build.display_name}: push merge requested but no merge was performed")
            return None
        target = build.merge_target
        return PushAction.branch(target.remote_name, target.branch)

    def _run_phase(
        self,
        kind: PushKind,
        actions: List[PushAction],
        build: CompletedBuild,
        policy: PublishPolicy,
        env: Mapping[str, str],
        pushed: List[Tuple[PushKind, str, str]],
        result: PublishResult
    ) -> None:
        """Prepare, run the local step of, and push every action of one kind."""
        outcomes: List[Optional[ActionOutcome]] = [None] * len(actions)
        queue: List[Tuple[int, _PreparedPush]] = []
        created_tags: Set[str] = set()
        # Extra workers so a timed-out call cannot hold up the next one.
        # A timed-out git call keeps running until the git client's own
        # timeout kills it; build_git_client keeps that no longer than
        # action_timeout.
        executor = ThreadPoolExecutor(max_workers=len(actions) + max(1, self.options.parallel))
        try:
            for index, action in enumerate(actions):
                try:
                    prepared = self._prepare(action, build, policy, env)
                except ConfigurationError as e:
                    outcomes[index] = ActionOutcome(
                        kind=kind,
                        remote_name=action.remote_name,
                        ref=action.target,
                        status=ActionStatus.FAILED,
                        error=str(e),
                    )
                    continue

                error = self._guarded(executor, self._local_step, prepared, build, created_tags)
                if error:
                    outcomes[index] = self._outcome(prepared, ActionStatus.FAILED, error=error)
                    continue
                queue.append((index, prepared))

            for batch in self._batches(queue):
                running = []
                for index, prepared in batch:
                    duplicate = self._find_duplicate(prepared, pushed)
                    if duplicate is not None:
                        outcomes[index] = self._outcome(
                            prepared,
                            ActionStatus.SKIPPED,
                            message=f"same ref already sent to equivalent remote {duplicate}",
                        )
                        continue
                    running.append((index, prepared, executor.submit(self._push_step, prepared, build)))

                for index, prepared, future in running:
                    error = self._await(future)
                    if error:
                        outcomes[index] = self._outcome(prepared, ActionStatus.FAILED, error=error)
                        continue
                    outcomes[index] = self._outcome(prepared, ActionStatus.SUCCESS)
                    if kind != PushKind.NOTE:
                        pushed.append((kind, prepared.ref, prepared.remote_url))
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        for outcome in outcomes:
            result.add_outcome(outcome)

    def _batches(
        self,
        queue: List[Tuple[int, _PreparedPush]]
    ) -> Iterator[List[Tuple[int, _PreparedPush]]]:
        """
        Split pushes into consecutive batches run concurrently.

        A batch never holds two pushes to the same repository, so one ref
        is never updated by two pushes at once and a duplicate push always
        sees the result of the earlier one.
        """
        size = max(1, self.options.parallel)
        batch: List[Tuple[int, _PreparedPush]] = []
        for item in queue:
            url = item[1].remote_url
            if len(batch) >= size or any(
                p.remote_url == url or matches(p.remote_url, url) for _, p in batch
            ):
                yield batch
                batch = []
            batch.append(item)
        if batch:
            yield batch

    def _prepare(
        self,
        action: PushAction,
        build: CompletedBuild,
        policy: PublishPolicy,
        env: Mapping[str, str]
    ) -> _PreparedPush:
        """Resolve the remote and expand the action's fields."""
        remote_name = expand(action.remote_name, env)
        remote = build.find_remote(remote_name)
        if remote is None:
            raise ConfigurationError(
                f"No remote repository configured with name '{remote_name}'"
            )
        remote_url = expand(remote.url, env)

        if action.kind == PushKind.TAG:
            ref = expand(action.tag_name, env).strip()
            if not ref:
                raise ConfigurationError("Tag name is empty")
            return _PreparedPush(
                action=action,
                remote_name=remote_name,
                remote_url=remote_url,
                ref=ref,
                text=expand(action.tag_message, env),
                forced=action.force_overwrite or policy.force_push,
            )

        if action.kind == PushKind.BRANCH:
            ref = expand(action.branch_name, env).strip()
            if not ref:
                raise ConfigurationError("Branch name is empty")
            return _PreparedPush(
                action=action,
                remote_name=remote_name,
                remote_url=remote_url,
                ref=ref,
                forced=policy.force_push,
            )

        return _PreparedPush(
            action=action,
            remote_name=remote_name,
            remote_url=remote_url,
            ref=expand(action.namespace, env).strip(),
            text=expand(action.note, env),
            forced=policy.force_push,
        )

    @staticmethod
    def _find_duplicate(
        prepared: _PreparedPush,
        pushed: List[Tuple[PushKind, str, str]]
    ) -> Optional[str]:
        if prepared.action.kind == PushKind.NOTE:
            return None
        for kind, ref, url in pushed:
            if kind == prepared.action.kind and ref == prepared.ref and matches(url, prepared.remote_url):
                return url
        return None

    def _local_step(
        self,
        prepared: _PreparedPush,
        build: CompletedBuild,
        created_tags: Set[str]
    ) -> None:
        """
        Create the tag or note in the working copy; branches need nothing.

        A tag already created by an earlier action of this publish is reused
        for the other remotes it goes to.
        """
        action = prepared.action
        if action.kind == PushKind.TAG:
            if not action.create_new_tag:
                if not self.git.tag_exists(build.workspace, prepared.ref):
                    raise ConfigurationError(
                        f"Tag {prepared.ref} does not exist and tag creation is not enabled"
                    )
                prepared.message = "existing tag"
                return
            if prepared.ref in created_tags:
                return
            self.git.create_or_move_tag(
                build.workspace,
                prepared.ref,
                prepared.text,
                build.commit,
                force=action.force_overwrite,
            )
            created_tags.add(prepared.ref)
        elif action.kind == PushKind.NOTE:
            self.git.add_or_replace_note(
                build.workspace,
                build.commit,
                prepared.text,
                prepared.ref,
                replace=action.replace_existing,
            )

    def _push_step(self, prepared: _PreparedPush, build: CompletedBuild) -> None:
        """Push the prepared ref to its remote."""
        kind = prepared.action.kind
        if kind == PushKind.TAG:
            self.git.push_tag(build.workspace, prepared.remote_url, prepared.ref, force=prepared.forced)
        elif kind == PushKind.BRANCH:
            remote_ref = prepared.ref if prepared.ref.startswith('refs/') else f'refs/heads/{prepared.ref}'
            self.git.push_branch(
                build.workspace,
                prepared.remote_url,
                build.commit,
                remote_ref,
                force=prepared.forced,
            )
        else:
            self.git.push_notes(build.workspace, prepared.remote_url, prepared.ref, force=prepared.forced)

    def _guarded(self, executor: ThreadPoolExecutor, fn: Callable, *args) -> Optional[str]:
        """Run fn under the action timeout; return an error message or None."""
        return self._await(executor.submit(fn, *args))

    def _await(self, future) -> Optional[str]:
        try:
            future.result(timeout=self.options.action_timeout)
        except FutureTimeout:
            return f"timed out after {self.options.action_timeout:g}s"
        except ScmBridgeError as e:
            return str(e)
        return None

    @staticmethod
    def _outcome(
        prepared: _PreparedPush,
        status: ActionStatus,
        message: Optional[str] = None,
        error: Optional[str] = None
    ) -> ActionOutcome:
        return ActionOutcome(
            kind=prepared.action.kind,
            remote_name=prepared.remote_name,
            ref=prepared.ref,
            status=status,
            remote_url=prepared.remote_url,
            forced=prepared.forced,
            message=message or prepared.message,
            error=error,
        )
