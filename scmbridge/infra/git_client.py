"""
Git client infrastructure for scmbridge.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic

The publisher uses it as its git transport: tag, note and push
operations against the build's working copy.
"""

import os
import re
import subprocess
from typing import Optional, List, Tuple, Dict
from pathlib import Path
import logging

from ..errors import TransportError, PushRejectedError, TransportTimeoutError

logger = logging.getLogger(__name__)

_REJECTED = re.compile(r'\[rejected\]|non-fast-forward|fetch first|\(stale info\)')


class GitClient:
    """
    Abstraction over git commands.

    Provides methods for the git operations scmbridge needs with consistent
    error handling. Failing operations raise TransportError.

    Example:
        client = GitClient(timeout=60)
        client.create_or_move_tag("/ws", "v1.0", "release", commit, force=False)
        client.push_tag("/ws", "git@example.com:org/repo.git", "v1.0")
    """

    def __init__(self, timeout: float = 30, env: Optional[Dict[str, str]] = None):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (default: 30)
            env: Extra environment for git (e.g. GIT_COMMITTER_NAME)
        """
        self.timeout = timeout
        self.env = dict(env or {})

    def _run(
        self,
        args: List[str],
        cwd: str,
        check: bool = False
    ) -> Tuple[Optional[str], int]:
        """
        Run a git command.

        Args:
            args: Arguments after "git"
            cwd: Working directory
            check: Raise TransportError on non-zero exit or timeout

        Returns:
            Tuple of (stdout, returncode)
        """
        cmd = ['git'] + args
        logger.debug(f"Running in {cwd}: {' '.join(cmd)}")
        env = None
        if self.env:
            env = os.environ.copy()
            env.update(self.env)

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=env
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"Git command timed out after {self.timeout}s: {' '.join(cmd)}")
            if check:
                raise TransportTimeoutError(
                    f"git {args[0]} timed out after {self.timeout}s",
                    command=cmd
                )
            return None, -1
        except OSError as e:
            logger.error(f"Git command failed: {' '.join(cmd)} - {e}")
            if check:
                raise TransportError(f"git {args[0]} could not run: {e}", command=cmd)
            return None, -1

        if check and result.returncode != 0:
            stderr = (result.stderr or '').strip()
            message = stderr.splitlines()[-1] if stderr else f"exit status {result.returncode}"
            error_cls = PushRejectedError if args[0] == 'push' and _REJECTED.search(stderr) else TransportError
            raise error_cls(
                f"git {args[0]} failed: {message}",
                command=cmd,
                returncode=result.returncode,
                stderr=stderr
            )

        output = result.stdout
        return output.strip() if output else None, result.returncode

    def is_git_repo(self, path: str) -> bool:
        """Check if path is a git repository."""
        git_dir = Path(path) / ".git"
        return git_dir.exists()

    def rev_parse(self, path: str, ref: str) -> Optional[str]:
        """Resolve a ref to a commit SHA-1, or None if it does not exist."""
        output, code = self._run(['rev-parse', '-q', '--verify', f'{ref}^{{commit}}'], cwd=path)
        if code == 0 and output:
            return output
        return None

    def tag_exists(self, path: str, name: str) -> bool:
        """Check if a tag exists in the local repository."""
        _, code = self._run(['rev-parse', '-q', '--verify', f'refs/tags/{name}'], cwd=path)
        return code == 0

    def tag_message(self, path: str, name: str) -> Optional[str]:
        """Return an annotated tag's message."""
        output, code = self._run(
            ['for-each-ref', '--format=%(contents)', f'refs/tags/{name}'],
            cwd=path
        )
        if code == 0 and output:
            return output
        return None

    def create_or_move_tag(
        self,
        path: str,
        name: str,
        message: str,
        commit: str,
        force: bool = False
    ) -> None:
        """
        Create an annotated tag at commit.

        Args:
            path: Working copy
            name: Tag name
            message: Tag message
            commit: Commit the tag points at
            force: Replace an existing tag of the same name

        Raises:
            TransportError: if the tag exists and force is False, or git fails
        """
        args = ['tag', '-a']
        if force:
            args.append('-f')
        args += ['-m', message or name, name, commit]
        self._run(args, cwd=path, check=True)

    def push_branch(
        self,
        path: str,
        remote: str,
        local_ref: str,
        remote_ref: str,
        force: bool = False
    ) -> str:
        """
        Push local_ref to remote_ref on a remote.

        Args:
            path: Working copy
            remote: Remote URL (or configured remote name)
            local_ref: Commit SHA-1 or ref to push
            remote_ref: Full ref to update on the remote
            force: Allow non-fast-forward updates

        Returns:
            git's output

        Raises:
            PushRejectedError: if the remote refused a non-fast-forward update
            TransportError: for any other failure
        """
        args = ['push']
        if force:
            args.append('--force')
        args += [remote, f'{local_ref}:{remote_ref}']
        output, _ = self._run(args, cwd=path, check=True)
        return output or ''

    def push_tag(self, path: str, remote: str, name: str, force: bool = False) -> str:
        """Push one tag to a remote."""
        ref = f'refs/tags/{name}'
        return self.push_branch(path, remote, ref, ref, force=force)

    def add_or_replace_note(
        self,
        path: str,
        commit: str,
        note: str,
        namespace: str,
        replace: bool = False
    ) -> None:
        """
        Attach a note to a commit.

        With replace, any existing note in the namespace is overwritten;
        otherwise the text is appended to it.
        """
        if replace:
            args = ['notes', f'--ref={namespace}', 'add', '-f', '-m', note, commit]
        else:
            args = ['notes', f'--ref={namespace}', 'append', '-m', note, commit]
        self._run(args, cwd=path, check=True)

    def note(self, path: str, commit: str, namespace: str) -> Optional[str]:
        """Return the note attached to commit in namespace."""
        output, code = self._run(['notes', f'--ref={namespace}', 'show', commit], cwd=path)
        if code == 0:
            return output
        return None

    def push_notes(self, path: str, remote: str, namespace: str, force: bool = False) -> str:
        """Push a notes ref to a remote."""
        if not namespace.startswith('refs/'):
            namespace = f'refs/notes/{namespace}'
        return self.push_branch(path, remote, namespace, namespace, force=force)

    def head_revision(self, url: str, ref: str = "HEAD", cwd: Optional[str] = None) -> Optional[str]:
        """
        Ask a remote which commit a ref points at.

        Returns:
            SHA-1, or None if the remote has no such ref

        Raises:
            TransportError: if the remote cannot be reached
        """
        output, _ = self._run(['ls-remote', url, ref], cwd=cwd or os.getcwd(), check=True)
        if not output:
            return None
        return output.split()[0]
