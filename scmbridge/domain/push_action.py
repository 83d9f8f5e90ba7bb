"""
Push action and publish policy domain objects for scmbridge.

A publisher pushes three kinds of things after a build: tags, branches
and notes. They share one PushAction type with a kind discriminant so the
orchestrator can process them in a single ordered loop.

Serialized field names (camelCase) are the persisted job configuration
format and must not change.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, Tuple

from .branch_spec import DEFAULT_REMOTE_NAME

DEFAULT_NOTES_NAMESPACE = "refs/notes/commits"


class PushKind(Enum):
    """Kind of a push action, in processing order."""
    TAG = "tag"
    BRANCH = "branch"
    NOTE = "note"


@dataclass(frozen=True)
class PushAction:
    """
    One thing to push to one remote.

    Only the fields of the action's kind are meaningful:

        TAG:    tag_name, tag_message, create_new_tag, force_overwrite
        BRANCH: branch_name
        NOTE:   note, namespace, replace_existing

    Text fields may contain ${VAR} references expanded at push time.
    """
    kind: PushKind
    remote_name: str = DEFAULT_REMOTE_NAME
    tag_name: Optional[str] = None
    tag_message: Optional[str] = None
    create_new_tag: bool = False
    force_overwrite: bool = False
    branch_name: Optional[str] = None
    note: Optional[str] = None
    namespace: str = DEFAULT_NOTES_NAMESPACE
    replace_existing: bool = False

    @classmethod
    def tag(
        cls,
        remote_name: str,
        tag_name: str,
        tag_message: str = "",
        create_new_tag: bool = False,
        force_overwrite: bool = False
    ) -> 'PushAction':
        return cls(
            kind=PushKind.TAG,
            remote_name=remote_name or DEFAULT_REMOTE_NAME,
            tag_name=(tag_name or '').strip(),
            tag_message=tag_message or '',
            create_new_tag=create_new_tag,
            force_overwrite=force_overwrite,
        )

    @classmethod
    def branch(cls, remote_name: str, branch_name: str) -> 'PushAction':
        return cls(
            kind=PushKind.BRANCH,
            remote_name=remote_name or DEFAULT_REMOTE_NAME,
            branch_name=(branch_name or '').strip(),
        )

    @classmethod
    def note(
        cls,
        remote_name: str,
        note: str,
        namespace: Optional[str] = None,
        replace_existing: bool = False
    ) -> 'PushAction':
        return cls(
            kind=PushKind.NOTE,
            remote_name=remote_name or DEFAULT_REMOTE_NAME,
            note=note or '',
            namespace=(namespace or '').strip() or DEFAULT_NOTES_NAMESPACE,
            replace_existing=replace_existing,
        )

    @property
    def target(self) -> str:
        """Unexpanded name of the thing being pushed, for reporting."""
        if self.kind == PushKind.TAG:
            return self.tag_name or ''
        if self.kind == PushKind.BRANCH:
            return self.branch_name or ''
        return self.namespace

    def to_dict(self) -> Dict[str, Any]:
        if self.kind == PushKind.TAG:
            return {
                'remoteName': self.remote_name,
                'tagName': self.tag_name,
                'tagMessage': self.tag_message,
                'createNewTag': self.create_new_tag,
                'forceOverwrite': self.force_overwrite,
            }
        if self.kind == PushKind.BRANCH:
            return {
                'remoteName': self.remote_name,
                'branchName': self.branch_name,
            }
        return {
            'remoteName': self.remote_name,
            'note': self.note,
            'namespace': self.namespace,
            'replaceExisting': self.replace_existing,
        }

    @classmethod
    def from_dict(cls, kind: PushKind, data: Dict[str, Any]) -> 'PushAction':
        if kind == PushKind.TAG:
            return cls.tag(
                data.get('remoteName'),
                data.get('tagName'),
                data.get('tagMessage'),
                bool(data.get('createNewTag', False)),
                bool(data.get('forceOverwrite', False)),
            )
        if kind == PushKind.BRANCH:
            return cls.branch(data.get('remoteName'), data.get('branchName'))
        return cls.note(
            data.get('remoteName'),
            data.get('note'),
            data.get('namespace'),
            bool(data.get('replaceExisting', False)),
        )


@dataclass(frozen=True)
class PublishPolicy:
    """
    Post-build publisher configuration.

    Attributes:
        push_only_if_build_succeeds: Skip all pushes unless the build succeeded
        force_push: Overwrite divergent remote history
        push_merge: Push the pre-build merge result back to its target branch
        tags_to_push: Tag actions
        branches_to_push: Branch actions
        notes_to_push: Note actions
    """
    push_only_if_build_succeeds: bool = True
    force_push: bool = False
    push_merge: bool = False
    tags_to_push: Tuple[PushAction, ...] = field(default_factory=tuple)
    branches_to_push: Tuple[PushAction, ...] = field(default_factory=tuple)
    notes_to_push: Tuple[PushAction, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, 'tags_to_push', tuple(self.tags_to_push or ()))
        object.__setattr__(self, 'branches_to_push', tuple(self.branches_to_push or ()))
        object.__setattr__(self, 'notes_to_push', tuple(self.notes_to_push or ()))
        for kind, actions in (
            (PushKind.TAG, self.tags_to_push),
            (PushKind.BRANCH, self.branches_to_push),
            (PushKind.NOTE, self.notes_to_push),
        ):
            for action in actions:
                if action.kind != kind:
                    raise ValueError(
                        f"{action.kind.value} action listed with {kind.value} actions"
                    )

    @property
    def is_push_tags(self) -> bool:
        return bool(self.tags_to_push)

    @property
    def is_push_branches(self) -> bool:
        return bool(self.branches_to_push)

    @property
    def is_push_notes(self) -> bool:
        return bool(self.notes_to_push)

    @property
    def has_anything_to_push(self) -> bool:
        return self.push_merge or self.is_push_tags or self.is_push_branches or self.is_push_notes

    def actions(self, kind: PushKind) -> Tuple[PushAction, ...]:
        """Actions of one kind, in configured order."""
        if kind == PushKind.TAG:
            return self.tags_to_push
        if kind == PushKind.BRANCH:
            return self.branches_to_push
        return self.notes_to_push

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pushOnlyIfBuildSucceeds': self.push_only_if_build_succeeds,
            'forcePush': self.force_push,
            'pushMerge': self.push_merge,
            'tagsToPush': [a.to_dict() for a in self.tags_to_push],
            'branchesToPush': [a.to_dict() for a in self.branches_to_push],
            'notesToPush': [a.to_dict() for a in self.notes_to_push],
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'PublishPolicy':
        data = data or {}
        return cls(
            push_only_if_build_succeeds=bool(data.get('pushOnlyIfBuildSucceeds', True)),
            force_push=bool(data.get('forcePush', False)),
            push_merge=bool(data.get('pushMerge', False)),
            tags_to_push=tuple(
                PushAction.from_dict(PushKind.TAG, d) for d in data.get('tagsToPush') or []
            ),
            branches_to_push=tuple(
                PushAction.from_dict(PushKind.BRANCH, d) for d in data.get('branchesToPush') or []
            ),
            notes_to_push=tuple(
                PushAction.from_dict(PushKind.NOTE, d) for d in data.get('notesToPush') or []
            ),
        )
