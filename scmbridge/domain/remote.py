"""
Remote configuration domain object for scmbridge.

A RemoteConfig is one entry of a job's remote list. Its serialized form
(name, url, refspec, all nullable) is part of the persisted job
configuration and must keep those field names.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any

from .branch_spec import DEFAULT_REMOTE_NAME
from .remote_url import matches


@dataclass(frozen=True)
class RemoteConfig:
    """
    A configured remote repository.

    Attributes:
        url: Repository URL, trimmed of surrounding whitespace
        name: Remote name, None means "origin"
        refspec: Fetch refspec, if configured
    """
    url: str
    name: Optional[str] = None
    refspec: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'url', (self.url or '').strip())

    @property
    def effective_name(self) -> str:
        """Remote name with the default applied."""
        return self.name or DEFAULT_REMOTE_NAME

    def matches_url(self, url: str) -> bool:
        """True if url names the same repository as this remote."""
        return matches(self.url, url)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'url': self.url,
            'refspec': self.refspec,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RemoteConfig':
        return cls(
            url=data.get('url'),
            name=data.get('name'),
            refspec=data.get('refspec'),
        )

    def __str__(self) -> str:
        return f"{self.refspec} => {self.url} ({self.name})"
