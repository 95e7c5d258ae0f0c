"""
Tracked entity roster
"""

from typing import Dict, List, Sequence

from pydantic import BaseModel, ConfigDict

from core.exceptions import ConfigError
from core.identifiers import table_token


class TrackedEntity(BaseModel):
    """
    A tracked project: the Stack Overflow tag ``name`` and the GitHub
    repository ``owner/repo_name`` it maps to.

    ``table_token`` is computed once, when the roster is built, and every
    table name for this entity is derived from it.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    owner: str
    repo_name: str
    table_token: str

    @classmethod
    def register(cls, name: str, owner: str, repo_name: str) -> "TrackedEntity":
        """Validate the name and build the entity (raises IdentifierError)."""
        return cls(
            name=name,
            owner=owner,
            repo_name=repo_name,
            table_token=table_token(name),
        )


def build_roster(mapping: Dict[str, Sequence[str]]) -> List[TrackedEntity]:
    """
    Build the roster from a ``name -> (owner, repo_name)`` mapping.

    Raises:
        IdentifierError: If a name is unsafe for use in a table name
        ConfigError: If a repository pair is malformed or two names share
            a table token
    """
    roster: List[TrackedEntity] = []
    seen: Dict[str, str] = {}

    for name, repo_info in mapping.items():
        if len(repo_info) != 2 or not all(repo_info):
            raise ConfigError(
                f"Invalid repository information for {name}",
                context={"entity_name": name, "repo_info": list(repo_info)}
            )

        entity = TrackedEntity.register(name, repo_info[0], repo_info[1])

        if entity.table_token in seen:
            raise ConfigError(
                f"Entities {seen[entity.table_token]} and {name} map to the same tables",
                context={"table_token": entity.table_token}
            )
        seen[entity.table_token] = name
        roster.append(entity)

    return roster
