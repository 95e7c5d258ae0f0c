"""
Sanitization of entity names used inside table names.

Table names are built from tracked entity names (``so_<token>_questions``,
``github_<token>``), so a name has to pass an allow-list before it can take
part in any statement. Names are never escaped: anything outside the
allow-list is rejected.
"""

import re
from functools import lru_cache

from core.exceptions import IdentifierError

IDENTIFIER_PATTERN = re.compile(r"[A-Za-z][A-Za-z0-9_]*")

# so_<token>_questions must fit PostgreSQL's 63 character identifier limit
MAX_IDENTIFIER_LENGTH = 40


@lru_cache(maxsize=None)
def table_token(name: str) -> str:
    """
    Return the table-name token for an entity name.

    The token is the lower-cased name, matching how PostgreSQL folds
    unquoted identifiers. Applying it to a token returns the token.

    Raises:
        IdentifierError: If the name is empty, too long, or contains
            characters outside ``[A-Za-z0-9_]`` (or does not start with a letter)
    """
    if not isinstance(name, str) or not name:
        raise IdentifierError(
            "Entity name must be a non-empty string",
            context={"entity_name": repr(name)}
        )

    if len(name) > MAX_IDENTIFIER_LENGTH:
        raise IdentifierError(
            f"Entity name exceeds {MAX_IDENTIFIER_LENGTH} characters",
            context={"entity_name": name, "length": len(name)}
        )

    if not IDENTIFIER_PATTERN.fullmatch(name):
        raise IdentifierError(
            "Entity name contains characters that are not allowed in a table name",
            context={"entity_name": name, "allowed": IDENTIFIER_PATTERN.pattern}
        )

    return name.lower()
