"""Identifier checks for the few names that end up inside SQL text.

Values are always bound as parameters. Table and column names cannot be,
so they are validated at the tool boundary and quoted when interpolated.
"""

import re

from pgvector_mcp.errors import QueryError

# PostgreSQL truncates identifiers at NAMEDATALEN - 1
MAX_IDENTIFIER_LENGTH = 63

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_identifier(name: str, kind: str = "table") -> str:
    """Return ``name`` if it is a plain SQL identifier, else raise QueryError."""
    if not isinstance(name, str) or not name:
        raise QueryError(f"Invalid {kind} name: expected a non-empty string")
    if len(name) > MAX_IDENTIFIER_LENGTH:
        raise QueryError(f"Invalid {kind} name '{name[:20]}...': longer than {MAX_IDENTIFIER_LENGTH} characters")
    if not _IDENTIFIER_RE.match(name):
        raise QueryError(
            f"Invalid {kind} name '{name}': only letters, digits and underscores are allowed"
        )
    return name


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def qualified_name(schema: str, table: str) -> str:
    return f"{quote_identifier(schema)}.{quote_identifier(table)}"
