"""
Safety Guard

Lexical validator that is the final gate before any statement reaches the
database. It strips one optional markdown code fence, trims whitespace and,
unless the policy allows writes, requires the statement to begin with SELECT.

This is a prefix check, not a SQL parser: a write appended after a leading
SELECT (e.g. "SELECT 1; DELETE FROM contacts") is not detected.

Usage:
    from nl2sql.guard import validate
    from nl2sql.models import GuardPolicy

    statement = validate("```sql\\nSELECT 1\\n```", GuardPolicy())
    print(statement.text)  # SELECT 1
"""

import re

from nl2sql.models.agent import GuardViolation
from nl2sql.models.query import GuardPolicy, SQLProvenance, SQLStatement

# A language tag is only consumed when a newline follows it (or it is "sql"),
# and the SELECT keyword is never taken for a tag, so "```SELECT 1```" and
# "```SELECT\n*\nFROM t\n```" keep their SELECT.
_OPENING_FENCE = re.compile(
    r"^```(?:(?!select\b)[A-Za-z0-9_+-]*[ \t]*\r?\n|sql\b|[ \t]*)", re.IGNORECASE
)
_CLOSING_FENCE = re.compile(r"(?:\r?\n)?[ \t]*```$")
_READ_ONLY_PREFIX = "select"


def strip_code_fence(sql_text: str) -> str:
    """Remove a single leading and a single trailing ``` marker, then trim."""
    text = sql_text.strip()
    text = _OPENING_FENCE.sub("", text, count=1)
    text = _CLOSING_FENCE.sub("", text, count=1)
    return text.strip()


def validate(
    sql_text: str,
    policy: GuardPolicy,
    provenance: SQLProvenance = SQLProvenance.DIRECT,
) -> SQLStatement:
    """
    Validate SQL text under a policy.

    Args:
        sql_text: Raw SQL, possibly wrapped in a markdown code fence
        policy: Read/write policy for this request
        provenance: Producer of the statement

    Returns:
        SQLStatement holding the normalized text

    Raises:
        GuardViolation: If the text is empty, or writes are disallowed and the
            text does not begin with SELECT
    """
    text = strip_code_fence(sql_text)
    if not text:
        raise GuardViolation(sql_text, "Empty SQL statement.")
    if not policy.allow_writes and text[: len(_READ_ONLY_PREFIX)].lower() != _READ_ONLY_PREFIX:
        raise GuardViolation(sql_text)
    return SQLStatement(text=text, provenance=provenance, validated=True)
