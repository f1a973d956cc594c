"""
Prompt Builder

Deterministic composition of the model-facing prompts. The schema, the
active read/write policy, few-shot examples and the output contract are
rendered from the Jinja2 templates under ``templates/``:

- direct mode: "return only SQL"
- agent mode: the Thought / Action / Action Input / Final Answer grammar

Building a prompt has no side effects and the same inputs always produce
the same text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Literal, Sequence

from jinja2 import Environment, StrictUndefined

from nl2sql.models.query import GuardPolicy
from nl2sql.prompts.loader import PromptLoader

PromptMode = Literal["direct", "agent"]

SAFE_MESSAGE_SQL = "SELECT 'No data available' as message LIMIT 1"
GREETING_SQL = "SELECT 'Hello! Ask me about contacts or cases.' as message LIMIT 1"
DEFAULT_LIMIT = 10


@dataclass(frozen=True)
class ColumnDefinition:
    name: str
    type: str


@dataclass(frozen=True)
class TableDefinition:
    """A table or view the model may query."""

    name: str
    columns: tuple[ColumnDefinition, ...]
    kind: Literal["table", "view"] = "table"

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]


@dataclass(frozen=True)
class ActionDescription:
    name: str
    description: str


def _columns(*pairs: tuple[str, str]) -> tuple[ColumnDefinition, ...]:
    return tuple(ColumnDefinition(name=name, type=type_) for name, type_ in pairs)


DEFAULT_SCHEMA: tuple[TableDefinition, ...] = (
    TableDefinition(
        name="contacts",
        columns=_columns(
            ("id", "INTEGER"),
            ("first_name", "TEXT"),
            ("last_name", "TEXT"),
            ("created_at", "TIMESTAMPTZ"),
            ("updated_at", "TIMESTAMPTZ"),
        ),
    ),
    TableDefinition(
        name="cases",
        columns=_columns(
            ("id", "INTEGER"),
            ("topic", "TEXT"),
            ("created_at", "TIMESTAMPTZ"),
            ("updated_at", "TIMESTAMPTZ"),
        ),
    ),
    TableDefinition(
        name="recent_activity",
        columns=_columns(
            ("type", "TEXT"),
            ("id", "INTEGER"),
            ("description", "TEXT"),
            ("created_at", "TIMESTAMPTZ"),
        ),
        kind="view",
    ),
)

DEFAULT_ACTIONS: tuple[ActionDescription, ...] = (
    ActionDescription("sql-query", "Execute SELECT queries on the database"),
    ActionDescription(
        "schema-inspector",
        'Inspect database schema (use "tables", "describe <table>", or "sample <table>")',
    ),
    ActionDescription("error-analyzer", "Analyze SQL errors and get suggestions"),
)

DIRECT_EXAMPLES: tuple[tuple[str, str], ...] = (
    ("hi", GREETING_SQL),
    ("create user", SAFE_MESSAGE_SQL),
    ("delete contacts", SAFE_MESSAGE_SQL),
    ("update records", SAFE_MESSAGE_SQL),
    ("show me users", "SELECT * FROM contacts LIMIT 10"),
    ("recent contacts", "SELECT * FROM contacts ORDER BY created_at DESC LIMIT 10"),
    ("all contacts", "SELECT * FROM contacts"),
    ("count contacts", "SELECT COUNT(*) FROM contacts"),
    ("first 5 contacts", "SELECT * FROM contacts LIMIT 5"),
)

_TEMPLATE_PATHS: dict[str, tuple[str, str]] = {
    "direct": ("direct/system.md", "direct/user.md"),
    "agent": ("agent/system.md", "agent/user.md"),
}

_user_env = Environment(undefined=StrictUndefined)


@dataclass(frozen=True)
class PromptTemplate:
    """Rendered system prompt plus the user-turn template for one mode."""

    system: str
    user_template: str
    mode: PromptMode = "direct"
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)

    def render_user(self, prompt: str, context: str = "") -> str:
        """Fill the user-turn template for one model call."""
        return _user_env.from_string(self.user_template).render(prompt=prompt, context=context)


@lru_cache(maxsize=1)
def _default_loader() -> PromptLoader:
    return PromptLoader()


def build(
    schema: Sequence[TableDefinition],
    policy: GuardPolicy,
    mode: PromptMode,
    actions: Sequence[ActionDescription] | None = None,
    loader: PromptLoader | None = None,
) -> PromptTemplate:
    """
    Compose the prompts for a translation mode.

    Args:
        schema: Tables and views the model may reference
        policy: Active read/write policy, rendered as a sentence
        mode: "direct" or "agent"
        actions: Actions offered to the agent (agent mode only)
        loader: Template loader (defaults to the bundled templates)

    Returns:
        PromptTemplate with the rendered system text and user template
    """
    if mode not in _TEMPLATE_PATHS:
        raise ValueError(f"Unknown prompt mode: {mode}")

    loader = loader or _default_loader()
    system_path, user_path = _TEMPLATE_PATHS[mode]

    variables: dict[str, Any] = {
        "tables": list(schema),
        "policy_sentence": policy.describe(),
    }
    if mode == "direct":
        variables.update(
            examples=DIRECT_EXAMPLES,
            safe_message_sql=SAFE_MESSAGE_SQL,
            greeting_sql=GREETING_SQL,
            default_limit=DEFAULT_LIMIT,
        )
    else:
        variables["actions"] = list(actions if actions is not None else DEFAULT_ACTIONS)

    return PromptTemplate(
        system=loader.render(system_path, **variables),
        user_template=loader.load(user_path),
        mode=mode,
        metadata=loader.get_metadata(system_path),
    )
