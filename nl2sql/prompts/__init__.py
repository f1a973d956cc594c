"""
Prompt Module

Jinja2 prompt templates (with YAML front matter) and the builder that
renders them for direct and agent mode.
"""

from nl2sql.prompts.builder import (
    DEFAULT_ACTIONS,
    DEFAULT_SCHEMA,
    GREETING_SQL,
    SAFE_MESSAGE_SQL,
    ActionDescription,
    ColumnDefinition,
    PromptTemplate,
    TableDefinition,
    build,
)
from nl2sql.prompts.loader import PromptLoader

__all__ = [
    "build",
    "PromptTemplate",
    "PromptLoader",
    "TableDefinition",
    "ColumnDefinition",
    "ActionDescription",
    "DEFAULT_SCHEMA",
    "DEFAULT_ACTIONS",
    "SAFE_MESSAGE_SQL",
    "GREETING_SQL",
]
