"""
nl2sql: natural language to guarded SQL.

Translates questions into SQL for a fixed schema, either in one shot or with
a bounded reason/act agent, and enforces a read-only policy on every
statement that reaches the database.
"""

__version__ = "0.1.0"
