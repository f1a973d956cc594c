"""Built-in actions: sql-query, schema-inspector and error-analyzer."""

from nl2sql.tools.builtin import error_analyzer, schema_inspector, sql_query  # noqa: F401
