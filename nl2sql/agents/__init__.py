"""
Agents Module

- DirectTranslator: one-shot prompt to guard-validated SQL
- ReActAgent: bounded reason/act loop over the built-in actions
"""

from nl2sql.agents.base import BaseAgent
from nl2sql.agents.parser import ParsedResponse, parse_response
from nl2sql.agents.react import ReActAgent
from nl2sql.agents.translator import DirectTranslator

__all__ = [
    "BaseAgent",
    "DirectTranslator",
    "ReActAgent",
    "ParsedResponse",
    "parse_response",
]
