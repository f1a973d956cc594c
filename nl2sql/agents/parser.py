"""
Agent response parser.

Responses follow a plain-text grammar of section headers, each at the start
of a line::

    Thought: <reasoning>
    Action: <action name>
    Action Input: <input>

or::

    Thought: <reasoning>
    Final Answer: <answer>

A section runs from its header to the next header or the end of the text.
Only the first occurrence of each header counts. An ``Observation:`` header
written by the model ends the preceding section and is otherwise ignored.
"""

import re
from dataclasses import dataclass
from typing import Optional

_HEADER_PATTERN = re.compile(
    r"^[ \t]*(?P<header>Thought|Action Input|Action|Final Answer|Observation)[ \t]*:",
    re.MULTILINE,
)

_GROUPS = {
    "Thought": "thought",
    "Action": "action",
    "Action Input": "action_input",
    "Final Answer": "final_answer",
}


@dataclass(frozen=True)
class ParsedResponse:
    """Sections found in one model response (None when absent)."""

    thought: Optional[str] = None
    action: Optional[str] = None
    action_input: Optional[str] = None
    final_answer: Optional[str] = None

    @property
    def has_final_answer(self) -> bool:
        return self.final_answer is not None

    @property
    def has_action(self) -> bool:
        return bool(self.action) and self.action_input is not None

    @property
    def is_empty(self) -> bool:
        return not any(
            value is not None
            for value in (self.thought, self.action, self.action_input, self.final_answer)
        )


def parse_response(text: str) -> ParsedResponse:
    """Split a model response into its sections."""
    matches = list(_HEADER_PATTERN.finditer(text))
    sections: dict[str, str] = {}

    for index, match in enumerate(matches):
        field = _GROUPS.get(match.group("header"))
        if field is None or field in sections:
            continue
        end = matches[index + 1].start() if index + 1 < len(matches) else len(text)
        sections[field] = text[match.end():end].strip()

    return ParsedResponse(**sections)
