"""
Unit tests for agent models.

Tests the reasoning trace invariants, action result observations and the
error taxonomy.
"""

import json
from datetime import date

import pytest
from pydantic import ValidationError

from nl2sql.models import (
    ActionDispatchError,
    ActionErrorKind,
    ActionFailure,
    ActionSuccess,
    AgentResult,
    AgentTrace,
    GuardViolation,
    MaxIterationsExceeded,
    ParseError,
    ReasoningStep,
    TerminalState,
    TraceFrozenError,
)


class TestAgentTrace:
    """Append-only trace with a single terminal state."""

    def test_steps_in_order(self):
        trace = AgentTrace()
        trace.append(ReasoningStep(iteration=1, thought="look"))
        trace.append(ReasoningStep(iteration=2, thought="query"))

        assert trace.iterations == 2
        assert trace.reasoning == ["look", "query"]

    def test_iterations_must_increase(self):
        trace = AgentTrace()
        trace.append(ReasoningStep(iteration=2))

        with pytest.raises(ValueError, match="must follow"):
            trace.append(ReasoningStep(iteration=2))

    def test_final_answer_marks_success(self):
        trace = AgentTrace()
        trace.finish(TerminalState.FINAL_ANSWER, "42 contacts")

        assert trace.success is True
        assert trace.final_answer == "42 contacts"

    @pytest.mark.parametrize("state", [TerminalState.MAX_ITERATIONS, TerminalState.PARSE_ERROR])
    def test_other_states_unsuccessful(self, state):
        trace = AgentTrace()
        trace.finish(state)

        assert trace.success is False
        assert trace.final_answer is None

    def test_answer_only_with_final_answer_state(self):
        with pytest.raises(ValueError):
            AgentTrace().finish(TerminalState.PARSE_ERROR, "answer")

    def test_finished_trace_is_frozen(self):
        trace = AgentTrace()
        trace.finish(TerminalState.MAX_ITERATIONS)

        with pytest.raises(TraceFrozenError):
            trace.append(ReasoningStep(iteration=1))
        with pytest.raises(TraceFrozenError):
            trace.record_sql("SELECT 1")
        with pytest.raises(TraceFrozenError):
            trace.finish(TerminalState.FINAL_ANSWER, "late")

    def test_reasoning_includes_diagnostics(self):
        trace = AgentTrace()
        trace.append(ReasoningStep(iteration=1, diagnostic="Unable to parse action"))

        assert trace.reasoning == ["Unable to parse action"]
        assert trace.observations == []


class TestActionResults:
    """Observation text fed back to the model."""

    def test_success_observation(self):
        observation = ActionSuccess(data={"row_count": 1, "rows": [{"count": 2}]}).to_observation()

        assert json.loads(observation) == {"success": True, "row_count": 1, "rows": [{"count": 2}]}

    def test_failure_observation(self):
        failure = ActionFailure(
            error_kind=ActionErrorKind.NOT_FOUND,
            message="Table 'x' not found",
            details={"table": "x"},
        )

        assert json.loads(failure.to_observation()) == {
            "success": False,
            "error": "Table 'x' not found",
            "error_kind": "not_found",
            "table": "x",
        }

    def test_non_json_values_stringified(self):
        observation = ActionSuccess(data={"rows": [{"created_at": date(2024, 1, 2)}]}).to_observation()

        assert "2024-01-02" in observation


class TestErrors:
    """Error taxonomy."""

    def test_guard_violation(self):
        error = GuardViolation("DROP TABLE contacts")

        assert error.message == "Guard: Only SELECT statements are allowed."
        assert error.raw_text == "DROP TABLE contacts"
        assert error.recoverable is False
        assert error.to_dict()["type"] == "GuardViolation"

    def test_dispatch_error_lists_actions(self):
        error = ActionDispatchError("drop-table", ["sql-query", "schema-inspector"])

        assert error.message == (
            "Unknown action: drop-table. Available actions: sql-query, schema-inspector"
        )


class TestAgentResult:
    """Result shape validation."""

    def test_iterations_at_least_one(self):
        with pytest.raises(ValidationError):
            AgentResult(iterations=0, success=False)

    def test_raise_for_state_parse_error(self):
        result = AgentResult(
            reasoning=["Unable to parse action"],
            iterations=1,
            success=False,
            terminal_state=TerminalState.PARSE_ERROR,
        )

        with pytest.raises(ParseError, match="Unable to parse action"):
            result.raise_for_state()

    def test_raise_for_state_max_iterations(self):
        result = AgentResult(
            sql=["SELECT * FROM contacts"],
            iterations=5,
            success=False,
            terminal_state=TerminalState.MAX_ITERATIONS,
        )

        with pytest.raises(MaxIterationsExceeded) as exc_info:
            result.raise_for_state()

        assert exc_info.value.iterations == 5
        assert exc_info.value.recoverable is False

    @pytest.mark.parametrize("state", ["final_answer", "fallback"])
    def test_raise_for_state_accepts_answered_runs(self, state):
        AgentResult(iterations=1, success=True, terminal_state=state).raise_for_state()
