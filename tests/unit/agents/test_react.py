"""
Unit tests for ReActAgent.

Model responses are scripted; actions run for real against the fake
connector.
"""

import json

import pytest

from nl2sql.agents import ReActAgent
from nl2sql.models import GuardPolicy, ModelError, ReActAgentInput, TerminalState

FINAL = "Thought: I now have the final answer\nFinal Answer: There are 2 contacts."


@pytest.fixture
def agent(mock_llm_provider, fake_connector):
    return ReActAgent(
        llm_provider=mock_llm_provider,
        connector=fake_connector,
        max_iterations=5,
    )


def ask(prompt: str, **kwargs) -> ReActAgentInput:
    return ReActAgentInput(query=prompt, policy=GuardPolicy(), **kwargs)


class TestSuccessfulRun:
    """Runs that end on a final answer."""

    @pytest.mark.asyncio
    async def test_inspect_query_answer(self, agent, mock_llm_provider, fake_connector):
        fake_connector.on("BASE TABLE", [{"table_name": "cases"}, {"table_name": "contacts"}])
        fake_connector.on("COUNT(*)", [{"count": 2}])
        mock_llm_provider.set_responses(
            "Thought: I should see which tables exist\nAction: schema-inspector\nAction Input: tables",
            "Thought: Count the contacts\nAction: sql-query\nAction Input: SELECT COUNT(*) FROM contacts",
            FINAL,
        )

        output = await agent(ask("how many contacts are there?"))
        trace = output.trace

        assert output.success is True
        assert trace.terminal_state == TerminalState.FINAL_ANSWER
        assert trace.iterations == 3
        assert trace.sql == ["SELECT COUNT(*) FROM contacts"]
        assert trace.rows == [{"count": 2}]
        assert trace.final_answer == "There are 2 contacts."
        assert trace.reasoning == [
            "I should see which tables exist",
            "Count the contacts",
            "I now have the final answer",
        ]
        assert len(trace.observations) == 2
        assert json.loads(trace.observations[0]) == {
            "success": True,
            "tables": ["cases", "contacts"],
        }
        assert output.data["sql"] == ["SELECT COUNT(*) FROM contacts"]

    @pytest.mark.asyncio
    async def test_history_fed_back_verbatim(self, agent, mock_llm_provider, fake_connector):
        fake_connector.on("BASE TABLE", [{"table_name": "contacts"}])
        mock_llm_provider.set_responses(
            "Thought: look\nAction: schema-inspector\nAction Input: tables",
            FINAL,
        )

        await agent(ask("what tables exist?"))

        first, second = mock_llm_provider.user_messages()
        assert "Observation:" not in first
        expected_history = (
            "\nAction: schema-inspector"
            "\nAction Input: tables"
            '\nObservation: {"success": true, "tables": ["contacts"]}'
        )
        assert expected_history.strip() in second
        assert second.index("Observation:") < second.index("Question: what tables exist?")

    @pytest.mark.asyncio
    async def test_system_prompt_lists_actions(self, agent, mock_llm_provider):
        mock_llm_provider.set_response(FINAL)

        await agent(ask("hello"))

        system = mock_llm_provider.system_messages()[0]
        assert "- sql-query:" in system
        assert "Final Answer:" in system

    @pytest.mark.asyncio
    async def test_final_answer_takes_precedence(self, agent, mock_llm_provider, fake_connector):
        mock_llm_provider.set_response(
            "Thought: done\n"
            "Action: sql-query\n"
            "Action Input: SELECT * FROM contacts\n"
            "Final Answer: nothing to do"
        )

        output = await agent(ask("anything"))

        assert output.trace.terminal_state == TerminalState.FINAL_ANSWER
        assert output.trace.iterations == 1
        assert output.trace.sql == []
        assert fake_connector.executed == []

    @pytest.mark.asyncio
    async def test_rows_accumulate_across_queries(
        self, agent, mock_llm_provider, fake_connector, contact_rows
    ):
        fake_connector.on("FROM contacts", contact_rows)
        fake_connector.on("FROM cases", [{"id": 7, "topic": "billing"}])
        mock_llm_provider.set_responses(
            "Action: sql-query\nAction Input: SELECT * FROM contacts LIMIT 10",
            "Action: sql-query\nAction Input: SELECT * FROM cases LIMIT 10",
            FINAL,
        )

        output = await agent(ask("contacts and cases"))

        assert output.trace.sql == [
            "SELECT * FROM contacts LIMIT 10",
            "SELECT * FROM cases LIMIT 10",
        ]
        assert output.trace.rows == contact_rows + [{"id": 7, "topic": "billing"}]
        assert output.data["row_count"] == 3

    @pytest.mark.asyncio
    async def test_fenced_query_recorded_normalized(
        self, agent, mock_llm_provider, fake_connector, contact_rows
    ):
        fake_connector.on("FROM contacts", contact_rows)
        mock_llm_provider.set_responses(
            "Action: sql-query\nAction Input: ```sql\nSELECT * FROM contacts LIMIT 10\n```",
            FINAL,
        )

        output = await agent(ask("list contacts"))

        assert output.trace.sql == ["SELECT * FROM contacts LIMIT 10"]
        assert output.trace.steps[0].action_input.startswith("```sql")
        assert fake_connector.statements == ["SELECT * FROM contacts LIMIT 10"]


class TestObservedFailures:
    """Action failures are observations, not errors."""

    @pytest.mark.asyncio
    async def test_unknown_action(self, agent, mock_llm_provider):
        mock_llm_provider.set_responses(
            "Thought: try it\nAction: drop-table\nAction Input: contacts",
            FINAL,
        )

        output = await agent(ask("remove contacts"))

        observation = json.loads(output.trace.observations[0])
        assert observation["success"] is False
        assert "Unknown action: drop-table" in observation["error"]
        assert output.success is True

    @pytest.mark.asyncio
    async def test_guard_violation_observed(self, agent, mock_llm_provider, fake_connector):
        mock_llm_provider.set_responses(
            "Thought: delete\nAction: sql-query\nAction Input: DELETE FROM contacts",
            FINAL,
        )

        output = await agent(ask("delete all contacts"))

        observation = json.loads(output.trace.observations[0])
        assert observation["error"] == "Guard: Only SELECT statements are allowed."
        assert observation["error_kind"] == "guard_violation"
        assert output.trace.sql == ["DELETE FROM contacts"]
        assert output.trace.rows == []
        assert fake_connector.executed == []

    @pytest.mark.asyncio
    async def test_action_names_case_insensitive(self, agent, mock_llm_provider, fake_connector):
        fake_connector.on("COUNT(*)", [{"count": 5}])
        mock_llm_provider.set_responses(
            "Action: SQL-Query\nAction Input: SELECT COUNT(*) FROM cases",
            FINAL,
        )

        output = await agent(ask("count cases"))

        assert output.trace.sql == ["SELECT COUNT(*) FROM cases"]
        assert output.trace.rows == [{"count": 5}]


class TestTermination:
    """Runs that end without a final answer."""

    @pytest.mark.asyncio
    async def test_unparseable_response(self, agent, mock_llm_provider):
        mock_llm_provider.set_response("I think you should look at the contacts table.")

        output = await agent(ask("show contacts"))
        trace = output.trace

        assert output.success is False
        assert trace.terminal_state == TerminalState.PARSE_ERROR
        assert trace.iterations == 1
        assert trace.reasoning == ["Unable to parse action"]
        assert mock_llm_provider.generate.await_count == 1

    @pytest.mark.asyncio
    async def test_action_without_input_is_unparseable(self, agent, mock_llm_provider):
        mock_llm_provider.set_response("Thought: query it\nAction: sql-query")

        output = await agent(ask("show contacts"))

        assert output.trace.terminal_state == TerminalState.PARSE_ERROR
        assert output.trace.reasoning == ["query it", "Unable to parse action"]

    @pytest.mark.asyncio
    async def test_max_iterations(self, mock_llm_provider, fake_connector):
        agent = ReActAgent(mock_llm_provider, fake_connector, max_iterations=2)
        mock_llm_provider.set_response("Thought: again\nAction: schema-inspector\nAction Input: tables")

        output = await agent(ask("loop forever"))
        trace = output.trace

        assert output.success is False
        assert trace.terminal_state == TerminalState.MAX_ITERATIONS
        assert trace.iterations == 2
        assert len(trace.observations) == 2
        assert trace.final_answer is None
        assert mock_llm_provider.generate.await_count == 2

    @pytest.mark.asyncio
    async def test_budget_override(self, agent, mock_llm_provider):
        mock_llm_provider.set_response("Action: schema-inspector\nAction Input: tables")

        output = await agent(ask("loop", max_iterations=1))

        assert output.trace.terminal_state == TerminalState.MAX_ITERATIONS
        assert output.trace.iterations == 1

    @pytest.mark.asyncio
    async def test_model_error_propagates(self, agent, mock_llm_provider):
        mock_llm_provider.set_error(RuntimeError("503 service unavailable"))

        with pytest.raises(ModelError):
            await agent(ask("count contacts"))

    def test_invalid_budget(self, mock_llm_provider, fake_connector):
        with pytest.raises(ValueError, match="at least 1"):
            ReActAgent(mock_llm_provider, fake_connector, max_iterations=0)
