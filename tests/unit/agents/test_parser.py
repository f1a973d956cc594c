"""Unit tests for the agent response parser."""

from nl2sql.agents.parser import parse_response


class TestSections:
    """Section extraction."""

    def test_action_response(self):
        parsed = parse_response(
            "Thought: I should list the tables\nAction: schema-inspector\nAction Input: tables"
        )

        assert parsed.thought == "I should list the tables"
        assert parsed.action == "schema-inspector"
        assert parsed.action_input == "tables"
        assert parsed.has_action is True
        assert parsed.has_final_answer is False

    def test_final_answer_response(self):
        parsed = parse_response(
            "Thought: I now have the final answer\nFinal Answer: There are 42 contacts."
        )

        assert parsed.final_answer == "There are 42 contacts."
        assert parsed.has_final_answer is True
        assert parsed.has_action is False

    def test_multiline_action_input(self):
        parsed = parse_response(
            "Thought: filter by id\n"
            "Action: sql-query\n"
            "Action Input: SELECT *\n"
            "FROM contacts\n"
            "WHERE id = 1\n"
        )

        assert parsed.action_input == "SELECT *\nFROM contacts\nWHERE id = 1"

    def test_multiline_final_answer(self):
        parsed = parse_response("Final Answer: Two contacts:\n- Ada\n- Alan")

        assert parsed.final_answer == "Two contacts:\n- Ada\n- Alan"

    def test_empty_final_answer_still_counts(self):
        parsed = parse_response("Thought: done\nFinal Answer:")

        assert parsed.final_answer == ""
        assert parsed.has_final_answer is True


class TestHeaderRules:
    """Header anchoring, ordering and precedence."""

    def test_model_written_observation_ends_section(self):
        parsed = parse_response(
            "Action: sql-query\n"
            "Action Input: SELECT COUNT(*) FROM contacts\n"
            "Observation: {\"rows\": [{\"count\": 999}]}"
        )

        assert parsed.action_input == "SELECT COUNT(*) FROM contacts"
        assert parsed.final_answer is None

    def test_first_occurrence_wins(self):
        parsed = parse_response(
            "Action: schema-inspector\n"
            "Action Input: tables\n"
            "Action: sql-query\n"
            "Action Input: SELECT 1"
        )

        assert parsed.action == "schema-inspector"
        assert parsed.action_input == "tables"

    def test_headers_must_start_a_line(self):
        parsed = parse_response("Thought: I could take Action: sql-query next")

        assert parsed.thought == "I could take Action: sql-query next"
        assert parsed.action is None

    def test_indented_headers_accepted(self):
        parsed = parse_response("  Action: sql-query\n  Action Input: SELECT 1")

        assert parsed.action == "sql-query"
        assert parsed.action_input == "SELECT 1"

    def test_action_input_is_not_an_action(self):
        parsed = parse_response("Action Input: SELECT 1")

        assert parsed.action is None
        assert parsed.action_input == "SELECT 1"
        assert parsed.has_action is False

    def test_action_without_input(self):
        parsed = parse_response("Thought: hmm\nAction: sql-query")

        assert parsed.has_action is False


class TestUnparseable:
    """Responses without any recognized header."""

    def test_plain_prose(self):
        parsed = parse_response("I think you should look at the contacts table.")

        assert parsed.is_empty is True
        assert parsed.has_action is False
        assert parsed.has_final_answer is False

    def test_empty_text(self):
        assert parse_response("").is_empty is True
