"""Tests for the state module."""

from src.streaming_research.state import (
    QuestionStatus,
    SubQuestion,
    get_current_question,
    initial_state,
)


class TestSubQuestion:
    """Tests for SubQuestion."""

    def test_defaults(self):
        """Test a freshly created question."""
        question = SubQuestion(id="q_0_1", text="What is it?")

        assert question.status == QuestionStatus.PENDING
        assert question.priority == 1
        assert question.is_pending
        assert not question.is_completed
        assert question.search_results == []
        assert question.web_contents == []
        assert question.analysis == ""

    def test_status_values(self):
        """Test that statuses serialize to plain strings."""
        assert QuestionStatus.RESEARCHING.value == "researching"
        assert QuestionStatus.COMPLETED == "completed"


class TestResearchState:
    """Tests for the research state helpers."""

    def test_initial_state(self):
        """Test the state a run starts from."""
        state = initial_state("query", max_iterations=3, max_steps=50)

        assert state["original_query"] == "query"
        assert state["iteration"] == 0
        assert state["max_iterations"] == 3
        assert state["max_steps"] == 50
        assert state["questions"] == []
        assert state["researched_questions"] == set()
        assert state["current_question_id"] is None
        assert state["completed_questions"] == 0
        assert state["final_answer"] == ""
        assert state["is_complete"] is False

    def test_initial_states_do_not_share_collections(self):
        """Test that each run gets its own question list."""
        first = initial_state("a", 1, 10)
        second = initial_state("b", 1, 10)

        first["questions"].append(SubQuestion(id="q", text="x"))

        assert second["questions"] == []

    def test_get_current_question(self):
        """Test resolving the current question id."""
        state = initial_state("query", 3, 50)
        question = SubQuestion(id="q_0_2", text="second")
        state["questions"] = [SubQuestion(id="q_0_1", text="first"), question]

        assert get_current_question(state) is None
        state["current_question_id"] = "q_0_2"
        assert get_current_question(state) is question
        state["current_question_id"] = "unknown"
        assert get_current_question(state) is None
