"""State definitions for the streaming research agent."""

from dataclasses import dataclass, field
from enum import Enum
from typing import TypedDict

from .capabilities import ScrapeBatch, SearchResponse


class QuestionStatus(str, Enum):
    PENDING = "pending"
    RESEARCHING = "researching"
    COMPLETED = "completed"


@dataclass
class SubQuestion:
    """A research sub-question and everything gathered for it.

    Attributes:
        id: Identifier of the form ``q_<iteration>_<index>``.
        text: The question itself.
        status: Lifecycle status.
        priority: Urgency; higher is researched first.
        search_results: One SearchResponse per search step.
        web_contents: One ScrapeBatch per scrape step.
        analysis: Cited analysis text produced by the analyze step.
    """

    id: str
    text: str
    priority: int = 1
    status: QuestionStatus = QuestionStatus.PENDING
    search_results: list[SearchResponse] = field(default_factory=list)
    web_contents: list[ScrapeBatch] = field(default_factory=list)
    analysis: str = ""

    @property
    def is_pending(self) -> bool:
        return self.status == QuestionStatus.PENDING

    @property
    def is_completed(self) -> bool:
        return self.status == QuestionStatus.COMPLETED


class ResearchState(TypedDict):
    """State for one research run.

    Attributes:
        original_query: The caller's query.
        iteration: Current iteration, starting at 0.
        max_iterations: Iteration budget.
        max_steps: Step budget (node visits).
        questions: All generated sub-questions, in generation order.
        researched_questions: Texts of questions whose analysis is done.
        current_question_id: Id of the question being researched, if any.
        completed_questions: Number of completed questions.
        final_answer: The synthesized report.
        is_complete: Whether synthesis finished.
        next_node: Routing decision made by the completion check.
    """

    original_query: str
    iteration: int
    max_iterations: int
    max_steps: int
    questions: list[SubQuestion]
    researched_questions: set[str]
    current_question_id: str | None
    completed_questions: int
    final_answer: str
    is_complete: bool
    next_node: str


def initial_state(query: str, max_iterations: int, max_steps: int) -> ResearchState:
    """Build the state a run starts from."""
    return {
        "original_query": query,
        "iteration": 0,
        "max_iterations": max_iterations,
        "max_steps": max_steps,
        "questions": [],
        "researched_questions": set(),
        "current_question_id": None,
        "completed_questions": 0,
        "final_answer": "",
        "is_complete": False,
        "next_node": "",
    }


def get_current_question(state: ResearchState) -> SubQuestion | None:
    """Resolve the current question id to its SubQuestion."""
    question_id = state.get("current_question_id")
    if question_id is None:
        return None
    for question in state["questions"]:
        if question.id == question_id:
            return question
    return None
