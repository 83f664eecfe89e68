"""Sub-question bookkeeping: parsing, deduplication, budgeting and selection."""

import json
from dataclasses import dataclass
from typing import Iterable

from .errors import MalformedResponse
from .logging import get_logger
from .state import QuestionStatus, SubQuestion

logger = get_logger("questions")

# Node visits needed to research one question:
# select + search + scrape + analyze + iteration increment + completion check
STEPS_PER_QUESTION = 6
# Steps held back for question generation, iteration bookkeeping and synthesis
RESERVED_STEPS = 5

SIMILARITY_THRESHOLD = 0.5
MIN_WORD_LENGTH = 2  # tokens this short or shorter are ignored

MIN_PRIORITY = 1
MAX_PRIORITY = 10

QUESTION_ID_PREFIX = "q_"


@dataclass
class GeneratedQuestion:
    """A candidate sub-question as proposed by the model."""

    question: str
    priority: int


def clamp_priority(priority: int) -> int:
    return max(MIN_PRIORITY, min(MAX_PRIORITY, priority))


def parse_generated_questions(text: str) -> list[GeneratedQuestion]:
    """Parse the model's question-generation reply.

    The reply must be a JSON array of ``{"question": str, "priority": int}``
    objects. Priority may be omitted (defaults to the lowest priority).

    Raises:
        MalformedResponse: If the reply does not have that structure.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"failed to parse research questions JSON: {e}") from e

    if not isinstance(data, list):
        raise MalformedResponse(
            f"research questions must be a JSON array, got {type(data).__name__}"
        )

    questions = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise MalformedResponse(f"question #{index + 1} is not an object")

        question = item.get("question")
        if not isinstance(question, str) or not question.strip():
            raise MalformedResponse(f"question #{index + 1} has no question text")

        priority = item.get("priority", MIN_PRIORITY)
        if isinstance(priority, bool) or not isinstance(priority, int):
            raise MalformedResponse(f"question #{index + 1} has a non-integer priority")

        questions.append(GeneratedQuestion(question.strip(), clamp_priority(priority)))
    return questions


def _qualifying_tokens(text: str) -> list[str]:
    return [word for word in text.lower().split() if len(word) > MIN_WORD_LENGTH]


def is_similar_question_researched(candidate: str, researched: Iterable[str]) -> bool:
    """Check whether a candidate overlaps too much with any researched question.

    The overlap ratio is the share of the candidate's qualifying tokens that
    also appear in a researched question.
    """
    candidate_tokens = _qualifying_tokens(candidate)
    if not candidate_tokens:
        return False

    for researched_question in researched:
        researched_tokens = set(_qualifying_tokens(researched_question))
        common = sum(1 for token in candidate_tokens if token in researched_tokens)
        if common / len(candidate_tokens) >= SIMILARITY_THRESHOLD:
            return True
    return False


def calculate_max_questions(max_steps: int, existing_count: int) -> tuple[int, int]:
    """Work out how many questions the step budget can fund.

    Returns:
        Tuple of (max_total_questions, max_new_questions).
    """
    available_steps = max_steps - RESERVED_STEPS
    if available_steps < STEPS_PER_QUESTION:
        return 0, 0

    max_total = available_steps // STEPS_PER_QUESTION
    return max_total, max(0, max_total - existing_count)


class QuestionBank:
    """View over a run's question list with admission and selection rules.

    Args:
        questions: The run's question list; admitted questions are appended to it.
        researched: Texts of questions already researched.
        max_steps: The run's step budget.
    """

    def __init__(self, questions: list[SubQuestion], researched: set[str], max_steps: int):
        self.questions = questions
        self.researched = researched
        self.max_steps = max_steps

    def capacity(self) -> tuple[int, int]:
        return calculate_max_questions(self.max_steps, len(self.questions))

    def admit(self, candidates: list[GeneratedQuestion], iteration: int) -> list[SubQuestion]:
        """Append the candidates the budget allows and that are not duplicates.

        Candidates are considered in generation order.

        Returns:
            The newly admitted questions.
        """
        max_total, max_new = self.capacity()
        admitted: list[SubQuestion] = []
        if max_new <= 0:
            logger.info(
                "question_limit_reached",
                max_steps=self.max_steps,
                max_total_questions=max_total,
                existing=len(self.questions),
            )
            return admitted

        for index, candidate in enumerate(candidates, 1):
            if len(admitted) >= max_new:
                break
            if is_similar_question_researched(candidate.question, self.researched):
                logger.debug("question_rejected_duplicate", question=candidate.question)
                continue
            admitted.append(
                SubQuestion(
                    id=f"{QUESTION_ID_PREFIX}{iteration}_{index}",
                    text=candidate.question,
                    priority=candidate.priority,
                )
            )

        self.questions.extend(admitted)
        return admitted

    def has_pending(self) -> bool:
        return any(question.is_pending for question in self.questions)

    def select_next(self) -> SubQuestion | None:
        """Mark the highest-priority pending question as researching and return it.

        Ties go to the question generated first.
        """
        selected = None
        for question in self.questions:
            if question.is_pending and (selected is None or question.priority > selected.priority):
                selected = question
        if selected is not None:
            selected.status = QuestionStatus.RESEARCHING
        return selected

    def completed(self) -> list[SubQuestion]:
        return [question for question in self.questions if question.is_completed]
