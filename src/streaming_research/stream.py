"""Bounded, best-effort channel of progress events from a run to its caller."""

import queue
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterator

from .logging import get_logger

logger = get_logger("stream")

# how long the consumer waits between checks for a closed stream
_POLL_INTERVAL = 0.05


class Stage(str, Enum):
    THINKING = "thinking"
    SEARCHING = "searching"
    ANALYZING = "analyzing"
    SYNTHESIZING = "synthesizing"
    COMPLETED = "completed"
    ERROR = "error"


class Action(str, Enum):
    GENERATE_QUESTIONS = "generate_questions"
    QUESTION_SELECTION = "question_selection"
    NETWORK_SEARCH = "network_search"
    SEARCH_COMPLETE = "search_complete"
    WEB_SCRAPING = "web_scraping"
    SKIP_SCRAPING = "skip_scraping"
    SCRAPING_COMPLETE = "scraping_complete"
    CONTENT_ANALYSIS = "content_analysis"
    REALTIME_ANALYSIS = "realtime_analysis"
    ANALYSIS_COMPLETE = "analysis_complete"
    SYNTHESIS_ANALYSIS = "synthesis_analysis"
    REALTIME_SYNTHESIS = "realtime_synthesis"
    ITERATION_INCREMENT = "iteration_increment"
    PROGRESS_CHECK = "progress_check"
    ITERATION_COMPLETE = "iteration_complete"
    MODEL_JUDGE_SUFFICIENT = "model_judge_sufficient"
    CONTINUE_RESEARCH = "continue_research"
    GENERATE_NEW_QUESTIONS = "generate_new_questions"
    PREPARE_SYNTHESIS = "prepare_synthesis"
    STEP_ALLOCATION = "step_allocation"
    QUESTION_LIMIT_REACHED = "question_limit_reached"
    QUESTION_GEN_COMPLETE = "question_gen_complete"
    RESEARCH_COMPLETE = "research_complete"
    ERROR = "error"


@dataclass
class ThoughtEvent:
    """One unit of streamed progress."""

    stage: Stage
    content: str
    action: Action
    is_complete: bool = False
    sources: list[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        data = asdict(self)
        data["stage"] = self.stage.value
        data["action"] = self.action.value
        data["timestamp"] = self.timestamp.isoformat()
        return data


class ThoughtStream:
    """Bounded progress queue with a drop-on-full producer side.

    ``publish`` never blocks the run: when the buffer is full the event is
    discarded and counted in ``dropped_count``. This holds for terminal
    events too, which are additionally counted in ``terminal_dropped_count``
    and logged as a warning, so consumers must not rely on seeing one.
    Iterating the stream yields events until the producer closes it and the
    buffer is drained.

    Args:
        maxsize: Buffer capacity.
    """

    def __init__(self, maxsize: int = 100):
        self._queue: queue.Queue[ThoughtEvent] = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()
        self._lock = threading.Lock()
        self._completion_published = False
        self.dropped_count = 0
        self.terminal_dropped_count = 0
        self.published_count = 0
        # final research state, set by the producer when a run succeeds
        self.result_state = None

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def publish(self, event: ThoughtEvent) -> bool:
        """Offer an event without blocking.

        Returns:
            True if the event was buffered, False if it was dropped.
        """
        with self._lock:
            if self._closed.is_set():
                logger.debug("thought_dropped", reason="closed", action=event.action.value)
                return False
            if event.is_complete:
                if self._completion_published:
                    raise RuntimeError("a completion event was already published")
                # a dropped completion still counts as the run's one completion
                self._completion_published = True

            try:
                self._queue.put_nowait(event)
            except queue.Full:
                self.dropped_count += 1
                if event.is_complete:
                    self.terminal_dropped_count += 1
                    logger.warning(
                        "terminal_thought_dropped",
                        stage=event.stage.value,
                        action=event.action.value,
                    )
                else:
                    logger.debug("thought_dropped", reason="full", action=event.action.value)
                return False

            self.published_count += 1
            return True

    def emit(
        self,
        stage: Stage,
        content: str,
        action: Action,
        is_complete: bool = False,
        sources: list[str] | None = None,
    ) -> bool:
        return self.publish(
            ThoughtEvent(
                stage=stage,
                content=content,
                action=action,
                is_complete=is_complete,
                sources=sources or [],
            )
        )

    def close(self) -> None:
        self._closed.set()

    def __iter__(self) -> Iterator[ThoughtEvent]:
        while True:
            try:
                yield self._queue.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                if self._closed.is_set() and self._queue.empty():
                    return

    def drain(self) -> list[ThoughtEvent]:
        """Consume the stream to the end and return every event received."""
        return list(self)
