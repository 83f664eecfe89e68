"""Optional MLflow tracking of research runs."""

import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

import mlflow
import mlflow.langchain

from .logging import get_logger
from .stream import Stage, ThoughtEvent, ThoughtStream

logger = get_logger("tracking")

# MLflow rejects params longer than this
MAX_PARAM_LENGTH = 250

_tracing_enabled = False


@dataclass
class RunSummary:
    """What a finished research run produced, as logged to MLflow."""

    query: str
    report: str = ""
    iteration_count: int = 0
    question_count: int = 0
    completed_questions: int = 0
    source_count: int = 0
    event_count: int = 0
    dropped_events: int = 0
    error: str = ""
    events: list[dict[str, Any]] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return bool(self.report) and not self.error

    def record_stream(self, stream: ThoughtStream, events: list[ThoughtEvent]) -> None:
        """Fill the summary from a drained stream and the events it yielded."""
        self.event_count = len(events)
        self.events = [event.to_dict() for event in events]
        self.dropped_events = stream.dropped_count
        for event in events:
            if event.is_complete:
                self.report = event.content
                self.source_count = len(event.sources)
            elif event.stage == Stage.ERROR:
                self.error = event.content

        state = stream.result_state
        if state is not None:
            self.iteration_count = state["iteration"]
            self.question_count = len(state["questions"])
            self.completed_questions = state["completed_questions"]


def configure_tracking(
    experiment_name: str = "streaming-research",
    tracking_uri: str | None = None,
    enable_tracing: bool = True,
) -> None:
    """Configure MLflow tracking and tracing.

    Args:
        experiment_name: Name of the MLflow experiment.
        tracking_uri: MLflow tracking server URI. Defaults to MLFLOW_TRACKING_URI
                     env var or a local SQLite database.
        enable_tracing: Whether to trace LangChain/LangGraph calls.
    """
    global _tracing_enabled

    uri = tracking_uri or os.getenv("MLFLOW_TRACKING_URI", "sqlite:///mlflow.db")
    mlflow.set_tracking_uri(uri)
    mlflow.set_experiment(experiment_name)

    if enable_tracing and not _tracing_enabled:
        mlflow.langchain.autolog(log_traces=True, silent=True)
        _tracing_enabled = True
        logger.info("tracing_enabled", backend="langchain")

    logger.info(
        "tracking_configured",
        experiment=experiment_name,
        tracking_uri=uri,
        tracing_enabled=enable_tracing,
    )


@contextmanager
def track_research_run(
    query: str,
    run_name: str | None = None,
    tags: dict[str, str] | None = None,
):
    """Track one research run in MLflow.

    Yields a ``RunSummary`` for the caller to fill in; its counters are
    logged as metrics and the report and event log as artifacts when the
    block exits.
    """
    summary = RunSummary(query=query)

    with mlflow.start_run(run_name=run_name) as run:
        logger.info("tracking_run_started", run_id=run.info.run_id)
        mlflow.log_param("query", query[:MAX_PARAM_LENGTH])
        mlflow.log_param("query_length", len(query))
        if tags:
            mlflow.set_tags(tags)

        try:
            yield summary
        except Exception as e:
            mlflow.log_param("error", str(e)[:MAX_PARAM_LENGTH])
            mlflow.set_tag("status", "failed")
            logger.error("tracking_run_failed", run_id=run.info.run_id, error=str(e))
            raise

        mlflow.log_metrics(
            {
                "iteration_count": summary.iteration_count,
                "question_count": summary.question_count,
                "completed_questions": summary.completed_questions,
                "source_count": summary.source_count,
                "event_count": summary.event_count,
                "dropped_events": summary.dropped_events,
                "answer_length": len(summary.report),
            }
        )
        if summary.report:
            mlflow.log_text(summary.report, "report.md")
        if summary.events:
            mlflow.log_dict({"events": summary.events}, "events.json")
        if summary.error:
            mlflow.log_param("error", summary.error[:MAX_PARAM_LENGTH])
        mlflow.set_tag("status", "succeeded" if summary.succeeded else "failed")

        for key, value in summary.metadata.items():
            if isinstance(value, (int, float)):
                mlflow.log_metric(key, value)
            elif isinstance(value, str):
                mlflow.log_param(key, value[:MAX_PARAM_LENGTH])

        logger.info(
            "tracking_run_completed",
            run_id=run.info.run_id,
            succeeded=summary.succeeded,
        )


def disable_tracing() -> None:
    """Turn off LangChain tracing enabled by ``configure_tracking``."""
    global _tracing_enabled

    if _tracing_enabled:
        mlflow.langchain.autolog(disable=True)
        _tracing_enabled = False
        logger.info("tracing_disabled")


def is_tracing_enabled() -> bool:
    return _tracing_enabled
