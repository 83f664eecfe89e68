"""Main entry point for the streaming research agent."""

import os
import sys

from src.streaming_research import (
    Action,
    ResearchError,
    configure_tracking,
    create_research_agent,
    track_research_run,
)
from src.streaming_research.logging import configure_logging


def stream_research(question: str):
    """Run one research query, printing progress as it streams.

    Returns:
        The drained stream and the list of events it yielded.
    """
    agent = create_research_agent()
    stream = agent.start(question)
    events = []
    in_chunk = False

    for event in stream:
        events.append(event)
        if event.action == Action.REALTIME_SYNTHESIS or event.is_complete:
            continue
        if event.action == Action.REALTIME_ANALYSIS:
            print(event.content, end="", flush=True)
            in_chunk = True
            continue
        if in_chunk:
            print()
            in_chunk = False
        print(f"[{event.stage.value}] {event.content}")

    return stream, events


def main():
    """Run the streaming research agent with a question from command line or interactively."""
    log_level = os.getenv("LOG_LEVEL", "WARNING")
    json_logs = os.getenv("LOG_FORMAT", "").lower() == "json"
    configure_logging(level=log_level, json_logs=json_logs)

    if len(sys.argv) > 1:
        question = " ".join(sys.argv[1:])
    else:
        print("Streaming Research Agent")
        print("=" * 40)
        question = input("Enter your research question: ").strip()

    if not question:
        print("No question provided. Exiting.")
        return

    tracking_enabled = os.getenv("MLFLOW_TRACKING", "").lower() in ("1", "true", "yes")
    if tracking_enabled:
        configure_tracking()

    print(f"\nResearching: {question}")
    print("-" * 40)

    try:
        if tracking_enabled:
            with track_research_run(question) as summary:
                stream, events = stream_research(question)
                summary.record_stream(stream, events)
        else:
            stream, events = stream_research(question)
    except ResearchError as e:
        print(f"Error during research: {e}")
        sys.exit(1)

    completion = next((event for event in events if event.is_complete), None)
    if completion is None:
        print("\nResearch ended without a final answer.")
        sys.exit(1)

    print("\n" + "=" * 40)
    print("RESEARCH REPORT")
    print("=" * 40)
    print(completion.content)

    if completion.sources:
        print("\nSources:")
        for url in completion.sources:
            print(f"  - {url}")

    if stream.dropped_count:
        print(f"\n({stream.dropped_count} progress events were dropped)")


if __name__ == "__main__":
    main()
