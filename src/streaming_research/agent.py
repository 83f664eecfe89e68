"""Streaming research agent implementation using LangGraph."""

import threading
import uuid
from dataclasses import dataclass
from typing import Iterable

from langchain_core.messages import HumanMessage
from langchain_core.runnables import RunnableConfig
from langgraph.errors import GraphRecursionError
from langgraph.graph import END, START, StateGraph

from .adapters import register_default_adapters
from .capabilities import (
    ChatCapability,
    ScrapeBatch,
    ScrapeCapability,
    ScrapeFormat,
    ScrapeOptions,
    SearchCapability,
    SearchRequest,
)
from .chat import OpenAIChatCapability
from .config import ResearchConfig, Settings
from .errors import Cancelled, ResearchError, StepBudgetExceeded
from .logging import bind_run_context, get_logger, log_duration, preview
from .prompts import (
    ANALYZE_QUESTION_PROMPT,
    CONTEXT_ENTRY,
    CONTEXT_TRUNCATED_NOTE,
    GENERATE_QUESTIONS_PROMPT,
    RESEARCHED_SECTION,
    SHOULD_SYNTHESIZE_EARLY_PROMPT,
    SINGLE_CONTENT_TRUNCATED_SUFFIX,
    SYNTHESIZE_PROMPT,
)
from .questions import (
    STEPS_PER_QUESTION,
    QuestionBank,
    parse_generated_questions,
)
from .registry import CapabilityRegistry
from .state import (
    QuestionStatus,
    ResearchState,
    SubQuestion,
    get_current_question,
    initial_state,
)
from .strategy import ScrapeStrategy, SearchStrategy
from .stream import Action, Stage, ThoughtStream

logger = get_logger("agent")

NODE_CHECK_COMPLETION = "check_completion"
NODE_GENERATE_QUESTIONS = "generate_questions"
NODE_SELECT_QUESTION = "select_question"
NODE_SEARCH_QUESTION = "search_question"
NODE_SCRAPE_WEB_CONTENT = "scrape_web_content"
NODE_ANALYZE_QUESTION = "analyze_question"
NODE_INCREMENT_ITERATION = "increment_iteration"
NODE_SYNTHESIZE_FINAL_ANSWER = "synthesize_final_answer"


@dataclass
class RunContext:
    """Per-run collaborators handed to every node through the graph config."""

    stream: ThoughtStream
    cancel_event: threading.Event

    def check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise Cancelled("research run was cancelled")

    def emit(self, stage: Stage, content: str, action: Action, sources: list[str] | None = None):
        self.stream.emit(stage, content, action, sources=sources)

    def call(self, func, *args):
        """Invoke a capability, honoring cancellation before and after the call."""
        self.check_cancelled()
        result = func(*args)
        self.check_cancelled()
        return result


def _run_context(config: RunnableConfig) -> RunContext:
    return config["configurable"]["run_context"]


def build_analysis_context(
    question: SubQuestion, max_content_length: int, max_single_content: int
) -> str:
    """Concatenate the question's scraped pages into a bounded analysis context.

    Each page is cut to ``max_single_content`` characters; pages are added
    until the context reaches ``max_content_length``, after which the rest is
    left out and a truncation note is appended.
    """
    entries: list[str] = []
    current_length = 0
    page_index = 1
    truncated = False

    for batch in question.web_contents:
        for page in batch.results:
            if current_length >= max_content_length:
                truncated = True
                break

            content = page.content
            if len(content) > max_single_content:
                content = content[:max_single_content] + SINGLE_CONTENT_TRUNCATED_SUFFIX

            entry = CONTEXT_ENTRY.format(
                index=page_index, url=page.url, title=page.title, content=content
            )
            entries.append(entry)
            current_length += len(entry)
            page_index += 1
        if truncated:
            break

    if not entries:
        return "No web content was collected for this question.\n"
    if truncated:
        entries.append(CONTEXT_TRUNCATED_NOTE)
    return "".join(entries)


def format_completed_findings(questions: Iterable[SubQuestion]) -> str:
    """Render completed questions and their analyses for synthesis."""
    sections = [
        f"## Research Question {index}: {question.text}\n{question.analysis}\n\n---\n\n"
        for index, question in enumerate(questions, 1)
        if question.is_completed and question.analysis
    ]
    return "".join(sections) or "No research findings were collected.\n"


def extract_sources(state: ResearchState) -> list[str]:
    """Collect search-result URLs of completed questions, first occurrence first."""
    sources: list[str] = []
    seen: set[str] = set()
    for question in state["questions"]:
        if not question.is_completed:
            continue
        for response in question.search_results:
            for url in response.urls:
                if url not in seen:
                    seen.add(url)
                    sources.append(url)
    return sources


class StreamingResearchAgent:
    """Iterative research state machine that streams its progress.

    The research loop is a LangGraph ``StateGraph``: it starts at the
    completion check, which routes to question generation, question
    selection, or synthesis. A selected question is searched, scraped and
    analyzed, after which the iteration counter advances and the completion
    check runs again. The graph's recursion limit is the run's step budget.

    Args:
        chat: Chat capability for generation, judgment, analysis and synthesis.
        search: Search capability (usually a ``SearchStrategy``).
        scrape: Scrape capability (usually a ``ScrapeStrategy``).
        config: Research budgets and limits.
    """

    def __init__(
        self,
        chat: ChatCapability,
        search: SearchCapability,
        scrape: ScrapeCapability,
        config: ResearchConfig | None = None,
    ):
        self.chat = chat
        self.search = search
        self.scrape = scrape
        self.config = config or ResearchConfig()
        self.graph = self._build_graph()

        logger.info(
            "agent_created",
            max_iterations=self.config.max_iterations,
            max_steps=self.config.max_steps,
            min_questions=self.config.min_questions,
        )

    # Running

    def start(self, query: str, cancel_event: threading.Event | None = None) -> ThoughtStream:
        """Start a research run on a worker thread and return its event stream.

        The stream is closed when the run ends. A successful run ends with one
        ``completed`` event; a failed or cancelled run ends with one ``error``
        event. Setting ``cancel_event`` aborts the run at its next
        suspension point. Blocking model and retrieval calls are not
        interrupted: a cancel that arrives during one takes effect when it
        returns, so the delay is bounded by ``OPENAI_TIMEOUT``,
        ``SEARCH_TIMEOUT`` and ``SCRAPE_TIMEOUT``.
        """
        stream = ThoughtStream(maxsize=self.config.channel_buffer)
        cancel_event = cancel_event or threading.Event()
        run_id = uuid.uuid4().hex[:12]

        worker = threading.Thread(
            target=self._run_worker,
            args=(run_id, query, stream, cancel_event),
            name=f"research-{run_id}",
            daemon=True,
        )
        worker.start()
        return stream

    def _run_worker(
        self, run_id: str, query: str, stream: ThoughtStream, cancel_event: threading.Event
    ) -> None:
        with bind_run_context(run_id, query):
            logger.info("research_start", query_length=len(query))
            try:
                final_state = self.run(query, stream, cancel_event)
            except Cancelled as e:
                logger.warning("research_cancelled", error=str(e))
                stream.emit(Stage.ERROR, f"Research was cancelled: {e}", Action.ERROR)
            except Exception as e:
                logger.error("research_failed", error=str(e), error_type=type(e).__name__)
                stream.emit(
                    Stage.ERROR,
                    f"Research process encountered an error: {e}",
                    Action.ERROR,
                )
            else:
                stream.result_state = final_state
                if final_state["is_complete"]:
                    stream.emit(
                        Stage.COMPLETED,
                        final_state["final_answer"],
                        Action.RESEARCH_COMPLETE,
                        is_complete=True,
                        sources=extract_sources(final_state),
                    )
                logger.info(
                    "research_complete",
                    iterations=final_state["iteration"],
                    questions=len(final_state["questions"]),
                    completed_questions=final_state["completed_questions"],
                    answer_length=len(final_state["final_answer"]),
                    dropped_events=stream.dropped_count,
                )
            finally:
                stream.close()

    def run(
        self,
        query: str,
        stream: ThoughtStream | None = None,
        cancel_event: threading.Event | None = None,
    ) -> ResearchState:
        """Run the research graph on the current thread and return the final state.

        Raises:
            StepBudgetExceeded: If the run needs more node visits than ``max_steps``.
            Cancelled: If ``cancel_event`` is set during the run.
            ResearchError: For any other fatal failure.
        """
        context = RunContext(
            stream=stream or ThoughtStream(maxsize=self.config.channel_buffer),
            cancel_event=cancel_event or threading.Event(),
        )
        state = initial_state(query, self.config.max_iterations, self.config.max_steps)
        try:
            return self.graph.invoke(
                state,
                config={
                    # LangGraph runs one node visit fewer than its recursion limit
                    "recursion_limit": self.config.max_steps + 1,
                    "configurable": {"run_context": context},
                },
            )
        except GraphRecursionError as e:
            raise StepBudgetExceeded(
                f"research exceeded its step budget of {self.config.max_steps} steps"
            ) from e

    # Graph

    def _build_graph(self):
        graph = StateGraph(ResearchState)

        graph.add_node(NODE_CHECK_COMPLETION, self.check_completion)
        graph.add_node(NODE_GENERATE_QUESTIONS, self.generate_questions)
        graph.add_node(NODE_SELECT_QUESTION, self.select_question)
        graph.add_node(NODE_SEARCH_QUESTION, self.search_question)
        graph.add_node(NODE_SCRAPE_WEB_CONTENT, self.scrape_web_content)
        graph.add_node(NODE_ANALYZE_QUESTION, self.analyze_question)
        graph.add_node(NODE_INCREMENT_ITERATION, self.increment_iteration)
        graph.add_node(NODE_SYNTHESIZE_FINAL_ANSWER, self.synthesize_final_answer)

        graph.add_edge(START, NODE_CHECK_COMPLETION)
        graph.add_conditional_edges(
            NODE_CHECK_COMPLETION,
            lambda state: state["next_node"],
            {
                NODE_GENERATE_QUESTIONS: NODE_GENERATE_QUESTIONS,
                NODE_SELECT_QUESTION: NODE_SELECT_QUESTION,
                NODE_SYNTHESIZE_FINAL_ANSWER: NODE_SYNTHESIZE_FINAL_ANSWER,
            },
        )
        graph.add_edge(NODE_GENERATE_QUESTIONS, NODE_SELECT_QUESTION)
        graph.add_conditional_edges(
            NODE_SELECT_QUESTION,
            lambda state: (
                NODE_SEARCH_QUESTION
                if state["current_question_id"] is not None
                else NODE_SYNTHESIZE_FINAL_ANSWER
            ),
            {
                NODE_SEARCH_QUESTION: NODE_SEARCH_QUESTION,
                NODE_SYNTHESIZE_FINAL_ANSWER: NODE_SYNTHESIZE_FINAL_ANSWER,
            },
        )
        graph.add_edge(NODE_SEARCH_QUESTION, NODE_SCRAPE_WEB_CONTENT)
        graph.add_edge(NODE_SCRAPE_WEB_CONTENT, NODE_ANALYZE_QUESTION)
        graph.add_edge(NODE_ANALYZE_QUESTION, NODE_INCREMENT_ITERATION)
        graph.add_edge(NODE_INCREMENT_ITERATION, NODE_CHECK_COMPLETION)
        graph.add_edge(NODE_SYNTHESIZE_FINAL_ANSWER, END)

        return graph.compile()

    # Nodes

    def check_completion(self, state: ResearchState, config: RunnableConfig) -> dict:
        """Decide whether to synthesize, research a pending question, or generate more."""
        ctx = _run_context(config)
        ctx.check_cancelled()

        iteration = state["iteration"]
        max_iterations = state["max_iterations"]
        completed = state["completed_questions"]
        bank = QuestionBank(state["questions"], state["researched_questions"], state["max_steps"])

        ctx.emit(
            Stage.THINKING,
            f"Checking research progress - Iteration: {iteration}/{max_iterations}, "
            f"Completed questions: {completed}",
            Action.PROGRESS_CHECK,
        )

        if iteration >= max_iterations:
            decision = NODE_SYNTHESIZE_FINAL_ANSWER
            reason = f"max iterations reached ({iteration}/{max_iterations})"
            ctx.emit(
                Stage.THINKING,
                "Maximum iteration count reached, starting synthesis of final answer",
                Action.ITERATION_COMPLETE,
            )
        elif completed > 0 and self._judge_sufficient(state, ctx):
            decision = NODE_SYNTHESIZE_FINAL_ANSWER
            reason = f"model judged information sufficient ({completed} completed)"
            ctx.emit(
                Stage.THINKING,
                f"Model judged information sufficient (completed {completed}), "
                "starting synthesis of final answer",
                Action.MODEL_JUDGE_SUFFICIENT,
            )
        elif bank.has_pending():
            decision = NODE_SELECT_QUESTION
            reason = "pending questions remain"
            ctx.emit(
                Stage.THINKING,
                "Found pending questions to continue research",
                Action.CONTINUE_RESEARCH,
            )
        elif completed < self.config.min_questions and iteration < max_iterations:
            decision = NODE_GENERATE_QUESTIONS
            reason = f"too few completed questions ({completed}/{self.config.min_questions})"
            ctx.emit(
                Stage.THINKING,
                f"Completed question count is low ({completed}), "
                "need to generate more research questions",
                Action.GENERATE_NEW_QUESTIONS,
            )
        else:
            decision = NODE_SYNTHESIZE_FINAL_ANSWER
            reason = "no pending questions"
            ctx.emit(
                Stage.THINKING,
                "No more pending questions, starting synthesis of final answer",
                Action.PREPARE_SYNTHESIS,
            )

        logger.info(
            "routing_decision",
            decision=decision,
            reason=reason,
            iteration=iteration,
            max_iterations=max_iterations,
            question_count=len(state["questions"]),
            completed_questions=completed,
        )
        return {"next_node": decision}

    def _judge_sufficient(self, state: ResearchState, ctx: RunContext) -> bool:
        bank = QuestionBank(state["questions"], state["researched_questions"], state["max_steps"])
        findings = "".join(
            f"- {question.text}: {question.analysis}\n"
            for question in bank.completed()
            if question.analysis
        )
        prompt = SHOULD_SYNTHESIZE_EARLY_PROMPT.format(
            query=state["original_query"], findings=findings
        )
        try:
            reply = ctx.call(self.chat.generate, [HumanMessage(content=prompt)])
        except Cancelled:
            raise
        except Exception as e:
            logger.warning("sufficiency_judgment_failed", error=str(e), fallback="continue")
            return False
        return "true" in reply.lower()

    def generate_questions(self, state: ResearchState, config: RunnableConfig) -> dict:
        """Ask the model for sub-questions and admit those the budget allows."""
        ctx = _run_context(config)
        ctx.check_cancelled()
        logger.info("node_enter", node=NODE_GENERATE_QUESTIONS, iteration=state["iteration"])

        ctx.emit(
            Stage.THINKING,
            "Analyzing the original query to generate specific sub-questions...",
            Action.GENERATE_QUESTIONS,
        )

        bank = QuestionBank(state["questions"], state["researched_questions"], state["max_steps"])
        max_total, max_new = bank.capacity()
        ctx.emit(
            Stage.THINKING,
            f"Step allocation: max steps {state['max_steps']}, steps per question "
            f"{STEPS_PER_QUESTION}, can research {max_total} questions, existing "
            f"{len(bank.questions)}, can add {max_new}",
            Action.STEP_ALLOCATION,
        )

        if max_new <= 0:
            ctx.emit(
                Stage.THINKING,
                f"Reached the sub-question limit ({max_total} questions for "
                f"{state['max_steps']} steps), skip generating new questions",
                Action.QUESTION_LIMIT_REACHED,
            )
            logger.info("node_exit", node=NODE_GENERATE_QUESTIONS, new_questions=0)
            return {"questions": bank.questions}

        researched = sorted(state["researched_questions"])
        researched_section = (
            RESEARCHED_SECTION.format(researched="\n".join(researched)) if researched else ""
        )
        prompt = GENERATE_QUESTIONS_PROMPT.format(
            query=state["original_query"], researched_section=researched_section
        )

        with log_duration(logger, "question_generation") as result_ctx:
            reply = ctx.call(self.chat.generate, [HumanMessage(content=prompt)])
            result_ctx["response_length"] = len(reply)

        candidates = parse_generated_questions(reply)
        admitted = bank.admit(candidates, state["iteration"])

        ctx.emit(
            Stage.THINKING,
            f"Generated {len(admitted)} new research questions, ready to continue research",
            Action.QUESTION_GEN_COMPLETE,
        )
        logger.info(
            "node_exit",
            node=NODE_GENERATE_QUESTIONS,
            candidates=len(candidates),
            new_questions=len(admitted),
            questions=[question.text for question in admitted],
        )
        return {"questions": bank.questions}

    def select_question(self, state: ResearchState, config: RunnableConfig) -> dict:
        """Pick the highest-priority pending question."""
        ctx = _run_context(config)
        ctx.check_cancelled()

        bank = QuestionBank(state["questions"], state["researched_questions"], state["max_steps"])
        selected = bank.select_next()
        if selected is None:
            logger.info("node_exit", node=NODE_SELECT_QUESTION, selected=None)
            return {"current_question_id": None}

        ctx.emit(
            Stage.THINKING,
            f"Selected the highest priority research question: {selected.text}",
            Action.QUESTION_SELECTION,
        )
        logger.info(
            "node_exit",
            node=NODE_SELECT_QUESTION,
            question_id=selected.id,
            priority=selected.priority,
            question=preview(selected.text),
        )
        return {"questions": bank.questions, "current_question_id": selected.id}

    def search_question(self, state: ResearchState, config: RunnableConfig) -> dict:
        """Search the web for the current question."""
        ctx = _run_context(config)
        ctx.check_cancelled()
        question = get_current_question(state)
        if question is None:
            return {"questions": state["questions"]}

        ctx.emit(
            Stage.SEARCHING,
            f'Searching the web for: "{question.text}"',
            Action.NETWORK_SEARCH,
        )

        with log_duration(logger, "search", question_id=question.id) as result_ctx:
            response = ctx.call(self.search.search, SearchRequest(query=question.text))
            result_ctx["result_count"] = len(response.results)
            result_ctx["engine"] = response.engine

        question.search_results.append(response)

        ctx.emit(
            Stage.SEARCHING,
            f"Search complete, found {len(response.results)} relevant results",
            Action.SEARCH_COMPLETE,
            sources=response.urls,
        )
        return {"questions": state["questions"]}

    def scrape_web_content(self, state: ResearchState, config: RunnableConfig) -> dict:
        """Fetch the pages behind the latest search results."""
        ctx = _run_context(config)
        ctx.check_cancelled()
        question = get_current_question(state)
        if question is None or not question.search_results:
            return {"questions": state["questions"]}

        ctx.emit(
            Stage.ANALYZING,
            "Scraping content from URLs to get detailed information...",
            Action.WEB_SCRAPING,
        )

        urls = question.search_results[-1].urls
        if not urls:
            ctx.emit(
                Stage.ANALYZING,
                "No URLs found to scrape, skipping web content scraping.",
                Action.SKIP_SCRAPING,
            )
            return {"questions": state["questions"]}

        with log_duration(logger, "scrape", question_id=question.id, url_count=len(urls)) as result_ctx:
            pages = ctx.call(
                self.scrape.scrape_many, urls, ScrapeOptions(format=ScrapeFormat.TEXT)
            )
            result_ctx["page_count"] = len(pages)

        question.web_contents.append(
            ScrapeBatch(
                results=pages,
                message=f"Successfully scraped {len(pages)} of {len(urls)} pages",
            )
        )

        ctx.emit(
            Stage.ANALYZING,
            f"Web scraping complete, successfully fetched content from {len(pages)} pages",
            Action.SCRAPING_COMPLETE,
            sources=[page.url for page in pages],
        )
        return {"questions": state["questions"]}

    def analyze_question(self, state: ResearchState, config: RunnableConfig) -> dict:
        """Stream a cited analysis of the current question's collected content."""
        ctx = _run_context(config)
        ctx.check_cancelled()
        question = get_current_question(state)
        if question is None:
            return {"questions": state["questions"]}

        ctx.emit(
            Stage.ANALYZING,
            f"Starting in-depth analysis of collected information for: {question.text}",
            Action.CONTENT_ANALYSIS,
        )

        context = build_analysis_context(
            question, self.config.max_content_length, self.config.max_single_content
        )
        prompt = ANALYZE_QUESTION_PROMPT.format(question=question.text, context=context)

        with log_duration(logger, "analysis", question_id=question.id) as result_ctx:
            analysis = self._stream_chat(ctx, prompt, Stage.ANALYZING, Action.REALTIME_ANALYSIS)
            result_ctx["response_length"] = len(analysis)

        question.analysis = analysis
        question.status = QuestionStatus.COMPLETED
        researched = state["researched_questions"]
        researched.add(question.text)
        completed = state["completed_questions"] + 1

        ctx.emit(
            Stage.ANALYZING,
            f"Analysis complete\n\n**Research Question**: {question.text}\n\n"
            f"**Analysis Result**:\n{analysis}",
            Action.ANALYSIS_COMPLETE,
        )
        logger.info("node_exit", node=NODE_ANALYZE_QUESTION, completed_questions=completed)
        return {
            "questions": state["questions"],
            "researched_questions": researched,
            "completed_questions": completed,
            "current_question_id": None,
        }

    def increment_iteration(self, state: ResearchState, config: RunnableConfig) -> dict:
        ctx = _run_context(config)
        ctx.check_cancelled()
        iteration = state["iteration"] + 1
        ctx.emit(
            Stage.THINKING,
            f"Entering iteration {iteration}, continuing research.",
            Action.ITERATION_INCREMENT,
        )
        logger.info("node_exit", node=NODE_INCREMENT_ITERATION, iteration=iteration)
        return {"iteration": iteration}

    def synthesize_final_answer(self, state: ResearchState, config: RunnableConfig) -> dict:
        """Stream the final cited report built from every completed question."""
        ctx = _run_context(config)
        ctx.check_cancelled()
        logger.info(
            "node_enter",
            node=NODE_SYNTHESIZE_FINAL_ANSWER,
            completed_questions=state["completed_questions"],
        )

        ctx.emit(
            Stage.SYNTHESIZING,
            "Starting to synthesize all research findings into a final answer...",
            Action.SYNTHESIS_ANALYSIS,
        )

        prompt = SYNTHESIZE_PROMPT.format(
            query=state["original_query"],
            findings=format_completed_findings(state["questions"]),
        )
        with log_duration(logger, "synthesis") as result_ctx:
            answer = self._stream_chat(ctx, prompt, Stage.SYNTHESIZING, Action.REALTIME_SYNTHESIS)
            result_ctx["response_length"] = len(answer)

        return {"final_answer": answer, "is_complete": True}

    def _stream_chat(self, ctx: RunContext, prompt: str, stage: Stage, action: Action) -> str:
        """Forward each streamed chunk as an event and return the joined text."""
        ctx.check_cancelled()
        chunks: list[str] = []
        chunk_iter = self.chat.stream([HumanMessage(content=prompt)])
        try:
            for chunk in chunk_iter:
                ctx.check_cancelled()
                chunks.append(chunk)
                ctx.emit(stage, chunk, action)
        finally:
            # stop the underlying model stream when aborting early
            if hasattr(chunk_iter, "close"):
                chunk_iter.close()
        ctx.check_cancelled()
        return "".join(chunks)


def create_research_agent(
    settings: Settings | None = None,
    chat: ChatCapability | None = None,
) -> StreamingResearchAgent:
    """Create a streaming research agent from settings.

    Builds isolated search and scrape registries, registers the enabled
    adapters, and wires the retrieval strategies and the chat model.

    Args:
        settings: Agent settings (defaults to ``Settings.from_env()``).
        chat: Optional chat capability overriding the configured OpenAI model.

    Returns:
        A ready-to-start StreamingResearchAgent.

    Raises:
        ConfigurationError: If no configured engine can be built for search or scrape.
    """
    settings = settings or Settings.from_env()

    search_registry = CapabilityRegistry("search")
    scrape_registry = CapabilityRegistry("scrape")
    register_default_adapters(search_registry, scrape_registry, settings)

    search = SearchStrategy(search_registry, settings.search_strategy)
    scrape = ScrapeStrategy(scrape_registry, settings.scrape_strategy)
    search.validate()
    scrape.validate()

    return StreamingResearchAgent(
        chat=chat or OpenAIChatCapability(settings.chat),
        search=search,
        scrape=scrape,
        config=settings.research,
    )


def run_research(query: str, settings: Settings | None = None) -> str:
    """Run a research query to completion and return the final report.

    Raises:
        ResearchError: If the run ended with an error event or without an answer.
    """
    agent = create_research_agent(settings)
    with log_duration(logger, "research_run") as result_ctx:
        answer = None
        error = None
        for event in agent.start(query):
            if event.is_complete:
                answer = event.content
            elif event.stage == Stage.ERROR:
                error = event.content
        result_ctx["answer_length"] = len(answer or "")

    if answer is None:
        raise ResearchError(error or "research ended without a final answer")
    return answer
