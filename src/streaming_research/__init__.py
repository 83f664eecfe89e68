from .agent import (
    StreamingResearchAgent,
    create_research_agent,
    extract_sources,
    run_research,
)
from .capabilities import (
    ChatCapability,
    ScrapeCapability,
    ScrapeFormat,
    ScrapeOptions,
    SearchCapability,
    SearchRequest,
    SearchResponse,
    SearchResultItem,
    WebContent,
)
from .config import (
    ChatConfig,
    EngineConfig,
    ResearchConfig,
    ScrapeStrategyConfig,
    SearchStrategyConfig,
    Settings,
)
from .errors import (
    AllEnginesFailed,
    CapabilityUnavailable,
    Cancelled,
    ConfigurationError,
    MalformedResponse,
    ResearchError,
    StepBudgetExceeded,
    TransientCallError,
)
from .logging import configure_logging, get_logger
from .registry import CapabilityRegistry
from .state import ResearchState, SubQuestion
from .strategy import ScrapeStrategy, SearchStrategy
from .stream import Action, Stage, ThoughtEvent, ThoughtStream
from .tracking import (
    RunSummary,
    configure_tracking,
    disable_tracing,
    is_tracing_enabled,
    track_research_run,
)

__all__ = [
    # Agent
    "StreamingResearchAgent",
    "create_research_agent",
    "run_research",
    "extract_sources",
    "ResearchState",
    "SubQuestion",
    # Streaming
    "ThoughtStream",
    "ThoughtEvent",
    "Stage",
    "Action",
    # Capabilities and retrieval
    "CapabilityRegistry",
    "SearchStrategy",
    "ScrapeStrategy",
    "ChatCapability",
    "SearchCapability",
    "ScrapeCapability",
    "SearchRequest",
    "SearchResponse",
    "SearchResultItem",
    "ScrapeOptions",
    "ScrapeFormat",
    "WebContent",
    # Configuration
    "Settings",
    "ResearchConfig",
    "SearchStrategyConfig",
    "ScrapeStrategyConfig",
    "EngineConfig",
    "ChatConfig",
    # Errors
    "ResearchError",
    "ConfigurationError",
    "CapabilityUnavailable",
    "TransientCallError",
    "AllEnginesFailed",
    "MalformedResponse",
    "Cancelled",
    "StepBudgetExceeded",
    # Logging
    "configure_logging",
    "get_logger",
    # Tracking
    "configure_tracking",
    "track_research_run",
    "disable_tracing",
    "is_tracing_enabled",
    "RunSummary",
]
