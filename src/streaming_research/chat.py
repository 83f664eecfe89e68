"""Chat-completion capability backed by LangChain's OpenAI chat model."""

from typing import Iterator, Sequence

from langchain_core.messages import BaseMessage
from langchain_openai import ChatOpenAI

from .config import ChatConfig
from .errors import TransientCallError
from .logging import get_logger, log_duration

logger = get_logger("chat")


def _chunk_text(content) -> str:
    # content blocks arrive either as a plain string or a list of parts
    if isinstance(content, str):
        return content
    return "".join(
        part.get("text", "") if isinstance(part, dict) else str(part) for part in content
    )


class OpenAIChatCapability:
    """ChatCapability over ``ChatOpenAI``.

    Any error from the model client (including its timeout) is raised as
    ``TransientCallError``; there are no automatic retries.

    Args:
        config: Chat model settings.
        model: Optional pre-built chat model (used instead of ``config``).
    """

    def __init__(self, config: ChatConfig | None = None, model: ChatOpenAI | None = None):
        self.config = config or ChatConfig()
        if model is None:
            kwargs = {
                "model": self.config.model,
                "temperature": self.config.temperature,
                "timeout": self.config.timeout,
                "max_retries": 0,
            }
            if self.config.base_url:
                kwargs["base_url"] = self.config.base_url
            if self.config.max_tokens:
                kwargs["max_tokens"] = self.config.max_tokens
            model = ChatOpenAI(**kwargs)
        self.model = model

    def generate(self, messages: Sequence[BaseMessage]) -> str:
        with log_duration(logger, "llm_call", mode="generate") as result_ctx:
            try:
                response = self.model.invoke(list(messages))
            except Exception as e:
                raise TransientCallError(f"chat completion failed: {e}") from e
            text = _chunk_text(response.content)
            result_ctx["response_length"] = len(text)
        return text

    def stream(self, messages: Sequence[BaseMessage]) -> Iterator[str]:
        logger.debug("llm_call", mode="stream", status="started")
        total = 0
        try:
            for chunk in self.model.stream(list(messages)):
                text = _chunk_text(chunk.content)
                if text:
                    total += len(text)
                    yield text
        except Exception as e:
            logger.warning("llm_call", mode="stream", status="failed", error=str(e))
            raise TransientCallError(f"chat stream failed: {e}") from e
        logger.debug("llm_call", mode="stream", status="completed", response_length=total)
