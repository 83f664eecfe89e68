"""Tests for the prompts module."""

from src.streaming_research.prompts import (
    ANALYZE_QUESTION_PROMPT,
    CONTEXT_ENTRY,
    GENERATE_QUESTIONS_PROMPT,
    RESEARCHED_SECTION,
    SHOULD_SYNTHESIZE_EARLY_PROMPT,
    SYNTHESIZE_PROMPT,
)


class TestPrompts:
    """Tests for prompt templates."""

    def test_generate_questions_prompt_formats(self):
        """Test that the question prompt accepts the query and researched section."""
        researched = RESEARCHED_SECTION.format(researched="old question")
        prompt = GENERATE_QUESTIONS_PROMPT.format(
            query="What is solar power?", researched_section=researched
        )

        assert "What is solar power?" in prompt
        assert "old question" in prompt
        assert '"priority"' in prompt

    def test_analyze_prompt_formats(self):
        """Test that the analysis prompt embeds the question and context."""
        context = CONTEXT_ENTRY.format(
            index=1, url="https://a.example", title="A", content="body"
        )
        prompt = ANALYZE_QUESTION_PROMPT.format(question="Why?", context=context)

        assert "Why?" in prompt
        assert "https://a.example" in prompt
        assert "Referenced URLs" in prompt

    def test_synthesize_prompt_formats(self):
        """Test that the synthesis prompt embeds the query and findings."""
        prompt = SYNTHESIZE_PROMPT.format(query="Q", findings="F1 and F2")

        assert "Q" in prompt
        assert "F1 and F2" in prompt
        assert "References" in prompt

    def test_sufficiency_prompt_asks_for_boolean(self):
        """Test that the judgment prompt asks for true or false."""
        prompt = SHOULD_SYNTHESIZE_EARLY_PROMPT.format(query="Q", findings="- q: a")

        assert "true" in prompt
        assert "false" in prompt
