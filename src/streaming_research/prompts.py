"""Prompts for the streaming research agent."""

GENERATE_QUESTIONS_PROMPT = """You are an expert research strategist. Break the user's query
into specific, searchable research sub-questions.

User's Original Query: {query}

Rules:
1. Each question must explore a distinct aspect of the topic
2. Questions must be concrete enough to search for
3. Together the questions should form a coherent research plan
4. Write the questions in the same language as the query
5. Assign each question a priority from 1 (lowest) to 5 (highest)
6. Use 1-2 questions for a simple query and up to 8 for a highly complex one
{researched_section}
Respond with a JSON array of objects, nothing else.
Example: [{{"question": "sub-question 1", "priority": 5}}, {{"question": "sub-question 2", "priority": 3}}]
"""

RESEARCHED_SECTION = """
Already researched questions (do not repeat them):
{researched}
"""

ANALYZE_QUESTION_PROMPT = """You are a research analyst. Answer the research question using
ONLY the collected web content below.

Research Question: {question}

Collected Web Content:
{context}

Your answer must:
1. Include only information that is relevant to the question
2. Cite every claim inline as [URL] using the source URLs from the content
3. State clearly when the content does not answer the question
4. Be written in the same language as the question

End with a section titled "Referenced URLs:" listing every URL you cited.
"""

CONTEXT_ENTRY = """## Source Web Page {index}
**Link**: {url}
**Title**: {title}
**Content**:
{content}

---

"""

CONTEXT_TRUNCATED_NOTE = "\nNote: the collected content was too long, only part of it is shown.\n"

SINGLE_CONTENT_TRUNCATED_SUFFIX = "...(content truncated)"

SYNTHESIZE_PROMPT = """You are a lead research analyst writing the final report.

Original Research Query: {query}

Research Questions and Analysis Results:
{findings}

Write a report that:
1. Starts with a descriptive title and a short introduction
2. Organizes the findings into sections with clear headings
3. Weaves the findings into a narrative instead of listing them
4. Cites every claim inline as [URL], using only URLs from the findings above
5. Ends with a conclusion and a "## References" section listing each unique URL once
6. Is written in the same language as the original query
"""

SHOULD_SYNTHESIZE_EARLY_PROMPT = """You are deciding whether a research effort has gathered
enough information to write a comprehensive final answer.

Original Research Query: {query}

Accumulated Research Findings:
{findings}

Consider:
1. Are all parts of the query covered?
2. Are the findings detailed enough to support a thorough report?

Respond with ONLY the word true if the findings are sufficient, or ONLY the word false otherwise.
"""
