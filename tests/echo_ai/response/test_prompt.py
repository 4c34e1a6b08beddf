from echo_ai.interfaces import KnowledgeEntry, SearchResult
from echo_ai.response.prompt import TRUNCATION_NOTE, PromptBuilder, optimize
from echo_ai.response.sections import FALLBACK_PROMPT, TECHNICAL_GUIDELINES


def _entries(n):
    return [KnowledgeEntry(f"Title {i}", f"Content {i}", "docs", rating=4.0) for i in range(n)]


def test_base_prompt_only_when_nothing_to_add():
    builder = PromptBuilder("Base prompt.")

    assert builder.build("hello there") == "Base prompt."


def test_non_string_base_prompt_uses_fallback():
    builder = PromptBuilder({"not": "a string"})

    assert builder.build("hi") == FALLBACK_PROMPT
    assert PromptBuilder(None).build("hi") == FALLBACK_PROMPT


def test_sections_appear_in_order():
    builder = PromptBuilder("Base.")
    web = [SearchResult("Doc", "https://example.com", "snippet text")]

    prompt = builder.build(
        "how to fix this problem",
        {"os": "Windows 11", "environment": "VS Code"},
        _entries(1),
        web,
    )

    ctx = prompt.index("### User Context")
    kb = prompt.index("### Knowledge Base")
    web_idx = prompt.index("### Web Results")
    guide = prompt.index(TECHNICAL_GUIDELINES)
    assert prompt.startswith("Base.")
    assert ctx < kb < web_idx < guide
    assert "- os: Windows 11" in prompt
    assert "- environment: VS Code" in prompt


def test_knowledge_block_is_capped_at_three():
    prompt = PromptBuilder("Base.").build("hello", None, _entries(5))

    assert "Title 2" in prompt
    assert "Title 3" not in prompt
    assert "Category: docs" in prompt
    assert "Content 0" in prompt


def test_web_block_only_for_matching_messages():
    builder = PromptBuilder("Base.")
    web = [SearchResult("Doc", "https://example.com", "snippet")]

    assert "### Web Results" not in builder.build("tell me a story", None, None, web)
    assert "### Web Results" in builder.build("I have an ERROR", None, None, web)


def test_custom_web_formatter_is_used():
    builder = PromptBuilder("Base.", web_formatter=lambda results: f"{len(results)} results")

    prompt = builder.build("how to deploy", None, None, [SearchResult("a", "u", "s")])

    assert "### Web Results\n1 results" in prompt


def test_wants_web_search_heuristic():
    assert PromptBuilder.wants_web_search("How To install")
    assert PromptBuilder.wants_web_search("a weird problem")
    assert not PromptBuilder.wants_web_search("good morning")


def test_topic_guidance_for_technical_messages():
    builder = PromptBuilder("Base.")

    assert TECHNICAL_GUIDELINES in builder.build("check my config")
    assert TECHNICAL_GUIDELINES not in builder.build("what's up")


def test_optimize_collapses_whitespace():
    assert optimize("  a \n\n b\t c  ") == "a b c"


def test_optimize_truncates_with_marker():
    result = optimize("x" * 50, max_length=10)

    assert result == "x" * 10 + TRUNCATION_NOTE


def test_optimize_coerces_non_strings():
    assert optimize(12345) == "12345"
    assert optimize(None) == "None"
