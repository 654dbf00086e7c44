"""Tests for the local article structure validator."""

import pytest

from contentflow.core.tools.base import StructureRequest
from contentflow.core.tools.structure_validator import (
    ArticleStructureValidator,
    check_structure,
    extract_metadata,
    has_conclusion,
    score_article,
    word_count,
)


class TestChecks:
    """Test suite for the individual structure checks."""

    def test_word_count(self):
        assert word_count("one two\nthree   four") == 4
        assert word_count("") == 0

    def test_conclusion_markers(self):
        assert has_conclusion("## Final Thoughts\n\nThat is all.")
        assert has_conclusion("In summary, it works.")
        assert not has_conclusion("Just a body.")

    def test_short_article_without_headings(self):
        """Length and headings are issues; the rest are suggestions."""
        issues, suggestions = check_structure("Tiny text.", min_word_count=10)

        assert issues == [
            "Article is too short (2 words). Minimum recommended: 10 words.",
            "No headings found. Articles should have clear section headings.",
        ]
        assert "Consider adding a conclusion section to summarize key points." in suggestions
        assert "Add a clear introduction paragraph to engage readers." in suggestions

    def test_h1_discouraged(self):
        """An H1 inside the body is a suggestion."""
        _, suggestions = check_structure("# Title\n\n## Section\n\nText", min_word_count=0)
        assert "Remove H1 headings (#) from content. Use H2 (##) and below for sections." in suggestions

    def test_conclusion_not_required(self):
        """With require_conclusion off the conclusion suggestion is skipped."""
        _, suggestions = check_structure("## A\n\n## B\n\ntext", min_word_count=0, require_conclusion=False)
        assert not any("conclusion" in suggestion for suggestion in suggestions)

    def test_long_paragraph(self):
        """Paragraphs over a hundred words are flagged."""
        _, suggestions = check_structure("## A\n\n" + "word " * 120, min_word_count=0)
        assert "Some paragraphs are very long. Consider breaking them into smaller chunks." in suggestions


class TestMetadata:
    """Test suite for metadata extraction."""

    def test_metadata(self):
        content = "# Main Title\n\n## Subtitle\n\nThis opening line is long enough.\n\n## Conclusion\n\nDone."
        metadata = extract_metadata(content)

        assert metadata.title == "Main Title"
        assert metadata.subtitle == "Subtitle"
        assert metadata.excerpt == "This opening line is long enough."
        assert metadata.section_count == 2
        assert metadata.has_conclusion is True

    def test_untitled(self):
        assert extract_metadata("no headings here").title == "Untitled"


class TestScoring:
    """Test suite for score_article."""

    def test_penalties(self):
        """Issues cost fifteen points and suggestions five."""
        metadata = extract_metadata("plain")
        assert score_article("plain", ["a", "b"], ["c"], 300, metadata) == 100 - 30 - 5

    def test_clamped(self):
        """Scores stay within 0..100."""
        metadata = extract_metadata("plain")
        assert score_article("plain", ["x"] * 10, [], 300, metadata) == 0


class TestArticleStructureValidator:
    """Test suite for the validator collaborator."""

    @pytest.mark.asyncio
    async def test_report(self):
        """The report bundles score, validity, issues and metadata."""
        report = await ArticleStructureValidator().validate(
            StructureRequest(content="## Only heading\n\nshort body", min_word_count=50)
        )

        assert report.is_valid is False
        assert report.issues == ["Article is too short (5 words). Minimum recommended: 50 words."]
        assert 0 <= report.score <= 100
        assert report.metadata.section_count == 1
