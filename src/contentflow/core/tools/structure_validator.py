"""Local article structure validator.

Scores markdown article structure without calling any service. Issues are
structural problems (too short, no headings); suggestions are readability
hints. Score: 100, minus 15 per issue and 5 per suggestion, plus small
bonuses for length, sections, a conclusion, emphasis and lists, clamped to
0..100.

Example:
    ```python
    validator = ArticleStructureValidator()
    report = await validator.validate(StructureRequest(content=markdown))
    report.score, report.issues
    ```
"""

import re
from typing import List, Optional, Tuple

from contentflow.core.logging import LogComponent, get_logger
from contentflow.core.tools.base import StructureMetadata, StructureReport, StructureRequest

logger = get_logger(LogComponent.TOOLS)

CONCLUSION_MARKERS = ("conclusion", "in summary", "to conclude", "final thoughts", "wrap up")

_ANY_HEADING = re.compile(r"^#+[ \t]+(.+)$", re.MULTILINE)
_H1 = re.compile(r"^#[ \t]+.+$", re.MULTILINE)
_H2 = re.compile(r"^##[ \t]+.+$", re.MULTILINE)


def word_count(content: str) -> int:
    return len(content.split())


def has_conclusion(content: str) -> bool:
    lowered = content.lower()
    return any(marker in lowered for marker in CONCLUSION_MARKERS)


def _paragraphs(content: str) -> List[str]:
    return [p for p in content.split("\n\n") if p.strip() and not p.startswith("#")]


def check_structure(content: str, min_word_count: int = 300, require_conclusion: bool = True) -> Tuple[List[str], List[str]]:
    """Return ``(issues, suggestions)`` for an article body."""
    issues: List[str] = []
    suggestions: List[str] = []

    words = word_count(content)
    if words < min_word_count:
        issues.append(f"Article is too short ({words} words). Minimum recommended: {min_word_count} words.")

    headings = _ANY_HEADING.findall(content)
    if not headings:
        issues.append("No headings found. Articles should have clear section headings.")
    elif len(headings) < 2:
        suggestions.append("Consider adding more section headings to improve readability.")

    if _H1.search(content):
        suggestions.append("Remove H1 headings (#) from content. Use H2 (##) and below for sections.")

    if require_conclusion and not has_conclusion(content):
        suggestions.append("Consider adding a conclusion section to summarize key points.")

    lines = [line for line in content.splitlines() if line.strip()]
    if not any(not line.startswith("#") and len(line) > 50 for line in lines):
        suggestions.append("Add a clear introduction paragraph to engage readers.")

    if "*" not in content:
        suggestions.append("Consider using bold or italic formatting to emphasize important points.")

    if "-" not in content and "1." not in content and "*" not in content:
        suggestions.append("Consider using bullet points or numbered lists to improve readability.")

    if any(word_count(p) > 100 for p in _paragraphs(content)):
        suggestions.append("Some paragraphs are very long. Consider breaking them into smaller chunks.")

    return issues, suggestions


def extract_metadata(content: str) -> StructureMetadata:
    headings = _ANY_HEADING.findall(content)
    subtitle: Optional[str] = headings[1].strip() if len(headings) > 1 else None
    lines = [line for line in content.splitlines() if line.strip()]
    first = next((line for line in lines if not line.startswith("#") and len(line) > 20), "")
    excerpt = first[:200] + "..." if len(first) > 200 else first
    return StructureMetadata(
        title=headings[0].strip() if headings else "Untitled",
        subtitle=subtitle,
        excerpt=excerpt,
        word_count=word_count(content),
        section_count=len(_H2.findall(content)),
        has_conclusion=has_conclusion(content),
    )


def score_article(
    content: str,
    issues: List[str],
    suggestions: List[str],
    min_word_count: int,
    metadata: StructureMetadata,
) -> int:
    score = 100 - 15 * len(issues) - 5 * len(suggestions)
    if metadata.word_count >= min_word_count * 1.5:
        score += 5
    if metadata.section_count >= 3:
        score += 5
    if metadata.has_conclusion:
        score += 5
    if "*" in content:
        score += 3
    if "-" in content or "1." in content:
        score += 3
    return max(0, min(100, score))


class ArticleStructureValidator:
    """``StructureValidator`` that runs in-process."""

    async def validate(self, request: StructureRequest) -> StructureReport:
        issues, suggestions = check_structure(request.content, request.min_word_count, request.require_conclusion)
        metadata = extract_metadata(request.content)
        score = score_article(request.content, issues, suggestions, request.min_word_count, metadata)
        logger.tool(f"Structure score {score}/100 ({len(issues)} issues, {len(suggestions)} suggestions)")
        return StructureReport(
            score=score,
            is_valid=not issues,
            issues=issues,
            suggestions=suggestions,
            metadata=metadata,
        )
