"""
Convention checks for PostBook articles.

Tags are meant to be lowercase single tokens and every post should carry a
title and a date. None of this is enforced by the parser; the linter only
reports what it finds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .article import Article, load_article
from .front_matter import FrontMatterError

logger = logging.getLogger(__name__)

ERROR = "error"
WARNING = "warning"


@dataclass
class LintIssue:
    code: str
    message: str
    severity: str = WARNING
    field: Optional[str] = None

    def __str__(self) -> str:
        return f"[{self.severity}] {self.code}: {self.message}"


def lint_article(article: Article) -> List[LintIssue]:
    """Check an article against the authoring conventions.

    Article already drops exact duplicate tags, so ``duplicate-tag`` is
    only reported for case variants (``sql`` and ``SQL``).

    Args:
        article: Parsed article

    Returns:
        List of LintIssue objects, empty when the article is clean
    """
    issues: List[LintIssue] = []

    if not article.title.strip():
        issues.append(LintIssue("missing-title", "Header has no title", ERROR, "title"))

    if article.date is None:
        issues.append(LintIssue("missing-date", "Header has no date", ERROR, "date"))

    issues.extend(_lint_tags(article.tags))
    issues.extend(_lint_code_blocks(article))

    return issues


def _lint_tags(tags: List[str]) -> List[LintIssue]:
    issues = []
    seen = {}

    for tag in tags:
        if not tag:
            issues.append(LintIssue("empty-tag", "Empty tag in header", ERROR, "tags"))
            continue

        if tag != tag.lower():
            issues.append(LintIssue(
                "tag-not-lowercase",
                f"Tag '{tag}' should be lowercase ('{tag.lower()}')",
                WARNING,
                "tags",
            ))

        if any(ch.isspace() for ch in tag):
            issues.append(LintIssue(
                "tag-whitespace",
                f"Tag '{tag}' contains whitespace",
                WARNING,
                "tags",
            ))

        folded = tag.lower()
        if folded in seen:
            issues.append(LintIssue(
                "duplicate-tag",
                f"Tag '{tag}' duplicates '{seen[folded]}'",
                WARNING,
                "tags",
            ))
        else:
            seen[folded] = tag

    return issues


def _lint_code_blocks(article: Article) -> List[LintIssue]:
    issues = []
    for block in article.code_blocks:
        if not block.closed:
            issues.append(LintIssue(
                "unclosed-code-fence",
                f"Code fence opened on body line {block.line} is never closed",
                ERROR,
            ))
        if not block.language:
            issues.append(LintIssue(
                "code-fence-no-language",
                f"Code fence on body line {block.line} has no language hint",
                WARNING,
            ))
    return issues


def lint_file(path: Path) -> List[LintIssue]:
    """Lint one article file. Parse failures are reported as issues."""
    try:
        article = load_article(path)
    except FrontMatterError as exc:
        logger.debug(f"Header parse failed for {path}: {exc}")
        return [LintIssue("malformed-header", str(exc), ERROR)]

    return lint_article(article)


def has_errors(issues: List[LintIssue]) -> bool:
    return any(issue.severity == ERROR for issue in issues)
