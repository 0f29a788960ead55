"""Tests for the Article model: parsing, rendering, code fences, TOC and excerpts."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from posts.article import (
    Article,
    extract_code_blocks,
    load_article,
    make_excerpt,
    new_article,
    parse_article,
    parse_toc,
    render_article,
    slugify,
)
from posts.front_matter import FrontMatterError

from .conftest import PG_LOB_POST

UTC = timezone.utc


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def test_parse_article_reference_example():
    article = parse_article('---\ntitle: "X"\ndate: 2025-01-01\ntags: [a, b]\n---\nBody text\nmore\n')

    assert article.title == "X"
    assert article.tag_set == {"a", "b"}
    assert article.date == datetime(2025, 1, 1, tzinfo=UTC)
    assert article.body == "Body text\nmore\n"
    assert article.categories == []
    assert article.extra == {}


def test_parse_article_keeps_extra_keys_in_order():
    article = parse_article("---\ntitle: X\ndescription: d\ntoc: true\ndraft: true\n---\n")
    assert list(article.extra) == ["description", "toc", "draft"]
    assert article.draft is True


def test_parse_article_without_title_or_date():
    article = parse_article("---\ntags: git\n---\nBody")
    assert article.title == ""
    assert article.date is None
    assert article.tags == ["git"]


def test_parse_article_removes_exact_duplicate_tags_only():
    article = parse_article("---\ntags: [sql, SQL, sql]\ncategories: [db, db]\n---\n")
    assert article.tags == ["sql", "SQL"]
    assert article.categories == ["db"]


def test_parse_article_malformed_header():
    with pytest.raises(FrontMatterError):
        parse_article("no header here\n")


def test_updated_is_exposed_as_datetime():
    article = parse_article("---\ntitle: X\nupdated: 2021-02-03\n---\n")
    assert article.updated == datetime(2021, 2, 3, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Slugs
# ---------------------------------------------------------------------------

def test_slug_prefers_header_key():
    article = parse_article("---\ntitle: X\nslug: Custom Slug\n---\n", source=Path("posts/other.md"))
    assert article.slug == "custom-slug"


def test_slug_falls_back_to_file_stem():
    article = parse_article("---\ntitle: X\n---\n", source=Path("posts/pg_lob_backup.md"))
    assert article.slug == "pg-lob-backup"


def test_slug_falls_back_to_title():
    article = parse_article("---\ntitle: Squashing commits, fast!\n---\n")
    assert article.slug == "squashing-commits-fast"


@pytest.mark.parametrize("text, expected", [
    ("Hello, World!", "hello-world"),
    ("  git rebase -i  ", "git-rebase-i"),
    ("snake_case__name", "snake-case-name"),
    ("PostgreSQL LOB 迁移", "postgresql-lob-迁移"),
    ("!!!", ""),
])
def test_slugify(text, expected):
    assert slugify(text) == expected


# ---------------------------------------------------------------------------
# Loading and rendering
# ---------------------------------------------------------------------------

def test_load_article_reads_file(tmp_path):
    path = tmp_path / "pg-lob-backup.md"
    path.write_text(PG_LOB_POST, encoding="utf-8")

    article = load_article(path)

    assert article.source == path
    assert article.slug == "pg-lob-backup"
    assert article.categories == ["database", "postgresql"]


def test_load_article_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_article(tmp_path / "nope.md")


def test_load_article_error_names_the_file(tmp_path):
    path = tmp_path / "broken.md"
    path.write_text("# no header\n", encoding="utf-8")

    with pytest.raises(FrontMatterError) as excinfo:
        load_article(path)

    assert str(path) in str(excinfo.value)


def test_load_article_rejects_non_utf8_file(tmp_path):
    path = tmp_path / "latin1.md"
    path.write_bytes(b"---\ntitle: \xff\xfe\n---\nbad\n")

    with pytest.raises(FrontMatterError, match="not valid UTF-8"):
        load_article(path)


def test_render_article_round_trip():
    original = parse_article(PG_LOB_POST)
    original.extra["description"] = "Large objects: dump and restore"
    original.extra["toc"] = True

    reparsed = parse_article(render_article(original))

    assert reparsed.title == original.title
    assert reparsed.date == original.date
    assert reparsed.categories == original.categories
    assert reparsed.tags == original.tags
    assert reparsed.extra == original.extra
    assert reparsed.body == original.body


def test_render_article_omits_empty_fields():
    text = render_article(Article(title="X", date=None, body="B"))
    assert text == "---\ntitle: X\n---\nB"


def test_new_article_defaults():
    article = new_article("Squashing commits before a merge", categories=["git"], tags=["git"])

    assert article.slug == "squashing-commits-before-a-merge"
    assert article.date.tzinfo is not None
    assert article.date.microsecond == 0
    assert article.categories == ["git"]
    assert article.body == ""


def test_new_article_explicit_date():
    date = datetime(2024, 5, 6, 7, 8, tzinfo=timezone(timedelta(hours=2)))
    article = new_article("X", date=date)
    assert article.date == date


# ---------------------------------------------------------------------------
# Code blocks
# ---------------------------------------------------------------------------

def test_extract_code_blocks_languages_and_lines():
    body = (
        "Intro\n"
        "```sql\n"
        "SELECT 1;\n"
        "```\n"
        "\n"
        "~~~bash title=\"restore\"\n"
        "pg_restore -d mydb mydb.dump\n"
        "~~~\n"
        "```\n"
        "plain\n"
        "```\n"
    )

    blocks = extract_code_blocks(body)

    assert [b.language for b in blocks] == ["sql", "bash", ""]
    assert blocks[0].code == "SELECT 1;"
    assert blocks[0].line == 2
    assert blocks[0].end_line == 4
    assert blocks[1].code == "pg_restore -d mydb mydb.dump"
    assert all(b.closed for b in blocks)


def test_code_fence_needs_matching_character_and_length():
    body = "````java\n```\nnot closed yet\n~~~~\n````\n"

    blocks = extract_code_blocks(body)

    assert len(blocks) == 1
    assert blocks[0].language == "java"
    assert blocks[0].code == "```\nnot closed yet\n~~~~"


def test_unclosed_code_fence_runs_to_end():
    blocks = extract_code_blocks("text\n```bash\necho hi\n")

    assert len(blocks) == 1
    assert blocks[0].closed is False
    assert blocks[0].code == "echo hi"
    assert blocks[0].end_line == 3


def test_inline_backticks_are_not_a_fence():
    assert extract_code_blocks("```not a fence```\n") == []


def test_code_languages_are_unique_and_sorted():
    article = parse_article("---\ntitle: X\n---\n```SQL\na\n```\n```bash\nb\n```\n```sql\nc\n```\n")
    assert article.code_languages == ["bash", "sql"]


# ---------------------------------------------------------------------------
# TOC and excerpt
# ---------------------------------------------------------------------------

def test_toc_skips_comments_inside_code():
    article = parse_article(PG_LOB_POST)

    assert article.toc == [
        {"level": 2, "title": "Dump", "id": "dump"},
        {"level": 2, "title": "Restore", "id": "restore"},
    ]


def test_toc_duplicate_ids_get_suffixes():
    toc = parse_toc("# Setup\n## Setup\n### Setup ##\n")
    assert [entry["id"] for entry in toc] == ["setup", "setup-1", "setup-2"]
    assert toc[2]["title"] == "Setup"


def test_toc_keeps_hash_inside_title():
    assert parse_toc("## Using C#\n")[0]["title"] == "Using C#"


def test_excerpt_uses_more_marker():
    article = parse_article(PG_LOB_POST)
    assert article.excerpt == (
        "PostgreSQL stores large objects outside the table rows, "
        "so a plain table copy does not carry them."
    )


def test_excerpt_first_paragraph_skips_headings_and_code():
    body = "# Title\n\n```bash\nls\n```\n\nFirst line\nsecond line\n\nSecond paragraph\n"
    assert make_excerpt(body) == "First line second line"


def test_excerpt_truncates_at_word_boundary():
    assert make_excerpt("word " * 100, 20) == "word word word word..."


def test_word_count():
    article = parse_article("---\ntitle: X\n---\none two\nthree\n")
    assert article.word_count == 3
