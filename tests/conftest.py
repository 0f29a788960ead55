"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from posts import settings
from posts.builder import PostCatalogBuilder


PG_LOB_POST = """\
---
title: "Backing up large objects with pg_dump"
date: 2019-03-11 21:21:48
categories:
    - database
    - postgresql
tags: [postgresql, lob, backup]
---
PostgreSQL stores large objects outside the table rows, so a plain table
copy does not carry them.

<!-- more -->

## Dump

```bash
# dump only the large objects
pg_dump --blobs -Fc mydb > mydb.dump
```

## Restore

```sql
SELECT lo_import('/tmp/photo.jpg');
```
"""

GIT_SQUASH_POST = """\
---
title: Squashing commits before a merge
date: 2020-07-02T09:30:00+08:00
categories: [git]
tags: [git, rebase]
---
Interactive rebase folds a noisy branch into one reviewable commit.

```bash
git rebase -i HEAD~3
```
"""

MYSQL_SLOW_LOG_POST = """\
---
title: Reading the MySQL slow query log
date: 2020-01-15
categories: database
tags: [mysql, Performance, backup]
---
Turn on the slow query log before guessing which statement is slow.
"""

DRAFT_POST = """\
---
title: Half-written thoughts on VACUUM
date: 2021-01-01
tags: [postgresql]
draft: true
---
TODO
"""

DUPLICATE_POST = """\
---
title: Older notes on large objects
date: 2018-05-01
tags: [postgresql]
---
Superseded.
"""

BROKEN_POST = "# Forgot the header\n\nJust text.\n"


@pytest.fixture(autouse=True)
def default_timezone(monkeypatch):
    """Pin header dates without an offset to UTC."""
    monkeypatch.setattr(settings, "DEFAULT_TIMEZONE", "UTC")
    monkeypatch.setattr(settings, "EXCERPT_LENGTH", 200)


@pytest.fixture
def posts_dir(tmp_path) -> Path:
    """A posts directory with three good posts, a draft, a duplicate slug and a broken file."""
    root = tmp_path / "posts"
    root.mkdir()
    (root / "pg-lob-backup.md").write_text(PG_LOB_POST, encoding="utf-8")
    (root / "git-squash.md").write_text(GIT_SQUASH_POST, encoding="utf-8")
    (root / "mysql-slow-log.md").write_text(MYSQL_SLOW_LOG_POST, encoding="utf-8")
    (root / "draft-post.md").write_text(DRAFT_POST, encoding="utf-8")
    (root / "broken.md").write_text(BROKEN_POST, encoding="utf-8")
    (root / "zz-old").mkdir()
    (root / "zz-old" / "pg-lob-backup.md").write_text(DUPLICATE_POST, encoding="utf-8")
    return root


@pytest.fixture
def catalog_dir(tmp_path) -> Path:
    return tmp_path / "catalog"


@pytest.fixture
def built_catalog(posts_dir, catalog_dir) -> PostCatalogBuilder:
    builder = PostCatalogBuilder(catalog_dir)
    builder.build_from_directory(posts_dir)
    return builder
