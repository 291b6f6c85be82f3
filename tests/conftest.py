"""
Pytest configuration and fixtures for skillcorpus tests.
"""

import os
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from skillcorpus.config import clear_config_cache

POSTGRES_SKILL_MD = """---
name: postgres-optimization
description: PostgreSQL query tuning, indexing and window functions
version: 1.2.0
lastUpdated: 2025-01-15
frameworkVersions:
  postgresql: "16"
---

# PostgreSQL Optimization

Practical patterns for fast PostgreSQL queries.

## Quick Start

1. Run EXPLAIN ANALYZE first
2. Add the right index

## Navigation

| Need to... | Read this |
|------------|-----------|
| Rank rows within groups | [window-functions.md](resources/window-functions.md) |
| Choose an index type | [indexing.md](resources/indexing.md#b-tree-indexes) |

```sql
SELECT * FROM orders WHERE id = 1;
```
"""

WINDOW_FUNCTIONS_MD = """# Window Functions

## Ranking

```sql
SELECT id, RANK() OVER (PARTITION BY customer_id ORDER BY total DESC) FROM orders;
```

See [indexing](indexing.md) for supporting indexes.

## Related Files

- [SKILL.md](../SKILL.md)
- [Indexing](./indexing.md)
"""

INDEXING_MD = """# Indexing

## B-tree Indexes

Default index type. Pair it with [ranking queries](window-functions.md#ranking).

## Related Files

- [Window functions](window-functions.md)
"""

QUERY_REVIEWER_MD = """---
name: query-reviewer
description: Reviews SQL for missing indexes
---

# Query Reviewer

1. Read the query plan
2. Report slow nodes
"""

REDIS_SKILL_MD = """# Redis Patterns

Caching and locking patterns for Redis.

| Need to... | Read this |
|---|---|
| Cache API responses | [caching-strategies.md](resources/caching-strategies.md) |
"""

CACHING_STRATEGIES_MD = """# Caching Strategies

## Cache-Aside

```javascript
const value = await redis.get(key);
```

## Related Files

- [Redis skill](../SKILL.md)
"""

SPRINT_REVIEW_MD = """---
description: Review the current sprint and write a report
argument-hint: "[sprint-number]"
---

# Sprint Review

You are a scrum master.

1. Read the sprint plan
2. Run the build and report results
3. Create a markdown report

```markdown
# Sprint {number} Report
```
"""

SAMPLE_CORPUS = {
    ".claude/skills/postgres-optimization/SKILL.md": POSTGRES_SKILL_MD,
    ".claude/skills/postgres-optimization/resources/window-functions.md": WINDOW_FUNCTIONS_MD,
    ".claude/skills/postgres-optimization/resources/indexing.md": INDEXING_MD,
    ".claude/skills/postgres-optimization/agents/query-reviewer.md": QUERY_REVIEWER_MD,
    ".claude/skills/redis-patterns/SKILL.md": REDIS_SKILL_MD,
    ".claude/skills/redis-patterns/resources/caching-strategies.md": CACHING_STRATEGIES_MD,
    ".claude/commands/sprint-review.md": SPRINT_REVIEW_MD,
}


def write_files(root: Path, files: dict[str, str]) -> Path:
    """Write ``relative path -> content`` into ``root``."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture(autouse=True)
def isolated_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Point SKILLCORPUS_HOME at a temp dir and clear other overrides."""
    home = temp_dir / ".skillcorpus-home"
    home.mkdir()
    monkeypatch.setenv("SKILLCORPUS_HOME", str(home))
    for key in list(os.environ):
        if key.startswith("SKILLCORPUS_") and key != "SKILLCORPUS_HOME":
            monkeypatch.delenv(key)
    monkeypatch.chdir(temp_dir)
    clear_config_cache()
    yield home
    clear_config_cache()


@pytest.fixture
def make_corpus(temp_dir: Path) -> Callable[..., Path]:
    """Build a corpus from the sample files plus overrides.

    Pass ``files`` to add or replace files, ``remove`` to drop sample files.
    """

    def factory(
        files: dict[str, str] | None = None,
        remove: list[str] | None = None,
        name: str = "repo",
    ) -> Path:
        root = temp_dir / name
        root.mkdir()
        contents = dict(SAMPLE_CORPUS)
        for relative in remove or []:
            contents.pop(relative)
        contents.update(files or {})
        return write_files(root, contents)

    return factory


@pytest.fixture
def sample_corpus(make_corpus: Callable[..., Path]) -> Path:
    """Provide a corpus whose only issue is redis-patterns missing frontmatter."""
    return make_corpus()


@pytest.fixture
def sample_files() -> dict[str, str]:
    """Provide the sample corpus as ``relative path -> content``."""
    return dict(SAMPLE_CORPUS)
