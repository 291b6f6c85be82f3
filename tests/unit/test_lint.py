"""
Unit tests for the structural checks and the lint runner.
"""

from pathlib import Path

import pytest

from skillcorpus.config.schema import Config
from skillcorpus.lint import (
    Issue,
    LintReport,
    Severity,
    UnknownRuleError,
    get_rule,
    lint_path,
    list_rules,
)

POSTGRES = ".claude/skills/postgres-optimization"
POSTGRES_SKILL = f"{POSTGRES}/SKILL.md"
WINDOW_FUNCTIONS = f"{POSTGRES}/resources/window-functions.md"
INDEXING = f"{POSTGRES}/resources/indexing.md"
REDIS_SKILL = ".claude/skills/redis-patterns/SKILL.md"
CACHING = ".claude/skills/redis-patterns/resources/caching-strategies.md"


def run_lint(root: Path, **lint_options) -> LintReport:
    """Lint a corpus with the given lint config options."""
    return lint_path(root, Config(lint=lint_options))


def edited(sample_files: dict[str, str], relative: str, old: str, new: str) -> dict[str, str]:
    """Return a single-file override with ``old`` replaced by ``new``."""
    content = sample_files[relative]
    assert old in content
    return {relative: content.replace(old, new)}


# =============================================================================
# Sample Corpus
# =============================================================================


class TestSampleCorpus:
    """Tests against the unmodified sample corpus."""

    def test_only_missing_frontmatter(self, sample_corpus: Path):
        """Test the sample corpus reports just the inconsistent SKILL.md."""
        report = run_lint(sample_corpus)
        assert [(i.rule, i.severity, i.path, i.line) for i in report.issues] == [
            ("frontmatter-missing", Severity.WARNING, REDIS_SKILL, 1),
        ]
        assert "1 of 2" in report.issues[0].message

    def test_report_totals(self, sample_corpus: Path):
        """Test file, bundle and prompt counts."""
        report = run_lint(sample_corpus)
        assert report.checked_files == 7
        assert report.bundles == 2
        assert report.prompts == 1
        assert report.counts() == {"error": 0, "warning": 1, "info": 0}

    def test_failure_threshold(self, sample_corpus: Path):
        """Test a warning only fails at the warning threshold."""
        report = run_lint(sample_corpus)
        assert not report.has_failures(Severity.ERROR)
        assert report.has_failures(Severity.WARNING)


# =============================================================================
# Link Rules
# =============================================================================


class TestLinkRules:
    """Tests for navigation, related, body and anchor link checks."""

    def test_nav_link_broken(self, make_corpus, sample_files):
        """Test a navigation link to a missing file is an error."""
        root = make_corpus(
            files=edited(sample_files, POSTGRES_SKILL, "resources/window-functions.md)", "resources/missing.md)")
        )
        report = run_lint(root)
        issues = report.by_rule("nav-link-broken")
        assert [(i.path, i.line, i.target) for i in issues] == [
            (POSTGRES_SKILL, 23, "resources/missing.md"),
        ]
        assert issues[0].severity == Severity.ERROR
        assert report.by_rule("link-broken") == []

    def test_nav_link_outside_resources(self, make_corpus, sample_files):
        """Test a navigation link into another bundle is flagged."""
        row = "| Choose an index type | [indexing.md](resources/indexing.md#b-tree-indexes) |"
        extra = "| Compare with Redis | [caching](../redis-patterns/resources/caching-strategies.md) |"
        root = make_corpus(files=edited(sample_files, POSTGRES_SKILL, row, f"{row}\n{extra}"))
        issues = run_lint(root).by_rule("nav-link-outside-resources")
        assert [(i.line, i.severity) for i in issues] == [(25, Severity.WARNING)]

    def test_related_link_broken(self, make_corpus, sample_files):
        """Test a broken 'Related Files' link is reported once."""
        root = make_corpus(
            files=edited(sample_files, WINDOW_FUNCTIONS, "- [Indexing](./indexing.md)", "- [Indexing](./indexes.md)")
        )
        report = run_lint(root)
        assert [(i.path, i.line) for i in report.by_rule("related-link-broken")] == [
            (WINDOW_FUNCTIONS, 14),
        ]
        assert report.by_rule("link-broken") == []

    def test_body_link_broken(self, make_corpus, sample_files):
        """Test a broken link in prose is reported with its line."""
        root = make_corpus(
            files=edited(
                sample_files,
                WINDOW_FUNCTIONS,
                "See [indexing](indexing.md)",
                "See [indexing](indexing.md) and [tuning](tuning.md)",
            )
        )
        issues = run_lint(root).by_rule("link-broken")
        assert [(i.path, i.line, i.target) for i in issues] == [(WINDOW_FUNCTIONS, 9, "tuning.md")]

    def test_root_relative_link(self, make_corpus, sample_files):
        """Test links starting with '/' resolve from the corpus root."""
        root = make_corpus(
            files=edited(
                sample_files,
                CACHING,
                "- [Redis skill](../SKILL.md)",
                "- [Redis skill](../SKILL.md)\n- [Review](/.claude/commands/sprint-review.md)",
            )
        )
        report = run_lint(root)
        assert report.by_rule("related-link-broken") == []
        assert report.by_rule("link-broken") == []

    def test_unresolvable_targets_are_broken(self, make_corpus, sample_files):
        """Test a target decoding to a NUL byte is reported instead of aborting the run."""
        content = (
            sample_files[CACHING]
            .replace("## Cache-Aside\n", "## Cache-Aside\n\nSee [x](a%00b.md#top)\n")
            .replace("- [Redis skill](../SKILL.md)", "- [Redis skill](../SKILL.md)\n- [Gone](b%00.md)")
        )
        root = make_corpus(files={CACHING: content})
        report = run_lint(root)
        assert [(i.line, i.target) for i in report.by_rule("link-broken")] == [(5, "a%00b.md#top")]
        assert [(i.line, i.target) for i in report.by_rule("related-link-broken")] == [
            (14, "b%00.md")
        ]
        assert report.by_rule("anchor-broken") == []

    def test_external_links_are_not_checked(self, make_corpus, sample_files):
        """Test URLs are never resolved on disk."""
        root = make_corpus(
            files=edited(
                sample_files,
                INDEXING,
                "Default index type.",
                "Default index type, see [docs](https://www.postgresql.org/docs/) or [mail](mailto:dba@example.com).",
            )
        )
        assert run_lint(root).by_rule("link-broken") == []

    def test_anchor_broken(self, make_corpus, sample_files):
        """Test a fragment naming no heading in the target file."""
        root = make_corpus(files=edited(sample_files, POSTGRES_SKILL, "#b-tree-indexes", "#hash-indexes"))
        issues = run_lint(root).by_rule("anchor-broken")
        assert len(issues) == 1
        assert issues[0].line == 24
        assert issues[0].severity == Severity.WARNING
        assert issues[0].message == f"Anchor '#hash-indexes' not found in {INDEXING}"

    def test_anchor_only_link(self, make_corpus, sample_files):
        """Test in-page anchors are checked against the same document."""
        root = make_corpus(
            files=edited(
                sample_files,
                CACHING,
                "## Cache-Aside\n",
                "## Cache-Aside\n\nJump to [top](#cache-aside) or [nowhere](#nowhere).\n",
            )
        )
        issues = run_lint(root).by_rule("anchor-broken")
        assert [(i.path, i.target) for i in issues] == [(CACHING, "#nowhere")]

    def test_setext_heading_anchor(self, make_corpus, sample_files):
        """Test fragments can name an underlined heading."""
        root = make_corpus(
            files=edited(
                sample_files,
                CACHING,
                "## Cache-Aside\n",
                "Cache-Aside\n-----------\n\nJump to [top](#cache-aside).\n",
            )
        )
        assert run_lint(root).by_rule("anchor-broken") == []

    def test_code_in_list_item_is_not_linked(self, make_corpus, sample_files):
        """Test code nested under a list item does not produce link issues."""
        content = sample_files[CACHING] + "\n1. Dispatch:\n\n    ```ts\n    handlers[type](payload)\n    ```\n"
        report = run_lint(make_corpus(files={CACHING: content}))
        assert report.by_rule("related-link-broken") == []
        assert report.by_rule("link-broken") == []

    def test_anchor_check_can_be_disabled(self, make_corpus, sample_files):
        """Test check_anchors=False turns the rule off."""
        root = make_corpus(files=edited(sample_files, POSTGRES_SKILL, "#b-tree-indexes", "#hash-indexes"))
        assert run_lint(root, check_anchors=False).by_rule("anchor-broken") == []


# =============================================================================
# Frontmatter Rules
# =============================================================================


class TestFrontmatterRules:
    """Tests for frontmatter presence, validity and field checks."""

    def test_frontmatter_invalid(self, make_corpus):
        """Test unparseable YAML is an error at line 1."""
        root = make_corpus(files={REDIS_SKILL: "---\nname: [redis\n---\n# Redis Patterns\n"})
        report = run_lint(root)
        issues = report.by_rule("frontmatter-invalid")
        assert [(i.path, i.line, i.severity) for i in issues] == [(REDIS_SKILL, 1, Severity.ERROR)]
        assert "YAML" in issues[0].message
        assert report.by_rule("frontmatter-missing") == []

    def test_field_missing(self, make_corpus, sample_files):
        """Test a required field absent from SKILL.md frontmatter."""
        root = make_corpus(
            files=edited(
                sample_files,
                POSTGRES_SKILL,
                "description: PostgreSQL query tuning, indexing and window functions\n",
                "",
            )
        )
        issues = run_lint(root).by_rule("frontmatter-field-missing")
        assert [i.message for i in issues] == ["Frontmatter field 'description' is missing or empty"]

    def test_required_fields_are_configurable(self, sample_corpus: Path):
        """Test extra required fields are checked."""
        issues = run_lint(sample_corpus, required_fields=["name", "owner"]).by_rule(
            "frontmatter-field-missing"
        )
        assert [(i.path, i.message) for i in issues] == [
            (POSTGRES_SKILL, "Frontmatter field 'owner' is missing or empty"),
        ]

    def test_missing_frontmatter_required(self, sample_corpus: Path):
        """Test require_frontmatter raises the severity to error."""
        report = run_lint(sample_corpus, require_frontmatter=True)
        issues = report.by_rule("frontmatter-missing")
        assert [(i.path, i.severity) for i in issues] == [(REDIS_SKILL, Severity.ERROR)]
        assert report.has_failures()

    def test_no_frontmatter_anywhere_is_consistent(self, make_corpus, sample_files):
        """Test a corpus where no SKILL.md has frontmatter is not flagged."""
        content = sample_files[POSTGRES_SKILL]
        body = content.split("---\n", 2)[2]
        root = make_corpus(files={POSTGRES_SKILL: body})
        assert run_lint(root).by_rule("frontmatter-missing") == []

    def test_name_duplicate_and_mismatch(self, make_corpus, sample_files):
        """Test two bundles declaring the same name."""
        redis = "---\nname: postgres-optimization\ndescription: Redis\n---\n" + sample_files[REDIS_SKILL]
        report = run_lint(make_corpus(files={REDIS_SKILL: redis}))
        assert sorted(i.path for i in report.by_rule("name-duplicate")) == [POSTGRES_SKILL, REDIS_SKILL]
        mismatch = report.by_rule("name-mismatch")
        assert [(i.path, i.severity) for i in mismatch] == [(REDIS_SKILL, Severity.WARNING)]
        assert report.by_rule("frontmatter-missing") == []

    @pytest.mark.parametrize(
        "version, flagged",
        [("1.2.0", False), ("v2.1", False), ("1.0.0-beta.1", False), ("latest", True), ("1", True)],
    )
    def test_version_format(self, make_corpus, sample_files, version, flagged):
        """Test semver-like versions pass and others are info issues."""
        root = make_corpus(files=edited(sample_files, POSTGRES_SKILL, "version: 1.2.0", f'version: "{version}"'))
        issues = run_lint(root).by_rule("version-format")
        assert bool(issues) is flagged
        if flagged:
            assert issues[0].severity == Severity.INFO

    def test_last_updated_format(self, make_corpus, sample_files):
        """Test a non-ISO lastUpdated is a warning."""
        root = make_corpus(
            files=edited(sample_files, POSTGRES_SKILL, "lastUpdated: 2025-01-15", "lastUpdated: last week")
        )
        issues = run_lint(root).by_rule("last-updated-format")
        assert [i.message for i in issues] == [
            "lastUpdated 'last week' is not an ISO date (YYYY-MM-DD)",
        ]


# =============================================================================
# Structure and Content Rules
# =============================================================================


class TestStructureRules:
    """Tests for orphans, load errors, code fences and prompts."""

    def test_resource_orphan(self, make_corpus):
        """Test a resource no SKILL.md links to."""
        root = make_corpus(files={f"{POSTGRES}/resources/unlinked.md": "# Unlinked\n"})
        issues = run_lint(root).by_rule("resource-orphan")
        assert [(i.path, i.line) for i in issues] == [(f"{POSTGRES}/resources/unlinked.md", None)]

    def test_resource_linked_only_from_resources_is_orphan(self, make_corpus, sample_files):
        """Test links between resources do not count as references."""
        root = make_corpus(
            files=edited(
                sample_files,
                POSTGRES_SKILL,
                "| Rank rows within groups | [window-functions.md](resources/window-functions.md) |\n",
                "",
            )
        )
        issues = run_lint(root).by_rule("resource-orphan")
        assert [i.path for i in issues] == [WINDOW_FUNCTIONS]

    def test_parse_error(self, sample_corpus: Path):
        """Test unreadable files become parse-error issues."""
        (sample_corpus / ".claude/commands/broken.md").write_bytes(b"\xff\xfe\x80 broken")
        issues = run_lint(sample_corpus).by_rule("parse-error")
        assert [(i.path, i.severity) for i in issues] == [(".claude/commands/broken.md", Severity.ERROR)]
        assert "UTF-8" in issues[0].message

    def test_code_fence_unclosed(self, make_corpus):
        """Test an unterminated fence is an error at its opening line."""
        root = make_corpus(files={".claude/commands/notes.md": "---\ndescription: n\n---\n# Notes\n\n```python\nx = 1\n"})
        issues = run_lint(root).by_rule("code-fence-unclosed")
        assert [(i.path, i.line) for i in issues] == [(".claude/commands/notes.md", 6)]

    def test_code_block_untagged(self, make_corpus):
        """Test a fence without a language tag is an info issue."""
        root = make_corpus(files={".claude/commands/notes.md": "---\ndescription: n\n---\n# Notes\n\n```\nraw\n```\n"})
        issues = run_lint(root).by_rule("code-block-untagged")
        assert [(i.line, i.severity) for i in issues] == [(6, Severity.INFO)]

    def test_prompt_description_missing(self, make_corpus):
        """Test commands and agents need a frontmatter description."""
        root = make_corpus(
            files={
                ".claude/commands/deploy.md": "# Deploy\n\n1. Ship it\n",
                f"{POSTGRES}/agents/planner.md": "---\nname: planner\n---\n# Planner\n",
            }
        )
        issues = run_lint(root).by_rule("prompt-description-missing")
        assert sorted(i.message for i in issues) == [
            "Agent prompt 'planner' has no frontmatter description",
            "Command prompt 'deploy' has no frontmatter description",
        ]


# =============================================================================
# Runner Tests
# =============================================================================


class TestRunner:
    """Tests for rule selection and severity overrides."""

    def test_list_rules(self):
        """Test every rule is registered with a description."""
        rules = list_rules()
        ids = [r.id for r in rules]
        assert ids == sorted(ids)
        assert {
            "nav-link-broken",
            "related-link-broken",
            "link-broken",
            "anchor-broken",
            "frontmatter-missing",
            "resource-orphan",
            "code-fence-unclosed",
        } <= set(ids)
        assert all(r.description for r in rules)

    def test_get_rule(self):
        """Test looking up rules by id."""
        assert get_rule("nav-link-broken").severity == Severity.ERROR
        with pytest.raises(UnknownRuleError, match="no-such-rule"):
            get_rule("no-such-rule")

    def test_disabled_rule(self, sample_corpus: Path):
        """Test disabled rules do not run."""
        report = run_lint(sample_corpus, disabled_rules=["frontmatter-missing"])
        assert report.issues == []

    def test_severity_override(self, sample_corpus: Path):
        """Test overrides change the reported severity."""
        report = run_lint(sample_corpus, severity_overrides={"frontmatter-missing": "error"})
        assert report.issues[0].severity == Severity.ERROR
        assert report.has_failures()

    def test_unknown_rule_in_config(self, sample_corpus: Path):
        """Test configuring an unknown rule is an error."""
        with pytest.raises(UnknownRuleError):
            run_lint(sample_corpus, disabled_rules=["no-such-rule"])
        with pytest.raises(UnknownRuleError):
            run_lint(sample_corpus, severity_overrides={"no-such-rule": "info"})


class TestReportModels:
    """Tests for Issue and LintReport."""

    def _report(self) -> LintReport:
        return LintReport(
            root="/corpus",
            issues=[
                Issue(rule="b-rule", severity=Severity.INFO, path="b.md", line=3, message="m"),
                Issue(rule="a-rule", severity=Severity.ERROR, path="a.md", line=10, message="m"),
                Issue(rule="a-rule", severity=Severity.WARNING, path="a.md", line=2, message="m"),
                Issue(rule="c-rule", severity=Severity.WARNING, path="a.md", message="m"),
            ],
        )

    def test_sort(self):
        """Test issues sort by path then line."""
        report = self._report()
        report.sort()
        assert [(i.path, i.line) for i in report.issues] == [
            ("a.md", None),
            ("a.md", 2),
            ("a.md", 10),
            ("b.md", 3),
        ]

    def test_counts_and_grouping(self):
        """Test severity counts and grouping helpers."""
        report = self._report()
        assert report.counts() == {"error": 1, "warning": 2, "info": 1}
        assert list(report.by_path()) == ["b.md", "a.md"]
        assert len(report.by_rule("a-rule")) == 2

    def test_severity_ordering(self):
        """Test at_least compares by rank."""
        assert Severity.ERROR.at_least(Severity.WARNING)
        assert Severity.WARNING.at_least(Severity.WARNING)
        assert not Severity.INFO.at_least(Severity.WARNING)

    def test_location(self):
        """Test location strings with and without a line."""
        assert Issue(rule="r", severity=Severity.INFO, path="a.md", line=4, message="m").location() == "a.md:4"
        assert Issue(rule="r", severity=Severity.INFO, path="a.md", message="m").location() == "a.md"

    def test_to_dict(self):
        """Test the JSON-ready report shape."""
        data = self._report().to_dict()
        assert data["root"] == "/corpus"
        assert data["counts"]["warning"] == 2
        assert data["issues"][0]["severity"] == "info"
        assert set(data) == {"root", "checked_files", "bundles", "prompts", "counts", "issues"}
