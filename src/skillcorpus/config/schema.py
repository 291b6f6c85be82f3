"""
Pydantic configuration schema for skillcorpus.

This module defines all configuration models with validation.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SeverityName = Literal["error", "warning", "info"]

# =============================================================================
# Corpus Layout Configuration
# =============================================================================


class LayoutConfig(BaseModel):
    """Where skill bundles and prompt files live, relative to the corpus root."""

    model_config = ConfigDict(extra="allow")

    marker: str = ".claude"
    skills_dir: str = ".claude/skills"
    index_file: str = "SKILL.md"
    resources_dir: str = "resources"
    agents_subdir: str = "agents"
    commands_dirs: list[str] = Field(default_factory=lambda: [".claude/commands"])
    agents_dirs: list[str] = Field(default_factory=lambda: [".claude/agents"])
    exclude: list[str] = Field(
        default_factory=list,
        description="Glob patterns (relative to the corpus root) of files to skip",
    )


# =============================================================================
# Lint Configuration
# =============================================================================


class LintConfig(BaseModel):
    """Structural check configuration."""

    model_config = ConfigDict(extra="allow")

    disabled_rules: list[str] = Field(default_factory=list)
    severity_overrides: dict[str, SeverityName] = Field(default_factory=dict)
    require_frontmatter: bool = False
    required_fields: list[str] = Field(default_factory=lambda: ["name", "description"])
    check_anchors: bool = True
    fail_on: SeverityName = "error"


# =============================================================================
# Topic Index Configuration
# =============================================================================


class IndexConfig(BaseModel):
    """Topic index persistence configuration."""

    path: str | None = Field(
        default=None,
        description="Explicit index file; defaults to a per-corpus file in the cache dir",
    )


# =============================================================================
# Output & Logging Configuration
# =============================================================================


class OutputConfig(BaseModel):
    """Output formatting configuration."""

    format: Literal["rich", "plain", "json"] = "rich"
    color: bool = True
    verbose: bool = False


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"


# =============================================================================
# Root Configuration Model
# =============================================================================


class Config(BaseModel):
    """
    Root configuration model for skillcorpus.

    Configuration can be loaded from YAML files, environment variables,
    and CLI flags, merged in order of priority.
    """

    model_config = ConfigDict(extra="allow")

    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    lint: LintConfig = Field(default_factory=LintConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def is_rule_enabled(self, rule_id: str) -> bool:
        """Check if a lint rule is enabled."""
        if rule_id == "anchor-broken" and not self.lint.check_anchors:
            return False
        return rule_id not in self.lint.disabled_rules
