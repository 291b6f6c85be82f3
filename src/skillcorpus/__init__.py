"""
skillcorpus - navigate and lint skill documentation corpora

Loads skill bundles (a SKILL.md index plus resources/*.md) and
command/agent prompt files, resolves topics to documents, and checks
the corpus for broken links, bad frontmatter and orphaned resources.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("skillcorpus")
except PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = [
    "__version__",
]
