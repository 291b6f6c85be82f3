"""Storage utilities for skillcorpus."""

from skillcorpus.storage.paths import (
    ensure_directory,
    expand_path,
    find_corpus_root,
    find_project_config,
    get_cache_dir,
    get_default_index_path,
    get_global_config_path,
    get_skillcorpus_home,
)

__all__ = [
    "ensure_directory",
    "expand_path",
    "find_corpus_root",
    "find_project_config",
    "get_cache_dir",
    "get_default_index_path",
    "get_global_config_path",
    "get_skillcorpus_home",
]
