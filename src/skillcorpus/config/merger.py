"""
Configuration merger for skillcorpus.

Implements deep merge with list append/remove operations (+/- key prefixes),
so a project config can extend the global rule lists instead of replacing them.
"""

from typing import Any


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries with list operation support.

    Merge rules:
    - Scalar values: override replaces base
    - Dicts: recursive deep merge
    - Lists (default): override replaces base
    - Lists under a '+' prefixed key: append unique items to base list
    - Lists under a '-' prefixed key: remove items from base list
    - None value: remove key from result

    Examples:
        >>> base = {"disabled_rules": ["code-block-untagged"]}
        >>> deep_merge(base, {"+disabled_rules": ["version-format"]})
        {'disabled_rules': ['code-block-untagged', 'version-format']}

        >>> deep_merge(base, {"-disabled_rules": ["code-block-untagged"]})
        {'disabled_rules': []}
    """
    result = base.copy()

    for key, value in override.items():
        if key.startswith("+") and isinstance(value, list):
            actual_key = key[1:]
            existing = result.get(actual_key)
            if isinstance(existing, list):
                result[actual_key] = existing + [item for item in value if item not in existing]
            else:
                result[actual_key] = value

        elif key.startswith("-") and isinstance(value, list):
            actual_key = key[1:]
            existing = result.get(actual_key)
            if isinstance(existing, list):
                result[actual_key] = [item for item in existing if item not in value]

        elif value is None:
            result.pop(key, None)

        elif isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)

        else:
            result[key] = value

    return result


def get_nested_value(config: dict[str, Any], key_path: str) -> Any:
    """
    Get a nested value by dot-separated path, e.g. ``"lint.fail_on"``.

    Returns None when any segment is missing.
    """
    current: Any = config
    for key in key_path.split("."):
        if isinstance(current, dict) and key in current:
            current = current[key]
        else:
            return None
    return current


def set_nested_value(config: dict[str, Any], key_path: str, value: Any) -> dict[str, Any]:
    """
    Set a nested value by dot-separated path, creating intermediate dicts.

    Returns the modified configuration dictionary.
    """
    keys = key_path.split(".")
    current = config

    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]

    current[keys[-1]] = value
    return config
