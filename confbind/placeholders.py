# confbind/placeholders.py
"""
confbind.placeholders
---------------------

Environment placeholder substitution over a merged configuration tree.

Grammar:
    ``${NAME}``            value of NAME; the leaf is unresolved if NAME is unset
    ``${NAME:fallback}``   value of NAME, or ``fallback`` (may be empty) if unset
    ``\\${NAME}``          literal ``${NAME}``, never substituted

A string leaf with any unresolved placeholder is dropped from the tree as a
whole, even when its other placeholders resolved.
"""

import logging
import os
import re
from typing import Any, Callable, Dict, Mapping, Optional

log = logging.getLogger(__name__)

EnvLookup = Callable[[str], Optional[str]]

PLACEHOLDER_PATTERN = re.compile(r'\$\{([^}:]+)(?::([^}]*))?\}')
ESCAPED_PATTERN = re.compile(r'\\\$\{([^}]+)\}')

# one pass over both forms, so substituted text is never rescanned
_TOKEN_PATTERN = re.compile(f"{ESCAPED_PATTERN.pattern}|{PLACEHOLDER_PATTERN.pattern}")


def environ_lookup(name: str) -> Optional[str]:
    """Default lookup against the process environment."""
    return os.environ.get(name)


class _Unresolved(Exception):
    pass


class PlaceholderResolver:
    """Resolves ``${NAME[:fallback]}`` references against an env lookup."""

    def __init__(self, env_lookup: Optional[EnvLookup] = None):
        self.env_lookup = env_lookup or environ_lookup

    @staticmethod
    def has_placeholder(value: Any) -> bool:
        """True if `value` is a string containing an (unescaped) placeholder."""
        if not isinstance(value, str):
            return False
        masked = ESCAPED_PATTERN.sub('', value)
        return PLACEHOLDER_PATTERN.search(masked) is not None

    def resolve(self, value: Any, env_lookup: Optional[EnvLookup] = None) -> Any:
        """
        Resolve every placeholder in a single string.

        Args:
            value: The string to resolve. Non-strings are returned unchanged.
            env_lookup: Overrides the resolver's lookup for this call.

        Returns:
            The substituted string, or None if any placeholder had neither an
            environment value nor a fallback.
        """
        if not isinstance(value, str):
            return value
        lookup = env_lookup or self.env_lookup

        def _substitute(match: 're.Match') -> str:
            if match.group(1) is not None:
                return f"${{{match.group(1)}}}"
            name, fallback = match.group(2).strip(), match.group(3)
            env_value = lookup(name)
            if env_value is not None:
                return env_value
            if fallback is not None:
                return fallback
            raise _Unresolved(name)

        try:
            return _TOKEN_PATTERN.sub(_substitute, value)
        except _Unresolved as e:
            log.debug(f"Placeholder '${{{e.args[0]}}}' has no value and no fallback; dropping leaf")
            return None

    def resolve_tree(self, tree: Mapping, env_lookup: Optional[EnvLookup] = None) -> Dict[str, Any]:
        """
        Return a new tree with every string leaf resolved.

        Mapping keys whose string value could not be resolved are omitted.
        Inside sequences an unresolved item becomes None so positions are kept.
        Non-string leaves pass through unchanged.
        """
        resolved: Dict[str, Any] = {}
        for key, value in tree.items():
            if isinstance(value, str):
                result = self.resolve(value, env_lookup)
                if result is not None:
                    resolved[key] = result
            else:
                resolved[key] = self._resolve_value(value, env_lookup)
        return resolved

    def _resolve_value(self, value: Any, env_lookup: Optional[EnvLookup]) -> Any:
        if isinstance(value, Mapping):
            return self.resolve_tree(value, env_lookup)
        if isinstance(value, list):
            return [self._resolve_value(item, env_lookup) for item in value]
        if isinstance(value, str):
            return self.resolve(value, env_lookup)
        return value


def resolve(tree: Mapping, env_lookup: Optional[EnvLookup] = None) -> Dict[str, Any]:
    """Resolve placeholders across `tree` with `env_lookup` (process env by default)."""
    return PlaceholderResolver(env_lookup).resolve_tree(tree)
