"""
Runtime argument substitution for task documents.

A placeholder is a name wrapped in `~~` on both sides:

    take_some:
      type: take
      params:
        size: ~~count~~

Substitution runs over the generic YAML tree before compilation. Keys and
string values are rewritten; numbers and booleans pass through untouched.
A placeholder without a matching argument is left as-is so that partial
substitution is possible.
"""
import re
from typing import Any, Mapping, Optional, Set

MARKER = "~~"

PLACEHOLDER_RE = re.compile(re.escape(MARKER) + r"(.+?)" + re.escape(MARKER))


def substitute(text: str, arguments: Optional[Mapping[str, str]]) -> str:
    """Replace every known `~~name~~` in text."""
    if not arguments or MARKER not in text:
        return text

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if name in arguments:
            return str(arguments[name])
        return match.group(0)

    return PLACEHOLDER_RE.sub(_replace, text)


def resolve(node: Any, arguments: Optional[Mapping[str, str]]) -> Any:
    """Return a copy of node with placeholders substituted in every string."""
    if isinstance(node, str):
        return substitute(node, arguments)
    if isinstance(node, Mapping):
        return {resolve(k, arguments): resolve(v, arguments) for k, v in node.items()}
    if isinstance(node, (list, tuple)):
        return [resolve(item, arguments) for item in node]
    return node


def placeholders(node: Any) -> Set[str]:
    """Collect placeholder names still present anywhere in node."""
    found: Set[str] = set()
    if isinstance(node, str):
        found.update(PLACEHOLDER_RE.findall(node))
    elif isinstance(node, Mapping):
        for k, v in node.items():
            found |= placeholders(k)
            found |= placeholders(v)
    elif isinstance(node, (list, tuple)):
        for item in node:
            found |= placeholders(item)
    return found
