"""
Template substitution for string configuration fields.

Grammar::

    token := "{{" ws* ref ws* "}}"
    ref   := root ("." key)*
    root  := <node id> | "$vars" | "$input"

``\\{{`` renders a literal ``{{``. Keys index mappings, integer keys index
lists. Every occurrence of a token is replaced. A reference that cannot be
resolved is a configuration error, never an empty string.
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Tuple, Union

from .errors import NodeConfigurationError

if TYPE_CHECKING:
    from .context import RunContext


VARS_ROOT = "$vars"
INPUT_ROOT = "$input"

_TOKEN_RE = re.compile(r"\\\{\{|\{\{\s*(?P<ref>[^{}]*?)\s*\}\}")
_ESCAPE = "\\{{"


class TemplateError(NodeConfigurationError):
    """Malformed template or unresolvable reference."""


def _segments(text: str) -> Iterator[Tuple[bool, str]]:
    """Yield (is_ref, chunk) pairs for a template string."""
    pos = 0
    for match in _TOKEN_RE.finditer(text):
        literal = text[pos:match.start()]
        if "{{" in literal:
            raise TemplateError(f"Malformed template near: {literal[literal.index('{{'):]!r}")
        if literal:
            yield False, literal

        if match.group(0) == _ESCAPE:
            yield False, "{{"
        else:
            ref = match.group("ref")
            if not ref:
                raise TemplateError("Empty template reference '{{}}'")
            yield True, ref
        pos = match.end()

    tail = text[pos:]
    if "{{" in tail:
        raise TemplateError(f"Unterminated template reference: {tail[tail.index('{{'):]!r}")
    if tail:
        yield False, tail


def _walk(value: Any, keys: List[str], ref: str) -> Any:
    for key in keys:
        if isinstance(value, dict):
            if key not in value:
                raise TemplateError(f"Key '{key}' not found while resolving '{{{{{ref}}}}}'")
            value = value[key]
        elif isinstance(value, (list, tuple)):
            try:
                value = value[int(key)]
            except (ValueError, IndexError):
                raise TemplateError(f"Index '{key}' invalid while resolving '{{{{{ref}}}}}'")
        else:
            raise TemplateError(
                f"Cannot index {type(value).__name__} with '{key}' in '{{{{{ref}}}}}'"
            )
    return value


def lookup(ref: str, context: RunContext) -> Any:
    """
    Resolve a single reference against the run context.

    Node ids may themselves contain dots; the longest prefix that names a
    recorded node output wins.

    Raises:
        TemplateError: If the reference does not resolve
    """
    parts = ref.split(".")
    root = parts[0]

    if root == VARS_ROOT:
        if len(parts) < 2:
            raise TemplateError("'$vars' reference needs a variable name")
        name = parts[1]
        if not context.has_variable(name):
            raise TemplateError(f"Variable '{name}' is not set")
        return _walk(context.get_variable(name), parts[2:], ref)

    if root == INPUT_ROOT:
        return _walk(context.trigger_input, parts[1:], ref)

    for split in range(len(parts), 0, -1):
        node_id = ".".join(parts[:split])
        output = context.get_output(node_id)
        if output is not None:
            return _walk(output.value, parts[split:], ref)

    raise TemplateError(f"Reference '{{{{{ref}}}}}' names no completed node")


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def render(text: str, context: RunContext) -> str:
    """Substitute every token in text; non-string values are JSON-encoded."""
    return "".join(
        _stringify(lookup(chunk, context)) if is_ref else chunk
        for is_ref, chunk in _segments(text)
    )


def resolve(text: str, context: RunContext) -> Any:
    """
    Like render, but a field that is exactly one token keeps the
    referenced value's type.
    """
    segments = list(_segments(text))
    if len(segments) == 1 and segments[0][0]:
        return lookup(segments[0][1], context)
    return "".join(
        _stringify(lookup(chunk, context)) if is_ref else chunk
        for is_ref, chunk in segments
    )


def has_template(text: str) -> bool:
    return "{{" in text


ConfigValue = Union[Dict[str, Any], List[Any], Any]


def render_config(config: ConfigValue, context: RunContext) -> ConfigValue:
    """Resolve every string inside a nested config mapping."""
    if isinstance(config, str):
        return resolve(config, context) if has_template(config) else config
    if isinstance(config, dict):
        return {key: render_config(value, context) for key, value in config.items()}
    if isinstance(config, list):
        return [render_config(item, context) for item in config]
    return config


__all__ = [
    "TemplateError",
    "lookup",
    "render",
    "resolve",
    "render_config",
    "has_template",
    "VARS_ROOT",
    "INPUT_ROOT",
]
