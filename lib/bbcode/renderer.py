"""
Render invoker for the BBCode renderer.

Turns a resolved tag into its replacement string using the tag's rule:
either by calling the rule's callback or by filling in its template.

Template placeholders:
    {content}    tag content
    {name}       tag name
    {option}     value of [name=value], empty if absent
    {attr:KEY}   value of attribute KEY, empty if absent
    {{content}}  literal "{content}" (any placeholder may be escaped this way)

Unknown placeholders are replaced with an empty string.
"""

import re
from typing import Any

from .attributes import TAG_NAME_PATTERN
from .models import TagData, TagRule

# Attribute keys take the same characters as attribute names inside tags
PLACEHOLDER_PATTERN = re.compile(
    r"\{(?:"
    rf"attr:(?P<attrKey>{TAG_NAME_PATTERN})"
    r"|(?P<key>\w+)"
    rf"|(?P<escaped>\{{(?:attr:{TAG_NAME_PATTERN}|\w+)\}})"
    r")\}"
)


def formatTemplate(template: str, tag: TagData) -> str:
    """
    Substitute placeholders of a template with the tag's data.

    Args:
        template: Template string
        tag: Resolved tag

    Returns:
        Rendered string
    """

    def substitute(match: re.Match[str]) -> str:
        escaped = match.group("escaped")
        if escaped is not None:
            return escaped

        attrKey = match.group("attrKey")
        if attrKey is not None:
            return tag.attrs.get(attrKey) or ""

        key = match.group("key")
        if key == "content":
            return tag.content
        if key == "name":
            return tag.name
        if key == "option":
            return tag.option or ""
        return ""

    return PLACEHOLDER_PATTERN.sub(substitute, template)


def renderTag(tag: TagData, rule: TagRule) -> Any:
    """
    Render a tag with its rule.

    Callback results are returned as is: anything that is not a string
    means the rule declined to render the tag. Exceptions raised by a
    callback propagate to the caller.

    Args:
        tag: Resolved tag
        rule: Rule registered for the tag name

    Returns:
        Rendered string, or any non-string value if rendering was declined
    """
    if isinstance(rule.body, str):
        return formatTemplate(rule.body, tag)
    return rule.body(tag)
