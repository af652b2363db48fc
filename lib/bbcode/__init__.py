"""
BBCode renderer

Renders bracketed markup (`[b]bold[/b]`, `[url=https://example.com]site[/url]`,
`[img src="a.png" /]`) embedded in free text, driven by a caller-supplied
table of tag rules. Malformed markup never raises: unknown, unbalanced,
crossed or dangling tags degrade to literal text.

This module provides:
- Tokenization of tag-like tokens
- Attribute parsing
- Stack-based nesting resolution with recovery from malformed input
- Rendering through template strings or callbacks

Usage:
    from lib.bbcode import BBCodeParser, TagRule

    parser = BBCodeParser(
        {
            "b": "<b>{content}</b>",
            "url": lambda tag: f'<a href="{tag.option or tag.content}">{tag.content}</a>',
            "img": TagRule(body='<img src="{attr:src}">', selfClosing=True),
            "code": {"body": "<pre>{content}</pre>", "nocode": True},
        }
    )
    html = parser.render("[b]Hello[/b] [url=https://example.com]world[/url]")

Template placeholders: {content}, {name}, {option}, {attr:KEY};
double the braces ({{content}}) to emit a placeholder literally.
A callback returning anything but a string declines to render its tag.
"""

from .attributes import parseAttributes
from .exceptions import BBCodeConfigError, BBCodeError, BBCodeRenderError
from .models import RenderStats, TagData, TagRule, TagToken
from .parser import BBCodeParser, renderBBCode
from .renderer import formatTemplate, renderTag
from .resolver import TagResolver, resolveTags
from .rules import normalizeRule, normalizeRules, rulesFromConfig
from .tokenizer import Tokenizer, findTags, iterTags

__version__ = "1.0.0"
__all__ = [
    "BBCodeParser",
    "renderBBCode",
    "Tokenizer",
    "findTags",
    "iterTags",
    "parseAttributes",
    "TagResolver",
    "resolveTags",
    "formatTemplate",
    "renderTag",
    "normalizeRule",
    "normalizeRules",
    "rulesFromConfig",
    # Models
    "TagToken",
    "TagData",
    "TagRule",
    "RenderStats",
    # Exceptions
    "BBCodeError",
    "BBCodeConfigError",
    "BBCodeRenderError",
]
