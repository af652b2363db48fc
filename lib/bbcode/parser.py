"""
Main BBCode parser for the BBCode renderer

This module provides the BBCodeParser class that ties together
tokenization, tree resolution and rendering.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .models import RenderStats, TagRule, TagToken
from .resolver import resolveTags
from .rules import normalizeRules
from .tokenizer import findTags

logger = logging.getLogger(__name__)


class BBCodeParser:
    """
    Renders bracketed markup (e.g. `[b]bold[/b]`) with a table of tag rules.

    The processing model:
    1. Tokenization: find tag-like tokens in the text
    2. Resolution: match opening and closing tags with an explicit stack,
       recovering from unbalanced or crossed tags
    3. Rendering: apply each tag's rule as soon as the tag is closed

    Rendering never fails on malformed markup; anything that can't be
    rendered is kept as literal text. The rule table is normalized once and
    never modified, so one parser can be shared between threads.
    """

    def __init__(self, tags: Optional[Mapping[str, Any]] = None, options: Optional[Dict[str, Any]] = None):
        """
        Initialize the BBCode parser.

        Args:
            tags: Mapping of tag name to rule (template, callable or rule object)
            options: Optional parser configuration:
                strict_mode: raise BBCodeRenderError when a render callback fails
                    instead of leaving the tag unrendered (default False)

        Raises:
            BBCodeConfigError: If a rule is invalid
        """
        self.options = options or {}
        self.strict_mode = bool(self.options.get("strict_mode", False))
        self._rules: Dict[str, TagRule] = normalizeRules(tags)

        logger.debug(f"BBCodeParser initialized with {len(self._rules)} tags, strict_mode={self.strict_mode}")

    @property
    def tagNames(self) -> List[str]:
        """Names of all registered tags."""
        return list(self._rules.keys())

    def hasTag(self, name: str) -> bool:
        """Check whether a rule is registered for the tag name."""
        return name in self._rules

    def getRule(self, name: str) -> Optional[TagRule]:
        """Get the normalized rule for the tag name, if any."""
        return self._rules.get(name)

    def findTags(self, text: str) -> List[TagToken]:
        """
        Find all tag tokens in text, registered or not.

        Args:
            text: Text to scan

        Returns:
            List of TagToken objects in document order
        """
        self._checkInput(text)
        return findTags(text)

    def render(self, text: str) -> str:
        """
        Render the markup in text.

        Args:
            text: Text to render

        Returns:
            Rendered text, equal to the input if no registered tag was found

        Raises:
            ValueError: If text is not a string
            BBCodeRenderError: If a render callback failed in strict mode
        """
        output, _ = self.renderWithStats(text)
        return output

    def renderWithStats(self, text: str) -> Tuple[str, RenderStats]:
        """
        Render the markup in text and collect statistics.

        Args:
            text: Text to render

        Returns:
            Tuple of rendered text and RenderStats for this call

        Raises:
            ValueError: If text is not a string
            BBCodeRenderError: If a render callback failed in strict mode
        """
        self._checkInput(text)
        tokens = findTags(text)
        return resolveTags(text, tokens, self._rules, self.strict_mode)

    def _checkInput(self, text: Any) -> None:
        if not isinstance(text, str):
            raise ValueError(f"Input must be a string, got {type(text).__name__}")


# Convenience functions for quick rendering


def renderBBCode(text: str, tags: Mapping[str, Any], **options) -> str:
    """
    Render BBCode markup with a rule table.

    Args:
        text: Text to render
        tags: Mapping of tag name to rule
        **options: Parser options

    Returns:
        Rendered text
    """
    parser = BBCodeParser(tags, options)
    return parser.render(text)
