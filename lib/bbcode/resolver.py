"""
Tree resolver for the BBCode renderer

This module resolves the nesting of tag tokens in a single forward pass
over the token stream, using an explicit stack of open nodes, and renders
every tag as soon as it is closed.

Malformed markup is never an error. Recovery rules:
- A token without a registered rule is literal text.
- A closing tag that matches nothing open is dropped, unless it belongs
  to an opening tag that was broken by crossed nesting (then it stays
  as literal text).
- When a closing tag does not match the innermost open tag, the open
  tags above the match are broken: their raw opening tag and content
  are put back as literal text.
- Tags still open at the end of the input are broken the same way.
- A rule that declines to render leaves the original markup in place.

Output is collected in a single list of string parts. Every open tag owns
the tail of that list starting at its slot, and the slot itself is
reserved for the raw opening tag in case the tag gets broken.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .exceptions import BBCodeRenderError
from .models import RenderStats, TagData, TagRule, TagToken
from .renderer import renderTag

logger = logging.getLogger(__name__)


class _Node:
    """Open tag on the resolver stack."""

    __slots__ = ("token", "slot")

    def __init__(self, token: TagToken, slot: int):
        self.token = token
        # Index of the part reserved for the raw opening tag, content follows it
        self.slot = slot


class TagResolver:
    """
    Resolves and renders the tags of one text.

    A resolver is created for a single render call and owns all of its
    state; only the rule table is shared, and it is never modified.
    """

    def __init__(
        self,
        text: str,
        tokens: Sequence[TagToken],
        rules: Mapping[str, TagRule],
        strictMode: bool = False,
    ):
        self.text = text
        self.tokens = tokens
        self.rules = rules
        self.strictMode = strictMode
        self.stats = RenderStats(tagsFound=len(tokens))

        self._parts: List[str] = []
        # Position in the source text up to which output has been written
        self._offset = 0
        self._openByName: Dict[str, int] = {token.name: 0 for token in tokens}
        self._brokenByName: Dict[str, int] = {token.name: 0 for token in tokens}

    def resolve(self) -> str:
        """
        Resolve all tokens and return the rendered text.

        Returns:
            Rendered text
        """
        stack: List[_Node] = []

        for token in self.tokens:
            rule = self.rules.get(token.name)
            if rule is None:
                # Unknown tags are picked up as text by the next append
                continue

            self._appendText(token.start)

            if token.isOpening:
                if rule.selfClosing:
                    rendered = self._render(token, rule, "")
                    self._parts.append(rendered if rendered is not None else token.rawText)
                else:
                    stack.append(_Node(token, len(self._parts)))
                    self._parts.append("")
                    self._openByName[token.name] += 1
                self._offset = token.end
            elif self._openByName[token.name] > 0:
                self._closeTag(stack, token, rule)
            elif self._brokenByName[token.name] > 0:
                # Counterpart of a broken tag: leave it for the next append
                self._brokenByName[token.name] -= 1
                logger.debug(f"Keeping closing tag {token.rawText} of a broken tag at {token.start}")
            else:
                self._offset = token.end
                self.stats.closersDropped += 1
                logger.debug(f"Dropping unmatched closing tag {token.rawText} at {token.start}")

        self._appendText(len(self.text))

        while stack:
            node = stack.pop()
            self._breakNode(node)
            logger.debug(f"Breaking dangling tag {node.token.rawText}")

        return "".join(self._parts)

    def _appendText(self, end: int) -> None:
        """Write literal source text up to `end`."""
        if end > self._offset:
            self._parts.append(self.text[self._offset : end])
            self._offset = end

    def _closeTag(self, stack: List[_Node], closer: TagToken, rule: TagRule) -> None:
        """Close the innermost open tag named like `closer`, breaking anything above it."""
        current = stack.pop()
        self._openByName[current.token.name] -= 1

        while current.token.name != closer.name:
            logger.debug(f"Breaking {current.token.rawText}: crossed by {closer.rawText} at {closer.start}")
            self._breakNode(current)
            self._brokenByName[current.token.name] += 1

            current = stack.pop()
            self._openByName[current.token.name] -= 1

        opener = current.token
        if rule.noCode:
            content = self.text[opener.end : closer.start]
        else:
            content = "".join(self._parts[current.slot + 1 :])
        del self._parts[current.slot :]

        rendered = self._render(opener, rule, content)
        if rendered is None:
            rendered = opener.rawText + content + closer.rawText

        self._parts.append(rendered)
        self._offset = closer.end

    def _breakNode(self, node: _Node) -> None:
        """Turn an open tag back into literal text, leaving its content in place."""
        self._parts[node.slot] = node.token.rawText
        self.stats.tagsBroken += 1

    def _render(self, token: TagToken, rule: TagRule, content: str) -> Optional[str]:
        """
        Render a tag, returning None if the rule declined or failed.

        Raises:
            BBCodeRenderError: If the rule's callback raised in strict mode
        """
        tag = TagData(
            name=token.name,
            option=token.option,
            attrs=dict(token.attributes),
            content=content,
        )

        try:
            rendered = renderTag(tag, rule)
        except Exception as e:
            if self.strictMode:
                raise BBCodeRenderError(f"Failed to render {token.rawText}: {e}", token.name, e) from e
            logger.warning(f"Render rule for [{token.name}] failed, leaving it unrendered: {e}")
            self.stats.renderErrors += 1
            return None

        if not isinstance(rendered, str):
            logger.debug(f"Render rule for [{token.name}] declined with {type(rendered).__name__}")
            self.stats.rendersDeclined += 1
            return None

        self.stats.tagsRendered += 1
        return rendered


def resolveTags(
    text: str,
    tokens: Sequence[TagToken],
    rules: Mapping[str, TagRule],
    strictMode: bool = False,
) -> Tuple[str, RenderStats]:
    """
    Resolve and render tokens found in text.

    Args:
        text: Source text the tokens were found in
        tokens: Tokens in document order
        rules: Normalized rule table
        strictMode: Propagate callback errors instead of leaving tags unrendered

    Returns:
        Tuple of rendered text and render statistics
    """
    resolver = TagResolver(text, tokens, rules, strictMode)
    output = resolver.resolve()
    return output, resolver.stats
