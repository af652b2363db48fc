"""
Tokenizer for the BBCode renderer

This module locates tag-like tokens inside free text. Anything that does
not match the tag grammar is left alone and ends up as literal text.

Recognized forms:
    [/name]                 closing tag (no option, no attributes)
    [name]                  plain opening tag
    [name=value]            opening tag with option
    [name key=value ...]    opening tag with attributes

Values may be bare or quoted with ", ' or the entities &quot; / &#039;.
"""

import logging
import re
from typing import Iterator, List

from .attributes import QUOTE_PATTERN, TAG_NAME_PATTERN, parseAttributes
from .models import TagToken

logger = logging.getLogger(__name__)

TAG_PATTERN = re.compile(
    r"\["
    r"(?:"
    # Closing tags take no arguments at all
    rf"/(?P<closeName>{TAG_NAME_PATTERN})"
    r"|"
    rf"(?P<openName>{TAG_NAME_PATTERN})"
    r"(?:"
    # [name=value]: a quoted value runs until the same quote followed by ]
    rf"=(?P<optionQuote>{QUOTE_PATTERN})(?P<option>.*?)(?P=optionQuote)(?=\])"
    r"|"
    # [name key=value ...]: each value ends before whitespace, / or ]
    rf"(?P<attributes>(?:\s+{TAG_NAME_PATTERN}=(?P<attrQuote>{QUOTE_PATTERN}).*?(?P=attrQuote)(?=\s|/|\]))+)"
    r")?"
    r")"
    r"\]",
)


class Tokenizer:
    """
    Tokenizer that converts text into a stream of TagToken objects.

    Tokens are produced left to right and never overlap. The tokenizer
    never fails: text that is not a valid tag simply yields no token.
    """

    def __init__(self, text: str):
        self.text = text
        self.tokens: List[TagToken] = []

    def tokenize(self) -> List[TagToken]:
        """
        Tokenize the input text and return a list of tokens.

        Returns:
            List of TagToken objects in document order.
        """
        self.tokens = list(self._scan())
        logger.debug(f"Found {len(self.tokens)} tags in {len(self.text)} characters")
        return self.tokens

    def _scan(self) -> Iterator[TagToken]:
        for match in TAG_PATTERN.finditer(self.text):
            yield self._makeToken(match)

    def _makeToken(self, match: re.Match[str]) -> TagToken:
        closeName = match.group("closeName")

        return TagToken(
            isOpening=closeName is None,
            name=closeName if closeName is not None else match.group("openName"),
            option=match.group("option"),
            attributes=parseAttributes(match.group("attributes")),
            rawText=match.group(0),
            start=match.start(),
            end=match.end(),
        )

    def __iter__(self) -> Iterator[TagToken]:
        """Iterate lazily over tokens."""
        if self.tokens:
            return iter(self.tokens)
        return self._scan()


def iterTags(text: str) -> Iterator[TagToken]:
    """
    Lazily yield tag tokens found in text.

    Args:
        text: Text to scan

    Returns:
        Iterator over TagToken objects in document order
    """
    return iter(Tokenizer(text))


def findTags(text: str) -> List[TagToken]:
    """
    Find all tag tokens in text.

    Args:
        text: Text to scan

    Returns:
        List of TagToken objects in document order
    """
    return Tokenizer(text).tokenize()
