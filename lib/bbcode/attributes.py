"""
Attribute parser for the BBCode renderer.

Extracts `key=value` pairs from the attribute part of an opening tag,
e.g. ` href="https://example.com" title='Example'`.
"""

import re
from typing import Dict, Optional

# Tag and attribute names
TAG_NAME_PATTERN = r"[A-Za-z0-9_-]+"

# An optional quote: ", ', their HTML entities, or nothing
QUOTE_PATTERN = r"\"|'|&(?i:quot|#039);|"

# A value ends at the same quote (if any) followed by whitespace, /, ] or the string end
ATTRIBUTE_PATTERN = re.compile(
    rf"\s+(?P<key>{TAG_NAME_PATTERN})=(?P<quote>{QUOTE_PATTERN})(?P<value>.*?)(?P=quote)(?=\s|/|\]|\Z)",
)


def parseAttributes(text: Optional[str]) -> Dict[str, str]:
    """
    Parse the raw attribute string of a tag into a dictionary.

    Values are returned as written: quotes are stripped but entities
    are not decoded. If a key occurs more than once, the last one wins.

    Args:
        text: Attribute string captured by the tokenizer, may be None

    Returns:
        Dictionary of attribute name to value, empty for empty input
    """
    attrs: Dict[str, str] = {}
    if not text:
        return attrs

    for match in ATTRIBUTE_PATTERN.finditer(text):
        attrs[match.group("key")] = match.group("value")

    return attrs
