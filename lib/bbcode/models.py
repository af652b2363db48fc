"""
Data model for the BBCode renderer.

This module defines the value types passed between the tokenizer, the
resolver and the render rules.
"""

from dataclasses import asdict, dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Union


@dataclass(frozen=True)
class TagToken:
    """
    A tag recognized in the input text.

    Attributes:
        isOpening: False for `[/name]`, True otherwise
        name: Tag name as written in the text
        option: Value of `[name=value]`, None if the tag has no option
        attributes: Read-only mapping of `[name key=value ...]` attributes
        rawText: The whole tag as written, brackets included
        start: Offset of the opening `[` in the text
        end: Offset right after the closing `]`
    """

    isOpening: bool
    name: str
    option: Optional[str]
    attributes: Mapping[str, str]
    rawText: str
    start: int
    end: int

    def __post_init__(self):
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    def toDict(self) -> Dict[str, Any]:
        """Convert token to dictionary representation."""
        return {
            "isOpening": self.isOpening,
            "name": self.name,
            "option": self.option,
            "attributes": dict(self.attributes),
            "rawText": self.rawText,
            "start": self.start,
            "end": self.end,
        }


@dataclass
class TagData:
    """
    Resolved tag handed to a render rule.

    Supports both `tag.content` and `tag["content"]` access so that
    callbacks written against plain dictionaries keep working.
    """

    name: str
    option: Optional[str] = None
    attrs: Dict[str, str] = field(default_factory=dict)
    content: str = ""

    def __getitem__(self, key: str) -> Any:
        if key not in ("name", "option", "attrs", "content"):
            raise KeyError(key)
        return getattr(self, key)

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self[key]
        except KeyError:
            return default

    def toDict(self) -> Dict[str, Any]:
        """Convert tag to dictionary representation."""
        return {
            "name": self.name,
            "option": self.option,
            "attrs": dict(self.attrs),
            "content": self.content,
        }


RenderCallback = Callable[[TagData], Any]
RuleBody = Union[str, RenderCallback]


@dataclass(frozen=True)
class TagRule:
    """
    Normalized rendering rule for one tag name.

    Attributes:
        body: Template string or callable receiving a TagData
        selfClosing: Tag never expects a closing counterpart
        noCode: Tag content is taken verbatim from the source text
    """

    body: RuleBody
    selfClosing: bool = False
    noCode: bool = False

    @property
    def isTemplate(self) -> bool:
        return isinstance(self.body, str)


@dataclass
class RenderStats:
    """
    Counters collected during a single render call.

    Attributes:
        tagsFound: Tokens produced by the tokenizer
        tagsRendered: Tags whose rule returned a string
        tagsBroken: Open tags reverted to literal text (crossed or dangling)
        closersDropped: Closing tags removed because nothing was open
        rendersDeclined: Rules that returned a non-string
        renderErrors: Callbacks that raised (non-strict mode only)
    """

    tagsFound: int = 0
    tagsRendered: int = 0
    tagsBroken: int = 0
    closersDropped: int = 0
    rendersDeclined: int = 0
    renderErrors: int = 0

    def toDict(self) -> Dict[str, int]:
        return asdict(self)
