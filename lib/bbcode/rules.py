"""
Tag rule tables for the BBCode renderer.

A rule table maps tag names to rules. Callers may describe a rule as:
- a template string: "<b>{content}</b>"
- a callable receiving a TagData: lambda tag: f"<i>{tag.content}</i>"
- a TagRule instance
- a mapping (or any object with a `body` attribute) with the keys
  `body` (or `renderer`), `selfclosing`/`selfClosing` and `nocode`/`noCode`

This module normalizes such tables into Dict[str, TagRule] and builds them
from the `[tags]` configuration section.
"""

import importlib
import logging
import re
from typing import Any, Callable, Dict, Mapping, Optional

from .attributes import TAG_NAME_PATTERN
from .exceptions import BBCodeConfigError
from .models import RuleBody, TagRule

logger = logging.getLogger(__name__)

TAG_NAME_RE = re.compile(TAG_NAME_PATTERN)

_BODY_KEYS = ("body", "renderer")
_SELF_CLOSING_KEYS = ("selfclosing", "selfClosing", "self-closing")
_NO_CODE_KEYS = ("nocode", "noCode", "no-code")


def _lookup(source: Any, keys: tuple[str, ...]) -> Any:
    """Return the first of `keys` present in a mapping or as an attribute, or None."""
    for key in keys:
        if isinstance(source, Mapping):
            if key in source:
                return source[key]
        elif hasattr(source, key):
            return getattr(source, key)
    return None


def _checkBody(name: str, body: Any) -> RuleBody:
    if isinstance(body, str) or callable(body):
        return body
    raise BBCodeConfigError(
        f"Rule for tag '{name}' must have a template string or a callable body, got {type(body).__name__}"
    )


def normalizeRule(name: str, rule: Any) -> TagRule:
    """
    Convert a rule in any supported shape to a TagRule.

    Args:
        name: Tag name the rule is registered for (used in error messages)
        rule: Rule as given by the caller

    Returns:
        Normalized TagRule

    Raises:
        BBCodeConfigError: If the rule has no usable body
    """
    if isinstance(rule, TagRule):
        _checkBody(name, rule.body)
        return rule

    if isinstance(rule, str) or callable(rule):
        return TagRule(body=rule)

    if rule is None:
        raise BBCodeConfigError(f"Rule for tag '{name}' is empty")

    body = _lookup(rule, _BODY_KEYS)
    if body is None:
        raise BBCodeConfigError(f"Rule for tag '{name}' has no body")

    return TagRule(
        body=_checkBody(name, body),
        selfClosing=bool(_lookup(rule, _SELF_CLOSING_KEYS)),
        noCode=bool(_lookup(rule, _NO_CODE_KEYS)),
    )


def normalizeRules(tags: Optional[Mapping[str, Any]]) -> Dict[str, TagRule]:
    """
    Normalize a caller-supplied rule table.

    Tag names are taken as is: a name that the tokenizer can never produce
    is kept but simply never matches.

    Args:
        tags: Mapping of tag name to rule, may be None

    Returns:
        New dictionary of tag name to TagRule
    """
    if tags is None:
        return {}
    if not isinstance(tags, Mapping):
        raise BBCodeConfigError(f"Tag rules must be a mapping, got {type(tags).__name__}")

    return {name: normalizeRule(name, rule) for name, rule in tags.items()}


def resolveHandler(reference: str) -> Callable[..., Any]:
    """
    Import a callable from a "package.module:attribute" reference.

    Args:
        reference: Handler reference

    Returns:
        The referenced callable

    Raises:
        BBCodeConfigError: If the reference is malformed, can't be imported or isn't callable
    """
    modulePath, sep, attrPath = reference.partition(":")
    if not sep or not modulePath or not attrPath:
        raise BBCodeConfigError(f"Invalid handler reference '{reference}', expected 'package.module:callable'")

    try:
        handler: Any = importlib.import_module(modulePath)
        for attr in attrPath.split("."):
            handler = getattr(handler, attr)
    except (ImportError, AttributeError) as e:
        raise BBCodeConfigError(f"Can't import handler '{reference}': {e}") from e

    if not callable(handler):
        raise BBCodeConfigError(f"Handler '{reference}' is not callable")
    return handler


def rulesFromConfig(tagsConfig: Mapping[str, Any]) -> Dict[str, TagRule]:
    """
    Build a rule table from the `[tags]` configuration section.

    Example:
        [tags]
        b = "<b>{content}</b>"

        [tags.img]
        body = '<img src="{content}{option}">'
        selfclosing = true

        [tags.code]
        handler = "myproject.render:renderCode"
        nocode = true

    Args:
        tagsConfig: Mapping of tag name to template string or table

    Returns:
        Dictionary of tag name to TagRule

    Raises:
        BBCodeConfigError: If a tag name or rule definition is invalid
    """
    rules: Dict[str, TagRule] = {}

    for name, ruleConfig in tagsConfig.items():
        if not TAG_NAME_RE.fullmatch(name):
            raise BBCodeConfigError(f"Invalid tag name '{name}', expected letters, digits, '_' or '-'")

        if isinstance(ruleConfig, str):
            rules[name] = TagRule(body=ruleConfig)
        elif isinstance(ruleConfig, Mapping):
            ruleConfig = dict(ruleConfig)
            handler = ruleConfig.pop("handler", None)
            if handler is not None:
                if _lookup(ruleConfig, _BODY_KEYS) is not None:
                    raise BBCodeConfigError(f"Tag '{name}' can't have both a body and a handler")
                ruleConfig["body"] = resolveHandler(str(handler))
            rules[name] = normalizeRule(name, ruleConfig)
        else:
            raise BBCodeConfigError(
                f"Tag '{name}' must be a template string or a table, got {type(ruleConfig).__name__}"
            )

        logger.debug(f"Loaded rule for tag '{name}': {rules[name]}")

    logger.info(f"Loaded {len(rules)} tag rules from configuration")
    return rules
