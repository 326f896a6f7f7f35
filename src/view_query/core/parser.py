"""Selector parser for the view query language.

Selectors are space separated tokens that narrow left to right::

    zzra css:'*'                 every zzra view
    zzra index:1 css:'*'         the second zzra view
    HTMLBannerWebView css:'*'    every HTMLBannerWebView
    WebView div css:'.banner'    div DOM nodes inside web views, with class banner

Grammar, resolved right-recursively::

    expr := TYPE expr | TYPE | "index:" INT expr | "index:" INT | "css:" QUOTED

The predicate inside ``css:'...'`` is not interpreted here.
"""

import re
from typing import NamedTuple

from view_query.core.errors import MalformedSelector
from view_query.core.logging import ErrorIds, logError
from view_query.models.selector import (
    AttributeSelector,
    IndexSelector,
    ScopedSelector,
    SelectorExpression,
    TypeSelector,
)

_TYPE_PATTERN = re.compile(r"^(?:\*|[A-Za-z_$][\w$.\-]*)$")
_INDEX_PATTERN = re.compile(r"^index:(-?\d+)$")

WILDCARD = AttributeSelector(predicate="*")


class Token(NamedTuple):
    """A lexical token of a selector with its start offset."""

    kind: str  # "type", "index" or "css"
    text: str
    value: str
    position: int


def tokenize(text: str) -> list[Token]:
    """Split selector text into tokens.

    Raises:
        MalformedSelector: On unterminated quotes or unrecognised tokens.
    """
    tokens: list[Token] = []
    pos = 0
    length = len(text)
    while pos < length:
        if text[pos].isspace():
            pos += 1
            continue

        start = pos
        if text.startswith("css:", pos):
            pos += len("css:")
            if pos >= length or text[pos] not in "'\"":
                raise MalformedSelector(text, text[start:pos + 1], start, "css predicate must be quoted")
            quote = text[pos]
            pos += 1
            chars: list[str] = []
            while pos < length and text[pos] != quote:
                if text[pos] == "\\" and pos + 1 < length and text[pos + 1] in (quote, "\\"):
                    pos += 1
                chars.append(text[pos])
                pos += 1
            if pos >= length:
                raise MalformedSelector(text, text[start:], start, "unterminated css predicate")
            pos += 1
            if pos < length and not text[pos].isspace():
                raise MalformedSelector(text, text[pos:], pos, "expected whitespace after css predicate")
            tokens.append(Token("css", text[start:pos], "".join(chars), start))
            continue

        while pos < length and not text[pos].isspace():
            pos += 1
        word = text[start:pos]
        index_match = _INDEX_PATTERN.match(word)
        if index_match:
            tokens.append(Token("index", word, index_match.group(1), start))
        elif word.startswith("index:"):
            raise MalformedSelector(text, word, start, "index must be an integer")
        elif _TYPE_PATTERN.match(word):
            tokens.append(Token("type", word, word, start))
        else:
            raise MalformedSelector(text, word, start, "unrecognised token")
    return tokens


def parse(text: str) -> SelectorExpression:
    """Parse selector text into a selector expression.

    Args:
        text: The selector, e.g. ``"zzra index:1 css:'*'"``.

    Returns:
        The parsed expression.

    Raises:
        MalformedSelector: If the text does not follow the grammar.
    """
    try:
        tokens = tokenize(text)
        if not tokens:
            raise MalformedSelector(text, text, 0, "empty selector")
        return _parse_expr(text, tokens, 0)
    except MalformedSelector as e:
        logError(
            ErrorIds.MALFORMED_SELECTOR,
            str(e),
            extra={"fragment": e.fragment, "position": e.position},
        )
        raise


def _parse_expr(text: str, tokens: list[Token], i: int) -> SelectorExpression:
    token = tokens[i]
    rest = i + 1 < len(tokens)

    if token.kind == "css":
        if rest:
            nxt = tokens[i + 1]
            raise MalformedSelector(text, nxt.text, nxt.position, "css predicate must be the last token")
        if not token.value.strip():
            raise MalformedSelector(text, token.text, token.position, "empty css predicate")
        return AttributeSelector(predicate=token.value)

    if token.kind == "index":
        base = _parse_expr(text, tokens, i + 1) if rest else WILDCARD
        return IndexSelector(base=base, index=int(token.value))

    if rest:
        return ScopedSelector(container=token.value, inner=_parse_expr(text, tokens, i + 1))
    return TypeSelector(type_tag=token.value)


def to_text(expr: SelectorExpression) -> str:
    """Print the canonical text of a selector expression.

    ``parse(to_text(expr)) == expr`` for every expression the parser can produce.
    """
    if isinstance(expr, TypeSelector):
        return expr.type_tag
    if isinstance(expr, AttributeSelector):
        escaped = expr.predicate.replace("\\", "\\\\").replace("'", "\\'")
        return f"css:'{escaped}'"
    if isinstance(expr, IndexSelector):
        return f"index:{expr.index} {to_text(expr.base)}"
    return f"{expr.container} {to_text(expr.inner)}"
