"""CSS-like predicate matching for ``css:'...'`` selectors.

Supports selector groups (``a, b``), descendant and child combinators
(``div p``, ``div > p``), type tags, ``*``, ``#id``, ``.class`` and the
attribute tests ``[a]``, ``[a=v]``, ``[a~=v]``, ``[a|=v]``, ``[a^=v]``,
``[a$=v]`` and ``[a*=v]``.

Native views expose their UIAutomator attributes; ``#id`` compares against
``resource-id`` (with or without the ``package:id/`` prefix) and ``.name``
against the view class. Predicates that cannot be parsed match nothing.
"""

import re
from functools import lru_cache
from typing import NamedTuple

from view_query.core.logging import ErrorIds, logError
from view_query.models.element import ElementNode
from view_query.models.snapshot import Snapshot

_TAG_PATTERN = re.compile(r"\*|[A-Za-z_$][\w\-$]*")

_PART_PATTERN = re.compile(
    r"""
      \#(?P<id>[\w\-:/.]+)
    | \.(?P<cls>[\w\-$]+)
    | \[\s*(?P<attr>[\w\-:.]+)\s*
        (?:(?P<op>[~|^$*]?=)\s*(?P<val>"[^"]*"|'[^']*'|[^\]\s]+)\s*)?
      \]
    """,
    re.VERBOSE,
)


class AttributeTest(NamedTuple):
    """One ``[name op value]`` test; ``op`` is empty for presence tests."""

    name: str
    op: str
    value: str

    def check(self, actual: str | None) -> bool:
        if actual is None:
            return False
        if not self.op:
            return True
        if self.op == "=":
            return actual == self.value
        if self.op == "~=":
            return self.value in actual.split()
        if self.op == "|=":
            return actual == self.value or actual.startswith(self.value + "-")
        if not self.value:
            return False
        if self.op == "^=":
            return actual.startswith(self.value)
        if self.op == "$=":
            return actual.endswith(self.value)
        return self.value in actual


class Compound(NamedTuple):
    """A compound selector and the combinator linking it to the previous one."""

    combinator: str  # "", " " or ">"
    tag: str | None
    ids: tuple[str, ...]
    classes: tuple[str, ...]
    tests: tuple[AttributeTest, ...]

    def matches(self, node: ElementNode) -> bool:
        if self.tag is not None and not node.matches_type(self.tag):
            return False
        if self.ids and not all(_id_matches(node, i) for i in self.ids):
            return False
        if self.classes and not all(c in _class_names(node) for c in self.classes):
            return False
        return all(t.check(_attribute(node, t.name)) for t in self.tests)


class Predicate:
    """A compiled ``css:'...'`` predicate."""

    def __init__(self, text: str, groups: list[list[Compound]]) -> None:
        self.text = text
        self.groups = groups

    @property
    def is_wildcard(self) -> bool:
        return self.text.strip() == "*"

    def matches(self, node: ElementNode, snapshot: Snapshot) -> bool:
        """Check whether ``node`` satisfies any selector of the group."""
        if self.is_wildcard:
            return True
        return any(_matches_complex(node, compounds, snapshot) for compounds in self.groups)

    def __repr__(self) -> str:
        return f"Predicate({self.text!r})"


def _id_matches(node: ElementNode, wanted: str) -> bool:
    if node.origin == "web":
        return node.attributes.get("id") == wanted
    resource_id = node.attributes.get("resource-id", "")
    return resource_id == wanted or resource_id.rsplit(":id/", 1)[-1] == wanted


def _class_names(node: ElementNode) -> set[str]:
    if node.origin == "web":
        return set(node.attributes.get("class", "").split())
    return {node.type, node.simple_type}


def _attribute(node: ElementNode, name: str) -> str | None:
    if name in node.attributes:
        return node.attributes[name]
    if node.origin == "native":
        if name == "id":
            return node.attributes.get("resource-id")
        if name == "class":
            return node.type
    return None


def _matches_complex(node: ElementNode, compounds: list[Compound], snapshot: Snapshot) -> bool:
    if not compounds[-1].matches(node):
        return False
    return _match_ancestors(node, compounds, len(compounds) - 1, snapshot)


def _match_ancestors(
    node: ElementNode, compounds: list[Compound], i: int, snapshot: Snapshot
) -> bool:
    """Match ``compounds[:i]`` against the ancestors of ``node``."""
    if i == 0:
        return True
    combinator = compounds[i].combinator
    previous = compounds[i - 1]
    parent = snapshot.nodes.get(node.parent) if node.parent else None

    if combinator == ">":
        return (
            parent is not None
            and previous.matches(parent)
            and _match_ancestors(parent, compounds, i - 1, snapshot)
        )

    while parent is not None:
        if previous.matches(parent) and _match_ancestors(parent, compounds, i - 1, snapshot):
            return True
        parent = snapshot.nodes.get(parent.parent) if parent.parent else None
    return False


def _split_top_level(text: str, separators: str) -> list[tuple[str, str]]:
    """Split ``text`` on separators outside brackets and quotes.

    Returns (separator, chunk) pairs; the first separator is always "".
    Runs of separators collapse into the last non-whitespace one.
    """
    chunks: list[tuple[str, str]] = []
    buf: list[str] = []
    depth = 0
    quote: str | None = None
    pending = ""
    for ch in text:
        if quote:
            buf.append(ch)
            if ch == quote:
                quote = None
            continue
        if depth and ch in "'\"":
            quote = ch
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        if depth == 0 and ch in separators:
            if buf:
                chunks.append((pending if chunks else "", "".join(buf)))
                buf = []
                pending = ch if not ch.isspace() else " "
            elif not ch.isspace():
                if pending.strip() or not chunks:
                    raise ValueError(f"unexpected {ch!r}")
                pending = ch
            continue
        buf.append(ch)
    if quote or depth:
        raise ValueError("unbalanced brackets or quotes")
    if buf:
        chunks.append((pending if chunks else "", "".join(buf)))
    elif pending.strip():
        raise ValueError(f"dangling {pending!r}")
    return chunks


def _parse_compound(combinator: str, text: str) -> Compound:
    pos = 0
    tag: str | None = None
    tag_match = _TAG_PATTERN.match(text)
    if tag_match:
        tag = tag_match.group(0)
        pos = tag_match.end()

    ids: list[str] = []
    classes: list[str] = []
    tests: list[AttributeTest] = []
    while pos < len(text):
        part = _PART_PATTERN.match(text, pos)
        if not part:
            raise ValueError(f"cannot parse {text[pos:]!r}")
        if part.group("id"):
            ids.append(part.group("id"))
        elif part.group("cls"):
            classes.append(part.group("cls"))
        else:
            value = part.group("val") or ""
            if value[:1] in ("'", '"'):
                value = value[1:-1]
            tests.append(AttributeTest(part.group("attr"), part.group("op") or "", value))
        pos = part.end()

    if tag == "*":
        tag = None
    return Compound(combinator, tag, tuple(ids), tuple(classes), tuple(tests))


@lru_cache(maxsize=256)
def compile_predicate(text: str) -> Predicate | None:
    """Compile predicate text, returning None if it cannot be parsed."""
    if text.strip() == "*":
        return Predicate(text, [])
    try:
        groups: list[list[Compound]] = []
        for _, group in _split_top_level(text.strip(), ","):
            compounds = [
                _parse_compound(comb, chunk)
                for comb, chunk in _split_top_level(group.strip(), " \t\n>")
            ]
            if not compounds:
                raise ValueError("empty selector in group")
            groups.append(compounds)
        if not groups:
            raise ValueError("empty predicate")
    except ValueError as e:
        logError(ErrorIds.CSS_PREDICATE_INVALID, f"Unsupported css predicate {text!r}: {e}")
        return None
    return Predicate(text, groups)


def predicate_matches(text: str, node: ElementNode, snapshot: Snapshot) -> bool:
    """Check ``node`` against predicate text; invalid predicates never match."""
    predicate = compile_predicate(text)
    return predicate is not None and predicate.matches(node, snapshot)
