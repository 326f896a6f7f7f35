"""Selector expression models.

A parsed selector is a small tree of immutable nodes:

- TypeSelector: elements whose type tag matches (``WebView``, ``*``).
- AttributeSelector: a CSS-like predicate, ``css:'div.banner'``.
- IndexSelector: the n-th (0-based) match of a base expression, ``index:1``.
- ScopedSelector: an inner expression evaluated with the elements of a
  container type as context, ``PublisherAdView css:'*'``. Type selectors
  inside the scope narrow to descendants; predicates filter the context.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TypeSelector(BaseModel):
    """Select elements by type tag."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["type"] = "type"
    type_tag: str

    @field_validator("type_tag")
    @classmethod
    def must_not_be_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must not be empty")
        return v


class AttributeSelector(BaseModel):
    """Filter elements with a CSS-like predicate.

    The predicate text is kept verbatim; it is only interpreted at
    evaluation time.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["css"] = "css"
    predicate: str

    @property
    def is_wildcard(self) -> bool:
        return self.predicate.strip() == "*"


class IndexSelector(BaseModel):
    """Select the n-th (0-based) element matched by ``base``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["index"] = "index"
    base: "SelectorExpression"
    index: int


class ScopedSelector(BaseModel):
    """Evaluate ``inner`` with the ``container`` elements as context."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["scoped"] = "scoped"
    container: str
    inner: "SelectorExpression"


SelectorExpression = Annotated[
    Union[TypeSelector, AttributeSelector, IndexSelector, ScopedSelector],
    Field(discriminator="kind"),
]

IndexSelector.model_rebuild()
ScopedSelector.model_rebuild()
