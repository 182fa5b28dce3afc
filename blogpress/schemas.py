from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

HEX_COLOR_PATTERN = r"^#([0-9A-Fa-f]{6}|[0-9A-Fa-f]{3})$"


class WriteModel(BaseModel):
    """Request bodies: camelCase on the wire, unknown keys rejected."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


# --- Post ---

class PostWrite(WriteModel):
    """Body for both create and update; update re-validates the whole post."""

    title: str = Field(min_length=3, max_length=100)
    content: str = Field(min_length=10)
    excerpt: str | None = Field(None, min_length=1, max_length=200)
    category: int
    tags: list[Annotated[str, Field(min_length=1, max_length=100)]] = []
    is_published: bool = False


# --- Comment ---

class CommentCreate(WriteModel):
    content: str = Field(min_length=1, max_length=500)


# --- Category ---

class CategoryWrite(WriteModel):
    name: str = Field(min_length=2, max_length=50)
    description: str | None = Field(None, min_length=1, max_length=200)
    color: str | None = Field(None, pattern=HEX_COLOR_PATTERN)


# --- Pagination ---

class Pagination(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_page: int
    total_pages: int
    total_posts: int
    has_next_page: bool
    has_prev_page: bool


class PostPage(BaseModel):
    items: list[dict]
    pagination: Pagination
