from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from blog.models import (
    NAME_MAX_LENGTH,
    ROLE_DESCRIPTION_MAX_LENGTH,
    ROLE_NAME_MAX_LENGTH,
    SUMMARY_MAX_LENGTH,
    TAG_NAME_MAX_LENGTH,
    TITLE_MAX_LENGTH,
)


# --- Tag ---

class TagBase(BaseModel):
    name: str = Field(max_length=TAG_NAME_MAX_LENGTH)


class TagCreate(TagBase):
    pass


class TagUpdate(TagBase):
    pass


class TagResponse(TagBase):
    id: int
    model_config = ConfigDict(from_attributes=True)


# --- Role ---

class RoleBase(BaseModel):
    name: str = Field(max_length=ROLE_NAME_MAX_LENGTH)
    description: str = Field(max_length=ROLE_DESCRIPTION_MAX_LENGTH)


class RoleCreate(RoleBase):
    pass


class RoleUpdate(RoleBase):
    pass


class RoleResponse(RoleBase):
    id: int
    is_standard: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# --- User / auth ---

class RegisterRequest(BaseModel):
    # Format is checked by the service so a bad address maps to a 400.
    email: str = Field(max_length=255)
    password: str = Field(max_length=128)
    first_name: str | None = Field(None, max_length=NAME_MAX_LENGTH)
    last_name: str | None = Field(None, max_length=NAME_MAX_LENGTH)
    remember_me: bool = True


class LoginRequest(BaseModel):
    email: str
    password: str
    remember_me: bool = True


class UserUpdate(BaseModel):
    first_name: str | None = Field(None, max_length=NAME_MAX_LENGTH)
    last_name: str | None = Field(None, max_length=NAME_MAX_LENGTH)


class UserResponse(BaseModel):
    id: int
    email: str
    first_name: str | None
    last_name: str | None
    display_name: str
    registered_at: datetime
    role_names: list[str] = Field(default_factory=list, serialization_alias="roles")
    model_config = ConfigDict(from_attributes=True)


# --- Comment ---

class CommentBase(BaseModel):
    text: str


class ArticleCommentCreate(CommentBase):
    pass


class CommentCreate(CommentBase):
    article_id: int


class CommentUpdate(CommentBase):
    pass


class CommentResponse(CommentBase):
    id: int
    article_id: int
    author_id: int
    created_at: datetime
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


# --- Article ---

class ArticleBase(BaseModel):
    title: str = Field(max_length=TITLE_MAX_LENGTH)
    summary: str = Field(max_length=SUMMARY_MAX_LENGTH)
    content: str


class ArticleCreate(ArticleBase):
    tags: list[str] = []  # tag names, get-or-created


class ArticleUpdate(ArticleBase):
    # None leaves the tag set untouched; [] clears it.
    tags: list[str] | None = None


class ArticleResponse(BaseModel):
    id: int
    title: str
    summary: str
    author_id: int
    created_at: datetime
    updated_at: datetime | None = None
    tags: list[TagResponse] = []
    model_config = ConfigDict(from_attributes=True)


class ArticleDetail(ArticleResponse):
    content: str
    comments: list[CommentResponse] = []
