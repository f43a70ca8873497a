"""Pydantic request/response schemas used by the API.

Request schemas are deliberately lenient (every field optional, strings
trimmed) because authorization runs before input validation: handlers
receive the raw JSON body and services parse it with `parse_payload`
once the caller is known to be entitled. Response schemas serialize to
camelCase field names.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .errors import InvalidInput
from .models import ResourceType, Role


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class RegisterIn(BaseModel):
    """Payload for account registration. The password is never trimmed."""
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None

    @field_validator('email', 'name', 'role', mode='before')
    @classmethod
    def trim_strings(cls, value):
        return _strip(value)


class LoginIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

    @field_validator('email', mode='before')
    @classmethod
    def trim_strings(cls, value):
        return _strip(value)


class CourseIn(BaseModel):
    """Payload for creating a course, or the partial update of one."""
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None

    @field_validator('title', 'description', 'category', mode='before')
    @classmethod
    def trim_strings(cls, value):
        return _strip(value)


class ResourceIn(BaseModel):
    title: Optional[str] = None
    url: Optional[str] = None
    type: Optional[str] = None

    @field_validator('title', 'url', 'type', mode='before')
    @classmethod
    def trim_strings(cls, value):
        return _strip(value)


class CommentIn(BaseModel):
    content: Optional[str] = None

    @field_validator('content', mode='before')
    @classmethod
    def trim_strings(cls, value):
        return _strip(value)


def parse_payload(schema, payload: Any):
    """Validate a raw JSON body against `schema` or raise `InvalidInput`.

    A missing body is treated as an empty object.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise InvalidInput('Request body must be a JSON object')
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        raise InvalidInput('Invalid request body') from exc


class _Out(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class UserOut(_Out):
    """Public account projection; the credential is never included."""
    id: int
    email: str
    name: str
    role: Role


class UserEnvelope(_Out):
    user: UserOut


class PersonOut(_Out):
    """Short projection of an account shown next to courses and comments."""
    id: int
    name: str


class CourseOut(_Out):
    id: int
    title: str
    description: str
    category: str
    created_at: datetime
    owner_id: int


class CourseSummaryOut(CourseOut):
    owner: PersonOut
    resource_count: int
    comment_count: int


class ResourceOut(_Out):
    id: int
    title: str
    url: str
    type: ResourceType
    created_at: datetime
    course_id: int


class CommentOut(_Out):
    id: int
    content: str
    created_at: datetime
    course_id: int
    author_id: int


class CommentDetailOut(CommentOut):
    author: PersonOut


class CourseDetailOut(CourseOut):
    owner: PersonOut
    resources: List[ResourceOut]
    comments: List[CommentDetailOut]


class MessageOut(BaseModel):
    message: str


class OkOut(BaseModel):
    ok: bool = True
