"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Each class maps to a table and uses relationships where appropriate.
Child rows cascade on parent deletion both at the ORM level and via
`ON DELETE CASCADE` foreign keys.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from sqlmodel import SQLModel, Field, Relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    STUDENT = "STUDENT"
    PROFESSOR = "PROFESSOR"


class ResourceType(str, Enum):
    PDF = "PDF"
    LINK = "LINK"
    VIDEO = "VIDEO"


class User(SQLModel, table=True):
    """A registered account.

    Fields:
    - `email`: unique login name, stored lower-cased
    - `password_hash`: hashed password string (never store plaintext)
    - `role`: fixed at registration
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, nullable=False, unique=True)
    name: str
    password_hash: str
    role: Role = Field(default=Role.STUDENT)
    created_at: datetime = Field(default_factory=_utcnow)
    courses: List['Course'] = Relationship(back_populates='owner', sa_relationship_kwargs={'cascade': 'all, delete'})
    comments: List['Comment'] = Relationship(back_populates='author', sa_relationship_kwargs={'cascade': 'all, delete'})


class Course(SQLModel, table=True):
    """A course owned by the professor who created it."""
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: str
    category: str = Field(index=True)
    created_at: datetime = Field(default_factory=_utcnow, index=True)
    owner_id: int = Field(foreign_key='user.id', ondelete='CASCADE', index=True)
    owner: Optional[User] = Relationship(back_populates='courses')
    resources: List['Resource'] = Relationship(back_populates='course', sa_relationship_kwargs={'cascade': 'all, delete'})
    comments: List['Comment'] = Relationship(back_populates='course', sa_relationship_kwargs={'cascade': 'all, delete'})


class Resource(SQLModel, table=True):
    """A link, PDF or video attached to a `Course`."""
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    url: str
    type: ResourceType
    created_at: datetime = Field(default_factory=_utcnow)
    course_id: int = Field(foreign_key='course.id', ondelete='CASCADE', index=True)
    course: Optional[Course] = Relationship(back_populates='resources')


class Comment(SQLModel, table=True):
    """A comment left on a `Course` by any signed-in account."""
    id: Optional[int] = Field(default=None, primary_key=True)
    content: str
    created_at: datetime = Field(default_factory=_utcnow)
    course_id: int = Field(foreign_key='course.id', ondelete='CASCADE', index=True)
    author_id: int = Field(foreign_key='user.id', ondelete='CASCADE', index=True)
    course: Optional[Course] = Relationship(back_populates='comments')
    author: Optional[User] = Relationship(back_populates='comments')
