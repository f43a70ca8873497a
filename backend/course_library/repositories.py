"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (users,
courses, resources, comments). Repositories return SQLModel objects
and perform commits/refreshes where appropriate.
"""

from typing import List, Optional, Tuple
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, col, select
from . import models
from .errors import Conflict


class UserRepository:
    """CRUD operations for `User` objects."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, user: models.User) -> models.User:
        """Persist a new user and return the managed instance.

        A concurrent registration that wins the unique-email race is
        reported as `Conflict`.
        """
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise Conflict('Email already in use') from exc
        self.session.refresh(user)
        return user

    def get_by_email(self, email: str) -> Optional[models.User]:
        """Return a `User` by email or `None` if not found."""
        stmt = select(models.User).where(models.User.email == email)
        return self.session.exec(stmt).first()

    def get(self, user_id: int) -> Optional[models.User]:
        """Get a `User` by primary key."""
        return self.session.get(models.User, user_id)

    def delete(self, user: models.User) -> None:
        """Delete an account; owned courses and authored comments go with it."""
        self.session.delete(user)
        self.session.commit()


class CourseRepository:
    """CRUD and listing queries for `Course`."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, course: models.Course) -> models.Course:
        self.session.add(course)
        self.session.commit()
        self.session.refresh(course)
        return course

    def get(self, course_id: int) -> Optional[models.Course]:
        """Fetch a course by id."""
        return self.session.get(models.Course, course_id)

    def get_with_owner(self, course_id: int) -> Optional[models.Course]:
        """Fetch a course with its owner eagerly loaded."""
        stmt = (
            select(models.Course)
            .where(models.Course.id == course_id)
            .options(selectinload(models.Course.owner))
        )
        return self.session.exec(stmt).first()

    def list(self, search: Optional[str] = None, category: Optional[str] = None) -> List[Tuple[models.Course, int, int]]:
        """Return `(course, resource_count, comment_count)` rows, newest first.

        `search` is a case-insensitive substring match on title or
        description; `category` is a case-insensitive exact match. Both
        are optional and combine as an intersection.
        """
        resource_count = (
            select(func.count(models.Resource.id))
            .where(models.Resource.course_id == models.Course.id)
            .correlate(models.Course)
            .scalar_subquery()
        )
        comment_count = (
            select(func.count(models.Comment.id))
            .where(models.Comment.course_id == models.Course.id)
            .correlate(models.Course)
            .scalar_subquery()
        )
        stmt = select(models.Course, resource_count, comment_count).options(selectinload(models.Course.owner))
        if search:
            term = search.lower()
            stmt = stmt.where(or_(
                func.lower(models.Course.title).contains(term, autoescape=True),
                func.lower(models.Course.description).contains(term, autoescape=True),
            ))
        if category:
            stmt = stmt.where(func.lower(models.Course.category) == category.lower())
        stmt = stmt.order_by(col(models.Course.created_at).desc(), col(models.Course.id).desc())
        return [(course, n_resources, n_comments) for course, n_resources, n_comments in self.session.exec(stmt).all()]

    def update(self, course: models.Course, changes: dict) -> models.Course:
        """Apply `changes` (field name -> value) and persist."""
        for field, value in changes.items():
            setattr(course, field, value)
        self.session.add(course)
        self.session.commit()
        self.session.refresh(course)
        return course

    def delete(self, course: models.Course) -> None:
        """Delete a course; its resources and comments are removed too."""
        self.session.delete(course)
        self.session.commit()


class ResourceRepository:
    """CRUD operations for `Resource` records."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, resource: models.Resource) -> models.Resource:
        self.session.add(resource)
        self.session.commit()
        self.session.refresh(resource)
        return resource

    def get(self, resource_id: int) -> Optional[models.Resource]:
        return self.session.get(models.Resource, resource_id)

    def list_for_course(self, course_id: int) -> List[models.Resource]:
        """List resources of a course, newest first."""
        stmt = (
            select(models.Resource)
            .where(models.Resource.course_id == course_id)
            .order_by(col(models.Resource.created_at).desc(), col(models.Resource.id).desc())
        )
        return self.session.exec(stmt).all()

    def delete(self, resource: models.Resource) -> None:
        self.session.delete(resource)
        self.session.commit()


class CommentRepository:
    """CRUD operations for `Comment` records."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, comment: models.Comment) -> models.Comment:
        self.session.add(comment)
        self.session.commit()
        self.session.refresh(comment)
        return comment

    def get(self, comment_id: int) -> Optional[models.Comment]:
        return self.session.get(models.Comment, comment_id)

    def list_for_course(self, course_id: int) -> List[models.Comment]:
        """List comments of a course with their authors, newest first."""
        stmt = (
            select(models.Comment)
            .where(models.Comment.course_id == course_id)
            .options(selectinload(models.Comment.author))
            .order_by(col(models.Comment.created_at).desc(), col(models.Comment.id).desc())
        )
        return self.session.exec(stmt).all()

    def delete(self, comment: models.Comment) -> None:
        self.session.delete(comment)
        self.session.commit()
