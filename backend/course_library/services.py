"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories,
the authorization policy and input validation. Services are
intentionally thin: for every mutating operation they check that the
target exists, then ask the policy whether the caller may act on it,
and only then validate the request body and persist the change.
"""

import logging
from typing import Any, List, Optional, Tuple

from passlib.context import CryptContext
from sqlmodel import Session

from . import models, repositories, schemas
from .auth import create_access_token
from .errors import Conflict, InvalidInput, NotFound, Unauthorized
from .policy import Action, IdentityClaim, authorize

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
INVALID_CREDENTIALS = 'Invalid email or password'

logger = logging.getLogger("course_library.services")


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class AuthService:
    """Identity operations: register, authenticate, look up the caller."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)

    def register(self, payload: Any) -> models.User:
        """Create a new account with a hashed password.

        Role is PROFESSOR only when requested exactly; anything else
        registers a STUDENT. Returns the persisted `User` instance.
        """
        data = schemas.parse_payload(schemas.RegisterIn, payload)
        if _blank(data.email) or _blank(data.password) or _blank(data.name):
            raise InvalidInput('email, password and name are required')
        email = data.email.lower()
        if self.user_repo.get_by_email(email):
            raise Conflict('Email already in use')
        role = models.Role.PROFESSOR if data.role == models.Role.PROFESSOR.value else models.Role.STUDENT
        user = models.User(email=email, name=data.name, password_hash=PWD_CTX.hash(data.password), role=role)
        user = self.user_repo.create(user)
        logger.info("registered user_id=%s role=%s", user.id, user.role.value)
        return user

    def authenticate(self, payload: Any) -> Tuple[models.User, str]:
        """Verify credentials and return the user with a signed session token.

        Unknown emails and wrong passwords fail with the same message.
        """
        data = schemas.parse_payload(schemas.LoginIn, payload)
        if _blank(data.email) or _blank(data.password):
            raise InvalidInput('email and password are required')
        user = self.user_repo.get_by_email(data.email.lower())
        if not user or not PWD_CTX.verify(data.password, user.password_hash):
            logger.info("login failed")
            raise Unauthorized(INVALID_CREDENTIALS)
        logger.info("login user_id=%s", user.id)
        return user, create_access_token(user)

    def current_user(self, claim: IdentityClaim) -> models.User:
        """Return the account behind `claim`; it may have been deleted since login."""
        user = self.user_repo.get(claim.id)
        if not user:
            raise Unauthorized()
        return user


class CourseService:
    """Course, resource and comment operations."""
    def __init__(self, session: Session):
        self.session = session
        self.course_repo = repositories.CourseRepository(session)
        self.resource_repo = repositories.ResourceRepository(session)
        self.user_repo = repositories.UserRepository(session)
        self.comment_repo = repositories.CommentRepository(session)

    def _get_course(self, course_id: int) -> models.Course:
        course = self.course_repo.get(course_id)
        if not course:
            raise NotFound('Course not found')
        return course

    def _require_account(self, claim: IdentityClaim) -> None:
        # a token outlives the account it was issued for
        if not self.user_repo.get(claim.id):
            raise Unauthorized()

    def list_courses(self, claim: Optional[IdentityClaim] = None, search: Optional[str] = None,
                     category: Optional[str] = None) -> List[schemas.CourseSummaryOut]:
        """List courses newest first, optionally filtered by `search` and `category`.

        Blank filters are ignored.
        """
        authorize(Action.READ, claim)
        search = search.strip() if search else None
        category = category.strip() if category else None
        rows = self.course_repo.list(search=search or None, category=category or None)
        return [
            schemas.CourseSummaryOut(
                **schemas.CourseOut.model_validate(course).model_dump(),
                owner=schemas.PersonOut.model_validate(course.owner),
                resource_count=n_resources,
                comment_count=n_comments,
            )
            for course, n_resources, n_comments in rows
        ]

    def get_course(self, course_id: int, claim: Optional[IdentityClaim] = None) -> schemas.CourseDetailOut:
        """Return a course with its owner, resources and comments (newest first)."""
        course = self.course_repo.get_with_owner(course_id)
        if not course:
            raise NotFound('Course not found')
        authorize(Action.READ, claim, course)
        resources = self.resource_repo.list_for_course(course.id)
        comments = self.comment_repo.list_for_course(course.id)
        return schemas.CourseDetailOut(
            **schemas.CourseOut.model_validate(course).model_dump(),
            owner=schemas.PersonOut.model_validate(course.owner),
            resources=[schemas.ResourceOut.model_validate(r) for r in resources],
            comments=[schemas.CommentDetailOut.model_validate(c) for c in comments],
        )

    def create_course(self, claim: IdentityClaim, payload: Any) -> models.Course:
        authorize(Action.CREATE_COURSE, claim)
        self._require_account(claim)
        data = schemas.parse_payload(schemas.CourseIn, payload)
        if _blank(data.title) or _blank(data.description) or _blank(data.category):
            raise InvalidInput('title, description and category are required')
        course = models.Course(title=data.title, description=data.description, category=data.category, owner_id=claim.id)
        course = self.course_repo.create(course)
        logger.info("course created course_id=%s owner_id=%s", course.id, claim.id)
        return course

    def update_course(self, claim: IdentityClaim, course_id: int, payload: Any) -> models.Course:
        """Apply a partial update; only fields present in the body change."""
        course = self._get_course(course_id)
        authorize(Action.UPDATE_COURSE, claim, course)
        data = schemas.parse_payload(schemas.CourseIn, payload)
        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if _blank(value):
                raise InvalidInput(f'{field} must not be empty')
        course = self.course_repo.update(course, changes)
        logger.info("course updated course_id=%s fields=%s", course.id, sorted(changes))
        return course

    def delete_course(self, claim: IdentityClaim, course_id: int) -> None:
        course = self._get_course(course_id)
        authorize(Action.DELETE_COURSE, claim, course)
        self.course_repo.delete(course)
        logger.info("course deleted course_id=%s", course_id)

    def add_resource(self, claim: IdentityClaim, course_id: int, payload: Any) -> models.Resource:
        course = self._get_course(course_id)
        authorize(Action.ADD_RESOURCE, claim, course)
        data = schemas.parse_payload(schemas.ResourceIn, payload)
        if _blank(data.title) or _blank(data.url) or _blank(data.type):
            raise InvalidInput('title, url and type are required')
        try:
            resource_type = models.ResourceType(data.type.upper())
        except ValueError:
            raise InvalidInput('type must be one of PDF, LINK, VIDEO')
        resource = models.Resource(title=data.title, url=data.url, type=resource_type, course_id=course.id)
        resource = self.resource_repo.create(resource)
        logger.info("resource added resource_id=%s course_id=%s", resource.id, course.id)
        return resource

    def delete_resource(self, claim: IdentityClaim, resource_id: int) -> None:
        """Delete a resource; only the owner of its course may do so."""
        resource = self.resource_repo.get(resource_id)
        if not resource:
            raise NotFound('Resource not found')
        authorize(Action.DELETE_RESOURCE, claim, self.course_repo.get(resource.course_id))
        self.resource_repo.delete(resource)
        logger.info("resource deleted resource_id=%s", resource_id)

    def add_comment(self, claim: IdentityClaim, course_id: int, payload: Any) -> models.Comment:
        course = self._get_course(course_id)
        authorize(Action.ADD_COMMENT, claim, course)
        self._require_account(claim)
        data = schemas.parse_payload(schemas.CommentIn, payload)
        if _blank(data.content):
            raise InvalidInput('content is required')
        comment = models.Comment(content=data.content, course_id=course.id, author_id=claim.id)
        comment = self.comment_repo.create(comment)
        logger.info("comment added comment_id=%s course_id=%s", comment.id, course.id)
        return comment

    def delete_comment(self, claim: IdentityClaim, comment_id: int) -> None:
        comment = self.comment_repo.get(comment_id)
        if not comment:
            raise NotFound('Comment not found')
        authorize(Action.DELETE_COMMENT, claim, comment)
        self.comment_repo.delete(comment)
        logger.info("comment deleted comment_id=%s", comment_id)
