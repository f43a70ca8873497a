"""CLI script to load demo data into the backend DB.
Usage: python scripts/seed.py [--email EMAIL] [--password PASSWORD]
"""
import sys
import argparse
import pathlib
# Ensure `backend/` is on sys.path so `course_library` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from course_library import models, repositories
from course_library.database import create_db_and_tables, engine
from course_library.services import PWD_CTX

DEMO_RESOURCES = [
    ('HTML guide', 'https://developer.mozilla.org/en-US/docs/Web/HTML'),
    ('CSS basics', 'https://developer.mozilla.org/en-US/docs/Web/CSS'),
]


def main(email: str = 'prof@test.com', password: str = 'test1234', name: str = 'Test Professor'):
    """Upsert a demo professor and give them a demo course.

    The professor's name, password and role are reset on every run; a
    new demo course with two link resources and one comment is created
    each time. Results are printed to stdout.
    """
    create_db_and_tables()
    with Session(engine) as session:
        users = repositories.UserRepository(session)
        professor = users.get_by_email(email.lower())
        if professor:
            professor.name = name
            professor.password_hash = PWD_CTX.hash(password)
            professor.role = models.Role.PROFESSOR
            session.add(professor)
            session.commit()
            session.refresh(professor)
        else:
            professor = users.create(models.User(
                email=email.lower(), name=name, password_hash=PWD_CTX.hash(password), role=models.Role.PROFESSOR,
            ))
        course = repositories.CourseRepository(session).create(models.Course(
            title='Introduction to Web Development',
            description='A short course on HTML, CSS and JavaScript.',
            category='Web',
            owner_id=professor.id,
        ))
        resource_repo = repositories.ResourceRepository(session)
        for title, url in DEMO_RESOURCES:
            resource_repo.create(models.Resource(title=title, url=url, type=models.ResourceType.LINK, course_id=course.id))
        repositories.CommentRepository(session).create(models.Comment(
            content='Clear and well structured course.', course_id=course.id, author_id=professor.id,
        ))
        print(f'Seed OK: {email} / {password} (course id {course.id})')

if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--email', default='prof@test.com', help='Demo professor email')
    parser.add_argument('--password', default='test1234', help='Demo professor password')
    args = parser.parse_args()
    main(email=args.email, password=args.password)
