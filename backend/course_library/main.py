"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the course library API and
builds the application in `create_app`. Controllers are intentionally
thin: they resolve the caller's identity from the session cookie,
delegate to services, and return JSON responses.

Endpoints implemented:
- POST /auth/register
- POST /auth/login
- POST /auth/logout
- GET /auth/me
- GET /courses
- GET /courses/{course_id}
- POST /courses
- PUT /courses/{course_id}
- DELETE /courses/{course_id}
- POST /courses/{course_id}/resources
- DELETE /resources/{resource_id}
- POST /courses/{course_id}/comments
- DELETE /comments/{comment_id}
- GET /health
"""

import json
import logging
import time
import uuid
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from sqlmodel import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import schemas, services
from .auth import clear_session_cookie, get_current_claim, get_optional_claim, set_session_cookie
from .config import settings
from .database import create_db_and_tables, get_session
from .errors import AppError
from .policy import IdentityClaim

logger = logging.getLogger("course_library.api")

router = APIRouter()


async def read_json_body(request: Request) -> Any:
    """Return the parsed JSON body, or `None` when it is absent or not JSON.

    Bodies are validated by the services after authorization, so a bad
    body must not fail the request at this stage.
    """
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


def _json_body(schema) -> dict:
    """OpenAPI request body for a route that reads its payload through `read_json_body`."""
    return {"requestBody": {"required": True, "content": {"application/json": {"schema": schema.model_json_schema()}}}}


@router.post('/auth/register', status_code=201, response_model=schemas.UserEnvelope,
             openapi_extra=_json_body(schemas.RegisterIn))
def register(payload: Any = Depends(read_json_body), db: Session = Depends(get_session)):
    """Register a new account. Fails with 409 if the email is taken."""
    user = services.AuthService(db).register(payload)
    return {'user': user}


@router.post('/auth/login', response_model=schemas.UserEnvelope, openapi_extra=_json_body(schemas.LoginIn))
def login(response: Response, payload: Any = Depends(read_json_body), db: Session = Depends(get_session)):
    """Authenticate and set the session cookie.

    The token is only delivered through the HTTP-only `token` cookie;
    the body carries the public account projection.
    """
    user, token = services.AuthService(db).authenticate(payload)
    set_session_cookie(response, token)
    return {'user': user}


@router.post('/auth/logout', response_model=schemas.OkOut)
def logout(response: Response):
    """Clear the session cookie. The token itself stays valid until it expires."""
    clear_session_cookie(response)
    return {'ok': True}


@router.get('/auth/me', response_model=schemas.UserEnvelope)
def me(claim: IdentityClaim = Depends(get_current_claim), db: Session = Depends(get_session)):
    return {'user': services.AuthService(db).current_user(claim)}


@router.get('/courses', response_model=List[schemas.CourseSummaryOut])
def list_courses(
    search: Optional[str] = None,
    category: Optional[str] = None,
    claim: Optional[IdentityClaim] = Depends(get_optional_claim),
    db: Session = Depends(get_session),
):
    """List courses, newest first.

    `search` matches title or description (case-insensitive substring),
    `category` matches exactly but case-insensitively.
    """
    return services.CourseService(db).list_courses(claim, search=search, category=category)


@router.get('/courses/{course_id}', response_model=schemas.CourseDetailOut)
def get_course(course_id: int, claim: Optional[IdentityClaim] = Depends(get_optional_claim),
               db: Session = Depends(get_session)):
    return services.CourseService(db).get_course(course_id, claim)


@router.post('/courses', response_model=schemas.CourseOut, openapi_extra=_json_body(schemas.CourseIn))
def create_course(
    claim: IdentityClaim = Depends(get_current_claim),
    payload: Any = Depends(read_json_body),
    db: Session = Depends(get_session),
):
    """Create a course owned by the caller. Professors only."""
    return services.CourseService(db).create_course(claim, payload)


@router.put('/courses/{course_id}', response_model=schemas.CourseOut, openapi_extra=_json_body(schemas.CourseIn))
def update_course(
    course_id: int,
    claim: IdentityClaim = Depends(get_current_claim),
    payload: Any = Depends(read_json_body),
    db: Session = Depends(get_session),
):
    """Update title, description and/or category. Owner only."""
    return services.CourseService(db).update_course(claim, course_id, payload)


@router.delete('/courses/{course_id}', response_model=schemas.MessageOut)
def delete_course(course_id: int, claim: IdentityClaim = Depends(get_current_claim),
                  db: Session = Depends(get_session)):
    services.CourseService(db).delete_course(claim, course_id)
    return {'message': 'Deleted'}


@router.post('/courses/{course_id}/resources', response_model=schemas.ResourceOut,
             openapi_extra=_json_body(schemas.ResourceIn))
def add_resource(
    course_id: int,
    claim: IdentityClaim = Depends(get_current_claim),
    payload: Any = Depends(read_json_body),
    db: Session = Depends(get_session),
):
    """Attach a PDF, LINK or VIDEO resource to a course. Owner only."""
    return services.CourseService(db).add_resource(claim, course_id, payload)


@router.delete('/resources/{resource_id}', response_model=schemas.MessageOut)
def delete_resource(resource_id: int, claim: IdentityClaim = Depends(get_current_claim),
                    db: Session = Depends(get_session)):
    services.CourseService(db).delete_resource(claim, resource_id)
    return {'message': 'Deleted'}


@router.post('/courses/{course_id}/comments', response_model=schemas.CommentOut,
             openapi_extra=_json_body(schemas.CommentIn))
def add_comment(
    course_id: int,
    claim: IdentityClaim = Depends(get_current_claim),
    payload: Any = Depends(read_json_body),
    db: Session = Depends(get_session),
):
    """Comment on a course. Any signed-in account may comment."""
    return services.CourseService(db).add_comment(claim, course_id, payload)


@router.delete('/comments/{comment_id}', response_model=schemas.MessageOut)
def delete_comment(comment_id: int, claim: IdentityClaim = Depends(get_current_claim),
                   db: Session = Depends(get_session)):
    services.CourseService(db).delete_comment(claim, comment_id)
    return {'message': 'Deleted'}


@router.get('/health', response_model=schemas.OkOut)
def health():
    """Lightweight health check for uptime monitoring."""
    return {'ok': True}


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def home():
    """Minimal homepage for quick manual testing."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
      <meta charset="UTF-8" />
      <title>Course Library API</title>
      <style>
        body { font-family: Arial, sans-serif; margin: 32px; }
        a { color: #0a6; }
        .card { max-width: 640px; padding: 16px; border: 1px solid #ddd; border-radius: 8px; }
      </style>
    </head>
    <body>
      <div class="card">
        <h1>Course Library API</h1>
        <ul>
          <li><a href="/docs">Swagger UI</a></li>
          <li><a href="/courses">Course list (JSON)</a></li>
        </ul>
        <p>Use <code>/auth/register</code> + <code>/auth/login</code> to get a session cookie, then try <code>POST /courses</code> as a professor.</p>
      </div>
    </body>
    </html>
    """


async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    details = {
        "request_id": req_id,
        "path": request.url.path,
        "method": request.method,
        "client": request.client.host if request.client else "unknown",
    }
    try:
        response = await call_next(request)
    except Exception:
        details["duration_ms"] = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception("request_failed %s", json.dumps(details, ensure_ascii=True))
        raise
    response.headers["X-Request-ID"] = req_id
    details["status_code"] = response.status_code
    details["duration_ms"] = round((time.perf_counter() - started) * 1000.0, 2)
    logger.info("request_done %s", json.dumps(details, ensure_ascii=True))
    return response


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    # a non-integer id in the path can never name an entity
    if any(err.get("loc", ("",))[0] == "path" for err in exc.errors()):
        return JSONResponse(status_code=404, content={"message": "Not found"})
    return JSONResponse(status_code=400, content={"message": "Invalid request"})


async def unhandled_error_handler(request: Request, exc: Exception):
    # already logged with its traceback by request_context_middleware
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


def create_app() -> FastAPI:
    """Build the application: logging, database, middleware, handlers, routes."""
    if not logging.getLogger().handlers:
        logging.basicConfig(level=settings.LOG_LEVEL)

    create_db_and_tables()

    application = FastAPI(
        title="Course Library API",
        version="1.0.0",
        description="Courses, resources and comments with cookie-based JWT sessions.",
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    application.middleware("http")(request_context_middleware)

    application.add_exception_handler(AppError, app_error_handler)
    application.add_exception_handler(StarletteHTTPException, http_error_handler)
    application.add_exception_handler(RequestValidationError, validation_error_handler)
    application.add_exception_handler(Exception, unhandled_error_handler)

    application.include_router(router)
    return application


app = create_app()
