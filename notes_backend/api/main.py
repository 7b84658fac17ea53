import logging
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from starlette.exceptions import HTTPException as StarletteHTTPException

from notes_backend.api.auth import get_current_user_id, get_identity
from notes_backend.api.config import Settings
from notes_backend.api.errors import NotesError, StorageError
from notes_backend.api.identity import IdentityService
from notes_backend.api.middleware import add_middlewares
from notes_backend.api.note_store import (
    DEFAULT_LIMIT,
    DEFAULT_OFFSET,
    NoteStore,
    SortOrder,
    parse_page_param,
)
from notes_backend.api.schemas import (
    Credentials,
    ErrorOut,
    NoteChangedOut,
    NoteCreate,
    NoteCreatedOut,
    NoteDetailOut,
    NoteListOut,
    NoteOut,
    NoteUpdate,
    RegisterOut,
    TokenOut,
)
from notes_database.db import make_engine, make_session_factory

logger = logging.getLogger(__name__)


# DATABASE Dependency
def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_note_store(db=Depends(get_db)) -> NoteStore:
    return NoteStore(db)


def error_response(status_code: int, message: str) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=status_code,
        content=ErrorOut(error=message).model_dump(),
        headers=headers,
    )


#####################
# AUTH ENDPOINTS
#####################

auth_router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={400: {"model": ErrorOut}, 401: {"model": ErrorOut}},
)


# PUBLIC_INTERFACE
@auth_router.post("/register", response_model=RegisterOut, status_code=201, summary="Register a new user")
def register(body: Credentials, db=Depends(get_db), identity: IdentityService = Depends(get_identity)):
    """
    Register a new user.
    Returns the new user's id; a taken username is rejected with 400.
    """
    user_id = identity.register(db, body.username, body.password)
    return RegisterOut(id=user_id)


# PUBLIC_INTERFACE
@auth_router.post("/login", response_model=TokenOut, summary="Login and get a bearer token")
def login(body: Credentials, db=Depends(get_db), identity: IdentityService = Depends(get_identity)):
    """
    User login.
    Returns a signed bearer token valid for the configured lifetime.
    """
    return TokenOut(token=identity.login(db, body.username, body.password))


#####################
# NOTES ENDPOINTS
#####################

notes_router = APIRouter(
    prefix="/users/notes",
    tags=["Notes"],
    responses={code: {"model": ErrorOut} for code in (400, 401, 403, 404)},
)


# PUBLIC_INTERFACE
@notes_router.post("", response_model=NoteCreatedOut, status_code=201, summary="Create a new note")
def create_note(
    note: NoteCreate,
    user_id: int = Depends(get_current_user_id),
    store: NoteStore = Depends(get_note_store),
):
    """Create a new note for the authenticated user."""
    note_id = store.create(user_id, note.title, note.content)
    logger.info("note created id=%s user_id=%s", note_id, user_id)
    return NoteCreatedOut(userId=user_id, noteId=note_id)


# PUBLIC_INTERFACE
@notes_router.get("", response_model=NoteListOut, summary="List the user's notes")
def list_notes(
    limit: Optional[str] = Query(None, description="Page size, default 10"),
    offset: Optional[str] = Query(None, description="Notes to skip, default 0"),
    sort: Optional[str] = Query(None, description="'asc' or 'desc' by creation time"),
    user_id: int = Depends(get_current_user_id),
    store: NoteStore = Depends(get_note_store),
):
    """
    Get one page of the authenticated user's notes.
    Unparseable limit/offset fall back to the defaults; any sort other
    than 'desc' is ascending.
    """
    notes = store.list(
        user_id,
        limit=parse_page_param(limit, DEFAULT_LIMIT),
        offset=parse_page_param(offset, DEFAULT_OFFSET),
        sort=SortOrder.parse(sort),
    )
    return NoteListOut(userID=user_id, notes=notes)


# PUBLIC_INTERFACE
@notes_router.get("/{note_id}", response_model=NoteDetailOut, summary="Get a single note")
def get_note(
    note_id: int,
    user_id: int = Depends(get_current_user_id),
    store: NoteStore = Depends(get_note_store),
):
    """
    Retrieve a single note. 404 if it does not exist, 403 if another
    user owns it.
    """
    note = store.get(user_id, note_id)
    return NoteDetailOut(userID=user_id, note=NoteOut.model_validate(note))


# PUBLIC_INTERFACE
@notes_router.put("/{note_id}", response_model=NoteChangedOut, summary="Update a note")
def update_note(
    note_id: int,
    note_update: NoteUpdate,
    user_id: int = Depends(get_current_user_id),
    store: NoteStore = Depends(get_note_store),
):
    """Update title and/or content of one of the user's notes."""
    store.update(user_id, note_id, note_update)
    logger.info("note updated id=%s user_id=%s", note_id, user_id)
    return NoteChangedOut(userID=user_id, noteID=note_id)


# PUBLIC_INTERFACE
@notes_router.delete("/{note_id}", response_model=NoteChangedOut, summary="Delete a note")
def delete_note(
    note_id: int,
    user_id: int = Depends(get_current_user_id),
    store: NoteStore = Depends(get_note_store),
):
    """Delete one of the user's notes."""
    store.delete(user_id, note_id)
    logger.info("note deleted id=%s user_id=%s", note_id, user_id)
    return NoteChangedOut(userID=user_id, noteID=note_id)


# PUBLIC_INTERFACE
def create_app(settings: Settings, engine: Optional[Engine] = None) -> FastAPI:
    """
    Builds the API application. The engine defaults to one built from
    `settings.database_url`; the schema is expected to exist already.
    """
    app = FastAPI(
        title="Personal Notes Backend API",
        description="Backend API for user auth and per-user notes.",
        version="1.0.0",
        openapi_tags=[
            {"name": "Authentication", "description": "User registration and login"},
            {"name": "Notes", "description": "Create, update, view and delete your notes"},
        ],
    )
    engine = engine or make_engine(settings.database_url)
    app.state.session_factory = make_session_factory(engine)
    app.state.identity = IdentityService(
        secret_key=settings.secret_key,
        password_salt=settings.password_salt,
        algorithm=settings.jwt_algorithm,
        token_ttl=timedelta(hours=settings.access_token_expire_hours),
    )
    add_middlewares(app)

    # Root Health Check
    @app.get("/", summary="Health Check", tags=["General"])
    def health_check():
        """Simple health check endpoint."""
        return {"message": "Healthy"}

    app.include_router(auth_router)
    app.include_router(notes_router)

    @app.exception_handler(NotesError)
    def notes_error_handler(request: Request, exc: NotesError):
        if isinstance(exc, StorageError):
            logger.error("storage failure op=%s: %s", exc.op, exc.cause)
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "invalid request") if errors else "invalid request"
        return error_response(status.HTTP_400_BAD_REQUEST, message)

    @app.exception_handler(StarletteHTTPException)
    def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail))

    return app
