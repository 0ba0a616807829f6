"""FastAPI application serving the spreadsheet viewer page."""

import asyncio
import contextlib
import time
import uuid
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated, Any

from fastapi import (
    FastAPI,
    File,
    Form,
    HTTPException,
    Request,
    Response,
    UploadFile,
    status,
)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from spreadsheet_viewer.config import settings, validate_settings_on_startup
from spreadsheet_viewer.messages import message, page_strings
from spreadsheet_viewer.models import (
    ErrorDetail,
    HealthResponse,
    TableResponse,
    ViewStateResponse,
    WorkbookResponse,
)
from spreadsheet_viewer.services.file_intake import ACCEPT_ATTRIBUTE, validate_upload
from spreadsheet_viewer.services.session_store import SessionStore
from spreadsheet_viewer.services.table_view import build_table_view
from spreadsheet_viewer.services.view_state import (
    Cleared,
    DragEntered,
    DragLeft,
    FileAccepted,
    FileRejected,
    LoadFailed,
    LoadSucceeded,
    SheetSelected,
    ViewState,
)
from spreadsheet_viewer.services.workbook_parser import WorkbookParser
from spreadsheet_viewer.utils.exceptions import (
    ErrorCode,
    FileError,
    FileTooLargeError,
    ParseError,
    ViewerError,
    ViewStateError,
)
from spreadsheet_viewer.utils.logging import (
    clear_context,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
    set_session_id,
)

API_VERSION = "0.1.0"

# Idle sessions are swept at this interval while the app is running
SESSION_CLEANUP_INTERVAL_SECONDS = 300

TEMPLATES_DIR = Path(__file__).parent / "templates"

# Configure structured logging using settings
configure_logging(
    level=settings.log_level_int,
    use_structured_formatter=True,
)
logger = get_logger(__name__)


def _rejection_message(exc: FileError, lang: str) -> str:
    """Banner text for a file refused at intake."""
    if isinstance(exc, FileTooLargeError):
        return message("file_too_large", lang, max_mb=settings.max_file_size_mb)
    return message("unsupported_format", lang)


def _state_response(state: ViewState, lang: str) -> ViewStateResponse:
    table = None
    matrix = state.active_matrix
    if matrix is not None:
        view = build_table_view(matrix, lang)
        table = TableResponse(
            header=view.header,
            rows=[cells for _, cells in view.rows],
            row_count=view.row_count,
            column_count=view.column_count,
        )
    return ViewStateResponse(
        file_name=state.file_name,
        sheets=list(state.sheets),
        active_sheet=state.active_sheet,
        is_dragging=state.is_dragging,
        error=state.error,
        loaded=state.loaded,
        table=table,
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    store = SessionStore()
    parser = WorkbookParser()
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    lang = settings.language
    cookie_name = settings.session_cookie_name

    async def sweep_sessions() -> None:
        while True:
            await asyncio.sleep(SESSION_CLEANUP_INTERVAL_SECONDS)
            removed = store.cleanup_expired()
            if removed:
                logger.debug(
                    "Session sweep finished",
                    removed=removed,
                    active_sessions=store.count(),
                )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> Any:
        sweeper = asyncio.create_task(sweep_sessions())
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper

    app = FastAPI(
        title="Spreadsheet Viewer",
        description=(
            "Upload a spreadsheet (.xlsx, .xls, .csv, .ods) and browse each of "
            "its sheets as an HTML table."
        ),
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.parser = parser

    # Configure CORS using settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Validate settings on startup
    validate_settings_on_startup(settings)

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next: Any) -> Any:
        """Assign a request ID and resolve the viewer session.

        The request ID comes from X-Request-ID when the client sends one. The
        session ID comes from the session cookie, or is minted for first-time
        visitors and set on the response.
        """
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        set_request_id(request_id)
        request.state.request_id = request_id

        session_id = request.cookies.get(cookie_name)
        is_new_session = not session_id
        if not session_id:
            session_id = store.new_session_id()
        set_session_id(session_id)
        request.state.session_id = session_id

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            if is_new_session:
                response.set_cookie(
                    cookie_name,
                    session_id,
                    httponly=True,
                    samesite="lax",
                )
            return response
        finally:
            clear_context()

    @app.exception_handler(ViewerError)
    async def viewer_exception_handler(
        request: Request, exc: ViewerError
    ) -> JSONResponse:
        """Return structured error responses for the application's exceptions."""
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.error(
            f"Viewer Error: {exc.message}",
            error_code=exc.error_code.value,
            http_status=exc.http_status,
        )
        return JSONResponse(
            status_code=exc.http_status,
            content=ErrorDetail(
                detail=exc.message,
                error_code=exc.error_code.value,
                details=exc.details if exc.details else None,
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.warning(
            f"HTTP Error: {exc.detail}",
            status_code=exc.status_code,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorDetail(
                detail=str(exc.detail),
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all handler that hides internals unless debug is on."""
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.exception(
            f"Unexpected error: {type(exc).__name__}",
            error_type=type(exc).__name__,
        )
        if settings.debug:
            detail = f"Internal server error: {type(exc).__name__}: {exc}"
        else:
            detail = "Internal server error. Please try again later."

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorDetail(
                detail=detail,
                error_code=ErrorCode.INTERNAL_ERROR.value,
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    def redirect_home() -> RedirectResponse:
        return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)

    @app.get("/", response_class=HTMLResponse, tags=["Viewer"])
    async def index(request: Request) -> HTMLResponse:
        """Render the viewer page for the caller's session."""
        state = store.get(request.state.session_id)
        matrix = state.active_matrix
        table = build_table_view(matrix, lang) if matrix is not None else None
        return templates.TemplateResponse(
            request,
            "index.html",
            {
                "lang": lang,
                "t": page_strings(lang),
                "state": state,
                "table": table,
                "accept": ACCEPT_ATTRIBUTE,
            },
        )

    @app.post("/upload", tags=["Viewer"])
    async def upload(
        request: Request,
        file: Annotated[UploadFile, File(description="Spreadsheet to display")],
    ) -> RedirectResponse:
        """Load a spreadsheet into the caller's session.

        Unsupported or oversized files and unreadable workbooks end up in the
        page's error banner. The previously loaded workbook stays in place in
        both cases.
        """
        session_id = request.state.session_id
        if not file.filename:
            # Form submitted without a file
            return redirect_home()

        try:
            validate_upload(file.filename, file.size)
        except FileError as e:
            store.apply(session_id, FileRejected(_rejection_message(e, lang)))
            return redirect_home()

        state = store.apply(session_id, FileAccepted(file.filename))
        seq = state.load_seq
        content = await file.read()

        started = time.perf_counter()
        try:
            workbook = await parser.parse_async(content, file.filename)
        except ParseError as e:
            store.apply(session_id, LoadFailed(e.message, seq))
            return redirect_home()

        state = store.apply(session_id, LoadSucceeded(workbook, seq))
        if state.workbook is workbook:
            logger.log_workbook_loaded(
                file_name=file.filename,
                sheet_names=workbook.sheet_names,
                total_rows=workbook.total_rows,
                duration_seconds=time.perf_counter() - started,
            )
        return redirect_home()

    @app.post("/sheets/select", tags=["Viewer"])
    async def select_sheet(
        request: Request,
        sheet: Annotated[str, Form(description="Name of the sheet to show")],
    ) -> RedirectResponse:
        """Switch the active sheet tab.

        A tab left over from an expired or cleared session just re-renders
        the page.
        """
        try:
            store.apply(request.state.session_id, SheetSelected(sheet))
        except ViewStateError as e:
            logger.warning(
                "Ignoring stale sheet selection",
                sheet=sheet,
                error_code=e.error_code.value,
            )
        return redirect_home()

    @app.post("/clear", tags=["Viewer"])
    async def clear(request: Request) -> RedirectResponse:
        """Forget the loaded workbook and return to the drop zone."""
        store.apply(request.state.session_id, Cleared())
        return redirect_home()

    @app.post(
        "/drag", status_code=status.HTTP_204_NO_CONTENT, tags=["Viewer"]
    )
    async def drag(
        request: Request,
        active: Annotated[bool, Form(description="Whether a file hovers")],
    ) -> Response:
        """Record whether a file is being dragged over the drop zone."""
        event = DragEntered() if active else DragLeft()
        store.apply(request.state.session_id, event)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.get("/api/state", response_model=ViewStateResponse, tags=["API"])
    async def get_state(request: Request) -> ViewStateResponse:
        """Snapshot of the caller's view state, active table included."""
        return _state_response(store.get(request.state.session_id), lang)

    @app.post(
        "/api/workbooks",
        response_model=WorkbookResponse,
        tags=["API"],
        responses={
            400: {"model": ErrorDetail, "description": "Unsupported format"},
            413: {"model": ErrorDetail, "description": "File too large"},
            422: {"model": ErrorDetail, "description": "Unreadable workbook"},
        },
    )
    async def parse_workbook(
        request: Request,
        file: Annotated[UploadFile, File(description="Spreadsheet to parse")],
    ) -> dict[str, Any]:
        """Parse a spreadsheet without touching the caller's view state.

        Returns every sheet as a header-inclusive matrix of raw cell values,
        with blank cells as empty strings.
        """
        filename = file.filename or ""
        validate_upload(filename, file.size)
        content = await file.read()
        workbook = await parser.parse_async(content, filename)

        logger.info(
            "Workbook parsed",
            file_name=filename,
            sheets=len(workbook.sheets),
            request_id=request.state.request_id,
        )
        return {
            "file_name": filename,
            "sheet_names": workbook.sheet_names,
            "sheets": workbook.to_display(),
        }

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> dict[str, Any]:
        """Check the health status of the service."""
        logger.debug("Health check requested")
        return {
            "status": "healthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "version": API_VERSION,
        }

    logger.info("FastAPI application created successfully")
    return app


# Create the application instance
app = create_app()
