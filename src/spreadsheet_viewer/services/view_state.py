"""View state of the viewer page and the reducer that evolves it.

The state is never mutated. Every user or loader event produces a whole new
ViewState, so a half-applied update can never be observed.

Macro-states:
    Empty   no workbook loaded; the page shows the drop zone.
    Loaded  a workbook is loaded; the page shows the file banner, the sheet
            tabs (more than one sheet) and the active sheet's table.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from spreadsheet_viewer.messages import message
from spreadsheet_viewer.models import Matrix, Workbook
from spreadsheet_viewer.utils.exceptions import (
    EmptyWorkbookError,
    NoWorkbookLoadedError,
    SheetNotFoundError,
)
from spreadsheet_viewer.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ViewState:
    """Everything the page needs to render, replaced as a whole.

    Attributes:
        workbook: Loaded workbook, or None while the page is empty.
        file_name: Name of the last accepted file, set before parsing ends.
        sheets: Sheet names of the loaded workbook, in workbook order.
        active_sheet: Sheet shown in the table; always one of sheets when
            a workbook is loaded.
        is_dragging: Whether a file is being dragged over the drop zone.
        error: Banner message; empty when there is no error.
        load_seq: Sequence number of the latest accepted file or reset.
            Loader results carrying an older number are discarded.
    """

    workbook: Workbook | None = None
    file_name: str = ""
    sheets: tuple[str, ...] = ()
    active_sheet: str = ""
    is_dragging: bool = False
    error: str = ""
    load_seq: int = 0

    @property
    def loaded(self) -> bool:
        return self.workbook is not None

    @property
    def active_matrix(self) -> Matrix | None:
        if self.workbook is None or not self.active_sheet:
            return None
        return self.workbook.sheets.get(self.active_sheet)


# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True)
class DragEntered:
    """A file is dragged over the drop zone."""


@dataclass(frozen=True)
class DragLeft:
    """The dragged file left the drop zone."""


@dataclass(frozen=True)
class FileAccepted:
    """A file passed intake and is about to be parsed."""

    file_name: str


@dataclass(frozen=True)
class FileRejected:
    """A file failed intake; message is the banner text."""

    message: str


@dataclass(frozen=True)
class LoadSucceeded:
    workbook: Workbook
    seq: int


@dataclass(frozen=True)
class LoadFailed:
    """The spreadsheet reader failed; message is its own message."""

    message: str
    seq: int


@dataclass(frozen=True)
class SheetSelected:
    name: str


@dataclass(frozen=True)
class Cleared:
    """The user asked for a new file."""


ViewEvent = (
    DragEntered
    | DragLeft
    | FileAccepted
    | FileRejected
    | LoadSucceeded
    | LoadFailed
    | SheetSelected
    | Cleared
)


# =============================================================================
# Reducer
# =============================================================================


def reduce(state: ViewState, event: ViewEvent, lang: str = "fr") -> ViewState:
    """Apply one event to a view state.

    Args:
        state: Current state.
        event: Event to apply.
        lang: Language of the banner messages built here.

    Returns:
        The next state. Stale loader results return the state unchanged.

    Raises:
        NoWorkbookLoadedError: On sheet selection while the page is empty.
        SheetNotFoundError: On selection of a sheet the workbook lacks.
    """
    if isinstance(event, DragEntered):
        return replace(state, is_dragging=True)

    if isinstance(event, DragLeft):
        return replace(state, is_dragging=False)

    if isinstance(event, FileAccepted):
        return replace(
            state,
            file_name=event.file_name,
            error="",
            is_dragging=False,
            load_seq=state.load_seq + 1,
        )

    if isinstance(event, FileRejected):
        return replace(state, error=event.message, is_dragging=False)

    if isinstance(event, LoadSucceeded):
        if event.seq != state.load_seq:
            logger.info(
                "Discarding stale workbook",
                result_seq=event.seq,
                current_seq=state.load_seq,
            )
            return state
        sheet_names = tuple(event.workbook.sheet_names)
        if not sheet_names:
            raise EmptyWorkbookError()
        return replace(
            state,
            workbook=event.workbook,
            sheets=sheet_names,
            active_sheet=sheet_names[0],
            error="",
        )

    if isinstance(event, LoadFailed):
        if event.seq != state.load_seq:
            logger.info(
                "Discarding stale load failure",
                result_seq=event.seq,
                current_seq=state.load_seq,
            )
            return state
        return replace(
            state,
            error=message("read_error", lang, message=event.message),
        )

    if isinstance(event, SheetSelected):
        if state.workbook is None:
            raise NoWorkbookLoadedError()
        if event.name not in state.sheets:
            raise SheetNotFoundError(event.name, available=list(state.sheets))
        if event.name == state.active_sheet:
            return state
        return replace(state, active_sheet=event.name)

    if isinstance(event, Cleared):
        return replace(
            state,
            workbook=None,
            file_name="",
            sheets=(),
            active_sheet="",
            error="",
            load_seq=state.load_seq + 1,
        )

    raise TypeError(f"Unknown view event: {type(event).__name__}")
