"""Tests for the FastAPI application."""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any
from unittest.mock import patch

import httpx
import pytest
from fastapi import status

from spreadsheet_viewer.api import create_app

XLSX_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@asynccontextmanager
async def create_test_client(
    patches: dict[str, Any] | None = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Create an async test client with proper lifespan handling.

    Args:
        patches: Optional dictionary of patch targets and values.
    """
    patch_targets = {
        "spreadsheet_viewer.api.settings.language": "fr",
        "spreadsheet_viewer.api.settings.max_file_size_mb": 10,
        **(patches or {}),
    }

    for target, value in patch_targets.items():
        patch(target, value).start()
    try:
        app = create_app()
        async with (
            app.router.lifespan_context(app),
            httpx.AsyncClient(
                transport=httpx.ASGITransport(app=app),
                base_url="http://test",
            ) as client,
        ):
            client.app = app  # type: ignore[attr-defined]
            yield client
    finally:
        patch.stopall()


@pytest.fixture
async def client() -> AsyncIterator[httpx.AsyncClient]:
    """Create an async test client for the FastAPI application."""
    async with create_test_client() as ac:
        yield ac


async def _upload(
    client: httpx.AsyncClient,
    filename: str,
    content: bytes,
    content_type: str = "application/octet-stream",
) -> httpx.Response:
    return await client.post(
        "/upload", files={"file": (filename, content, content_type)}
    )


async def _state(client: httpx.AsyncClient) -> dict[str, Any]:
    response = await client.get("/api/state")
    assert response.status_code == status.HTTP_200_OK
    data: dict[str, Any] = response.json()
    return data


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    async def test_health_check(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/health")
        assert response.status_code == status.HTTP_200_OK

        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"
        assert isinstance(datetime.fromisoformat(data["timestamp"]), datetime)

    async def test_request_id_echoed(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"

    async def test_request_id_generated(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/health")
        assert response.headers["X-Request-ID"]


class TestOpenAPIDocumentation:
    async def test_openapi_json_available(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/openapi.json")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["info"]["title"] == "Spreadsheet Viewer"


class TestIndexPage:
    """Tests for the rendered page."""

    async def test_empty_page_shows_drop_zone(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/")

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"].startswith("text/html")
        body = response.text
        assert 'id="dropzone"' in body
        assert 'accept=".xlsx,.xls,.csv,.ods"' in body
        assert "Glissez-déposez votre fichier ici" in body
        assert "<table>" not in body

    async def test_first_visit_sets_session_cookie(
        self, client: httpx.AsyncClient
    ) -> None:
        response = await client.get("/")

        cookie = response.headers["set-cookie"]
        assert cookie.startswith("sv_session=")
        assert "httponly" in cookie.lower()
        assert "samesite=lax" in cookie.lower()

    async def test_known_session_not_reissued(self, client: httpx.AsyncClient) -> None:
        await client.get("/")
        response = await client.get("/")
        assert "set-cookie" not in response.headers

    async def test_english_page(self) -> None:
        patches = {"spreadsheet_viewer.api.settings.language": "en"}
        async with create_test_client(patches) as client:
            response = await client.get("/")
        assert '<html lang="en">' in response.text
        assert "Drag and drop your file here" in response.text


class TestUpload:
    """Tests for loading a file into the session."""

    async def test_csv_upload_redirects_home(
        self, client: httpx.AsyncClient, people_csv: bytes
    ) -> None:
        response = await _upload(client, "people.csv", people_csv, "text/csv")

        assert response.status_code == status.HTTP_303_SEE_OTHER
        assert response.headers["location"] == "/"

    async def test_csv_upload_loads_single_sheet(
        self, client: httpx.AsyncClient, people_csv: bytes
    ) -> None:
        await _upload(client, "people.csv", people_csv, "text/csv")
        state = await _state(client)

        assert state["loaded"] is True
        assert state["file_name"] == "people.csv"
        assert state["sheets"] == ["Sheet1"]
        assert state["active_sheet"] == "Sheet1"
        assert state["error"] == ""
        assert state["table"] == {
            "header": ["Name", "Age"],
            "rows": [["Ana", "30"], ["Bo", "25"]],
            "row_count": 2,
            "column_count": 2,
        }

    async def test_loaded_page_renders_table(
        self, client: httpx.AsyncClient, people_csv: bytes
    ) -> None:
        await _upload(client, "people.csv", people_csv, "text/csv")
        body = (await client.get("/")).text

        assert "people.csv" in body
        assert "Nouveau fichier" in body
        assert '<th class="row-number">#</th>' in body
        assert "<th>Name</th>" in body
        assert '<td class="row-number">2</td>' in body
        assert "2 ligne(s) • 2 colonne(s)" in body
        assert 'id="dropzone"' not in body
        # A single sheet gets no tab bar
        assert 'class="tabs"' not in body

    async def test_unsupported_format_sets_error(
        self, client: httpx.AsyncClient
    ) -> None:
        response = await _upload(client, "report.pdf", b"%PDF-1.4")
        assert response.status_code == status.HTTP_303_SEE_OTHER

        state = await _state(client)
        assert state["error"] == (
            "Format non supporté. Utilisez .xlsx, .xls, .csv ou .ods"
        )
        assert state["loaded"] is False

    async def test_unsupported_format_keeps_loaded_workbook(
        self, client: httpx.AsyncClient, people_csv: bytes
    ) -> None:
        await _upload(client, "people.csv", people_csv, "text/csv")
        await _upload(client, "report.pdf", b"%PDF-1.4")

        state = await _state(client)
        assert state["loaded"] is True
        assert state["file_name"] == "people.csv"
        assert state["table"]["row_count"] == 2
        assert state["error"].startswith("Format non supporté")

        body = (await client.get("/")).text
        assert 'role="alert"' in body
        assert "<th>Name</th>" in body

    async def test_file_too_large_sets_error(self) -> None:
        patches = {"spreadsheet_viewer.api.settings.max_file_size_mb": 1}
        async with create_test_client(patches) as client:
            content = b"a,b\n" + b"1,2\n" * 300_000
            await _upload(client, "huge.csv", content, "text/csv")
            state = await _state(client)

        assert state["error"] == "Fichier trop volumineux (maximum 1 Mo)"
        assert state["loaded"] is False

    async def test_corrupt_workbook_sets_read_error(
        self, client: httpx.AsyncClient
    ) -> None:
        await _upload(client, "broken.xlsx", b"not a zip archive", XLSX_TYPE)
        state = await _state(client)

        assert state["error"].startswith("Erreur lors de la lecture du fichier: ")
        assert len(state["error"]) > len("Erreur lors de la lecture du fichier: ")
        assert state["loaded"] is False
        assert state["file_name"] == "broken.xlsx"

    async def test_new_file_replaces_previous(
        self,
        client: httpx.AsyncClient,
        people_csv: bytes,
        make_xlsx: Callable[[dict[str, Any]], bytes],
    ) -> None:
        await _upload(client, "people.csv", people_csv, "text/csv")
        content = make_xlsx({"Only": [["x", "y"], [1, 2]]})
        await _upload(client, "other.xlsx", content, XLSX_TYPE)

        state = await _state(client)
        assert state["file_name"] == "other.xlsx"
        assert state["sheets"] == ["Only"]

    async def test_empty_header_cell_gets_placeholder(
        self,
        client: httpx.AsyncClient,
        make_xlsx: Callable[[dict[str, Any]], bytes],
    ) -> None:
        content = make_xlsx({"Data": [["A", "B", None, "D"], [1, 2, 3, 4]]})
        await _upload(client, "gaps.xlsx", content, XLSX_TYPE)

        state = await _state(client)
        assert state["table"]["header"] == ["A", "B", "Colonne 3", "D"]


class TestSheetSelection:
    """Tests for switching sheet tabs."""

    @pytest.fixture
    async def loaded_client(
        self,
        client: httpx.AsyncClient,
        make_xlsx: Callable[[dict[str, Any]], bytes],
    ) -> httpx.AsyncClient:
        content = make_xlsx(
            {
                "Clients": [["Name", "City"], ["Ana", "Lyon"]],
                "Orders": [["Id", "Total"], [1, 9.5], [2, 12]],
            }
        )
        await _upload(client, "shop.xlsx", content, XLSX_TYPE)
        return client

    async def test_first_sheet_active_and_tabs_rendered(
        self, loaded_client: httpx.AsyncClient
    ) -> None:
        state = await _state(loaded_client)
        assert state["sheets"] == ["Clients", "Orders"]
        assert state["active_sheet"] == "Clients"

        body = (await loaded_client.get("/")).text
        assert 'class="tabs"' in body
        assert 'value="Orders"' in body

    async def test_select_sheet(self, loaded_client: httpx.AsyncClient) -> None:
        response = await loaded_client.post("/sheets/select", data={"sheet": "Orders"})
        assert response.status_code == status.HTTP_303_SEE_OTHER

        state = await _state(loaded_client)
        assert state["active_sheet"] == "Orders"
        assert state["table"]["rows"] == [["1", "9.5"], ["2", "12"]]
        assert state["sheets"] == ["Clients", "Orders"]

    async def test_select_unknown_sheet_keeps_view(
        self, loaded_client: httpx.AsyncClient
    ) -> None:
        response = await loaded_client.post("/sheets/select", data={"sheet": "Nope"})

        assert response.status_code == status.HTTP_303_SEE_OTHER
        assert response.headers["location"] == "/"

        state = await _state(loaded_client)
        assert state["active_sheet"] == "Clients"
        assert state["error"] == ""

    async def test_select_without_workbook(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/sheets/select", data={"sheet": "Sheet1"})

        assert response.status_code == status.HTTP_303_SEE_OTHER
        assert not (await _state(client))["loaded"]

    async def test_select_after_session_state_is_gone(
        self, client: httpx.AsyncClient, people_csv: bytes
    ) -> None:
        await _upload(client, "a.csv", people_csv, "text/csv")
        client.app.state.store.clear_all()  # type: ignore[attr-defined]

        response = await client.post("/sheets/select", data={"sheet": "Sheet1"})
        assert response.status_code == status.HTTP_303_SEE_OTHER

        page = await client.get("/")
        assert page.status_code == status.HTTP_200_OK
        assert 'id="dropzone"' in page.text


class TestClearAndDrag:
    async def test_clear_resets_view(
        self, client: httpx.AsyncClient, people_csv: bytes
    ) -> None:
        await _upload(client, "people.csv", people_csv, "text/csv")
        response = await client.post("/clear")
        assert response.status_code == status.HTTP_303_SEE_OTHER

        state = await _state(client)
        assert state == {
            "file_name": "",
            "sheets": [],
            "active_sheet": "",
            "is_dragging": False,
            "error": "",
            "loaded": False,
            "table": None,
        }

    async def test_drag_state(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/drag", data={"active": "true"})
        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert (await _state(client))["is_dragging"] is True
        assert 'class="dropzone dragging"' in (await client.get("/")).text

        await client.post("/drag", data={"active": "false"})
        assert (await _state(client))["is_dragging"] is False

    async def test_drop_reports_drag_end(self, client: httpx.AsyncClient) -> None:
        body = (await client.get("/")).text
        drop_handler = body.split('addEventListener("drop"', 1)[1]
        drop_handler = drop_handler.split("});", 1)[0]

        assert "setDragging(false);" in drop_handler
        assert "dragging = false" not in drop_handler


class TestSessions:
    async def test_sessions_are_isolated(
        self, client: httpx.AsyncClient, people_csv: bytes
    ) -> None:
        await _upload(client, "people.csv", people_csv, "text/csv")

        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=client.app),  # type: ignore[attr-defined]
            base_url="http://test",
        ) as other:
            state = await _state(other)

        assert state["loaded"] is False
        assert (await _state(client))["loaded"] is True


class TestWorkbooksEndpoint:
    """Tests for the stateless parsing endpoint."""

    async def test_parse_csv(
        self, client: httpx.AsyncClient, people_csv: bytes
    ) -> None:
        response = await client.post(
            "/api/workbooks", files={"file": ("people.csv", people_csv, "text/csv")}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "file_name": "people.csv",
            "sheet_names": ["Sheet1"],
            "sheets": {"Sheet1": [["Name", "Age"], ["Ana", "30"], ["Bo", "25"]]},
        }
        assert (await _state(client))["loaded"] is False

    async def test_parse_xlsx_keeps_numbers(
        self,
        client: httpx.AsyncClient,
        make_xlsx: Callable[[dict[str, Any]], bytes],
    ) -> None:
        content = make_xlsx({"Data": [["Id", "Total"], [1, 9.5]]})
        response = await client.post(
            "/api/workbooks", files={"file": ("data.xlsx", content, XLSX_TYPE)}
        )

        assert response.json()["sheets"]["Data"] == [["Id", "Total"], [1, 9.5]]

    async def test_unsupported_format(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/workbooks", files={"file": ("report.pdf", b"%PDF", "application/pdf")}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["error_code"] == "E1003"
        assert data["details"]["extension"] == ".pdf"

    async def test_unreadable_workbook(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/workbooks", files={"file": ("broken.xlsx", b"nope", XLSX_TYPE)}
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "E2001"
