from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from http.client import RemoteDisconnected

import pytest

from peeriq.application.ports.import_service_gateway_port import (
    ImportServiceError,
    ImportServiceReply,
)
from peeriq.application.services.user_import_client import (
    MAX_FILE_SIZE_BYTES,
    BackendMode,
    CsvFileParseError,
    EmptyCsvError,
    FileTooLargeError,
    ImportAlreadyRunningError,
    ImportRequestFailedError,
    MissingColumnsError,
    NoActiveSessionError,
    RowValidationFailedError,
    UnsupportedFileTypeError,
    UserImportClient,
)
from peeriq.domain.user_import.row_validator import ImportUserRecord
from peeriq.infrastructure.http import import_service_client
from peeriq.infrastructure.http.import_service_client import HttpImportServiceGateway

HEADER = "name,email,department,role,expertise\n"


@dataclass
class FakeGateway:
    reply: ImportServiceReply | None = None
    error: ImportServiceError | None = None
    calls: list[tuple[str, tuple[ImportUserRecord, ...]]] = field(default_factory=list)
    release: asyncio.Event | None = None

    async def submit_users(
        self,
        *,
        access_token: str,
        users: Sequence[ImportUserRecord],
    ) -> ImportServiceReply:
        self.calls.append((access_token, tuple(users)))
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        assert self.reply is not None
        return self.reply


@dataclass
class FakeSessionProvider:
    token: str | None = "session-token"

    def get_current_session(self) -> str | None:
        return self.token


@dataclass
class RecordingSleep:
    delays: list[float] = field(default_factory=list)

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _csv(row_count: int) -> bytes:
    rows = "".join(
        f'User {index},user{index}@company.com,Ops,employee,"SQL, Excel"\n'
        for index in range(1, row_count + 1)
    )
    return (HEADER + rows).encode("utf-8")


def _live_client(
    gateway: FakeGateway,
    session: FakeSessionProvider | None = None,
) -> UserImportClient:
    return UserImportClient(
        backend_mode=BackendMode.LIVE,
        gateway=gateway,
        session_provider=session or FakeSessionProvider(),
    )


@pytest.mark.asyncio
async def test_live_import_adopts_service_counts_verbatim() -> None:
    gateway = FakeGateway(
        reply=ImportServiceReply(successful=5, failed=2, errors=("a@x.io: boom", "b@x.io: boom"))
    )
    client = _live_client(gateway)

    outcome = await client.import_file(filename="users.csv", content=_csv(6))

    assert outcome.total == 6
    assert (outcome.successful, outcome.failed) == (5, 2)
    assert outcome.errors == ("a@x.io: boom", "b@x.io: boom")
    assert outcome.simulated is False
    assert len(outcome.sample_preview) == 5
    assert outcome.sample_preview[0]["email"] == "user1@company.com"

    access_token, users = gateway.calls[0]
    assert access_token == "session-token"
    assert len(users) == 6
    assert users[0].expertise == ("SQL", "Excel")


@pytest.mark.asyncio
async def test_content_type_allows_files_without_csv_suffix() -> None:
    gateway = FakeGateway(reply=ImportServiceReply(successful=1, failed=0, errors=()))
    client = _live_client(gateway)

    outcome = await client.import_file(filename="export", content=_csv(1), content_type="text/csv")

    assert outcome.successful == 1


@pytest.mark.asyncio
async def test_content_type_parameters_are_ignored() -> None:
    gateway = FakeGateway(reply=ImportServiceReply(successful=1, failed=0, errors=()))
    client = _live_client(gateway)

    outcome = await client.import_file(
        filename="export",
        content=_csv(1),
        content_type="Text/CSV; charset=utf-8",
    )

    assert outcome.successful == 1


@pytest.mark.asyncio
async def test_non_csv_file_is_rejected() -> None:
    client = _live_client(FakeGateway())

    with pytest.raises(UnsupportedFileTypeError, match="Please select a CSV file"):
        await client.import_file(filename="users.xlsx", content=_csv(1))


@pytest.mark.asyncio
async def test_oversized_file_is_rejected_before_parsing() -> None:
    client = _live_client(FakeGateway())

    with pytest.raises(FileTooLargeError):
        await client.import_file(filename="users.csv", content=b"x" * (MAX_FILE_SIZE_BYTES + 1))


@pytest.mark.asyncio
async def test_parse_error_is_prefixed() -> None:
    client = _live_client(FakeGateway())
    content = (HEADER + "Ann,ann@example.org,Ops,admin,SQL,extra\n").encode("utf-8")

    with pytest.raises(CsvFileParseError) as exc_info:
        await client.import_file(filename="users.csv", content=content)

    assert str(exc_info.value).startswith("CSV parsing error: Too many fields")


@pytest.mark.asyncio
async def test_header_only_file_is_empty() -> None:
    client = _live_client(FakeGateway())

    with pytest.raises(EmptyCsvError, match="No data found in CSV file"):
        await client.import_file(filename="users.csv", content=HEADER.encode("utf-8"))


@pytest.mark.asyncio
async def test_missing_columns_are_listed_in_order() -> None:
    client = _live_client(FakeGateway())

    with pytest.raises(MissingColumnsError) as exc_info:
        await client.import_file(filename="users.csv", content=b"name,email\nAnn,ann@x.io\n")

    assert str(exc_info.value) == "Missing required columns: department, role"
    assert exc_info.value.missing == ("department", "role")


@pytest.mark.asyncio
async def test_missing_role_column_stops_before_request() -> None:
    gateway = FakeGateway(reply=ImportServiceReply(successful=0, failed=0, errors=()))
    client = _live_client(gateway)
    content = b"name,email,department\nAnn,ann@example.org,Ops\n"

    with pytest.raises(MissingColumnsError, match="^Missing required columns: role$"):
        await client.import_file(filename="users.csv", content=content)

    assert gateway.calls == []


@pytest.mark.asyncio
async def test_first_invalid_row_aborts_whole_batch() -> None:
    gateway = FakeGateway(reply=ImportServiceReply(successful=0, failed=0, errors=()))
    client = _live_client(gateway)
    content = (
        HEADER
        + "Ann,ann@example.org,Ops,admin,\n"
        + "Bob,bob-at-example,Ops,admin,\n"
        + "Cy,cy@example.org,Ops,boss,\n"
    ).encode("utf-8")

    with pytest.raises(RowValidationFailedError) as exc_info:
        await client.import_file(filename="users.csv", content=content)

    assert str(exc_info.value) == "Row 2: Invalid email format: bob-at-example"
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_missing_session_stops_before_request() -> None:
    gateway = FakeGateway()
    client = _live_client(gateway, FakeSessionProvider(token=None))

    with pytest.raises(NoActiveSessionError, match="No active session. Please log in again."):
        await client.import_file(filename="users.csv", content=_csv(2))

    assert gateway.calls == []


@pytest.mark.asyncio
async def test_service_failure_surfaces_its_message() -> None:
    gateway = FakeGateway(error=ImportServiceError("Admin access required for user import"))
    client = _live_client(gateway)

    with pytest.raises(ImportRequestFailedError, match="Admin access required for user import"):
        await client.import_file(filename="users.csv", content=_csv(1))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        RemoteDisconnected("Remote end closed connection without response"),
        ConnectionResetError(104, "Connection reset by peer"),
    ],
)
async def test_dropped_connection_is_a_terminal_request_failure(
    monkeypatch: pytest.MonkeyPatch,
    error: Exception,
) -> None:
    def dropping_urlopen(*args: object, **kwargs: object) -> object:
        raise error

    monkeypatch.setattr(import_service_client, "urlopen", dropping_urlopen)
    client = UserImportClient(
        backend_mode=BackendMode.LIVE,
        gateway=HttpImportServiceGateway(base_url="http://127.0.0.1:9"),
        session_provider=FakeSessionProvider(),
    )

    with pytest.raises(ImportRequestFailedError, match="Could not reach import service"):
        await client.import_file(filename="users.csv", content=_csv(2))


@pytest.mark.asyncio
async def test_simulated_mode_reports_every_row_successful() -> None:
    sleep = RecordingSleep()
    client = UserImportClient(
        backend_mode=BackendMode.SIMULATED,
        simulated_delay_seconds=1.5,
        sleep=sleep,
    )

    outcome = await client.import_file(filename="users.csv", content=_csv(3))

    assert outcome.simulated is True
    assert (outcome.total, outcome.successful, outcome.failed) == (3, 3, 0)
    assert outcome.errors == ()
    assert sleep.delays == [1.5]


@pytest.mark.asyncio
async def test_simulated_mode_still_validates_rows() -> None:
    client = UserImportClient(backend_mode=BackendMode.SIMULATED, sleep=RecordingSleep())
    content = (HEADER + "Ann,ann@example.org,,admin,\n").encode("utf-8")

    with pytest.raises(RowValidationFailedError, match="Row 1: Department is required"):
        await client.import_file(filename="users.csv", content=content)


@pytest.mark.asyncio
async def test_second_import_is_refused_while_first_is_running() -> None:
    release = asyncio.Event()
    gateway = FakeGateway(
        reply=ImportServiceReply(successful=1, failed=0, errors=()),
        release=release,
    )
    client = _live_client(gateway)

    first = asyncio.create_task(client.import_file(filename="users.csv", content=_csv(1)))
    while not gateway.calls:
        await asyncio.sleep(0)

    with pytest.raises(ImportAlreadyRunningError):
        await client.import_file(filename="users.csv", content=_csv(1))

    release.set()
    outcome = await first
    assert outcome.successful == 1


def test_live_mode_requires_gateway_and_session() -> None:
    with pytest.raises(ValueError, match="live backend mode"):
        UserImportClient(backend_mode=BackendMode.LIVE)
