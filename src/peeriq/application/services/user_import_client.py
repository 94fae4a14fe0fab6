"""Client-side orchestration of one bulk user import attempt."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum

from peeriq.application.ports.import_service_gateway_port import (
    ImportServiceError,
    ImportServiceGatewayPort,
    SessionProviderPort,
)
from peeriq.domain.user_import.csv_reader import CsvParseError, decode_csv_bytes, parse_csv_text
from peeriq.domain.user_import.row_validator import (
    REQUIRED_COLUMNS,
    ImportUserRecord,
    RowValidationError,
    validate_import_row,
)

logger = logging.getLogger(__name__)

MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024
PREVIEW_ROW_LIMIT = 5
DEFAULT_SIMULATED_DELAY_SECONDS = 2.0
_CSV_CONTENT_TYPE = "text/csv"


class BackendMode(StrEnum):
    """Whether imports reach the real service or are simulated for demos."""

    LIVE = "live"
    SIMULATED = "simulated"


class UserImportError(RuntimeError):
    """Base error for a terminal import failure shown verbatim to the user."""


class UnsupportedFileTypeError(UserImportError):
    """Raised when the selected file is not CSV-like."""

    def __init__(self) -> None:
        super().__init__("Please select a CSV file")


class FileTooLargeError(UserImportError):
    """Raised when the selected file exceeds the upload size limit."""

    def __init__(self) -> None:
        super().__init__("File is larger than the 10MB limit")


class CsvFileParseError(UserImportError):
    """Raised when the file cannot be parsed as CSV."""

    def __init__(self, *, detail: str) -> None:
        super().__init__(f"CSV parsing error: {detail}")


class EmptyCsvError(UserImportError):
    """Raised when the file has no data rows."""

    def __init__(self) -> None:
        super().__init__("No data found in CSV file")


class MissingColumnsError(UserImportError):
    """Raised when the header lacks required columns."""

    def __init__(self, *, missing: tuple[str, ...]) -> None:
        super().__init__(f"Missing required columns: {', '.join(missing)}")
        self.missing = missing


class RowValidationFailedError(UserImportError):
    """Raised for the first invalid row, aborting the whole batch."""

    def __init__(self, *, error: RowValidationError) -> None:
        super().__init__(str(error))
        self.error = error


class NoActiveSessionError(UserImportError):
    """Raised when a live import is attempted without a signed-in session."""

    def __init__(self) -> None:
        super().__init__("No active session. Please log in again.")


class ImportRequestFailedError(UserImportError):
    """Raised when the import service request fails as a whole."""


class ImportAlreadyRunningError(UserImportError):
    """Raised when a second import starts while one is still in flight."""

    def __init__(self) -> None:
        super().__init__("An import is already in progress")


@dataclass(frozen=True)
class ImportOutcome:
    """Aggregate result of one import attempt."""

    total: int
    successful: int
    failed: int
    errors: tuple[str, ...]
    sample_preview: tuple[Mapping[str, str], ...]
    simulated: bool = False


class UserImportClient:
    """Parse, validate and submit one CSV file to the import service."""

    def __init__(
        self,
        *,
        backend_mode: BackendMode,
        gateway: ImportServiceGatewayPort | None = None,
        session_provider: SessionProviderPort | None = None,
        simulated_delay_seconds: float = DEFAULT_SIMULATED_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if backend_mode is BackendMode.LIVE and (gateway is None or session_provider is None):
            raise ValueError("live backend mode requires a gateway and a session provider")
        self._backend_mode = backend_mode
        self._gateway = gateway
        self._session_provider = session_provider
        self._simulated_delay_seconds = simulated_delay_seconds
        self._sleep = sleep
        self._in_flight = asyncio.Lock()

    @property
    def backend_mode(self) -> BackendMode:
        return self._backend_mode

    async def import_file(
        self,
        *,
        filename: str,
        content: bytes,
        content_type: str | None = None,
    ) -> ImportOutcome:
        """Run one import attempt; terminal failures raise `UserImportError`."""

        if self._in_flight.locked():
            raise ImportAlreadyRunningError()
        async with self._in_flight:
            return await self._run(filename=filename, content=content, content_type=content_type)

    async def _run(
        self,
        *,
        filename: str,
        content: bytes,
        content_type: str | None,
    ) -> ImportOutcome:
        if _media_type(content_type) != _CSV_CONTENT_TYPE and not filename.lower().endswith(".csv"):
            raise UnsupportedFileTypeError()
        if len(content) > MAX_FILE_SIZE_BYTES:
            raise FileTooLargeError()

        try:
            parsed = parse_csv_text(decode_csv_bytes(content))
        except CsvParseError as exc:
            raise CsvFileParseError(detail=str(exc)) from exc
        if not parsed.rows:
            raise EmptyCsvError()

        missing = tuple(column for column in REQUIRED_COLUMNS if column not in parsed.fieldnames)
        if missing:
            raise MissingColumnsError(missing=missing)

        records: list[ImportUserRecord] = []
        for row_number, row in enumerate(parsed.rows, start=1):
            validated = validate_import_row(row, row_number)
            if isinstance(validated, RowValidationError):
                logger.info(
                    "user_import_client_row_invalid filename=%s row=%s error=%s",
                    filename,
                    validated.row_number,
                    validated.message,
                )
                raise RowValidationFailedError(error=validated)
            records.append(validated)

        total = len(parsed.rows)
        preview = parsed.rows[:PREVIEW_ROW_LIMIT]

        if self._backend_mode is BackendMode.SIMULATED:
            logger.info("user_import_client_simulated filename=%s total=%s", filename, total)
            await self._sleep(self._simulated_delay_seconds)
            return ImportOutcome(
                total=total,
                successful=total,
                failed=0,
                errors=(),
                sample_preview=preview,
                simulated=True,
            )

        assert self._gateway is not None
        assert self._session_provider is not None
        access_token = self._session_provider.get_current_session()
        if not access_token:
            raise NoActiveSessionError()

        logger.info("user_import_client_submitting filename=%s total=%s", filename, total)
        try:
            reply = await self._gateway.submit_users(access_token=access_token, users=records)
        except ImportServiceError as exc:
            logger.warning("user_import_client_request_failed filename=%s error=%s", filename, exc)
            raise ImportRequestFailedError(str(exc)) from exc

        logger.info(
            "user_import_client_completed filename=%s total=%s successful=%s failed=%s",
            filename,
            total,
            reply.successful,
            reply.failed,
        )
        return ImportOutcome(
            total=total,
            successful=reply.successful,
            failed=reply.failed,
            errors=reply.errors,
            sample_preview=preview,
        )


def _media_type(content_type: str | None) -> str | None:
    if content_type is None:
        return None
    return content_type.split(";", 1)[0].strip().lower()
