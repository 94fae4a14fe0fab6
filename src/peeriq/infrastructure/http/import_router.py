"""FastAPI router for the authenticated bulk user import endpoint."""

from __future__ import annotations

import json
import logging
from typing import Annotated

from fastapi import APIRouter, Header, Request, Response
from fastapi.responses import JSONResponse

from peeriq.application.dto.import_models import (
    ImportErrorResponse,
    ImportUsersResponse,
)
from peeriq.application.services.access_guard_service import AuthorizationError
from peeriq.application.services.user_import_service import (
    InvalidImportBatchError,
    UserImportService,
)
from peeriq.domain.user_import.template import (
    TEMPLATE_FILENAME,
    TEMPLATE_MEDIA_TYPE,
    render_template_bytes,
)
from peeriq.infrastructure.http.auth_guard import InvalidAuthTokenError, MissingAuthTokenError

IMPORT_USERS_PATH = "/functions/v1/import-users"
TEMPLATE_PATH = "/import-users/template.csv"
logger = logging.getLogger(__name__)


def build_import_router(*, import_service: UserImportService) -> APIRouter:
    """Build router exposing the import endpoint and the CSV template download."""

    router = APIRouter(tags=["user-import"])

    @router.post(
        IMPORT_USERS_PATH,
        response_model=ImportUsersResponse,
        responses={
            400: {"model": ImportErrorResponse},
            401: {"model": ImportErrorResponse},
            403: {"model": ImportErrorResponse},
        },
    )
    async def import_users(
        request: Request,
        authorization: Annotated[str | None, Header()] = None,
    ) -> ImportUsersResponse | JSONResponse:
        payload = _decode_json_body(await request.body())
        try:
            result = await import_service.import_users(
                authorization_header=authorization,
                payload=payload,
            )
        except (MissingAuthTokenError, InvalidAuthTokenError) as exc:
            logger.info("user_import_request_rejected reason=unauthenticated")
            return _error_response(status_code=401, message=str(exc))
        except AuthorizationError as exc:
            logger.info("user_import_request_rejected reason=forbidden")
            return _error_response(status_code=403, message=str(exc))
        except InvalidImportBatchError as exc:
            logger.info("user_import_request_rejected reason=invalid_body")
            return _error_response(status_code=400, message=str(exc))

        return ImportUsersResponse(
            successful=result.successful,
            failed=result.failed,
            errors=list(result.errors),
        )

    @router.get(TEMPLATE_PATH)
    async def download_template() -> Response:
        return Response(
            content=render_template_bytes(),
            media_type=TEMPLATE_MEDIA_TYPE,
            headers={"Content-Disposition": f"attachment; filename={TEMPLATE_FILENAME}"},
        )

    return router


def _error_response(*, status_code: int, message: str) -> JSONResponse:
    body = ImportErrorResponse.from_message(message)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _decode_json_body(raw_body: bytes) -> object:
    # Undecodable bodies are rejected by the service after the caller is authorized.
    try:
        return json.loads(raw_body)
    except ValueError:
        return None
