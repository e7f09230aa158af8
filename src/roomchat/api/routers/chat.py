from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from ...domain.chat_models import ChatProxyRequest, ErrorResponse
from ...services.completion_gateway import CompletionGateway
from ...services.errors import ConfigurationError, GatewayTimeout, UpstreamError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


_gateway: CompletionGateway | None = None


def get_gateway() -> CompletionGateway:
    global _gateway
    if _gateway is None:
        _gateway = CompletionGateway()
    return _gateway


def _error(status_code: int, message: str, details: str | None = None) -> JSONResponse:
    body = ErrorResponse(error=message, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@router.options("/chat")
def chat_preflight() -> Response:
    return Response(status_code=status.HTTP_200_OK)


@router.post("/chat")
def relay_chat(req: ChatProxyRequest, gateway: CompletionGateway = Depends(get_gateway)) -> Response:
    try:
        data = gateway.relay(req.messages)
    except ConfigurationError as exc:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
    except UpstreamError as exc:
        return _error(exc.status, f"Nvidia upstream error: {exc.status} {exc.detail}")
    except GatewayTimeout as exc:
        return _error(status.HTTP_504_GATEWAY_TIMEOUT, "Timed out waiting for Nvidia", exc.detail)
    except Exception as exc:
        logger.exception("chat_relay_failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error fetching from Nvidia", str(exc))
    return JSONResponse(status_code=status.HTTP_200_OK, content=data)


@router.api_route("/chat", methods=["GET", "HEAD", "PUT", "PATCH", "DELETE"], include_in_schema=False)
def chat_method_not_allowed() -> Response:
    return _error(status.HTTP_405_METHOD_NOT_ALLOWED, "Method not allowed. Use POST.")
