import logging
import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from docshare.core.logging_utils import mask_headers, mask_url_path, sanitize_log_message

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Log every request/response pair under a request ID.

    The ID is echoed back as X-Request-ID. Access tokens in public link
    paths never reach the logs.
    """

    SKIP_PATHS = ("/health", "/docs", "/redoc", "/openapi.json")

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path == "/" or path.startswith(self.SKIP_PATHS):
            return await call_next(request)

        if not hasattr(request.state, "request_id"):
            request.state.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request_id = request.state.request_id

        method = request.method
        logged_path = mask_url_path(path)
        client_ip = request.client.host if request.client else None
        start_time = time.time()

        logger.debug(
            sanitize_log_message(
                f"Request: {method} {logged_path}",
                RequestID=request_id,
                IP=client_ip,
                UserAgent=request.headers.get("user-agent"),
                QueryParams=dict(request.query_params),
                Headers=mask_headers(dict(request.headers))
            )
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                sanitize_log_message(
                    f"Exception in request: {method} {logged_path}",
                    RequestID=request_id,
                    ProcessTime=f"{time.time() - start_time:.3f}s",
                    IP=client_ip,
                    Error=str(e)
                )
            )
            raise

        response.headers["X-Request-ID"] = request_id
        logger.info(
            sanitize_log_message(
                f"Response: {method} {logged_path}",
                RequestID=request_id,
                Status=response.status_code,
                ProcessTime=f"{time.time() - start_time:.3f}s",
                IP=client_ip
            )
        )
        return response
