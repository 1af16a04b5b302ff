import logging
import sys

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.endpoints import router as api_router
from app.core.config import settings
from app.core.errors import ConnectorError, InvalidDataError, PollTimeout
from app.schemas.api import ErrorMessage

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger("services")

app = FastAPI(title="ChatbotService")
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
app.include_router(api_router, prefix="/api/v1")


def _error(status: int, message: str, response_body: str | None = None) -> JSONResponse:
    payload = ErrorMessage(status=status, message=message, response_body=response_body)
    return JSONResponse(status_code=status, content=payload.model_dump())


@app.exception_handler(InvalidDataError)
async def invalid_data_handler(request: Request, exc: InvalidDataError):
    return _error(400, str(exc))


@app.exception_handler(PollTimeout)
async def poll_timeout_handler(request: Request, exc: PollTimeout):
    logger.warning("%s %s: %s", request.method, request.url.path, exc.message)
    return _error(504, exc.message, exc.response_body)


@app.exception_handler(ConnectorError)
async def connector_error_handler(request: Request, exc: ConnectorError):
    logger.error("%s %s: %s", request.method, request.url.path, exc.message)
    return _error(500, exc.message, exc.response_body)


@app.get("/")
async def root():
    return {"status": "ok"}


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    uvicorn.run(app, host=settings.host, port=settings.default_port)


if __name__ == "__main__":
    run()
