from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
import logging

from app.core.config import CHATBOT_HELLO
from app.core.errors import InvalidDataError
from app.schemas.api import ContextRequest, PromptRequest
from app.services.assistant.openai_connector import OpenAIConnector

logger = logging.getLogger("services")
router = APIRouter(prefix="/chatbot", default_response_class=PlainTextResponse)


class SingletonConnector:
    def __init__(self) -> None:
        self.connector: OpenAIConnector | None = None  # built on first use


connector_holder = SingletonConnector()


def get_connector() -> OpenAIConnector:
    """FastAPI dependency to provide the shared connector."""
    # Not built yet: build it now (raises ConfigurationError if settings are missing)
    if connector_holder.connector is None:
        connector_holder.connector = OpenAIConnector(logger)
    return connector_holder.connector


def _require_prompt(req: PromptRequest) -> str:
    if req.prompt is None:
        raise InvalidDataError("Prompt property is missing.")
    if not req.prompt:
        raise InvalidDataError("Prompt property is empty.")
    return req.prompt


@router.get("")
def hello():
    return CHATBOT_HELLO


@router.post("")
def prompt(req: PromptRequest, connector: OpenAIConnector = Depends(get_connector)):
    return connector.prompt(_require_prompt(req))


@router.get("/thread")
def create_thread(connector: OpenAIConnector = Depends(get_connector)):
    return connector.create_thread()


@router.post("/thread/context/{thread_id}")
def add_context_to_thread(thread_id: str, req: ContextRequest, connector: OpenAIConnector = Depends(get_connector)):
    return connector.add_context_to_thread(req.date, req.time, thread_id)


@router.post("/thread/{thread_id}")
def prompt_thread(thread_id: str, req: PromptRequest, connector: OpenAIConnector = Depends(get_connector)):
    return connector.prompt_thread(_require_prompt(req), thread_id)


@router.get("/thread/{thread_id}")
def get_thread_response(thread_id: str, connector: OpenAIConnector = Depends(get_connector)):
    return connector.get_thread_response(thread_id)
