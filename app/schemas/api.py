from pydantic import BaseModel, Field


class PromptRequest(BaseModel):
    prompt: str | None = Field(
        default=None,
        examples=["What is a good first programming language?"],
        description="The message to send to the model or assistant",
    )


class ContextRequest(BaseModel):
    date: str = Field(examples=["2024-04-02"], description="Date the conversation started")
    time: str = Field(examples=["13:45"], description="Time the conversation started")


class ErrorMessage(BaseModel):
    status: int
    message: str
    response_body: str | None = None
