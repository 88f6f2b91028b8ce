"""AI assistant schemas."""

from pydantic import Field, model_validator

from app.schemas.common import BaseSchema


class ChatMessage(BaseSchema):
    """One turn of the chat history as the widget sends it."""

    role: str | None = None
    content: str | None = None
    message: str | None = None
    is_user: bool | None = None

    @model_validator(mode="after")
    def _resolve_role(self) -> "ChatMessage":
        if not self.role:
            self.role = "user" if self.is_user else "assistant"
        return self

    @property
    def text(self) -> str:
        return (self.content or self.message or "").strip()


class ChatRequest(BaseSchema):
    """Chat stream request."""

    message: str | None = None
    conversation_history: list[ChatMessage] = Field(default_factory=list)

    def last_assistant_message(self) -> str:
        for turn in reversed(self.conversation_history):
            if turn.role == "assistant":
                return turn.text
        return ""
