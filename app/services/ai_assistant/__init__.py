"""Chat assistant for the booking site."""

from app.services.ai_assistant.local_responder import generate_local_response
from app.services.ai_assistant.memory import AssistantMemory, load_memory_files
from app.services.ai_assistant.service import AssistantError, AssistantService

__all__ = [
    "AssistantError",
    "AssistantMemory",
    "AssistantService",
    "generate_local_response",
    "load_memory_files",
]
