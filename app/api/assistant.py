"""AI assistant API endpoints."""

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from app.api.dependencies import AssistantServiceDep
from app.schemas.assistant import ChatRequest
from app.services.ai_assistant import AssistantError

router = APIRouter()


@router.post("/stream", summary="Stream assistant reply")
async def stream_reply(
    request: ChatRequest,
    assistant_service: AssistantServiceDep,
) -> StreamingResponse:
    """Stream the assistant's reply as server-sent events ending with [DONE]."""
    try:
        stream = await assistant_service.open_stream(request)
    except AssistantError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return StreamingResponse(
        stream,
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )
