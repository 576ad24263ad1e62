"""Health assistant router."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.dependencies import CurrentIdentity, get_assistant, get_current_identity
from app.schemas.ai import AssistantAnswer, HealthAssistantRequest
from common.exceptions import BadRequest

router = APIRouter(prefix="/api/ai", tags=["AI"])


@router.post("/health-assistant", response_model=AssistantAnswer)
async def health_assistant(data: HealthAssistantRequest, assistant=Depends(get_assistant)):
    """Answer a general health question. Public."""
    if not data.query or not data.query.strip():
        raise BadRequest("Query is required")
    return AssistantAnswer(answer=await assistant.answer_health_question(data.query))


@router.get("/medication-info", response_model=AssistantAnswer)
async def medication_info(
    _: Annotated[CurrentIdentity, Depends(get_current_identity)],
    name: str = Query(..., min_length=1),
    assistant=Depends(get_assistant),
):
    return AssistantAnswer(answer=await assistant.medication_info(name))
