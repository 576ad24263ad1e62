"""Health assistant schemas."""
from pydantic import BaseModel
from typing import Optional


class HealthAssistantRequest(BaseModel):
    query: Optional[str] = None


class AssistantAnswer(BaseModel):
    success: bool = True
    answer: str
