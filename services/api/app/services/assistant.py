"""Gemini-backed health assistant."""

import asyncio
import logging
from typing import Optional

import google.generativeai as genai

from common.exceptions import InternalError, ServiceUnavailable

logger = logging.getLogger(__name__)

HEALTH_ASSISTANT_PROMPT = """You are HealthPal, a medical assistant AI. Answer the following health question:

{query}

Provide a clear, accurate response. Include a disclaimer about consulting healthcare professionals."""

MEDICATION_INFO_PROMPT = """You are HealthPal, a medical assistant AI. Give general information about the medication "{name}":
what it is used for, common dosage forms, common side effects and important interactions.

Do not give personalised dosing advice. Include a disclaimer about consulting a doctor or pharmacist."""


class GeminiAssistant:
    """Single prompt in, text out."""

    def __init__(self, api_key: str = "", model_name: str = "gemini-pro"):
        self.api_key = api_key
        self.model_name = model_name
        self.model: Optional[genai.GenerativeModel] = None

    @property
    def configured(self) -> bool:
        return self.model is not None

    def start(self) -> None:
        if not self.api_key:
            logger.warning("Gemini: GEMINI_API_KEY not set - health assistant disabled")
            return
        genai.configure(api_key=self.api_key)
        self.model = genai.GenerativeModel(model_name=self.model_name)
        logger.info(f"Initialized Gemini assistant with model: {self.model_name}")

    def close(self) -> None:
        self.model = None

    async def generate(self, prompt: str) -> str:
        if self.model is None:
            raise ServiceUnavailable("Health assistant is not configured")
        try:
            # The SDK call is blocking
            response = await asyncio.to_thread(self.model.generate_content, prompt)
            return response.text
        except Exception as e:
            logger.error(f"Gemini generation error: {e}")
            raise InternalError("Error processing health assistant request") from e

    async def answer_health_question(self, query: str) -> str:
        return await self.generate(HEALTH_ASSISTANT_PROMPT.format(query=query))

    async def medication_info(self, name: str) -> str:
        return await self.generate(MEDICATION_INFO_PROMPT.format(name=name))
