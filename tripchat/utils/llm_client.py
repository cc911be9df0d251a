import os
import logging
import google.generativeai as genai
from typing import List, Optional
from tenacity import retry, stop_after_attempt, wait_exponential

from tripchat.models.chat_schemas import ConversationEntry, Role

logger = logging.getLogger("GeminiClient")

GEMINI_ROLES = {Role.USER: "user", Role.ASSISTANT: "model"}


class GeminiClient:
    """
    Chat completions through Google Gemini (google-generativeai SDK).
    """

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        self.api_key = api_key or os.getenv("GEMINI_API_KEY")
        self.model_name = model_name or os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

        if not self.api_key:
            logger.error("❌ GEMINI_API_KEY not found in environment variables")
            self.enabled = False
        else:
            genai.configure(api_key=self.api_key)
            self.enabled = True
            logger.info(f"✨ GeminiClient initialized with model: {self.model_name}")

    @staticmethod
    def to_contents(history: List[ConversationEntry]) -> List[dict]:
        """History entries as Gemini content dicts"""
        return [
            {"role": GEMINI_ROLES[entry.role], "parts": [entry.content]}
            for entry in history
        ]

    async def chat(
        self,
        system_instruction: str,
        history: List[ConversationEntry],
        temperature: float = 0.7,
        max_output_tokens: int = 1024
    ) -> str:
        """
        One completion over the conversation history.
        Raises on a disabled client, API failure or an empty reply.
        """
        if not self.enabled:
            logger.warning("Gemini is disabled (missing API key)")
            raise RuntimeError("Gemini API key missing")

        return await self._generate(system_instruction, history, temperature, max_output_tokens)

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        reraise=True
    )
    async def _generate(
        self,
        system_instruction: str,
        history: List[ConversationEntry],
        temperature: float,
        max_output_tokens: int
    ) -> str:
        """Generate with retry logic"""
        model = genai.GenerativeModel(self.model_name, system_instruction=system_instruction)
        config = genai.types.GenerationConfig(
            candidate_count=1,
            temperature=temperature,
            max_output_tokens=max_output_tokens
        )

        response = await model.generate_content_async(
            self.to_contents(history),
            generation_config=config
        )

        text = (response.text or "").strip()
        if not text:
            raise ValueError("Gemini returned an empty reply")

        return text


def get_llm_client() -> GeminiClient:
    return GeminiClient()
