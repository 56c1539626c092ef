"""
Text Generation Service (OpenAI-compatible)

Provides short eco-coaching completions for tips and
recommendations.

SAFETY PRINCIPLE: The provider is optional and unreliable. Every
failure (no key, network error, HTTP error, bad payload) is returned
as an unsuccessful LLMResponse, never raised.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

import requests

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Response from text generation service."""
    content: str
    success: bool
    error: Optional[str] = None
    model: Optional[str] = None


class TextGenerationService:
    """
    Chat-completions client used for optional enrichment.

    Features:
    - Eco-coach system prompts
    - Bounded token budget per call
    - Graceful fallback on errors

    Usage:
        service = TextGenerationService()
        response = service.complete("Give me a tip", api_key=key, max_tokens=80)
        if response.success:
            print(response.content)
    """

    SYSTEM_PROMPTS = {
        "eco_coach": (
            "You are an expert environmental coach specializing in carbon footprint "
            "reduction. Provide practical, actionable advice that people can implement "
            "immediately. Be encouraging and specific."
        ),
        "recommendation": (
            "You are a helpful environmental coach. Provide concise, actionable "
            "eco-tips with emojis."
        ),
        "tip_enhancer": (
            "You are an environmental expert. Enhance the given eco-tip with a specific, "
            "actionable insight. Keep it under 150 characters and include an emoji. "
            "Focus on practical impact."
        ),
    }

    # Upper bound for any single call
    MAX_TOKENS_LIMIT = 200

    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the service.

        Args:
            base_url: API base URL (defaults to LLM_BASE_URL env var or the OpenAI API)
            model: Model to use (defaults to LLM_MODEL env var or gpt-3.5-turbo)
            timeout: Request timeout in seconds (defaults to LLM_TIMEOUT env var or 20)
            session: Optional requests session (shared connection pool)
        """
        self.base_url = (base_url or os.getenv("LLM_BASE_URL", "https://api.openai.com/v1")).rstrip("/")
        self.model = model or os.getenv("LLM_MODEL", "gpt-3.5-turbo")
        self.timeout = timeout if timeout is not None else float(os.getenv("LLM_TIMEOUT", "20"))
        self.session = session or requests.Session()
        logger.info(f"[LLM] Provider {self.base_url} (model={self.model})")

    def complete(
        self,
        prompt: str,
        api_key: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 100,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """
        Generate a short completion.

        Args:
            prompt: User message
            api_key: Bearer credential
            system_prompt: SYSTEM_PROMPTS key or custom prompt
            max_tokens: Token budget (clamped to MAX_TOKENS_LIMIT)
            temperature: Sampling temperature

        Returns:
            LLMResponse with content and status
        """
        if not api_key:
            return LLMResponse(content="", success=False, error="No API key configured")

        system = self.SYSTEM_PROMPTS.get(system_prompt, system_prompt) or self.SYSTEM_PROMPTS["eco_coach"]
        budget = max(1, min(int(max_tokens), self.MAX_TOKENS_LIMIT))

        try:
            response = self.session.post(
                f"{self.base_url}/chat/completions",
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {api_key}",
                },
                json={
                    "model": self.model,
                    "messages": [
                        {"role": "system", "content": system},
                        {"role": "user", "content": prompt},
                    ],
                    "max_tokens": budget,
                    "temperature": temperature,
                },
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            logger.warning("[LLM] Request timed out")
            return LLMResponse(content="", success=False, error="Request timed out")
        except requests.exceptions.RequestException as e:
            logger.warning(f"[LLM] Request failed: {e}")
            return LLMResponse(content="", success=False, error=str(e))

        if response.status_code != 200:
            return LLMResponse(
                content="",
                success=False,
                error=f"API error: {response.status_code}",
            )

        try:
            payload = response.json()
            content = payload["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.warning(f"[LLM] Malformed response payload: {e}")
            return LLMResponse(content="", success=False, error="Malformed response")

        if not isinstance(content, str) or not content.strip():
            return LLMResponse(content="", success=False, error="Empty completion")

        return LLMResponse(content=content.strip(), success=True, model=self.model)


# Global singleton instance
_llm_service: Optional[TextGenerationService] = None


def get_llm_service() -> TextGenerationService:
    """Get or create the global text generation service instance."""
    global _llm_service
    if _llm_service is None:
        _llm_service = TextGenerationService()
    return _llm_service
