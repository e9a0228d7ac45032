"""
Text-generation client.

Wraps the OpenAI, Groq and Anthropic SDKs behind one interface. Plain text
comes back from generate_text; generate_structured asks the provider for
schema-shaped JSON and validates it with pydantic, falling back to pulling
the first JSON block out of the text only when validation fails.
"""

import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from utils.exceptions import CollaboratorError, MalformedResponseError, TechLearnError, ConfigurationError
from utils.model_config import ModelConfig, ModelProvider
from utils.settings import Settings

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

DEFAULT_SYSTEM_PROMPT = "You are an expert educational content creator for a computer science e-learning platform."
JSON_INSTRUCTION = (
    " You MUST respond with ONLY a valid JSON object. No markdown code blocks, no extra text."
    " Start your response with { and end with }."
)


def extract_json(text: str) -> Dict[str, Any]:
    """Extract JSON from text response"""
    if not text:
        raise MalformedResponseError("Empty response where JSON was expected")

    try:
        # Try direct parsing first
        parsed = json.loads(text)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    # Look for code blocks, then the first brace-delimited block
    patterns = [
        r'```json\s*(.*?)\s*```',
        r'```\s*(.*?)\s*```',
        r'\{.*\}'
    ]

    for pattern in patterns:
        matches = re.findall(pattern, text, re.DOTALL)
        for match in matches:
            try:
                parsed = json.loads(match)
            except (json.JSONDecodeError, ValueError):
                continue
            if isinstance(parsed, dict):
                return parsed

    logger.error(f"Could not extract JSON from: {text[:500]}")
    raise MalformedResponseError("Failed to parse JSON response")


def _is_rate_limit(error: Exception) -> bool:
    if getattr(error, "status_code", None) == 429:
        return True
    error_str = str(error).lower()
    return "429" in error_str or "rate_limit" in error_str or "rate limit" in error_str


def unwrap_text(response: Any) -> str:
    """Pull the generated text out of a chat-completions or messages response"""
    choices = getattr(response, "choices", None)
    if choices:
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None) if message is not None else None
        if isinstance(content, str) and content.strip():
            return content

    blocks = getattr(response, "content", None)
    if isinstance(blocks, list):
        # Anthropic returns a list of blocks; keep only the text ones
        text = "".join(getattr(block, "text", "") or "" for block in blocks)
        if text.strip():
            return text

    raise MalformedResponseError("Text-generation response contained no text")


class TextGenerationClient:
    """Single entry point for every prompt the platform sends"""

    def __init__(self, settings: Settings, model_key: Optional[str] = None, sdk_client: Any = None):
        self.model_key = model_key or settings.text_generation_model
        self.model_config = ModelConfig.get_config(self.model_key)
        self.provider = ModelProvider(self.model_config["provider"])
        self.api_key = settings.provider_api_key(self.provider)
        self.max_retries = settings.generation_max_retries
        self.timeout = settings.http_timeout_seconds
        self._client = sdk_client

    def _get_client(self):
        if self._client is not None:
            return self._client
        if not self.api_key:
            raise ConfigurationError(
                f"No API key configured for {self.provider.value}",
                missing=[ModelConfig.api_key_env(self.model_key)],
            )

        if self.provider == ModelProvider.OPENAI:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout)
        elif self.provider == ModelProvider.GROQ:
            from groq import AsyncGroq
            self._client = AsyncGroq(api_key=self.api_key, timeout=self.timeout)
        else:
            from anthropic import AsyncAnthropic
            self._client = AsyncAnthropic(api_key=self.api_key, timeout=self.timeout)
        return self._client

    async def _complete(
        self,
        messages: List[Dict[str, str]],
        system_prompt: str,
        temperature: float,
        max_tokens: int,
        response_format: Optional[Dict[str, Any]] = None,
    ) -> str:
        client = self._get_client()

        if self.provider == ModelProvider.ANTHROPIC:
            response = await client.messages.create(
                model=self.model_config["model"],
                system=system_prompt,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
            return unwrap_text(response)

        params: Dict[str, Any] = {
            "model": self.model_config["model"],
            "messages": [{"role": "system", "content": system_prompt}, *messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if response_format:
            params["response_format"] = response_format

        response = await client.chat.completions.create(**params)
        return unwrap_text(response)

    async def _complete_with_retry(self, *args, **kwargs) -> str:
        for attempt in range(self.max_retries):
            try:
                return await self._complete(*args, **kwargs)
            except TechLearnError:
                raise
            except Exception as e:
                if _is_rate_limit(e) and attempt < self.max_retries - 1:
                    backoff = 2 ** (attempt + 1)
                    logger.warning(f"{self.provider.value} rate limit (attempt {attempt + 1}/{self.max_retries}). Retrying in {backoff}s...")
                    await asyncio.sleep(backoff)
                    continue
                logger.error(f"{self.provider.value} API error: {e}")
                raise CollaboratorError(
                    f"Text generation failed: {e}",
                    context={"provider": self.provider.value},
                ) from e
        raise CollaboratorError("Text generation failed after retries", context={"provider": self.provider.value})

    async def generate_text(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        history: Optional[List[Dict[str, str]]] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        messages = [
            {"role": m["role"], "content": m["content"]}
            for m in (history or [])
            if m.get("role") in ("user", "assistant") and m.get("content")
        ]
        messages.append({"role": "user", "content": prompt})

        return await self._complete_with_retry(
            messages,
            system_prompt or DEFAULT_SYSTEM_PROMPT,
            self.model_config["temperature"] if temperature is None else temperature,
            max_tokens or self.model_config["max_tokens"],
        )

    def _structured_format(self, schema: Type[BaseModel]) -> Optional[Dict[str, Any]]:
        if self.provider == ModelProvider.ANTHROPIC:
            return None
        if self.model_config.get("supports_json_schema"):
            return {
                "type": "json_schema",
                "json_schema": {"name": schema.__name__, "schema": schema.model_json_schema()},
            }
        return {"type": "json_object"}

    async def generate_structured(
        self,
        prompt: str,
        schema: Type[SchemaT],
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> SchemaT:
        """Generate a response and validate it against `schema`"""
        system = (system_prompt or DEFAULT_SYSTEM_PROMPT) + JSON_INSTRUCTION
        if self.provider != ModelProvider.OPENAI or not self.model_config.get("supports_json_schema"):
            system += f" The JSON must match this schema: {json.dumps(schema.model_json_schema())}"

        messages = [{"role": "user", "content": prompt}]
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries):
            text = await self._complete_with_retry(
                messages,
                system,
                self.model_config["temperature"] if temperature is None else temperature,
                max_tokens or self.model_config["max_tokens"],
                self._structured_format(schema),
            )
            try:
                return schema.model_validate_json(text)
            except PydanticValidationError:
                pass

            try:
                return schema.model_validate(extract_json(text))
            except (MalformedResponseError, PydanticValidationError) as e:
                last_error = e
                if attempt < self.max_retries - 1:
                    backoff = 2 ** (attempt + 1)
                    logger.warning(f"{schema.__name__} validation failed (attempt {attempt + 1}/{self.max_retries}). Retrying in {backoff}s...")
                    await asyncio.sleep(backoff)

        raise MalformedResponseError(
            f"Response did not match {schema.__name__}: {last_error}",
            context={"schema": schema.__name__},
        )

    async def check_connection(self) -> bool:
        """Make a tiny request to confirm the key and model work"""
        text = await self.generate_text("Reply with the single word: ok", max_tokens=5, temperature=0)
        return bool(text.strip())
