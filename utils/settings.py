"""
Process configuration for TechLearn.

Values come from the environment (optionally a .env file). Nothing here has a
built-in credential: a missing key is reported by validate() and the app
refuses to start.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv

from utils.exceptions import ConfigurationError
from utils.model_config import ModelConfig, ModelProvider, DEFAULT_MODEL

logger = logging.getLogger(__name__)


def _int_setting(env: Mapping[str, str], name: str, default: int, minimum: int = 0) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    text_generation_model: str = DEFAULT_MODEL
    openai_api_key: Optional[str] = None
    groq_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    youtube_api_key: Optional[str] = None
    s3_bucket_name: Optional[str] = None
    aws_region: str = "us-east-1"
    batch_concurrency: int = 1
    min_transcript_length: int = 200
    chat_history_window: int = 5
    generation_max_retries: int = 2
    http_timeout_seconds: int = 30
    pipeline_log_file: Optional[str] = None
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from the environment. Loads .env first when reading os.environ."""
        if env is None:
            load_dotenv()
            env = os.environ

        origins = env.get("ALLOWED_ORIGINS", "*")
        return cls(
            supabase_url=env.get("SUPABASE_URL") or None,
            supabase_key=env.get("SUPABASE_KEY") or None,
            text_generation_model=env.get("TEXT_GENERATION_MODEL") or DEFAULT_MODEL,
            openai_api_key=env.get("OPENAI_API_KEY") or None,
            groq_api_key=env.get("GROQ_API_KEY") or None,
            anthropic_api_key=env.get("ANTHROPIC_API_KEY") or None,
            youtube_api_key=env.get("YOUTUBE_API_KEY") or None,
            s3_bucket_name=env.get("S3_BUCKET_NAME") or None,
            aws_region=env.get("AWS_REGION") or "us-east-1",
            batch_concurrency=_int_setting(env, "BATCH_CONCURRENCY", 1, minimum=1),
            min_transcript_length=_int_setting(env, "MIN_TRANSCRIPT_LENGTH", 200),
            chat_history_window=_int_setting(env, "CHAT_HISTORY_WINDOW", 5, minimum=1),
            generation_max_retries=_int_setting(env, "GENERATION_MAX_RETRIES", 2, minimum=1),
            http_timeout_seconds=_int_setting(env, "HTTP_TIMEOUT_SECONDS", 30, minimum=1),
            pipeline_log_file=env.get("PIPELINE_LOG_FILE") or None,
            allowed_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )

    def provider_api_key(self, provider: ModelProvider) -> Optional[str]:
        keys: Dict[ModelProvider, Optional[str]] = {
            ModelProvider.OPENAI: self.openai_api_key,
            ModelProvider.GROQ: self.groq_api_key,
            ModelProvider.ANTHROPIC: self.anthropic_api_key,
        }
        return keys.get(provider)

    def text_generation_api_key(self) -> Optional[str]:
        config = ModelConfig.get_config(self.text_generation_model)
        return self.provider_api_key(config["provider"])

    def missing(self) -> List[str]:
        """Names of required variables that are not set"""
        missing = []
        if not self.supabase_url:
            missing.append("SUPABASE_URL")
        if not self.supabase_key:
            missing.append("SUPABASE_KEY")
        try:
            if not self.text_generation_api_key():
                missing.append(ModelConfig.api_key_env(self.text_generation_model))
        except ValueError:
            missing.append("TEXT_GENERATION_MODEL")
        if not self.youtube_api_key:
            missing.append("YOUTUBE_API_KEY")
        return missing

    def validate(self) -> "Settings":
        missing = self.missing()
        if missing:
            logger.error(f"Missing required configuration: {', '.join(missing)}")
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}",
                missing=missing,
            )
        if self.batch_concurrency < 1:
            raise ConfigurationError("BATCH_CONCURRENCY must be >= 1")
        return self
