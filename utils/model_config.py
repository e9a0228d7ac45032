"""
Text-generation model configuration.
One table of models, looked up by key; the provider decides which SDK is called.
"""

from typing import Dict, Any, Optional
from enum import Enum


class ModelProvider(str, Enum):
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GROQ = "groq"


# Environment variable holding the API key for each provider
PROVIDER_KEY_ENV: Dict[ModelProvider, str] = {
    ModelProvider.OPENAI: "OPENAI_API_KEY",
    ModelProvider.GROQ: "GROQ_API_KEY",
    ModelProvider.ANTHROPIC: "ANTHROPIC_API_KEY",
}

# Model configurations
MODEL_CONFIGS: Dict[str, Dict[str, Any]] = {
    "gpt-4o-mini": {
        "provider": ModelProvider.OPENAI,
        "model": "gpt-4o-mini",
        "max_tokens": 4096,
        "supports_json_schema": True,
        "temperature": 0.7
    },
    "gpt-4o": {
        "provider": ModelProvider.OPENAI,
        "model": "gpt-4o",
        "max_tokens": 4096,
        "supports_json_schema": True,
        "temperature": 0.7
    },
    "llama-3.3-70b": {
        "provider": ModelProvider.GROQ,
        "model": "llama-3.3-70b-versatile",
        "max_tokens": 4096,
        "supports_json_schema": False,
        "temperature": 0.7
    },
    "llama-4-scout": {
        "provider": ModelProvider.GROQ,
        "model": "meta-llama/llama-4-scout-17b-16e-instruct",
        "max_tokens": 4096,
        "supports_json_schema": False,
        "temperature": 0.7
    },
    "claude-haiku-4-5": {
        "provider": ModelProvider.ANTHROPIC,
        "model": "claude-haiku-4-5-20251001",
        "max_tokens": 4096,
        "supports_json_schema": False,
        "temperature": 0.7
    },
}

DEFAULT_MODEL = "gpt-4o-mini"


class ModelConfig:
    """Model configuration manager"""

    @staticmethod
    def get_config(model_key: Optional[str] = None) -> Dict[str, Any]:
        """Get configuration for specified model or default"""
        key = model_key or DEFAULT_MODEL

        if key not in MODEL_CONFIGS:
            raise ValueError(f"Unknown model: {key}. Available: {list(MODEL_CONFIGS.keys())}")

        return MODEL_CONFIGS[key]

    @staticmethod
    def api_key_env(model_key: Optional[str] = None) -> str:
        """Name of the environment variable that must hold the key for this model"""
        config = ModelConfig.get_config(model_key)
        return PROVIDER_KEY_ENV[config["provider"]]
