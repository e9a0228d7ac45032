# Shared utilities
from .file_storage import (
    PipelineRunLog,
    generate_uuid,
    utc_now_iso,
    read_json_file,
    write_json_file
)

from .model_config import (
    ModelConfig,
    ModelProvider,
    MODEL_CONFIGS,
    DEFAULT_MODEL
)

__all__ = [
    'PipelineRunLog',
    'generate_uuid',
    'utc_now_iso',
    'read_json_file',
    'write_json_file',
    'ModelConfig',
    'ModelProvider',
    'MODEL_CONFIGS',
    'DEFAULT_MODEL'
]
