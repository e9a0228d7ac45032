"""
Local file helpers for TechLearn.
Course data lives in the database; the pipeline run log stays in a local JSON file.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import logging
import uuid

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).parent.parent
PIPELINE_LOG_FILE = BASE_DIR / "pipeline_run_log.json"


def generate_uuid() -> str:
    """Generate unique ID for rows that need one before insert"""
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def read_json_file(filepath: Path) -> Optional[Dict[str, Any]]:
    """Read JSON file, return None if not found or invalid"""
    try:
        if not filepath.exists():
            return None
        with open(filepath, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in {filepath}: {e}")
        return None
    except OSError as e:
        logger.error(f"Error reading {filepath}: {e}")
        return None


def write_json_file(filepath: Path, data: Dict[str, Any]) -> bool:
    """Write data to JSON file atomically"""
    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        temp_file = filepath.with_suffix('.tmp')
        with open(temp_file, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, default=str)
        temp_file.replace(filepath)
        return True
    except OSError as e:
        logger.error(f"Error writing {filepath}: {e}")
        return False


def append_to_json_list(filepath: Path, item: Dict[str, Any]) -> bool:
    """Append item to JSON list file (creates if not exists)"""
    data = read_json_file(filepath) or {"items": []}
    if "items" not in data:
        data["items"] = []
    data["items"].append(item)
    return write_json_file(filepath, data)


class PipelineRunLog:
    """
    Local record of enrichment and generation runs.

    Failed secondary writes (e.g. a quiz insert after the video update went
    through) are recorded here with enough context to replay them by hand.
    """

    def __init__(self, filepath: Optional[Path] = None):
        self.filepath = Path(filepath) if filepath else PIPELINE_LOG_FILE

    def log_run(self, kind: str, entry: Dict[str, Any]) -> bool:
        """Log a pipeline run"""
        record = {"kind": kind, "timestamp": utc_now_iso(), **entry}
        return append_to_json_list(self.filepath, record)

    def log_failed_write(self, table: str, operation: str, payload: Dict[str, Any], error: str) -> bool:
        """Log a secondary write that failed and was not retried"""
        return self.log_run("failed_write", {
            "table": table,
            "operation": operation,
            "payload": payload,
            "error": error,
        })

    def failed_writes(self) -> List[Dict[str, Any]]:
        data = read_json_file(self.filepath) or {"items": []}
        return [item for item in data.get("items", []) if item.get("kind") == "failed_write"]
