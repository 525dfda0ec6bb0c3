"""
Run configuration.

Settings are read from the process environment (optionally populated from a
dotenv file) and passed explicitly into the pipeline and the index audit.
"""
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_ENV_FILE = "config/.env"
LOCAL_ENV_FILE = ".env"


class Settings(BaseModel):
    """Connection parameters, paths and tuning knobs for one audit run."""
    db_uri: str = "mongodb://localhost:27017"
    db_name: str = "test"

    failure_report_path: Path = Path("input/updateIndex.failure.json")
    plan_path: Path = Path("output/duplicateKeys.json")
    duplicates_dir: Path = Path("output/duplicates_json")
    indexes_dir: Path = Path("output/indexes_json")

    relationship_token: str = Field(".rels.", min_length=1)
    meta_collection: str = Field("meta", min_length=1)

    max_concurrency: int = Field(4, ge=1, description="Collections scanned at the same time")
    field_concurrency: int = Field(1, ge=1, description="Grouping scans in flight per collection")
    scan_timeout: float = Field(300.0, ge=0, description="Seconds per store round trip, 0 disables")
    index_ceiling: int = Field(64, ge=1, description="Index count at which a collection is reported")

    log_level: str = "INFO"
    log_dir: Path = Path("logs")

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """
        Build settings from environment variables.
        Values already present in the environment win over the dotenv files,
        and the configured env file wins over a local .env.
        """
        load_dotenv(env_file or os.getenv("AUDIT_ENV_FILE", DEFAULT_ENV_FILE))
        load_dotenv(LOCAL_ENV_FILE)

        mapping = {
            "db_uri": "DB_URI",
            "db_name": "DB_NAME",
            "failure_report_path": "FAILURE_REPORT_PATH",
            "plan_path": "PLAN_PATH",
            "duplicates_dir": "DUPLICATES_OUTPUT_DIR",
            "indexes_dir": "INDEXES_OUTPUT_DIR",
            "relationship_token": "RELATIONSHIP_TOKEN",
            "meta_collection": "META_COLLECTION",
            "max_concurrency": "MAX_CONCURRENCY",
            "field_concurrency": "FIELD_CONCURRENCY",
            "scan_timeout": "SCAN_TIMEOUT",
            "index_ceiling": "INDEX_CEILING",
            "log_level": "LOG_LEVEL",
            "log_dir": "LOG_DIR",
        }
        values = {}
        for field_name, env_name in mapping.items():
            value = os.getenv(env_name)
            if value is not None and value != "":
                values[field_name] = value
        return cls(**values)

    @property
    def timeout_or_none(self) -> Optional[float]:
        return self.scan_timeout or None
