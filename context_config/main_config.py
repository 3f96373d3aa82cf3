"""Main ContextRotConfig model."""

from pydantic import BaseModel, Field

from .compaction_config import CompactionConfig
from .defaults import DEFAULT_DATABASE_PATH, DEFAULT_TOKEN_LIMIT
from .drift_config import DriftConfig
from .health_config import HealthThresholds


class ContextRotConfig(BaseModel):
    """Main configuration model."""

    token_limit: int = Field(
        default=DEFAULT_TOKEN_LIMIT,
        gt=0,
        description="Context budget in tokens",
    )
    database_path: str = Field(
        default=DEFAULT_DATABASE_PATH,
        description="SQLite path, relative to the project root unless absolute",
    )
    health: HealthThresholds = Field(
        default_factory=HealthThresholds,
        description="Health classification thresholds",
    )
    compaction: CompactionConfig = Field(
        default_factory=CompactionConfig,
        description="Compaction tuning",
    )
    drift: DriftConfig = Field(
        default_factory=DriftConfig,
        description="Drift detection windows",
    )
