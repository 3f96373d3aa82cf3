"""HealthThresholds model."""

from pydantic import BaseModel, Field, model_validator

from .defaults import (
    DRIFT_CRITICAL,
    DRIFT_WARNING,
    UTILIZATION_CRITICAL_PERCENT,
    UTILIZATION_WARNING_PERCENT,
)


class HealthThresholds(BaseModel):
    """Utilization and drift thresholds for health classification."""

    model_config = {"extra": "forbid"}

    utilization_warning: float = Field(
        default=UTILIZATION_WARNING_PERCENT, gt=0, le=100,
        description="Utilization percent at which health becomes 'warning'",
    )
    utilization_critical: float = Field(
        default=UTILIZATION_CRITICAL_PERCENT, gt=0, le=100,
        description="Utilization percent at which health becomes 'critical'",
    )
    drift_warning: float = Field(default=DRIFT_WARNING, gt=0, le=1)
    drift_critical: float = Field(default=DRIFT_CRITICAL, gt=0, le=1)

    @model_validator(mode="after")
    def _check_ordering(self) -> "HealthThresholds":
        if self.utilization_warning >= self.utilization_critical:
            raise ValueError("utilization_warning must be below utilization_critical")
        if self.drift_warning >= self.drift_critical:
            raise ValueError("drift_warning must be below drift_critical")
        return self
