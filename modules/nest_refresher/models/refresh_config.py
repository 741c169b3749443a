"""Refresh Configuration Model

Validated settings for a refresh run. Nonsensical thresholds are rejected here,
when the configuration is built, rather than inside the filtering logic.
"""

from typing import Dict, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from src.exceptions import NestConfigurationError


class RefreshNestConfig(BaseModel):
    """Settings for refreshing and filtering nests.

    Attributes:
        concurrency: Number of worker threads; <= 0 refreshes sequentially
        force_spawnpoints_refresh: Re-query spawnpoints even when a count is known
        min_area_m2: Nests smaller than this are discarded
        max_area_m2: Nests larger than this are discarded; 0 disables the check
        min_spawnpoints: Nests with fewer known spawnpoints are discarded
        max_overlap_percent: Overlap threshold; outside (0, 100) the overlap pass is skipped
    """

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    concurrency: int = Field(4, description="Worker threads for the bulk refresh")
    force_spawnpoints_refresh: bool = Field(False, description="Always re-query spawnpoint counts")
    min_area_m2: float = Field(100.0, ge=0, description="Minimum nest area in m²")
    max_area_m2: float = Field(10_000_000.0, ge=0, description="Maximum nest area in m² (0 = unlimited)")
    min_spawnpoints: int = Field(10, ge=0, description="Minimum spawnpoint count")
    max_overlap_percent: float = Field(60.0, description="Overlap percentage above which a nest is disabled")

    @model_validator(mode="after")
    def validate_area_range(self) -> "RefreshNestConfig":
        if self.max_area_m2 > 0 and self.max_area_m2 < self.min_area_m2:
            raise ValueError(
                f"max_area_m2 ({self.max_area_m2}) must be 0 or at least min_area_m2 ({self.min_area_m2})"
            )
        return self

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> "RefreshNestConfig":
        """Build a config from the ``refresh`` section of an environment.

        Raises:
            NestConfigurationError: If any setting is invalid or unknown
        """
        try:
            return cls.model_validate(settings)
        except ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'refresh'}: {err['msg']}"
                for err in e.errors()
            )
            raise NestConfigurationError(
                "Invalid refresh configuration", {"errors": details}
            ) from e

    def overlap_pass_enabled(self) -> bool:
        return 0 < self.max_overlap_percent < 100

    def is_sequential(self) -> bool:
        return self.concurrency <= 0
