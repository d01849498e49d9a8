"""Configuration management for registration fitness evaluation."""

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

logger = logging.getLogger(__name__)

# Valid values for enum fields
VALID_METRICS = [
    "average",
    "sum",
    "root_sum",
    "median",
    "robust_sum",
    "robust_average",
    "robust_median",
]


class FitnessConfig(BaseModel):
    """Configuration for fitness evaluation of candidate alignments.

    Attributes:
        metric: Aggregator used as the scalar objective.
        factor: Median-ratio filter factor. Distances outside
            [median / factor, median * factor] are treated as outliers.
        min_survivors: Minimum number of distances that must survive the
            median-ratio filter; below this robust metrics return MAX_ERROR.
        median_rule: Rank rule used wherever a median is taken ("standard"
            textbook median, or "upper" for the legacy rank selection).
        index_backend: KD-tree library used for nearest-neighbor queries.
    """

    model_config = ConfigDict(extra="allow")

    metric: str = "robust_sum"
    factor: float = Field(default=3.0, gt=1.0)
    min_survivors: int = Field(default=10, ge=1)
    median_rule: Literal["standard", "upper"] = "standard"
    index_backend: Literal["open3d", "scipy"] = "open3d"

    @field_validator("metric")
    @classmethod
    def validate_metric(cls, v: str) -> str:
        """Validate metric is a known aggregator name."""
        if v not in VALID_METRICS:
            raise ValueError(f"Invalid metric: {v!r}. Must be one of {VALID_METRICS}")
        return v

    @model_validator(mode="after")
    def warn_extra_fields(self) -> "FitnessConfig":
        """Warn about unknown configuration keys."""
        if self.__pydantic_extra__:
            logger.warning(
                "Unknown config keys in FitnessConfig (ignored): %s",
                list(self.__pydantic_extra__.keys()),
            )
        return self

    @classmethod
    def from_yaml(cls, path: str | Path) -> "FitnessConfig":
        """Load configuration from a YAML file.

        Missing fields use their default values.

        Args:
            path: Path to YAML configuration file.

        Returns:
            Loaded configuration with defaults filled in.

        Raises:
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError: If the file is not valid YAML.
            ValueError: If validation fails (with all errors collected).
        """
        path = Path(path)
        with open(path) as f:
            data = yaml.safe_load(f)

        if data is None:
            data = {}

        try:
            config = cls.model_validate(data)
        except ValidationError as e:
            formatted_errors = format_validation_errors(e)
            raise ValueError(
                f"Configuration validation failed:\n{formatted_errors}"
            ) from None

        return config

    def to_yaml(self, path: str | Path) -> None:
        """Save configuration to a YAML file.

        All fields including defaults are written for explicitness.

        Args:
            path: Path to output YAML file.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(mode="json")

        with open(path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


def format_validation_errors(error: ValidationError) -> str:
    """Format Pydantic validation errors with YAML-style paths.

    Args:
        error: Pydantic ValidationError.

    Returns:
        Formatted error string with YAML paths and messages.
    """
    lines = []
    for err in error.errors():
        loc = err["loc"]
        path = ".".join(str(part) for part in loc) or "<root>"
        msg = err["msg"]
        lines.append(f"  {path}: {msg}")

    return "\n".join(lines)
