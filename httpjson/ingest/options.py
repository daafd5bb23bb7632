"""
Per-invocation source options.

Option keys arrive as loosely typed strings from the registering layer;
``SourceOptions.from_options`` maps them (case-insensitively) onto a
validated, immutable model whose defaults come from the settings.
"""

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from httpjson.config.settings import get_settings
from httpjson.ingest.field_types import StructType

# Lower-cased option key -> model field; "url" wins over its "path" alias
_OPTION_KEYS = {
    "url": "url",
    "path": "url",
    "xpath": "path_query",
    "pathquery": "path_query",
    "samplingratio": "sampling_ratio",
    "trytimes": "try_times",
    "schema": "declared_schema",
    "columnnameofcorruptrecord": "corrupt_column",
}


class SourceOptions(BaseModel):
    """Configuration of one source invocation."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    url: str = Field(min_length=1, description="Fetch target")
    path_query: str = Field(
        default_factory=lambda: get_settings().default_path_query,
        description="Record selector, '$' selects the whole document",
    )
    sampling_ratio: float = Field(
        default_factory=lambda: get_settings().default_sampling_ratio,
        gt=0.0,
        le=1.0,
        description="Fraction of records used for schema inference",
    )
    try_times: int = Field(
        default_factory=lambda: get_settings().default_try_times,
        ge=1,
        description="Total number of fetch attempts",
    )
    declared_schema: Optional[StructType] = Field(
        default=None,
        description="Pre-declared schema, disables inference",
    )
    corrupt_column: str = Field(
        default_factory=lambda: get_settings().corrupt_record_column,
        min_length=1,
        description="Column receiving the raw text of malformed records",
    )

    @field_validator("declared_schema", mode="before")
    @classmethod
    def _read_schema(cls, value: Any) -> Optional[StructType]:
        if value is None or isinstance(value, StructType):
            return value
        if isinstance(value, (str, dict)):
            return StructType.from_json(value)
        raise ValueError(f"Unsupported schema value: {type(value).__name__}")

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "SourceOptions":
        """
        Build options from a raw key/value mapping.

        Recognized keys (any case): url/path, xPath, samplingRatio,
        tryTimes, schema, columnNameOfCorruptRecord. Unknown keys are
        ignored.

        Raises:
            pydantic.ValidationError: Missing url or out-of-range values
        """
        values = {}
        for key, value in options.items():
            field = _OPTION_KEYS.get(str(key).lower())
            if field is None or value is None:
                continue
            if field == "url" and str(key).lower() == "path" and "url" in values:
                continue
            values[field] = value
        return cls(**values)
