"""Trip request - the user's submission."""

from datetime import date

from pydantic import AliasChoices, ConfigDict, Field, ValidationInfo, computed_field, field_validator

from tripplan.models.common import CamelModel


class TripRequest(CamelModel):
    """User intent for trip planning. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    city: str = Field(..., min_length=1)
    start_date: date
    end_date: date
    transportation: str = ""
    accommodation: str = ""
    preferences: frozenset[str] = Field(default_factory=frozenset)
    notes: str = Field(
        default="",
        validation_alias=AliasChoices("notes", "freeTextInput", "free_text_input"),
    )

    @field_validator("end_date")
    @classmethod
    def validate_end_after_start(cls, v: date, info: ValidationInfo) -> date:
        """Ensure end >= start."""
        if "start_date" in info.data and v < info.data["start_date"]:
            raise ValueError("end_date must be >= start_date")
        return v

    @field_validator("preferences", mode="before")
    @classmethod
    def strip_preferences(cls, v: object) -> object:
        """Drop blank tags and surrounding whitespace before deduplication."""
        if isinstance(v, (list, tuple, set, frozenset)):
            return frozenset(str(tag).strip() for tag in v if str(tag).strip())
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def travel_days(self) -> int:
        """Inclusive number of days between start and end."""
        return (self.end_date - self.start_date).days + 1

    def sorted_preferences(self) -> list[str]:
        """Preferences in a stable order for prompts and logs."""
        return sorted(self.preferences)
