"""Pydantic models describing metadata lookups and collection actions."""

from __future__ import annotations

import re
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

BOOK_MEDIUM = "Book"
YEAR_FORMAT_RE = re.compile(r"\d{4}")


class MetadataQuery(BaseModel):
    """Input accepted by the metadata resolver."""

    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    identifier: str | None = Field(
        default=None, validation_alias=AliasChoices("identifier", "imdb_id")
    )
    medium_hint: str | None = Field(
        default=None, validation_alias=AliasChoices("medium_hint", "medium")
    )
    kind_hint: str | None = Field(
        default=None, validation_alias=AliasChoices("kind_hint", "type")
    )
    year: str | None = None
    season: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("year")
    @classmethod
    def _four_digit_year(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        if not YEAR_FORMAT_RE.fullmatch(value):
            raise ValueError("Year must be a 4-digit number")
        return value

    @property
    def has_input(self) -> bool:
        return bool(self.title or self.identifier)


class NormalizedMetadata(BaseModel):
    """Medium-agnostic metadata record produced by the resolver."""

    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    poster_url: str | None = None
    genre: str | list[str] | None = None
    language: str | None = None
    average_rating: float | None = None
    length: str | None = None
    type: str | None = None
    episode_count: int | None = Field(default=None, serialization_alias="episodes")
    season_label: str | None = Field(default=None, serialization_alias="season")
    year: str | None = None
    plot: str | None = None
    external_id: str | None = Field(default=None, serialization_alias="imdb_id")

    def to_response(self) -> dict[str, Any]:
        """Return the JSON payload with the collection's field names."""

        return self.model_dump(by_alias=True)

    def as_entry_defaults(self) -> dict[str, Any]:
        """Return non-null fields keyed like collection entry columns."""

        return {
            key: value
            for key, value in self.to_response().items()
            if value is not None
        }


class MediaAction(BaseModel):
    """A single requested mutation against the user's collection."""

    model_config = ConfigDict(extra="allow")

    type: str = ""
    id: str | None = None
    data: dict[str, Any] | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def title(self) -> str | None:
        if not self.data:
            return None
        title = self.data.get("title")
        if isinstance(title, str) and title.strip():
            return title
        return None

    def echo(self) -> dict[str, Any]:
        """Return the action as the caller sent it."""

        return self.model_dump(exclude_none=True)


class ActionResult(BaseModel):
    """Outcome of processing a single action."""

    success: bool
    action: Any
    entry_id: str | None = Field(default=None, serialization_alias="entryId")
    error: str | None = None

    @classmethod
    def succeeded(cls, action: Any, entry_id: str) -> "ActionResult":
        return cls(success=True, action=action, entry_id=entry_id)

    @classmethod
    def failed(cls, action: Any, error: str) -> "ActionResult":
        return cls(success=False, action=action, error=error)


class ActionSummary(BaseModel):
    total: int
    succeeded: int
    failed: int


class ExecuteActionsResponse(BaseModel):
    """Aggregate response for a batch of actions."""

    success: bool
    results: list[ActionResult] = Field(default_factory=list)
    summary: ActionSummary

    @classmethod
    def from_results(cls, results: list[ActionResult]) -> "ExecuteActionsResponse":
        succeeded = sum(1 for result in results if result.success)
        failed = len(results) - succeeded
        return cls(
            success=failed == 0,
            results=results,
            summary=ActionSummary(
                total=len(results), succeeded=succeeded, failed=failed
            ),
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ActionValidation(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class MatchedEntrySummary(BaseModel):
    id: str
    title: str
    status: str | None = None


class ValidatedAction(BaseModel):
    """An action annotated with its pre-flight validation result."""

    action: MediaAction
    matched_entry: MatchedEntrySummary | None = Field(
        default=None, serialization_alias="matchedEntry"
    )
    validation: ActionValidation

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(by_alias=True)
        payload["action"] = self.action.echo()
        return payload


class ValidationSummary(BaseModel):
    total_actions: int = Field(serialization_alias="totalActions")
    valid_actions: int = Field(serialization_alias="validActions")
    invalid_actions: int = Field(serialization_alias="invalidActions")
    has_warnings: bool = Field(serialization_alias="hasWarnings")

    @classmethod
    def from_validated(cls, validated: list[ValidatedAction]) -> "ValidationSummary":
        valid = sum(1 for item in validated if item.validation.valid)
        return cls(
            total_actions=len(validated),
            valid_actions=valid,
            invalid_actions=len(validated) - valid,
            has_warnings=any(item.validation.warnings for item in validated),
        )
