from datetime import date, datetime
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, Field, field_validator

SearchType = Literal["itinerary", "user", "all"]


class ItineraryCandidate(BaseModel):
    """A public itinerary considered by search.

    Optional text is stored as ``""`` rather than ``None`` so every field
    handed to the matcher is a string.
    """

    type: Literal["itinerary"] = "itinerary"
    id: str = Field(..., description="Itinerary id")
    owner_id: str | None = Field(None, description="Id of the owning profile")
    title: str = Field("", description="Itinerary title")
    description: str = ""
    image_url: str | None = None
    location: str = Field("", description="Free-text location as entered by the owner")
    location_variants: list[str] = Field(
        default_factory=list,
        exclude=True,
        description="The location plus every alias spelling; match-only, never displayed",
    )
    location_text: str = Field(
        "", exclude=True, description="location_variants joined into one matchable string"
    )
    start_date: date | None = None
    end_date: date | None = None
    created_at: datetime | None = None
    owner_username: str = Field("", description="Owner username, copied at query time")
    owner_name: str = Field("", description="Owner display name, copied at query time")
    owner_avatar_url: str | None = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def date_part(cls, value):
        # Elasticsearch date fields may hold full timestamps
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str) and len(value) > 10 and value[10] in "Tt ":
            return value[:10]
        return value


class UserCandidate(BaseModel):
    """A traveller profile considered by search."""

    type: Literal["user"] = "user"
    id: str
    username: str = ""
    display_name: str = ""
    bio: str = ""
    avatar_url: str | None = None
    created_at: datetime | None = None
    title: str = Field(..., description="Display name, else username, else 'Unknown User'")
    description: str = Field("", description="The profile bio")


CandidateT = TypeVar("CandidateT", bound=BaseModel)


class HighlightSegment(BaseModel):
    text: str
    highlighted: bool = False


class RankedResult(BaseModel, Generic[CandidateT]):
    """A candidate with the relevance score the fuzzy matcher gave it."""

    item: CandidateT
    relevance_score: float = Field(
        ..., ge=0.0, le=1.0, description="Lower is more relevant (0 would be a perfect match)"
    )
    matched_fields: list[str] = Field(
        default_factory=list, description="Fields whose text matched the query"
    )
    highlights: dict[str, list[HighlightSegment]] = Field(
        default_factory=dict,
        description="Displayable matched fields split around the matching text",
    )


class SearchFilters(BaseModel):
    type: SearchType | None = Field(None, description="Restrict to one entity kind")
    location: str | None = Field(
        None, description="Keep only itineraries whose location matches (alias aware)"
    )
    start_date: date | None = Field(None, description="Itineraries starting on/after this date")
    end_date: date | None = Field(None, description="Itineraries ending on/before this date")


class SearchResults(BaseModel):
    itineraries: list[RankedResult[ItineraryCandidate]] = Field(default_factory=list)
    users: list[RankedResult[UserCandidate]] = Field(default_factory=list)
    total_count: int = 0
