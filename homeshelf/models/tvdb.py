from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class RecordType(str, Enum):
    MOVIE = "movie"
    SERIES = "series"


class CandidateType(str, Enum):
    NEW = "new"
    POPULAR = "popular"


class Candidate(BaseModel):
    """A title sourced from TVDB, not yet tied to anything in the local library."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1)
    year: int | None = None
    score: float | None = None
    record_type: RecordType
    candidate_type: CandidateType

    @property
    def dedupe_key(self) -> tuple[str, str, int | None]:
        return self.record_type.value, self.title.lower(), self.year


class CandidateSet(BaseModel):
    new_candidates: list[Candidate] = Field(default_factory=list)
    popular_candidates: list[Candidate] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.new_candidates and not self.popular_candidates


class TokenEntry(BaseModel):
    value: str
    expires_at: float  # monotonic clock seconds
