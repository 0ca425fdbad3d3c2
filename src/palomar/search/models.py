"""Request models and the typed search response envelope."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

M = TypeVar("M", bound=BaseModel)


class PostSearchQuery(BaseModel):
    """Structured post search: free text plus optional facets.

    `since`/`until` are read from and written as `from`/`to`.
    """

    model_config = ConfigDict(populate_by_name=True)

    query: str = ""
    offset: int = 0
    size: int = 25
    since: Optional[datetime] = Field(default=None, alias="from")
    until: Optional[datetime] = Field(default=None, alias="to")
    actors: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    langs: List[str] = Field(default_factory=list)

    @field_validator("actors", "tags", "langs", mode="before")
    @classmethod
    def coerce_null_facets(cls, value: Any) -> Any:
        return [] if value is None else value


class ActorSearchQuery(BaseModel):
    """Structured profile search, optionally scoped to a set of followed DIDs."""

    query: str = ""
    following: List[str] = Field(default_factory=list)
    offset: int = 0
    size: int = 25
    typeahead: bool = False

    @field_validator("following", mode="before")
    @classmethod
    def coerce_null_following(cls, value: Any) -> Any:
        return [] if value is None else value


class SearchHit(BaseModel):
    """A single ranked document. `source` is left untyped for the caller to decode."""

    model_config = ConfigDict(populate_by_name=True)

    index: str = Field(alias="_index")
    id: str = Field(alias="_id")
    # Backends report a null score when sorting on a field
    score: float = Field(default=0.0, alias="_score")
    source: Dict[str, Any] = Field(default_factory=dict, alias="_source")

    @field_validator("score", mode="before")
    @classmethod
    def coerce_null_score(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    def decode_source(self, model: Type[M]) -> M:
        """Validate the raw document payload into the given pydantic model."""
        return model.model_validate(self.source)


class HitsTotal(BaseModel):
    value: int = 0
    relation: str = "eq"


class SearchHits(BaseModel):
    total: Optional[HitsTotal] = None
    max_score: Optional[float] = None
    hits: List[SearchHit] = Field(default_factory=list)


class SearchResponse(BaseModel):
    """Decoded backend response. Hits keep the backend's ranked order."""

    took: int = 0
    timed_out: bool = False
    hits: SearchHits = Field(default_factory=SearchHits)


class ActorResult(BaseModel):
    did: str
    handle: str


class PostSearchResult(BaseModel):
    """Payload shape of a post document as stored by the indexer."""

    tid: str
    cid: str
    user: ActorResult
    post: Any = None
