"""Validated models for PoiskKino catalog payloads."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class CatalogPoster(BaseModel):
    """Poster block of a catalog title."""

    url: str | None = None


class CatalogSeason(BaseModel):
    """Season summary as reported by the catalog."""

    model_config = ConfigDict(populate_by_name=True)

    number: int | None = None
    episodes_count: int | None = Field(default=None, alias="episodesCount")


class CatalogTitle(BaseModel):
    """A catalog title. Payloads without an id are rejected."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    name: str | None = None
    alternative_name: str | None = Field(default=None, alias="alternativeName")
    year: int | None = None
    type: str | None = None
    poster: CatalogPoster | None = None
    seasons_info: list[CatalogSeason] = Field(
        default_factory=list,
        validation_alias=AliasChoices("seasonsInfo", "seasons_info"),
    )

    @field_validator("seasons_info", mode="before")
    @classmethod
    def _drop_malformed_seasons(cls, value: object) -> list[object]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]

    @property
    def display_name(self) -> str:
        """Return the primary name, falling back to the alternative one."""
        return self.name or self.alternative_name or ""

    @property
    def poster_url(self) -> str | None:
        """Return the poster URL, if any."""
        return self.poster.url if self.poster else None

    @property
    def valid_seasons(self) -> list[CatalogSeason]:
        """Return seasons that can be materialized locally."""
        return [
            season
            for season in self.seasons_info
            if season.number is not None
            and season.number >= 1
            and season.episodes_count is not None
            and season.episodes_count >= 1
        ]

    @property
    def is_series(self) -> bool:
        """Return true for episodic titles."""
        return self.type == "tv-series" or bool(self.seasons_info)


class CatalogSearchPage(BaseModel):
    """One page of catalog search results."""

    items: list[CatalogTitle]
    page: int
    limit: int
    pages: int | None = None
    total: int | None = None
