from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field


class _Record(BaseModel):
    """Immutable record serialized with the camelCase keys of the JSON artifacts."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class FeedDescriptor(_Record):
    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    category: str = "general"


class FeedInfo(_Record):
    title: str
    description: str = ""
    link: str = ""


class NormalizedItem(_Record):
    id: str
    title: str
    link: str
    description: str
    pub_date: str = Field(alias="pubDate")
    timestamp: int
    feed_name: str = Field(alias="feedName")
    category: str
    feed_source: str = Field(alias="feedSource")


class FeedFetchResult(_Record):
    descriptor: FeedDescriptor
    feed_info: FeedInfo = Field(alias="feedInfo")
    items: list[NormalizedItem] = Field(default_factory=list)
    error: str | None = None
    error_code: str | None = Field(default=None, alias="errorCode")

    @computed_field
    @property
    def success(self) -> bool:
        return self.error is None


class PageRecord(_Record):
    page: int = Field(..., ge=1)
    total_pages: int = Field(alias="totalPages")
    total_items: int = Field(alias="totalItems")
    items_per_page: int = Field(alias="itemsPerPage")
    items: list[NormalizedItem]
    has_next: bool = Field(alias="hasNext")
    has_prev: bool = Field(alias="hasPrev")


class FeedSummary(_Record):
    name: str
    category: str
    item_count: int = Field(alias="itemCount")
    error: str | None = None
    last_updated: str = Field(alias="lastUpdated")
    feed_info: FeedInfo = Field(alias="feedInfo")


class BuildMetadata(_Record):
    total_feeds: int = Field(alias="totalFeeds")
    successful_feeds: int = Field(alias="successfulFeeds")
    failed_feeds: int = Field(alias="failedFeeds")
    total_items: int = Field(alias="totalItems")
    total_pages: int = Field(alias="totalPages")
    items_per_page: int = Field(alias="itemsPerPage")
    last_updated: str = Field(alias="lastUpdated")
    categories: list[str] = Field(default_factory=list)
    feeds: list[FeedSummary] = Field(default_factory=list)


# Per-feed output (feeds/<slug>/data.json + feeds/manifest.json)

class FeedPageInfo(FeedInfo):
    slug: str
    category: str


class FeedDocument(_Record):
    feed_info: FeedPageInfo = Field(alias="feedInfo")
    items: list[NormalizedItem]
    last_updated: str = Field(alias="lastUpdated")
    success: bool
    error: str | None = None


class ManifestEntry(_Record):
    name: str
    slug: str
    category: str
    url: str
    rss_url: str = Field(alias="rssUrl")
    article_count: int = Field(alias="articleCount")
    success: bool
    error: str | None = None


class FeedManifest(_Record):
    total_feeds: int = Field(alias="totalFeeds")
    successful_feeds: int = Field(alias="successfulFeeds")
    failed_feeds: int = Field(alias="failedFeeds")
    last_updated: str = Field(alias="lastUpdated")
    feeds: list[ManifestEntry] = Field(default_factory=list)
