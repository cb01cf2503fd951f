"""
Data Models for Event Scout

This module contains data classes and models used throughout the application:
the posts we retrieve, the drafts we extract, the records we store and the
accounting we report.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any


class EventCategory(str, Enum):
    """Fixed set of categories an event can be filed under."""
    AI = "AI"
    FINTECH = "Fintech"
    STARTUP = "Startup"
    CODING = "Coding"
    HARDWARE = "Hardware"
    DESIGN = "Design"
    MARKETING = "Marketing"
    CYBERSECURITY = "Cybersecurity"
    VIRTUAL = "Virtual"
    HEALTHTECH = "HealthTech"
    EDTECH = "EdTech"
    AGRITECH = "AgriTech"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


@dataclass
class MediaItem:
    """Media attachment resolved from a search response's includes."""
    media_key: str
    type: str
    url: Optional[str] = None
    preview_image_url: Optional[str] = None


@dataclass
class SocialPost:
    """A post as returned by the search API. Never persisted."""
    id: str                                   # Platform id, the idempotency key
    text: str
    created_at: datetime
    author_id: Optional[str] = None
    media_keys: List[str] = field(default_factory=list)
    urls: List[str] = field(default_factory=list)      # Expanded link entities
    public_metrics: Dict[str, int] = field(default_factory=dict)


@dataclass
class RateLimitInfo:
    """Quota state of one endpoint as last reported by the platform."""
    remaining: Optional[int] = None
    reset_at: Optional[float] = None          # Epoch seconds
    limit: Optional[int] = None


@dataclass
class SearchPage:
    """One page of search results plus what came with it."""
    posts: List[SocialPost]
    media: Dict[str, MediaItem] = field(default_factory=dict)
    newest_id: Optional[str] = None
    rate_limit: Optional[RateLimitInfo] = None


@dataclass
class ParsedEvent:
    """Fields a parsing strategy derives from a post, before finalizing into a draft."""
    title: str
    description: str
    date: datetime
    location: str
    category: str
    is_free: bool
    link: Optional[str] = None


@dataclass
class EventDraft:
    """Structured but unpersisted event candidate."""
    title: str
    description: str
    date: datetime
    location: str
    category: str = EventCategory.STARTUP.value
    is_free: bool = False
    link: Optional[str] = None
    source_external_id: Optional[str] = None
    source_url: Optional[str] = None          # Link back to the originating post
    image_urls: List[str] = field(default_factory=list)
    source_type: str = "x"
    status: str = "pending"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class StoredEvent(EventDraft):
    """An event record as held by the content repository."""
    event_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    upvotes: int = 0
    posted_to_x: bool = False
    posted_to_x_at: Optional[datetime] = None
    post_pending_at: Optional[datetime] = None

    @classmethod
    def from_draft(cls, draft: EventDraft, **repository_fields) -> "StoredEvent":
        return cls(**draft.to_dict(), **repository_fields)


@dataclass
class FailedWrite:
    """A draft the repository refused, with the reason it gave."""
    draft: EventDraft
    reason: str


@dataclass
class BulkWriteResult:
    """Outcome of an unordered bulk insert."""
    succeeded: List[StoredEvent] = field(default_factory=list)
    failed: List[FailedWrite] = field(default_factory=list)


@dataclass
class IngestionStats:
    """Accounting for one ingestion batch. Returned to the caller, never stored."""
    total: int = 0
    created: int = 0
    duplicates: int = 0
    failed: int = 0

    def is_balanced(self) -> bool:
        return self.created + self.duplicates + self.failed == self.total

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class PassReport:
    """What one ingestion pass did, for the summary log line and exit code."""
    queries: int = 0
    failed_queries: int = 0
    fetched: int = 0
    skipped_seen: int = 0                     # Already seen under an earlier query this pass
    rejected: Dict[str, int] = field(default_factory=dict)
    not_extracted: int = 0
    extraction_errors: int = 0
    invalid: int = 0
    drafts: int = 0
    stats: Optional[IngestionStats] = None
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.failed_queries == 0

    def summary(self) -> str:
        stats = self.stats.as_dict() if self.stats else "not ingested"
        return (f"queries={self.queries} failed_queries={self.failed_queries} fetched={self.fetched} "
                f"skipped_seen={self.skipped_seen} rejected={self.rejected} "
                f"not_extracted={self.not_extracted} extraction_errors={self.extraction_errors} "
                f"invalid={self.invalid} drafts={self.drafts} stats={stats} "
                f"duration={self.duration_seconds:.1f}s")
