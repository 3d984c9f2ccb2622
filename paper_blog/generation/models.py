from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from datetime import datetime


class GenerationStatus(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    COMPLETED = "completed"
    ERROR = "error"


class GenerationPhase(str, Enum):
    WAITING = "waiting"
    CALLING_PROVIDER = "calling_provider"
    PARSING = "parsing"
    PERSISTING = "persisting"


class PostStatus(str, Enum):
    DRAFT = "draft"


# Forward-only moves within a single run.
ALLOWED_TRANSITIONS = {
    GenerationStatus.IDLE: {GenerationStatus.GENERATING},
    GenerationStatus.GENERATING: {GenerationStatus.COMPLETED, GenerationStatus.ERROR},
    GenerationStatus.COMPLETED: set(),
    GenerationStatus.ERROR: set(),
}


@dataclass(frozen=True)
class LinkTarget:
    url: str


@dataclass(frozen=True)
class InlineSpan:
    text: str
    bold: bool = False
    italic: bool = False
    link: Optional[LinkTarget] = None


@dataclass
class Heading:
    level: int
    text: str


@dataclass
class Paragraph:
    spans: List[InlineSpan] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(span.text for span in self.spans)


@dataclass
class ListBlock:
    ordered: bool
    items: List[Paragraph] = field(default_factory=list)


@dataclass
class HorizontalRule:
    pass


BlockNode = Union[Heading, Paragraph, ListBlock, HorizontalRule]


@dataclass
class StructuredDocument:
    blocks: List[BlockNode] = field(default_factory=list)


@dataclass
class IndexStatus:
    in_progress: int
    completed: int = 0


@dataclass
class ProviderResponse:
    status: str
    text: Optional[str]


@dataclass
class GenerationJobRecord:
    id: str
    subject_title: str
    index_id: str
    status: GenerationStatus = GenerationStatus.IDLE
    progress: Optional[str] = None
    error_message: Optional[str] = None
    document_id: Optional[str] = None
    updated_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class UserRecord:
    id: str
    email: str
    role: str
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class BlogPostRecord:
    title: str
    slug: str
    content: Dict[str, Any]
    excerpt: str
    author_id: str
    source_job_id: str
    status: PostStatus = PostStatus.DRAFT
    id: Optional[str] = None
    published_date: datetime = field(default_factory=datetime.utcnow)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class GenerationResult:
    document_id: str
    title: str
    slug: str
    elapsed_seconds: float
