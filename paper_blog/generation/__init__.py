"""
Generation subsystem exports.
"""

from .blocks import BlockParser, parse_document
from .config import WorkerConfig, configure_logging
from .errors import (
    GenerationError,
    GenerationFailure,
    GenerationJobFailed,
    IndexingTimeout,
    JobAlreadyRunning,
    JobNotFound,
    NoAuthorAvailable,
    PersistenceFailure,
)
from .excerpt import extract_excerpt
from .inline import InlineTokenizer, format_inline, tokenize
from .job_queue import RQJobQueue, build_worker, run_generation_job
from .lexical import to_lexical
from .models import (
    BlogPostRecord,
    GenerationJobRecord,
    GenerationPhase,
    GenerationResult,
    GenerationStatus,
    Heading,
    HorizontalRule,
    IndexStatus,
    InlineSpan,
    LinkTarget,
    ListBlock,
    Paragraph,
    PostStatus,
    ProviderResponse,
    StructuredDocument,
    UserRecord,
)
from .providers import (
    ContentIndex,
    GenerationProvider,
    OpenAIResponsesProvider,
    OpenAIVectorStoreIndex,
    StaticContentIndex,
    StaticGenerationProvider,
)
from .readiness import ReadinessPoller
from .repository import GenerationRepository, InMemoryGenerationRepository, SqlAlchemyGenerationRepository
from .worker import GenerationWorker, build_slug, slugify, split_title

__all__ = [
    "BlockParser",
    "BlogPostRecord",
    "ContentIndex",
    "GenerationError",
    "GenerationFailure",
    "GenerationJobFailed",
    "GenerationJobRecord",
    "GenerationPhase",
    "GenerationProvider",
    "GenerationRepository",
    "GenerationResult",
    "GenerationStatus",
    "GenerationWorker",
    "Heading",
    "HorizontalRule",
    "InMemoryGenerationRepository",
    "IndexStatus",
    "IndexingTimeout",
    "InlineSpan",
    "InlineTokenizer",
    "JobAlreadyRunning",
    "JobNotFound",
    "LinkTarget",
    "ListBlock",
    "NoAuthorAvailable",
    "OpenAIResponsesProvider",
    "OpenAIVectorStoreIndex",
    "Paragraph",
    "PersistenceFailure",
    "PostStatus",
    "ProviderResponse",
    "RQJobQueue",
    "ReadinessPoller",
    "SqlAlchemyGenerationRepository",
    "StaticContentIndex",
    "StaticGenerationProvider",
    "StructuredDocument",
    "UserRecord",
    "WorkerConfig",
    "build_slug",
    "build_worker",
    "configure_logging",
    "extract_excerpt",
    "format_inline",
    "parse_document",
    "run_generation_job",
    "slugify",
    "split_title",
    "to_lexical",
    "tokenize",
]
