from __future__ import annotations

import logging
import re
import time
from typing import Callable, Optional, Tuple

from .blocks import parse_document
from .errors import GenerationFailure, GenerationJobFailed, JobAlreadyRunning, JobNotFound, NoAuthorAvailable
from .excerpt import DEFAULT_MAX_LENGTH, extract_excerpt
from .lexical import to_lexical
from .models import (
    ALLOWED_TRANSITIONS,
    BlogPostRecord,
    GenerationJobRecord,
    GenerationPhase,
    GenerationResult,
    GenerationStatus,
    IndexStatus,
    PostStatus,
)
from .prompts import BLOG_SYSTEM_PROMPT
from .providers import RESPONSE_COMPLETED, GenerationProvider
from .readiness import ReadinessPoller
from .repository import GenerationRepository

logger = logging.getLogger(__name__)

TITLE_RE = re.compile(r"^#[ \t]+(.+)$", re.MULTILINE)
SLUG_MAX_LENGTH = 100


def split_title(markdown: str, subject_title: str) -> Tuple[str, str]:
    """
    Take the first level-one heading as the post title and drop that line
    from the body. Falls back to "Summary: <subject>" when there is none.
    """
    match = TITLE_RE.search(markdown)
    if not match:
        return f"Summary: {subject_title}", markdown.strip()
    title = match.group(1).strip()
    body = markdown[: match.start()] + markdown[match.end() :]
    return title, body.strip()


def slugify(title: str) -> str:
    slug = title.lower()
    slug = re.sub(r"[^\w\s-]", "", slug, flags=re.ASCII)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    slug = slug.strip("-")
    return slug[:SLUG_MAX_LENGTH]


def millisecond_timestamp() -> str:
    return str(int(time.time() * 1000))


def build_slug(title: str, suffix: str) -> str:
    base = slugify(title)
    return f"{base}-{suffix}" if base else suffix


class _RunState:
    """Status of one run, kept in step with what was written to the store."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        self.status = GenerationStatus.IDLE

    def advance(self, target: GenerationStatus) -> None:
        if target not in ALLOWED_TRANSITIONS[self.status]:
            raise RuntimeError(f"Job {self.job_id}: illegal transition {self.status.value} -> {target.value}")
        self.status = target


class GenerationWorker:
    """
    Drives a generation job through index wait -> provider call -> parsing ->
    persistence. The worker is stateless between runs and relies on the
    repository for job state; the store handle is owned by whoever built the
    worker.
    """

    def __init__(
        self,
        repository: GenerationRepository,
        poller: ReadinessPoller,
        provider: GenerationProvider,
        author_role: str = "admin",
        excerpt_max_length: int = DEFAULT_MAX_LENGTH,
        instructions: str = BLOG_SYSTEM_PROMPT,
        exclusive: bool = False,
        slug_suffix: Callable[[], str] = millisecond_timestamp,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.repo = repository
        self.poller = poller
        self.provider = provider
        self.author_role = author_role
        self.excerpt_max_length = excerpt_max_length
        self.instructions = instructions
        self.exclusive = exclusive
        self.slug_suffix = slug_suffix
        self.clock = clock

    def run_job_by_id(self, job_id: str) -> GenerationResult:
        job = self.repo.get_job(job_id)
        if not job:
            raise JobNotFound(f"Generation job {job_id} not found")
        return self.run_job(job)

    def run_job(self, job: GenerationJobRecord) -> GenerationResult:
        started = self.clock()
        run = _RunState(job.id)
        logger.info("Starting blog generation for job %s (%s)", job.id, job.subject_title)

        try:
            self._begin(run)
            result = self._generate(job, run, started)
        except JobAlreadyRunning:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("Blog generation failed for job %s", job.id)
            recording_error = self._record_failure(run, exc)
            raise GenerationJobFailed(job.id, exc, recording_error) from exc

        logger.info(
            "Blog post %s created for job %s (%.1fs total)",
            result.document_id,
            job.id,
            result.elapsed_seconds,
        )
        return result

    def _begin(self, run: _RunState) -> None:
        run.advance(GenerationStatus.GENERATING)
        progress = "Starting blog generation..."
        if self.exclusive:
            if not self.repo.claim_job(run.job_id, progress=progress):
                raise JobAlreadyRunning(f"Generation job {run.job_id} is missing or already running")
            return
        self.repo.update_job(run.job_id, status=GenerationStatus.GENERATING, progress=progress, clear_error=True)

    def _generate(self, job: GenerationJobRecord, run: _RunState, started: float) -> GenerationResult:
        self._progress(job.id, GenerationPhase.WAITING, "Checking content index status...")
        index_status = self.poller.wait_until_ready(
            job.index_id,
            on_progress=lambda status: self._report_indexing(job.id, status),
        )
        self._progress(job.id, GenerationPhase.WAITING, f"Content index ready ({index_status.completed} files indexed)")

        self._progress(job.id, GenerationPhase.CALLING_PROVIDER, "Generating blog content with AI...")
        response = self.provider.generate(job.subject_title, job.index_id, self.instructions)
        logger.info(
            "Provider answered job %s in %.1fs with status %s",
            job.id,
            self.clock() - started,
            response.status,
        )
        if response.status != RESPONSE_COMPLETED:
            raise GenerationFailure(f"Response failed: {response.status}")
        if not response.text:
            raise GenerationFailure("No text content in response")

        logger.info("Content generated for job %s, length: %s", job.id, len(response.text))
        self._progress(job.id, GenerationPhase.PARSING, "Processing generated content...")
        title, body = split_title(response.text, job.subject_title)
        content = to_lexical(parse_document(body))
        excerpt = extract_excerpt(body, self.excerpt_max_length)
        slug = build_slug(title, self.slug_suffix())

        author = self.repo.find_user_by_role(self.author_role)
        if not author:
            raise NoAuthorAvailable(f"No {self.author_role} user found to set as author")

        self._progress(job.id, GenerationPhase.PERSISTING, "Creating blog post in database...")
        post_id = self.repo.insert_post(
            BlogPostRecord(
                title=title,
                slug=slug,
                content=content,
                excerpt=excerpt,
                author_id=author.id,
                source_job_id=job.id,
                status=PostStatus.DRAFT,
            )
        )

        self.repo.update_job(job.id, status=GenerationStatus.COMPLETED, document_id=post_id)
        run.advance(GenerationStatus.COMPLETED)
        return GenerationResult(
            document_id=post_id,
            title=title,
            slug=slug,
            elapsed_seconds=round(self.clock() - started, 1),
        )

    def _progress(self, job_id: str, phase: GenerationPhase, message: str) -> None:
        logger.debug("Job %s [%s]: %s", job_id, phase.value, message)
        self.repo.update_job(job_id, progress=message)

    def _report_indexing(self, job_id: str, status: IndexStatus) -> None:
        self._progress(job_id, GenerationPhase.WAITING, f"Indexing files... ({status.in_progress} remaining)")

    def _record_failure(self, run: _RunState, exc: Exception) -> Optional[Exception]:
        run.advance(GenerationStatus.ERROR)
        try:
            self.repo.update_job(run.job_id, status=GenerationStatus.ERROR, error_message=str(exc) or "Unknown error")
        except Exception as record_exc:  # noqa: BLE001
            logger.warning("Could not record error status for job %s: %s", run.job_id, record_exc)
            return record_exc
        return None
