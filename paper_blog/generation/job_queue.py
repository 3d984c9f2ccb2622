from __future__ import annotations

from openai import OpenAI
from redis import Redis
from rq import Queue

from .config import WorkerConfig, configure_logging
from .models import GenerationResult
from .providers import OpenAIResponsesProvider, OpenAIVectorStoreIndex
from .readiness import ReadinessPoller
from .repository import GenerationRepository, SqlAlchemyGenerationRepository
from .worker import GenerationWorker


def build_worker(config: WorkerConfig, repository: GenerationRepository) -> GenerationWorker:
    """Wire the OpenAI-backed collaborators around an existing store handle."""
    client = OpenAI(api_key=config.openai_api_key)
    poller = ReadinessPoller(
        OpenAIVectorStoreIndex(client),
        max_attempts=config.index_max_attempts,
        interval_seconds=config.index_poll_interval,
    )
    return GenerationWorker(
        repository=repository,
        poller=poller,
        provider=OpenAIResponsesProvider(client, model=config.openai_model),
        author_role=config.author_role,
        excerpt_max_length=config.excerpt_max_length,
    )


def run_generation_job(job_id: str) -> GenerationResult:
    """
    RQ task entrypoint. Settings and credentials are read from the worker
    process environment, so the queued payload carries only the job id.
    Owns a store handle for the duration of one job.
    """
    config = WorkerConfig.from_env()
    configure_logging(config.log_level)
    repo = SqlAlchemyGenerationRepository(config.database_url)
    try:
        return build_worker(config, repo).run_job_by_id(job_id)
    finally:
        repo.close()


class RQJobQueue:
    """
    Redis-backed job queue using RQ. Jobs are consumed by a separate
    `rq worker blog-generation` process sharing the API's environment.
    """

    def __init__(self, redis_url: str = "redis://localhost:6379/0", queue_name: str = "blog-generation"):
        self.redis = Redis.from_url(redis_url)
        self.queue = Queue(queue_name, connection=self.redis)

    def enqueue_generation_job(self, job_id: str):
        """
        Enqueue a generation job. RQ job_id is set to the generation job id so
        a duplicate trigger reuses the same queue entry id.
        """
        return self.queue.enqueue(run_generation_job, job_id, job_id=job_id, retry=None)
