from __future__ import annotations

import logging
from functools import partial
from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException, Request

from paper_blog.generation import GenerationRepository, GenerationWorker, RQJobQueue, WorkerConfig, build_worker

logger = logging.getLogger(__name__)


def get_config(request: Request) -> WorkerConfig:
    return request.app.state.config


def get_repo(request: Request) -> GenerationRepository:
    return request.app.state.repository


def get_worker_builder(
    config: WorkerConfig = Depends(get_config),
    repo: GenerationRepository = Depends(get_repo),
) -> Callable[[], GenerationWorker]:
    return partial(build_worker, config, repo)


def get_queue(config: WorkerConfig = Depends(get_config)) -> RQJobQueue:
    return RQJobQueue(config.redis_url)


def require_worker_secret(
    authorization: Optional[str] = Header(None),
    config: WorkerConfig = Depends(get_config),
) -> None:
    if not config.worker_secret or authorization != f"Bearer {config.worker_secret}":
        logger.info("Rejected unauthorized request")
        raise HTTPException(status_code=401, detail="Unauthorized")
