from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from openai import OpenAIError
from pydantic import BaseModel

from paper_blog.generation import (
    GenerationError,
    GenerationJobFailed,
    GenerationJobRecord,
    GenerationRepository,
    GenerationWorker,
    RQJobQueue,
    WorkerConfig,
)

from api.dependencies import get_config, get_queue, get_repo, get_worker_builder, require_worker_secret

logger = logging.getLogger(__name__)

router = APIRouter(tags=["generation"], dependencies=[Depends(require_worker_secret)])


class GenerateBlogRequest(BaseModel):
    paperId: Optional[str] = None
    paperTitle: Optional[str] = None
    vectorStoreId: Optional[str] = None
    background: bool = False


def _upsert_job(repo: GenerationRepository, payload: GenerateBlogRequest) -> GenerationJobRecord:
    existing = repo.get_job(payload.paperId)
    if existing:
        job = replace(existing, subject_title=payload.paperTitle, index_id=payload.vectorStoreId)
    else:
        job = GenerationJobRecord(id=payload.paperId, subject_title=payload.paperTitle, index_id=payload.vectorStoreId)
    repo.save_job(job)
    return job


def _error_response(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc) or "Blog generation failed"})


@router.post("/generate-blog")
def generate_blog(
    payload: GenerateBlogRequest,
    repo: GenerationRepository = Depends(get_repo),
    config: WorkerConfig = Depends(get_config),
    worker_builder: Callable[[], GenerationWorker] = Depends(get_worker_builder),
):
    if not payload.paperId or not payload.paperTitle or not payload.vectorStoreId:
        raise HTTPException(status_code=400, detail="Missing required fields: paperId, paperTitle, vectorStoreId")

    try:
        job = _upsert_job(repo, payload)
    except GenerationError as exc:
        logger.exception("Could not store generation job %s", payload.paperId)
        return _error_response(exc)

    if payload.background:
        queue: RQJobQueue = get_queue(config)
        queue.enqueue_generation_job(job.id)
        logger.info("Queued blog generation for job %s", job.id)
        return JSONResponse(status_code=202, content={"jobId": job.id, "queued": True})

    try:
        worker = worker_builder()
    except OpenAIError as exc:
        logger.exception("Could not build generation worker for job %s", job.id)
        return _error_response(exc)

    try:
        result = worker.run_job(job)
    except GenerationJobFailed as exc:
        return _error_response(exc)

    return {
        "success": True,
        "blogPostId": result.document_id,
        "blogTitle": result.title,
        "slug": result.slug,
        "duration": f"{result.elapsed_seconds:.1f}s",
    }
