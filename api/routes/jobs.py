from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from paper_blog.generation import GenerationRepository

from api.dependencies import get_repo, require_worker_secret

router = APIRouter(prefix="/jobs", tags=["jobs"], dependencies=[Depends(require_worker_secret)])


@router.get("/{job_id}")
def get_job(job_id: str, repo: GenerationRepository = Depends(get_repo)):
    job = repo.get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail=f"Job not found: {job_id}")
    return {
        "id": job.id,
        "subject_title": job.subject_title,
        "index_id": job.index_id,
        "status": job.status,
        "progress": job.progress,
        "error_message": job.error_message,
        "document_id": job.document_id,
    }
