"""
Example: run one generation job end to end against SQLite.

With --markdown the provider call is replaced by the given file, so no
OpenAI account is needed. Without it the job uses the OpenAI vector store
and Responses API (OPENAI_API_KEY must be set).

Usage:
    python3 generation_demo.py --job-id paper-1 --title "Portfolio Diet" --index-id vs_123
    python3 generation_demo.py --job-id paper-1 --title "Portfolio Diet" --markdown post.md
"""

import argparse
import uuid
from pathlib import Path

from paper_blog.generation import (
    GenerationJobFailed,
    GenerationJobRecord,
    GenerationWorker,
    ReadinessPoller,
    SqlAlchemyGenerationRepository,
    StaticContentIndex,
    StaticGenerationProvider,
    UserRecord,
    WorkerConfig,
    build_worker,
    configure_logging,
)


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--job-id", required=True, help="Generation job id (paper id)")
    parser.add_argument("--title", required=True, help="Paper title")
    parser.add_argument("--index-id", default="local-index", help="Content index (vector store) id")
    parser.add_argument("--markdown", default=None, type=Path, help="Use this file instead of calling the model")
    parser.add_argument("--db", default=Path("./data/paper_blog.db"), type=Path, help="SQLite DB path")
    parser.add_argument("--author-email", default="admin@example.com", help="Created as the admin author if none exists")
    args = parser.parse_args()

    config = WorkerConfig.from_env()
    config.database_url = f"sqlite+pysqlite:///{args.db}"
    configure_logging(config.log_level)
    args.db.parent.mkdir(parents=True, exist_ok=True)

    repo = SqlAlchemyGenerationRepository(config.database_url)
    try:
        if repo.find_user_by_role(config.author_role) is None:
            repo.save_user(UserRecord(id=uuid.uuid4().hex, email=args.author_email, role=config.author_role))

        if args.markdown:
            if not args.markdown.exists():
                raise FileNotFoundError(f"Markdown not found: {args.markdown}")
            worker = GenerationWorker(
                repository=repo,
                poller=ReadinessPoller(StaticContentIndex()),
                provider=StaticGenerationProvider(args.markdown.read_text(encoding="utf-8")),
                author_role=config.author_role,
                excerpt_max_length=config.excerpt_max_length,
            )
        else:
            worker = build_worker(config, repo)

        repo.save_job(GenerationJobRecord(id=args.job_id, subject_title=args.title, index_id=args.index_id))
        print(f"Starting generation job {args.job_id} for {args.title!r}")
        try:
            result = worker.run_job_by_id(args.job_id)
        except GenerationJobFailed as exc:
            print(f"Job failed: {exc}")
            if exc.recording_error is not None:
                print(f"Error status could not be recorded: {exc.recording_error}")
            return

        post = repo.get_post(result.document_id)
        print(f"Created draft {result.document_id} ({result.slug}) in {result.elapsed_seconds}s")
        print(f"Excerpt: {post.excerpt}")
    finally:
        repo.close()


if __name__ == "__main__":
    main()
