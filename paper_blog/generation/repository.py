from __future__ import annotations

import json
import uuid
from contextlib import contextmanager
from copy import deepcopy
from datetime import datetime
from typing import Dict, Iterator, List, Optional

from sqlalchemy import Column, DateTime, Enum, String, Text, create_engine, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .errors import JobNotFound, PersistenceFailure
from .models import BlogPostRecord, GenerationJobRecord, GenerationStatus, PostStatus, UserRecord

Base = declarative_base()


class GenerationJobModel(Base):
    __tablename__ = "generation_jobs"
    id = Column(String, primary_key=True)
    subject_title = Column(String)
    index_id = Column(String)
    status = Column(Enum(GenerationStatus))
    progress = Column(String)
    error_message = Column(String)
    document_id = Column(String)
    updated_at = Column(DateTime)


class UserModel(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True)
    email = Column(String)
    role = Column(String, index=True)
    created_at = Column(DateTime)


class BlogPostModel(Base):
    __tablename__ = "blog_posts"
    id = Column(String, primary_key=True)
    title = Column(String)
    slug = Column(String, unique=True, index=True)
    content_json = Column(Text)
    excerpt = Column(Text)
    author_id = Column(String)
    source_job_id = Column(String, index=True)
    status = Column(Enum(PostStatus))
    published_date = Column(DateTime)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)


class GenerationRepository:
    """
    Persistence boundary for generation jobs, produced posts and the users
    posts are attributed to. Every call is an independent read or write;
    nothing here groups job updates into a transaction.
    """

    # Job operations
    def get_job(self, job_id: str) -> Optional[GenerationJobRecord]:
        raise NotImplementedError

    def save_job(self, job: GenerationJobRecord) -> None:
        raise NotImplementedError

    def update_job(
        self,
        job_id: str,
        status: Optional[GenerationStatus] = None,
        progress: Optional[str] = None,
        error_message: Optional[str] = None,
        clear_error: bool = False,
        document_id: Optional[str] = None,
    ) -> None:
        """Partial update of a stored job. Raises JobNotFound when there is none."""
        raise NotImplementedError

    def claim_job(self, job_id: str, progress: Optional[str] = None) -> bool:
        """
        Conditionally move a job to GENERATING. Returns False when the job
        is missing or another run already holds it.
        """
        raise NotImplementedError

    # Users
    def save_user(self, user: UserRecord) -> None:
        raise NotImplementedError

    def find_user_by_role(self, role: str) -> Optional[UserRecord]:
        raise NotImplementedError

    # Posts
    def insert_post(self, post: BlogPostRecord) -> str:
        raise NotImplementedError

    def get_post(self, post_id: str) -> Optional[BlogPostRecord]:
        raise NotImplementedError

    def list_posts_for_job(self, job_id: str) -> List[BlogPostRecord]:
        raise NotImplementedError

    def close(self) -> None:
        return None


class InMemoryGenerationRepository(GenerationRepository):
    """
    Simple in-memory store for local runs and tests. It mirrors the DB shape
    and keeps copies of dataclasses to avoid cross-mutation between calls.
    """

    def __init__(self):
        self.jobs: Dict[str, GenerationJobRecord] = {}
        self.users: Dict[str, UserRecord] = {}
        self.posts: Dict[str, BlogPostRecord] = {}

    def _clone(self, obj):
        return deepcopy(obj)

    def get_job(self, job_id: str) -> Optional[GenerationJobRecord]:
        job = self.jobs.get(job_id)
        return self._clone(job) if job else None

    def save_job(self, job: GenerationJobRecord) -> None:
        self.jobs[job.id] = self._clone(job)

    def update_job(
        self,
        job_id: str,
        status: Optional[GenerationStatus] = None,
        progress: Optional[str] = None,
        error_message: Optional[str] = None,
        clear_error: bool = False,
        document_id: Optional[str] = None,
    ) -> None:
        job = self.jobs.get(job_id)
        if not job:
            raise JobNotFound(f"Generation job {job_id} not found")
        if status is not None:
            job.status = status
        if progress is not None:
            job.progress = progress
        if clear_error:
            job.error_message = None
        if error_message is not None:
            job.error_message = error_message
        if document_id is not None:
            job.document_id = document_id
        job.updated_at = datetime.utcnow()
        self.jobs[job_id] = self._clone(job)

    def claim_job(self, job_id: str, progress: Optional[str] = None) -> bool:
        job = self.jobs.get(job_id)
        if not job or job.status == GenerationStatus.GENERATING:
            return False
        self.update_job(job_id, status=GenerationStatus.GENERATING, progress=progress, clear_error=True)
        return True

    def save_user(self, user: UserRecord) -> None:
        self.users[user.id] = self._clone(user)

    def find_user_by_role(self, role: str) -> Optional[UserRecord]:
        for user in self.users.values():
            if user.role == role:
                return self._clone(user)
        return None

    def insert_post(self, post: BlogPostRecord) -> str:
        stored = self._clone(post)
        stored.id = stored.id or uuid.uuid4().hex
        self.posts[stored.id] = stored
        return stored.id

    def get_post(self, post_id: str) -> Optional[BlogPostRecord]:
        post = self.posts.get(post_id)
        return self._clone(post) if post else None

    def list_posts_for_job(self, job_id: str) -> List[BlogPostRecord]:
        return [self._clone(p) for p in self.posts.values() if p.source_job_id == job_id]


class SqlAlchemyGenerationRepository(GenerationRepository):
    """
    SQL-backed repository using SQLAlchemy. Works with SQLite/Postgres URLs.
    The owner is responsible for calling `close()` to dispose the engine.
    """

    def __init__(self, database_url: str):
        self.engine = create_engine(database_url, future=True)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False, future=True)

    def _session(self) -> Session:
        return self.SessionLocal()

    @contextmanager
    def _reading(self, action: str) -> Iterator[Session]:
        try:
            with self._session() as session:
                yield session
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Failed to {action}: {exc}") from exc

    @contextmanager
    def _writing(self, action: str) -> Iterator[Session]:
        try:
            with self._session() as session:
                yield session
                session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Failed to {action}: {exc}") from exc

    def close(self) -> None:
        self.engine.dispose()

    # region Job operations
    def get_job(self, job_id: str) -> Optional[GenerationJobRecord]:
        with self._reading("load job") as session:
            model = session.get(GenerationJobModel, job_id)
            if not model:
                return None
            return GenerationJobRecord(
                id=model.id,
                subject_title=model.subject_title,
                index_id=model.index_id,
                status=model.status,
                progress=model.progress,
                error_message=model.error_message,
                document_id=model.document_id,
                updated_at=model.updated_at,
            )

    def save_job(self, job: GenerationJobRecord) -> None:
        with self._writing("save job") as session:
            session.merge(
                GenerationJobModel(
                    id=job.id,
                    subject_title=job.subject_title,
                    index_id=job.index_id,
                    status=job.status,
                    progress=job.progress,
                    error_message=job.error_message,
                    document_id=job.document_id,
                    updated_at=job.updated_at,
                )
            )

    def update_job(
        self,
        job_id: str,
        status: Optional[GenerationStatus] = None,
        progress: Optional[str] = None,
        error_message: Optional[str] = None,
        clear_error: bool = False,
        document_id: Optional[str] = None,
    ) -> None:
        values = {}
        if status is not None:
            values["status"] = status
        if progress is not None:
            values["progress"] = progress
        if clear_error:
            values["error_message"] = None
        if error_message is not None:
            values["error_message"] = error_message
        if document_id is not None:
            values["document_id"] = document_id
        if not values:
            return
        values["updated_at"] = datetime.utcnow()
        with self._writing("update job") as session:
            result = session.execute(update(GenerationJobModel).where(GenerationJobModel.id == job_id).values(**values))
            if result.rowcount == 0:
                raise JobNotFound(f"Generation job {job_id} not found")

    def claim_job(self, job_id: str, progress: Optional[str] = None) -> bool:
        values = {"status": GenerationStatus.GENERATING, "error_message": None, "updated_at": datetime.utcnow()}
        if progress is not None:
            values["progress"] = progress
        stmt = (
            update(GenerationJobModel)
            .where(GenerationJobModel.id == job_id)
            .where(GenerationJobModel.status != GenerationStatus.GENERATING)
            .values(**values)
        )
        with self._writing("claim job") as session:
            result = session.execute(stmt)
            return result.rowcount == 1

    # endregion

    # region Users
    def save_user(self, user: UserRecord) -> None:
        with self._writing("save user") as session:
            session.merge(UserModel(id=user.id, email=user.email, role=user.role, created_at=user.created_at))

    def find_user_by_role(self, role: str) -> Optional[UserRecord]:
        with self._reading("look up author") as session:
            stmt = select(UserModel).where(UserModel.role == role).order_by(UserModel.created_at).limit(1)
            model = session.execute(stmt).scalars().first()
            if not model:
                return None
            return UserRecord(id=model.id, email=model.email, role=model.role, created_at=model.created_at)

    # endregion

    # region Posts
    def insert_post(self, post: BlogPostRecord) -> str:
        post_id = post.id or uuid.uuid4().hex
        with self._writing("insert blog post") as session:
            session.add(
                BlogPostModel(
                    id=post_id,
                    title=post.title,
                    slug=post.slug,
                    content_json=json.dumps(post.content, ensure_ascii=False),
                    excerpt=post.excerpt,
                    author_id=post.author_id,
                    source_job_id=post.source_job_id,
                    status=post.status,
                    published_date=post.published_date,
                    created_at=post.created_at,
                    updated_at=post.updated_at,
                )
            )
        return post_id

    def _to_post(self, model: BlogPostModel) -> BlogPostRecord:
        return BlogPostRecord(
            id=model.id,
            title=model.title,
            slug=model.slug,
            content=json.loads(model.content_json or "{}"),
            excerpt=model.excerpt,
            author_id=model.author_id,
            source_job_id=model.source_job_id,
            status=model.status,
            published_date=model.published_date,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def get_post(self, post_id: str) -> Optional[BlogPostRecord]:
        with self._reading("load blog post") as session:
            model = session.get(BlogPostModel, post_id)
            return self._to_post(model) if model else None

    def list_posts_for_job(self, job_id: str) -> List[BlogPostRecord]:
        with self._reading("list blog posts") as session:
            stmt = select(BlogPostModel).where(BlogPostModel.source_job_id == job_id)
            return [self._to_post(m) for m in session.execute(stmt).scalars().all()]

    # endregion
