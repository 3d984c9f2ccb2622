from datetime import datetime

import pytest

from paper_blog.generation import (
    BlogPostRecord,
    GenerationFailure,
    GenerationJobFailed,
    GenerationJobRecord,
    GenerationStatus,
    GenerationWorker,
    IndexingTimeout,
    IndexStatus,
    InMemoryGenerationRepository,
    JobAlreadyRunning,
    JobNotFound,
    NoAuthorAvailable,
    PersistenceFailure,
    PostStatus,
    ReadinessPoller,
    SqlAlchemyGenerationRepository,
    StaticContentIndex,
    StaticGenerationProvider,
    UserRecord,
    build_slug,
    slugify,
)

BLOG_MARKDOWN = """# 🏃 Want to Run Faster? Try This Snack

Based on the 2018 study "Carbs and Speed" by Smith, Lee, & others in *Sports Medicine*. [Read the full paper](https://doi.org/10.1/run)

Runners who ate a banana before training ran **4% faster** over 5 km.

---

## 📈 The Results: A Small Snack, A Big Win

- **Pace** improved 4%
- **Fatigue** dropped noticeably

## 💡 The Bottom Line

Eat the banana.
"""


class RecordingRepository(InMemoryGenerationRepository):
    """In-memory store that remembers every status write."""

    def __init__(self, fail_error_write=False):
        super().__init__()
        self.status_history = []
        self.fail_error_write = fail_error_write

    def update_job(self, job_id, status=None, **kwargs):
        if status == GenerationStatus.ERROR and self.fail_error_write:
            raise PersistenceFailure("store is down")
        if status is not None:
            self.status_history.append(status)
        super().update_job(job_id, status=status, **kwargs)


class ScriptedIndex:
    def __init__(self, counts):
        self.counts = list(counts)

    def status(self, index_id):
        count = self.counts.pop(0) if len(self.counts) > 1 else self.counts[0]
        return IndexStatus(in_progress=count, completed=1)


def _seed(repo, job_id="paper-1", with_author=True):
    job = GenerationJobRecord(id=job_id, subject_title="Carbs and Speed", index_id="vs_1")
    repo.save_job(job)
    if with_author:
        repo.save_user(UserRecord(id="admin-1", email="admin@example.com", role="admin"))
    return job


def _worker(repo, provider, index=None, max_attempts=3, **kwargs):
    poller = ReadinessPoller(index or StaticContentIndex(), max_attempts=max_attempts, sleep=lambda _: None)
    return GenerationWorker(
        repository=repo,
        poller=poller,
        provider=provider,
        slug_suffix=lambda: "1700000000000",
        **kwargs,
    )


def test_sqlalchemy_repository_roundtrip(tmp_path):
    repo = SqlAlchemyGenerationRepository(f"sqlite+pysqlite:///{tmp_path / 'test.db'}")
    try:
        job = GenerationJobRecord(id="paper-1", subject_title="Paper", index_id="vs_1")
        repo.save_job(job)
        repo.update_job(job.id, status=GenerationStatus.ERROR, error_message="boom", progress="half way")
        fetched = repo.get_job(job.id)
        assert fetched.status == GenerationStatus.ERROR
        assert fetched.error_message == "boom" and fetched.progress == "half way"

        assert repo.claim_job(job.id, progress="Starting") is True
        claimed = repo.get_job(job.id)
        assert claimed.status == GenerationStatus.GENERATING and claimed.error_message is None
        assert repo.claim_job(job.id) is False
        assert repo.claim_job("missing") is False

        repo.save_user(UserRecord(id="u-1", email="editor@example.com", role="editor"))
        repo.save_user(UserRecord(id="u-2", email="admin@example.com", role="admin"))
        assert repo.find_user_by_role("admin").id == "u-2"
        assert repo.find_user_by_role("owner") is None

        post_id = repo.insert_post(
            BlogPostRecord(
                title="T",
                slug="t-1",
                content={"root": {"type": "root", "version": 1, "children": []}},
                excerpt="E",
                author_id="u-2",
                source_job_id=job.id,
                published_date=datetime.utcnow(),
            )
        )
        post = repo.get_post(post_id)
        assert post.status == PostStatus.DRAFT
        assert post.content["root"]["type"] == "root"
        assert [p.id for p in repo.list_posts_for_job(job.id)] == [post_id]
    finally:
        repo.close()


def test_worker_creates_draft_post():
    repo = RecordingRepository()
    job = _seed(repo)
    worker = _worker(repo, StaticGenerationProvider(BLOG_MARKDOWN), index=ScriptedIndex([3, 1, 0]))

    result = worker.run_job(job)

    assert result.title == "🏃 Want to Run Faster? Try This Snack"
    assert result.slug == "want-to-run-faster-try-this-snack-1700000000000"
    assert result.elapsed_seconds >= 0

    stored = repo.get_job(job.id)
    assert stored.status == GenerationStatus.COMPLETED
    assert stored.document_id == result.document_id
    assert stored.error_message is None
    assert repo.status_history == [GenerationStatus.GENERATING, GenerationStatus.COMPLETED]

    post = repo.get_post(result.document_id)
    assert post.status == PostStatus.DRAFT
    assert post.author_id == "admin-1"
    assert post.source_job_id == job.id
    assert post.excerpt.startswith("Based on the 2018 study \"Carbs and Speed\"")
    assert "Read the full paper" in post.excerpt and "**" not in post.excerpt

    children = post.content["root"]["children"]
    assert [c["type"] for c in children] == ["paragraph", "paragraph", "horizontalrule", "heading", "list", "heading", "paragraph"]
    # the title heading is not repeated in the body
    assert all(c.get("tag") != "h1" for c in children)


def test_indexing_progress_is_reported():
    repo = InMemoryGenerationRepository()
    job = _seed(repo)
    seen = []
    original_update = repo.update_job

    def spy(job_id, **kwargs):
        if kwargs.get("progress"):
            seen.append(kwargs["progress"])
        original_update(job_id, **kwargs)

    repo.update_job = spy
    _worker(repo, StaticGenerationProvider(BLOG_MARKDOWN), index=ScriptedIndex([2, 0])).run_job(job)

    assert seen[0] == "Starting blog generation..."
    assert "Indexing files... (2 remaining)" in seen
    assert "Content index ready (1 files indexed)" in seen
    assert seen[-1] == "Creating blog post in database..."


def test_provider_failure_marks_job_error():
    repo = RecordingRepository()
    job = _seed(repo)
    worker = _worker(repo, StaticGenerationProvider(BLOG_MARKDOWN, status="incomplete"))

    with pytest.raises(GenerationJobFailed) as excinfo:
        worker.run_job(job)

    assert isinstance(excinfo.value.error, GenerationFailure)
    assert excinfo.value.recording_error is None
    stored = repo.get_job(job.id)
    assert stored.status == GenerationStatus.ERROR
    assert stored.error_message == "Response failed: incomplete"
    assert repo.list_posts_for_job(job.id) == []
    assert repo.status_history == [GenerationStatus.GENERATING, GenerationStatus.ERROR]


def test_empty_provider_text_is_a_failure():
    repo = RecordingRepository()
    job = _seed(repo)

    with pytest.raises(GenerationJobFailed, match="No text content in response"):
        _worker(repo, StaticGenerationProvider("")).run_job(job)

    assert repo.get_job(job.id).status == GenerationStatus.ERROR


def test_indexing_timeout_skips_provider():
    repo = RecordingRepository()
    job = _seed(repo)
    provider = StaticGenerationProvider(BLOG_MARKDOWN)

    with pytest.raises(GenerationJobFailed) as excinfo:
        _worker(repo, provider, index=ScriptedIndex([5]), max_attempts=2).run_job(job)

    assert isinstance(excinfo.value.error, IndexingTimeout)
    assert provider.calls == 0
    assert "timed out" in repo.get_job(job.id).error_message


def test_missing_author_fails_without_post():
    repo = RecordingRepository()
    job = _seed(repo, with_author=False)

    with pytest.raises(GenerationJobFailed) as excinfo:
        _worker(repo, StaticGenerationProvider(BLOG_MARKDOWN)).run_job(job)

    assert isinstance(excinfo.value.error, NoAuthorAvailable)
    assert repo.get_job(job.id).error_message == "No admin user found to set as author"
    assert repo.posts == {}


def test_error_recording_failure_is_reported_not_raised():
    repo = RecordingRepository(fail_error_write=True)
    job = _seed(repo)

    with pytest.raises(GenerationJobFailed) as excinfo:
        _worker(repo, StaticGenerationProvider(None)).run_job(job)

    failure = excinfo.value
    assert isinstance(failure.error, GenerationFailure)
    assert isinstance(failure.recording_error, PersistenceFailure)
    assert str(failure) == "No text content in response"
    assert failure.__cause__ is failure.error
    # the store never saw a terminal status
    assert repo.status_history == [GenerationStatus.GENERATING]


def test_rerun_clears_previous_error():
    repo = RecordingRepository()
    job = _seed(repo)
    repo.update_job(job.id, status=GenerationStatus.ERROR, error_message="old failure")

    _worker(repo, StaticGenerationProvider(BLOG_MARKDOWN)).run_job(repo.get_job(job.id))

    stored = repo.get_job(job.id)
    assert stored.status == GenerationStatus.COMPLETED
    assert stored.error_message is None


def test_exclusive_worker_refuses_running_job():
    repo = RecordingRepository()
    job = _seed(repo)
    repo.update_job(job.id, status=GenerationStatus.GENERATING, progress="another run")
    provider = StaticGenerationProvider(BLOG_MARKDOWN)

    with pytest.raises(JobAlreadyRunning):
        _worker(repo, provider, exclusive=True).run_job(job)

    stored = repo.get_job(job.id)
    assert stored.status == GenerationStatus.GENERATING
    assert stored.progress == "another run"
    assert provider.calls == 0


def test_exclusive_worker_claims_idle_job():
    repo = RecordingRepository()
    job = _seed(repo)

    result = _worker(repo, StaticGenerationProvider(BLOG_MARKDOWN), exclusive=True).run_job(job)

    assert repo.get_job(job.id).document_id == result.document_id
    assert repo.status_history == [GenerationStatus.GENERATING, GenerationStatus.COMPLETED]


def test_run_job_by_id():
    repo = RecordingRepository()
    _seed(repo)
    worker = _worker(repo, StaticGenerationProvider(BLOG_MARKDOWN))

    assert worker.run_job_by_id("paper-1").title.startswith("🏃")
    with pytest.raises(JobNotFound):
        worker.run_job_by_id("nope")


def test_fallback_title_when_no_heading():
    repo = RecordingRepository()
    job = _seed(repo)
    result = _worker(repo, StaticGenerationProvider("Just a body paragraph.")).run_job(job)
    assert result.title == "Summary: Carbs and Speed"
    assert result.slug == "summary-carbs-and-speed-1700000000000"


def test_duplicate_slug_is_persistence_failure(tmp_path):
    repo = SqlAlchemyGenerationRepository(f"sqlite+pysqlite:///{tmp_path / 'dup.db'}")
    try:
        _seed(repo, job_id="paper-1")
        _seed(repo, job_id="paper-2", with_author=False)
        worker = _worker(repo, StaticGenerationProvider(BLOG_MARKDOWN))

        worker.run_job_by_id("paper-1")
        with pytest.raises(GenerationJobFailed) as excinfo:
            worker.run_job_by_id("paper-2")

        assert isinstance(excinfo.value.error, PersistenceFailure)
        failed = repo.get_job("paper-2")
        assert failed.status == GenerationStatus.ERROR
        assert failed.error_message.startswith("Failed to insert blog post")
        assert repo.get_job("paper-1").status == GenerationStatus.COMPLETED
    finally:
        repo.close()


@pytest.mark.parametrize(
    "title, slug",
    [
        ("🏃 Want to Run Faster? Try This!", "want-to-run-faster-try-this"),
        ("  Spaces   and -- dashes  ", "spaces-and-dashes"),
        ("Café au lait", "caf-au-lait"),
        ("x" * 150, "x" * 100),
    ],
)
def test_slugify(title, slug):
    assert slugify(title) == slug


def test_build_slug_appends_suffix():
    assert build_slug("Hello World", "42") == "hello-world-42"
    assert build_slug("🎉🎉", "42") == "42"


def test_unsaved_job_fails_without_post_in_memory():
    repo = InMemoryGenerationRepository()
    repo.save_user(UserRecord(id="admin-1", email="admin@example.com", role="admin"))
    ghost = GenerationJobRecord(id="ghost", subject_title="T", index_id="vs_1")

    with pytest.raises(GenerationJobFailed) as excinfo:
        _worker(repo, StaticGenerationProvider(BLOG_MARKDOWN)).run_job(ghost)

    assert isinstance(excinfo.value.error, JobNotFound)
    assert isinstance(excinfo.value.recording_error, JobNotFound)
    assert repo.get_job("ghost") is None
    assert repo.posts == {}


def test_unsaved_job_fails_without_post_in_sql(tmp_path):
    repo = SqlAlchemyGenerationRepository(f"sqlite+pysqlite:///{tmp_path / 'ghost.db'}")
    try:
        repo.save_user(UserRecord(id="admin-1", email="admin@example.com", role="admin"))
        ghost = GenerationJobRecord(id="ghost", subject_title="T", index_id="vs_1")

        with pytest.raises(GenerationJobFailed) as excinfo:
            _worker(repo, StaticGenerationProvider(BLOG_MARKDOWN)).run_job(ghost)

        assert isinstance(excinfo.value.error, JobNotFound)
        assert repo.get_job("ghost") is None
        assert repo.list_posts_for_job("ghost") == []
    finally:
        repo.close()


def test_update_of_missing_job_raises(tmp_path):
    with pytest.raises(JobNotFound):
        InMemoryGenerationRepository().update_job("missing", progress="x")

    repo = SqlAlchemyGenerationRepository(f"sqlite+pysqlite:///{tmp_path / 'missing.db'}")
    try:
        with pytest.raises(JobNotFound):
            repo.update_job("missing", status=GenerationStatus.ERROR)
    finally:
        repo.close()


def test_sql_read_errors_are_persistence_failures(tmp_path):
    from paper_blog.generation.repository import Base

    repo = SqlAlchemyGenerationRepository(f"sqlite+pysqlite:///{tmp_path / 'broken.db'}")
    try:
        Base.metadata.drop_all(repo.engine)
        with pytest.raises(PersistenceFailure, match="Failed to load job"):
            repo.get_job("paper-1")
        with pytest.raises(PersistenceFailure, match="Failed to look up author"):
            repo.find_user_by_role("admin")
        with pytest.raises(PersistenceFailure, match="Failed to load blog post"):
            repo.get_post("post-1")
    finally:
        repo.close()
