from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass
class WorkerConfig:
    database_url: str = "sqlite+pysqlite:///./data/paper_blog.db"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-5.2"
    worker_secret: Optional[str] = None
    redis_url: str = "redis://localhost:6379/0"
    index_max_attempts: int = 120
    index_poll_interval: float = 1.0
    author_role: str = "admin"
    excerpt_max_length: int = 500
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "WorkerConfig":
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_model=os.getenv("OPENAI_MODEL", cls.openai_model),
            worker_secret=os.getenv("WORKER_SECRET"),
            redis_url=os.getenv("REDIS_URL", cls.redis_url),
            index_max_attempts=int(os.getenv("INDEX_MAX_ATTEMPTS", str(cls.index_max_attempts))),
            index_poll_interval=float(os.getenv("INDEX_POLL_INTERVAL", str(cls.index_poll_interval))),
            author_role=os.getenv("AUTHOR_ROLE", cls.author_role),
            excerpt_max_length=int(os.getenv("EXCERPT_MAX_LENGTH", str(cls.excerpt_max_length))),
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, force=True)
