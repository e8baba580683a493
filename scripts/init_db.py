#!/usr/bin/env python
"""Create the document table on the configured database."""
import logging
from pathlib import Path

from dotenv import load_dotenv

_env_path = Path(__file__).resolve().parents[1] / ".env"
if _env_path.exists():
    load_dotenv(_env_path)

from mealbattle.app.db import models  # noqa: E402,F401
from mealbattle.app.db.base import Base  # noqa: E402
from mealbattle.app.db.session import engine  # noqa: E402

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("init_db")


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("Tables ready on %s", engine.url.render_as_string(hide_password=True))


if __name__ == "__main__":
    init_db()
