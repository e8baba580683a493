#!/usr/bin/env python
"""
Weekly battle jobs, meant to be run from cron in the battle timezone.

    run_battle_jobs.py process-end   # close the current battle and award points
    run_battle_jobs.py generate      # open next week's battle
"""
import argparse
import asyncio
import logging
from pathlib import Path

from dotenv import load_dotenv

_env_path = Path(__file__).resolve().parents[1] / ".env"
if _env_path.exists():
    load_dotenv(_env_path)

from mealbattle.app.core.config import get_settings  # noqa: E402
from mealbattle.app.db.session import SessionLocal  # noqa: E402
from mealbattle.app.services import battle_service  # noqa: E402
from mealbattle.app.services.document_store import DocumentStore  # noqa: E402
from mealbattle.app.services.llm_client import LLMProxyTextGenerator  # noqa: E402

logger = logging.getLogger("battle_jobs")


def run_generate() -> int:
    generator = LLMProxyTextGenerator.from_settings()
    with SessionLocal() as db:
        key = asyncio.run(battle_service.generate_battle_ingredients(DocumentStore(db), generator))
    if key is None:
        logger.error("No battle was created")
        return 1
    logger.info("Created battle %s", key)
    return 0


def run_process_end() -> int:
    with SessionLocal() as db:
        winners = battle_service.process_battle_end(DocumentStore(db))
    if winners is None:
        logger.info("Battle closed without winners")
    else:
        logger.info("Battle closed; winners: %s", ", ".join(w.user_id for w in winners))
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Run weekly battle jobs")
    parser.add_argument("job", choices=["generate", "process-end"])
    args = parser.parse_args()

    logging.basicConfig(level=get_settings().log_level.upper())
    try:
        if args.job == "generate":
            return run_generate()
        return run_process_end()
    except Exception:  # noqa: BLE001
        logger.exception("Battle job %s failed", args.job)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
