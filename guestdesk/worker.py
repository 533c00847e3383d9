"""
Background worker for the GuestDesk sweeps.

Runs outside the API process:

    guestdesk-worker run                 # sweep on a fixed interval, forever
    guestdesk-worker sweep               # run every sweep once and exit
    guestdesk-worker create-admin NAME PASSWORD
"""
import argparse
import logging
import time
from datetime import datetime, timedelta
from functools import partial
from typing import Callable, NamedTuple, Optional

from . import models
from .config import settings
from .database import Base, SessionLocal, engine
from .deps import get_password_hash
from .sweeps import expire_guests, purge_expired_orders, purge_stale_complaints

logger = logging.getLogger(__name__)


class SweepJob(NamedTuple):
    name: str
    func: Callable


def default_jobs(config=settings) -> list:
    jobs = [
        SweepJob("expire_guests", expire_guests),
        SweepJob(
            "purge_stale_complaints",
            partial(
                purge_stale_complaints,
                retention=timedelta(hours=config.complaint_retention_hours),
                purge_unresolved=config.purge_unresolved_complaints,
            ),
        ),
    ]
    if config.purge_expired_orders:
        jobs.append(SweepJob("purge_expired_orders", purge_expired_orders))
    return jobs


class SweepRunner:
    """
    Runs sweep jobs on a fixed interval.

    Every job gets its own session. A failing job is logged and rolled back
    without stopping the others; its result for that run is ``None``.
    """

    def __init__(
        self,
        session_factory=SessionLocal,
        jobs: Optional[list] = None,
        interval: float = settings.sweep_interval_seconds,
        clock: Callable[[], datetime] = datetime.utcnow,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session_factory = session_factory
        self.jobs = jobs if jobs is not None else default_jobs()
        self.interval = interval
        self.clock = clock
        self.sleep = sleep

    def run_once(self) -> dict:
        now = self.clock()
        results = {}
        for job in self.jobs:
            db = self.session_factory()
            try:
                results[job.name] = job.func(db, now)
            except Exception:
                db.rollback()
                logger.exception("Sweep %s failed", job.name)
                results[job.name] = None
            finally:
                db.close()
        return results

    def run_forever(self, max_runs: Optional[int] = None) -> None:
        runs = 0
        while True:
            self.run_once()
            runs += 1
            if max_runs is not None and runs >= max_runs:
                return
            self.sleep(self.interval)


def create_admin(db, username: str, password: str) -> models.Admin:
    admin = db.query(models.Admin).filter(models.Admin.username == username).first()
    if admin is None:
        admin = models.Admin(username=username, hashed_password=get_password_hash(password))
        db.add(admin)
    else:
        admin.hashed_password = get_password_hash(password)
    db.commit()
    db.refresh(admin)
    return admin


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="guestdesk-worker", description="GuestDesk background worker")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="run the sweeps on a fixed interval")
    run.add_argument("--interval", type=float, default=settings.sweep_interval_seconds)

    sub.add_parser("sweep", help="run every sweep once")

    admin = sub.add_parser("create-admin", help="create or reset an admin account")
    admin.add_argument("username")
    admin.add_argument("password")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=settings.log_level)
    Base.metadata.create_all(bind=engine)

    if args.command == "create-admin":
        db = SessionLocal()
        try:
            admin = create_admin(db, args.username, args.password)
        finally:
            db.close()
        logger.info("Admin %s ready", admin.username)
        return 0

    runner = SweepRunner(session_factory=SessionLocal)
    if args.command == "sweep":
        results = runner.run_once()
        logger.info("Sweep results: %s", results)
        return 0 if None not in results.values() else 1

    runner.interval = args.interval
    logger.info("Sweeping every %s seconds", runner.interval)
    runner.run_forever()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
