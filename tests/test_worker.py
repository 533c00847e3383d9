"""
Unit tests for the sweep worker and its command line.
"""
import pytest
from datetime import datetime, timedelta
from types import SimpleNamespace

from conftest import TestingSessionLocal, engine, make_guest
from guestdesk import models, worker
from guestdesk.deps import verify_password
from guestdesk.worker import SweepJob, SweepRunner, create_admin, default_jobs


NOW = datetime(2030, 6, 1, 12, 0, 0)


def config(**overrides):
    fields = {
        "complaint_retention_hours": 24,
        "purge_unresolved_complaints": False,
        "purge_expired_orders": False,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestSweepRunner:
    """Tests for running sweep jobs."""

    def test_run_once_collects_counts(self, db_session):
        seen = []

        def count_job(db, now):
            seen.append(now)
            return 3

        runner = SweepRunner(
            session_factory=TestingSessionLocal,
            jobs=[SweepJob("count", count_job)],
            clock=lambda: NOW,
        )
        assert runner.run_once() == {"count": 3}
        assert seen == [NOW]

    def test_failing_job_does_not_stop_others(self, db_session):
        def broken(db, now):
            raise RuntimeError("boom")

        runner = SweepRunner(
            session_factory=TestingSessionLocal,
            jobs=[SweepJob("broken", broken), SweepJob("fine", lambda db, now: 0)],
            clock=lambda: NOW,
        )
        assert runner.run_once() == {"broken": None, "fine": 0}

    def test_run_forever_sleeps_between_runs(self, db_session):
        naps = []
        runner = SweepRunner(
            session_factory=TestingSessionLocal,
            jobs=[SweepJob("noop", lambda db, now: 0)],
            interval=42,
            clock=lambda: NOW,
            sleep=naps.append,
        )
        runner.run_forever(max_runs=3)
        assert naps == [42, 42]

    def test_real_sweeps_against_database(self, db_session, hotel):
        make_guest(
            db_session,
            hotel,
            status=models.GUEST_APPROVED,
            check_out_date=NOW - timedelta(hours=1),
        )
        runner = SweepRunner(
            session_factory=TestingSessionLocal,
            jobs=default_jobs(config()),
            clock=lambda: NOW,
        )
        assert runner.run_once() == {"expire_guests": 1, "purge_stale_complaints": 0}
        db_session.expire_all()
        assert db_session.query(models.Guest).one().status == models.GUEST_CHECKED_OUT


class TestDefaultJobs:
    """Tests for the configured job list."""

    def test_order_purge_off_by_default(self):
        names = [job.name for job in default_jobs(config())]
        assert names == ["expire_guests", "purge_stale_complaints"]

    def test_order_purge_enabled(self):
        names = [job.name for job in default_jobs(config(purge_expired_orders=True))]
        assert "purge_expired_orders" in names

    def test_complaint_retention_settings_applied(self):
        jobs = default_jobs(config(complaint_retention_hours=6, purge_unresolved_complaints=True))
        complaint_job = jobs[1].func
        assert complaint_job.keywords == {
            "retention": timedelta(hours=6),
            "purge_unresolved": True,
        }


class TestCreateAdmin:
    """Tests for bootstrapping admin accounts."""

    def test_creates_admin(self, db_session):
        admin = create_admin(db_session, "root", "s3cret-pass")
        assert admin.id is not None
        assert verify_password("s3cret-pass", admin.hashed_password)

    def test_resets_existing_password(self, db_session):
        first = create_admin(db_session, "root", "old-pass")
        second = create_admin(db_session, "root", "new-pass")
        assert second.id == first.id
        assert db_session.query(models.Admin).count() == 1
        assert verify_password("new-pass", second.hashed_password)


class TestCommandLine:
    """Tests for the guestdesk-worker entry point."""

    @pytest.fixture(autouse=True)
    def worker_database(self, db_session, monkeypatch):
        monkeypatch.setattr(worker, "SessionLocal", TestingSessionLocal)
        monkeypatch.setattr(worker, "engine", engine)

    def test_create_admin_command(self, db_session):
        assert worker.main(["create-admin", "ops", "ops-pass-123"]) == 0
        assert db_session.query(models.Admin).filter_by(username="ops").count() == 1

    def test_sweep_command(self, db_session, hotel):
        make_guest(
            db_session,
            hotel,
            status=models.GUEST_APPROVED,
            check_out_date=datetime.utcnow() - timedelta(hours=1),
        )
        assert worker.main(["sweep"]) == 0
        db_session.expire_all()
        assert db_session.query(models.Guest).one().status == models.GUEST_CHECKED_OUT

    def test_command_required(self):
        with pytest.raises(SystemExit):
            worker.main([])
