"""
Tests for job and application endpoints, and stale application archiving.
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.security import create_access_token
from app.crud import job as job_crud
from app.models.activity_log import ActivityLog
from app.models.candidate import Candidate
from app.models.job import Job, JobApplication
from app.models.profile import UserRole

API = "/api/v1/jobs"


def auth_headers(profile_id):
    """Helper to get authentication headers"""
    return {"Authorization": f"Bearer {create_access_token({'sub': profile_id})}"}


@pytest.fixture
def sample_job_data():
    """Sample job data for testing"""
    return {
        "title": "Sales Representative",
        "description": "Outbound sales for our B2B product line. Quota-carrying role.",
        "department": "Sales",
        "location": "Remote",
        "employment_type": "full_time",
    }


@pytest.fixture
def job(db_session):
    job = Job(title="Sales Rep", description="Sell the product to small businesses.")
    db_session.add(job)
    db_session.commit()
    db_session.refresh(job)
    return job


class TestJobEndpoints:
    """Test job creation and listing"""

    def test_create_job(self, client, hr_headers, sample_job_data):
        response = client.post(f"{API}/", json=sample_job_data, headers=hr_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Sales Representative"
        assert data["status"] == "open"

    def test_managers_cannot_create_jobs(self, client, make_profile, sample_job_data):
        manager = make_profile(UserRole.MANAGER)
        response = client.post(f"{API}/", json=sample_job_data, headers=auth_headers(manager.id))
        assert response.status_code == 403

    def test_create_job_validation(self, client, hr_headers):
        response = client.post(f"{API}/", json={"title": "", "description": "short"}, headers=hr_headers)
        assert response.status_code == 422

    def test_list_hides_private_and_archived(self, client, db_session):
        db_session.add_all([
            Job(title="Open", description="Visible opening"),
            Job(title="Internal", description="Not public", is_public=False),
            Job(title="Old", description="Archived opening", archived=True),
        ])
        db_session.commit()

        response = client.get(f"{API}/")

        assert response.status_code == 200
        assert [j["title"] for j in response.json()] == ["Open"]

    def test_get_job_not_found(self, client):
        response = client.get(f"{API}/999")
        assert response.status_code == 404


class TestApply:
    """Test applying to a job"""

    def test_apply_moves_candidate_to_applied(self, client, db_session, make_profile, job):
        candidate = make_profile(UserRole.CANDIDATE)

        response = client.post(f"{API}/{job.id}/apply", headers=auth_headers(candidate.id))

        assert response.status_code == 201
        assert response.json()["status"] == "applied"
        assert response.json()["job_title"] == "Sales Rep"

        row = db_session.query(Candidate).filter(Candidate.id == candidate.id).one()
        db_session.refresh(row)
        assert row.status == "applied"
        assert row.current_step == 1

        applied = db_session.query(ActivityLog).filter(ActivityLog.action == "applied").one()
        assert applied.details["status"] == "Applied to job: Sales Rep"

    def test_apply_keeps_later_status(self, client, db_session, make_profile, job):
        candidate = make_profile(UserRole.CANDIDATE, status="training", current_step=3)

        response = client.post(f"{API}/{job.id}/apply", headers=auth_headers(candidate.id))

        assert response.status_code == 201
        row = db_session.query(Candidate).filter(Candidate.id == candidate.id).one()
        assert row.status == "training"
        assert row.current_step == 3

    def test_duplicate_application(self, client, make_profile, job):
        candidate = make_profile(UserRole.CANDIDATE)
        headers = auth_headers(candidate.id)

        client.post(f"{API}/{job.id}/apply", headers=headers)
        response = client.post(f"{API}/{job.id}/apply", headers=headers)

        assert response.status_code == 409

    def test_apply_unknown_job(self, client, make_profile):
        candidate = make_profile(UserRole.CANDIDATE)
        response = client.post(f"{API}/404/apply", headers=auth_headers(candidate.id))
        assert response.status_code == 404

    def test_list_applications(self, client, make_profile, job, hr_headers):
        candidate = make_profile(UserRole.CANDIDATE, name="Jamie Doe")
        client.post(f"{API}/{job.id}/apply", headers=auth_headers(candidate.id))

        response = client.get(f"{API}/{job.id}/applications", headers=hr_headers)

        assert response.status_code == 200
        assert response.json()[0]["candidate_name"] == "Jamie Doe"


class TestWithdraw:
    """Test application withdrawal"""

    def test_withdraw_removes_application(self, client, db_session, make_profile, job):
        candidate = make_profile(UserRole.CANDIDATE)
        headers = auth_headers(candidate.id)
        client.post(f"{API}/{job.id}/apply", headers=headers)

        response = client.delete(f"{API}/{job.id}/apply", headers=headers)

        assert response.status_code == 204
        assert db_session.query(JobApplication).count() == 0
        entry = db_session.query(ActivityLog).filter(ActivityLog.action == "withdraw_application").one()
        assert entry.details == {"job_id": job.id, "job_title": job.title}

    def test_withdraw_keeps_pipeline_status(self, client, db_session, make_profile, job):
        candidate = make_profile(UserRole.CANDIDATE)
        headers = auth_headers(candidate.id)
        client.post(f"{API}/{job.id}/apply", headers=headers)

        client.delete(f"{API}/{job.id}/apply", headers=headers)

        row = db_session.get(Candidate, candidate.id)
        db_session.refresh(row)
        assert (row.status, row.current_step) == ("applied", 1)

    def test_can_apply_again_after_withdrawing(self, client, make_profile, job):
        candidate = make_profile(UserRole.CANDIDATE)
        headers = auth_headers(candidate.id)
        client.post(f"{API}/{job.id}/apply", headers=headers)
        client.delete(f"{API}/{job.id}/apply", headers=headers)

        response = client.post(f"{API}/{job.id}/apply", headers=headers)

        assert response.status_code == 201

    def test_withdraw_without_application(self, client, make_profile, job):
        candidate = make_profile(UserRole.CANDIDATE)
        response = client.delete(f"{API}/{job.id}/apply", headers=auth_headers(candidate.id))
        assert response.status_code == 404

    def test_staff_cannot_withdraw(self, client, job, hr_headers):
        response = client.delete(f"{API}/{job.id}/apply", headers=hr_headers)
        assert response.status_code == 403


class TestArchiveStaleApplications:
    """Test the auto-archive job"""

    def test_archives_only_old_open_applications(self, db_session, make_profile, job):
        now = datetime(2026, 10, 1, tzinfo=timezone.utc)
        old = now - timedelta(days=31)
        rows = {}
        for status, created in [("applied", old), ("hired", old), ("archived", old), ("screening", now - timedelta(days=2))]:
            candidate = make_profile(UserRole.CANDIDATE)
            application = JobApplication(candidate_id=candidate.id, job_id=job.id, status=status, created_at=created)
            db_session.add(application)
            rows[status] = application
        db_session.commit()

        archived = job_crud.archive_stale_applications(db_session, days=30, now=now)

        assert archived == 1
        assert rows["applied"].status == "archived"
        assert rows["hired"].status == "hired"
        assert rows["screening"].status == "screening"

    def test_status_match_is_case_insensitive(self, db_session, make_profile, job):
        now = datetime(2026, 10, 1, tzinfo=timezone.utc)
        candidate = make_profile(UserRole.CANDIDATE)
        db_session.add(JobApplication(candidate_id=candidate.id, job_id=job.id, status="Hired", created_at=now - timedelta(days=90)))
        db_session.commit()

        assert job_crud.archive_stale_applications(db_session, days=30, now=now) == 0

    def test_task_uses_configured_threshold(self, monkeypatch):
        from app.tasks import archive_tasks

        calls = []

        class FakeSession:
            def rollback(self):
                pass

            def close(self):
                calls.append("closed")

        monkeypatch.setattr(archive_tasks, "SessionLocal", FakeSession)
        monkeypatch.setattr(archive_tasks.job_crud, "archive_stale_applications", lambda db, days: calls.append(days) or 4)

        result = archive_tasks.archive_stale_applications_task.apply().get()

        assert result == {"status": "success", "archived_count": 4}
        assert calls == [30, "closed"]
