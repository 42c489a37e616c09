"""
Tests for the candidate dashboard, /me and the realtime candidate channel.
"""

from datetime import datetime, timedelta, timezone

import pytest
from starlette.websockets import WebSocketDisconnect

from app.core.security import create_access_token
from app.models.activity_log import ActivityLog
from app.models.profile import UserRole
from app.core.database import get_session_factory
from main import app

API = "/api/v1"


def auth_headers(profile_id):
    """Helper to get authentication headers"""
    return {"Authorization": f"Bearer {create_access_token({'sub': profile_id})}"}


class TestMe:
    """Test role-based dashboard selection"""

    @pytest.mark.parametrize("role,dashboard", [
        ("candidate", "candidate"),
        ("manager", "manager"),
        ("hr", "hr"),
        ("director", "director"),
        ("admin", "admin"),
        ("intern", "candidate"),
    ])
    def test_dashboard_for_role(self, client, make_profile, role, dashboard):
        profile = make_profile(role, with_candidate=False)

        response = client.get(f"{API}/me", headers=auth_headers(profile.id))

        assert response.status_code == 200
        assert response.json()["dashboard"] == dashboard
        assert response.json()["profile"]["id"] == profile.id


class TestDashboard:
    """Test the candidate dashboard payload"""

    def test_missing_candidate_row_is_404(self, client, make_profile):
        profile = make_profile(UserRole.CANDIDATE, with_candidate=False)

        response = client.get(f"{API}/dashboard", headers=auth_headers(profile.id))

        assert response.status_code == 404
        assert response.json()["detail"] == "Candidate record not found"

    def test_dashboard_payload(self, client, db_session, make_profile, submitted_documents):
        candidate = make_profile(UserRole.CANDIDATE, status="hr_approved", current_step=2, **submitted_documents)
        db_session.add(ActivityLog(
            user_id="staff",
            action="status_change",
            entity_type="candidates",
            entity_id=candidate.id,
            details={"status": "hr_approved"},
        ))
        db_session.commit()

        response = client.get(f"{API}/dashboard", headers=auth_headers(candidate.id))

        assert response.status_code == 200
        data = response.json()
        pipeline = data["candidate"]["pipeline"]
        assert pipeline["step"] == 3
        assert pipeline["application_submitted"] is True
        assert pipeline["can_access_training"] is True
        assert [s["state"] for s in data["wizard"]] == ["completed", "completed", "current", "pending"]
        assert data["notifications"][0]["badge"]["label"] == "Training Phase"
        assert data["assessment_results"] == []

    def test_staff_have_no_candidate_dashboard(self, client, hr_headers):
        response = client.get(f"{API}/dashboard", headers=hr_headers)
        assert response.status_code == 403


class TestCandidateChannel:
    """Test the realtime WebSocket channel"""

    def url(self, candidate_id, profile_id):
        token = create_access_token({"sub": profile_id})
        return f"{API}/ws/candidates/{candidate_id}?token={token}"

    def row(self, candidate_id, status, step, updated_at):
        return {"id": candidate_id, "status": status, "current_step": step, "updated_at": updated_at.isoformat()}

    def test_pushes_updates_and_drops_stale_events(self, client, make_profile, change_feed):
        candidate = make_profile(UserRole.CANDIDATE, status="applied", current_step=1)
        now = datetime.now(timezone.utc) + timedelta(minutes=1)

        with client.websocket_connect(self.url(candidate.id, candidate.id)) as websocket:
            snapshot = websocket.receive_json()
            assert snapshot["event"] == "SNAPSHOT"
            assert snapshot["pipeline"]["step"] == 1

            change_feed.publish("candidates", "UPDATE", self.row(candidate.id, "hr_review", 2, now))
            change_feed.publish("candidates", "UPDATE", self.row(candidate.id, "screening", 2, now - timedelta(minutes=5)))
            change_feed.publish("candidates", "UPDATE", self.row(candidate.id, "hr_approved", 3, now + timedelta(seconds=1)))

            first = websocket.receive_json()
            second = websocket.receive_json()

        assert first["candidate"]["status"] == "hr_review"
        assert first["pipeline"]["stage"]["name"] == "Under Review"
        assert second["candidate"]["status"] == "hr_approved"
        assert second["pipeline"]["step"] == 3

    def test_staff_status_change_reaches_candidate(self, client, make_profile, hr_headers):
        candidate = make_profile(UserRole.CANDIDATE, status="applied", current_step=1)

        with client.websocket_connect(self.url(candidate.id, candidate.id)) as websocket:
            websocket.receive_json()
            client.patch(f"{API}/candidates/{candidate.id}/status", json={"status": "screening"}, headers=hr_headers)
            update = websocket.receive_json()

        assert update["event"] == "UPDATE"
        assert update["candidate"]["status"] == "screening"
        assert update["pipeline"]["badge"]["label"] == "Screening"

    def test_subscription_removed_on_close(self, client, make_profile, change_feed):
        candidate = make_profile(UserRole.CANDIDATE)

        with client.websocket_connect(self.url(candidate.id, candidate.id)) as websocket:
            websocket.receive_json()
            assert change_feed.listener_count == 1

        assert change_feed.listener_count == 0

    def test_candidate_cannot_watch_someone_else(self, client, make_profile):
        me = make_profile(UserRole.CANDIDATE)
        other = make_profile(UserRole.CANDIDATE)

        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect(self.url(other.id, me.id)) as websocket:
                websocket.receive_json()

    def test_invalid_token_rejected(self, client, make_profile):
        candidate = make_profile(UserRole.CANDIDATE)

        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect(f"{API}/ws/candidates/{candidate.id}?token=bad") as websocket:
                websocket.receive_json()

    def test_delete_event_closes_channel(self, client, make_profile, change_feed):
        candidate = make_profile(UserRole.CANDIDATE, status="applied", current_step=1)
        row = self.row(candidate.id, "applied", 1, datetime.now(timezone.utc))

        with client.websocket_connect(self.url(candidate.id, candidate.id)) as websocket:
            websocket.receive_json()
            change_feed.publish("candidates", "DELETE", row, old=row)
            message = websocket.receive_json()

        assert message == {"event": "DELETE", "candidate": {"id": candidate.id}}

    def test_manager_cannot_watch_unassigned_candidate(self, client, make_profile):
        manager = make_profile(UserRole.MANAGER)
        candidate = make_profile(UserRole.CANDIDATE)

        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect(self.url(candidate.id, manager.id)) as websocket:
                websocket.receive_json()

    def test_database_session_closed_before_streaming(self, client, make_profile, change_feed):
        candidate = make_profile(UserRole.CANDIDATE, status="applied", current_step=1)
        session_factory = app.dependency_overrides[get_session_factory]()
        opened, closed = [], []

        def tracking_factory():
            session = session_factory()
            close = session.close

            def tracked_close():
                closed.append(session)
                close()

            session.close = tracked_close
            opened.append(session)
            return session

        app.dependency_overrides[get_session_factory] = lambda: tracking_factory

        with client.websocket_connect(self.url(candidate.id, candidate.id)) as websocket:
            websocket.receive_json()
            assert len(opened) == 1
            assert closed == opened
            assert change_feed.listener_count == 1
