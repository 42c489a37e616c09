"""
Tests for assessment endpoints.
"""

import pytest

from app.core.security import create_access_token
from app.models.profile import UserRole

API = "/api/v1/assessments"


def auth_headers(profile_id):
    """Helper to get authentication headers"""
    return {"Authorization": f"Bearer {create_access_token({'sub': profile_id})}"}


@pytest.fixture
def assessment_data():
    return {
        "title": "Product Basics",
        "topic": "product",
        "difficulty": "easy",
        "questions": [
            {"text": "Q1", "options": ["a", "b", "c"], "correct_answer": 0},
            {"text": "Q2", "options": ["a", "b"], "correct_answer": 1},
            {"text": "Q3", "options": ["a", "b"], "correct_answer": 1},
            {"text": "Q4", "options": ["a", "b", "c", "d"], "correct_answer": 3},
        ],
    }


@pytest.fixture
def assessment(client, hr_headers, assessment_data):
    response = client.post(f"{API}/", json=assessment_data, headers=hr_headers)
    assert response.status_code == 201
    return response.json()


class TestCreateAssessment:
    """Test assessment authoring and validation"""

    def test_staff_see_answer_keys(self, assessment):
        assert [q["correct_answer"] for q in assessment["questions"]] == [0, 1, 1, 3]

    @pytest.mark.parametrize("question", [
        {"text": "Q", "options": ["only"], "correct_answer": 0},
        {"text": "Q", "options": ["a", "  "], "correct_answer": 0},
        {"text": "Q", "options": ["a", "b"], "correct_answer": 2},
    ])
    def test_incomplete_questions_rejected(self, client, hr_headers, question):
        response = client.post(f"{API}/", json={"title": "Bad", "questions": [question]}, headers=hr_headers)
        assert response.status_code == 422

    def test_candidates_cannot_create(self, client, make_profile, assessment_data):
        candidate = make_profile(UserRole.CANDIDATE)
        response = client.post(f"{API}/", json=assessment_data, headers=auth_headers(candidate.id))
        assert response.status_code == 403


class TestTakeAssessment:
    """Test taking and reviewing an assessment"""

    def test_candidate_view_hides_answers(self, client, make_profile, assessment):
        candidate = make_profile(UserRole.CANDIDATE)

        response = client.get(f"{API}/{assessment['id']}", headers=auth_headers(candidate.id))

        assert response.status_code == 200
        assert all("correct_answer" not in q for q in response.json()["questions"])

    def test_submit_scores_attempt(self, client, make_profile, assessment):
        candidate = make_profile(UserRole.CANDIDATE, status="hr_review", current_step=2)
        ids = [q["id"] for q in assessment["questions"]]
        answers = {str(ids[0]): 0, str(ids[1]): 1, str(ids[2]): 1, str(ids[3]): 0}

        response = client.post(
            f"{API}/{assessment['id']}/submit",
            json={"answers": answers, "answer_timings": {str(ids[0]): 12.5}},
            headers=auth_headers(candidate.id)
        )

        assert response.status_code == 201
        data = response.json()
        assert data["score"] == 75
        assert data["passed"] is True
        assert data["completed"] is True
        assert data["answer_timings"] == {str(ids[0]): 12.5}

    def test_failing_attempt(self, client, make_profile, assessment):
        candidate = make_profile(UserRole.CANDIDATE)
        ids = [q["id"] for q in assessment["questions"]]

        response = client.post(
            f"{API}/{assessment['id']}/submit",
            json={"answers": {str(ids[0]): 0}},
            headers=auth_headers(candidate.id)
        )

        assert response.json()["score"] == 25
        assert response.json()["passed"] is False

    def test_unknown_assessment(self, client, make_profile):
        candidate = make_profile(UserRole.CANDIDATE)
        response = client.post(f"{API}/999/submit", json={"answers": {}}, headers=auth_headers(candidate.id))
        assert response.status_code == 404

    def test_review_and_result_visibility(self, client, make_profile, assessment, hr_headers):
        candidate = make_profile(UserRole.CANDIDATE)
        other = make_profile(UserRole.CANDIDATE)
        submitted = client.post(
            f"{API}/{assessment['id']}/submit", json={"answers": {}}, headers=auth_headers(candidate.id)
        ).json()

        review = client.post(
            f"{API}/results/{submitted['id']}/review", json={"feedback": "Study the catalogue"}, headers=hr_headers
        )
        assert review.status_code == 200
        assert review.json()["feedback"] == "Study the catalogue"
        assert review.json()["reviewed_at"] is not None

        own = client.get(f"{API}/results/{submitted['id']}", headers=auth_headers(candidate.id))
        assert own.status_code == 200
        assert client.get(f"{API}/results/{submitted['id']}", headers=auth_headers(other.id)).status_code == 404


class TestGenerateQuestions:
    """Test AI question generation through the remote function"""

    def test_forwards_to_remote_function(self, client, hr_headers, assessment, remote_functions):
        remote_functions.body = {"success": True, "data": {"questions": [{"text": "Generated"}]}}

        response = client.post(
            f"{API}/{assessment['id']}/generate-questions",
            json={"topic": "pricing", "count": 3},
            headers=hr_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["questions"][0]["text"] == "Generated"
        assert remote_functions.calls == [{
            "function": "generate-assessment-questions",
            "payload": {"topic": "pricing", "count": 3, "difficulty": "easy"},
        }]

    def test_remote_failure_is_502(self, client, hr_headers, assessment, remote_functions):
        remote_functions.fail("model overloaded")

        response = client.post(
            f"{API}/{assessment['id']}/generate-questions",
            json={"topic": "pricing"},
            headers=hr_headers
        )

        assert response.status_code == 502
        assert response.json()["detail"] == "model overloaded"

    def test_missing_assessment_is_404_not_502(self, client, hr_headers, remote_functions):
        remote_functions.fail("should not be called")

        response = client.post(f"{API}/999/generate-questions", json={"topic": "x"}, headers=hr_headers)

        assert response.status_code == 404
        assert remote_functions.calls == []
