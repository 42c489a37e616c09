"""
Tests for training endpoints: access gate, module progress and module quizzes.
"""

import pytest

from app.core.security import create_access_token
from app.models.assessment import Assessment, Question
from app.models.candidate import Candidate
from app.models.profile import UserRole
from app.models.training import TrainingModule, Video

API = "/api/v1/training"


def auth_headers(profile_id):
    """Helper to get authentication headers"""
    return {"Authorization": f"Bearer {create_access_token({'sub': profile_id})}"}


def make_quiz(db_session, title, correct_answers):
    quiz = Assessment(title=title)
    for index, correct in enumerate(correct_answers):
        quiz.questions.append(Question(text=f"{title} {index}", options=["a", "b", "c"], correct_answer=correct, order_number=index))
    db_session.add(quiz)
    db_session.flush()
    return quiz


@pytest.fixture
def modules(db_session):
    """Product (2 videos + quiz), sales (1 video + quiz), culture (1 video, no quiz)."""
    product_quiz = make_quiz(db_session, "Product quiz", [0, 1, 2, 0])
    sales_quiz = make_quiz(db_session, "Sales quiz", [1, 1])

    product = TrainingModule(title="Product", module="product", order_number=1, quiz_id=product_quiz.id)
    product.videos = [Video(title="Intro", url="https://v/1"), Video(title="Catalogue", url="https://v/2")]
    sales = TrainingModule(title="Sales", module="sales", order_number=2, quiz_id=sales_quiz.id)
    sales.videos = [Video(title="Pitching", url="https://v/3")]
    culture = TrainingModule(title="Culture", module="culture", order_number=3)
    culture.videos = [Video(title="Values", url="https://v/4")]

    db_session.add_all([product, sales, culture])
    db_session.commit()
    return {"product": product, "sales": sales, "culture": culture}


@pytest.fixture
def trainee(make_profile, submitted_documents):
    return make_profile(UserRole.CANDIDATE, status="hr_approved", current_step=3, **submitted_documents)


def answers_for(module, correct=True):
    return {
        str(q.id): (q.correct_answer if correct else (q.correct_answer + 1) % 3)
        for q in module.quiz.questions
    }


class TestTrainingAccess:
    """Test the training gate"""

    def test_incomplete_application_is_forbidden(self, client, make_profile, modules):
        candidate = make_profile(UserRole.CANDIDATE, status="hr_approved", current_step=3, resume="cv.pdf")
        response = client.get(f"{API}/modules", headers=auth_headers(candidate.id))
        assert response.status_code == 403

    def test_not_yet_approved_is_forbidden(self, client, make_profile, modules, submitted_documents):
        candidate = make_profile(UserRole.CANDIDATE, status="hr_review", current_step=2, **submitted_documents)
        response = client.get(f"{API}/modules", headers=auth_headers(candidate.id))
        assert response.status_code == 403

    def test_rejected_is_forbidden(self, client, make_profile, modules, submitted_documents):
        candidate = make_profile(UserRole.CANDIDATE, status="rejected", current_step=7, **submitted_documents)
        response = client.get(f"{API}/modules", headers=auth_headers(candidate.id))
        assert response.status_code == 403


class TestModuleProgress:
    """Test module listing and sequential unlocking"""

    def test_initial_state(self, client, trainee, modules):
        response = client.get(f"{API}/modules", headers=auth_headers(trainee.id))

        assert response.status_code == 200
        data = response.json()
        assert [m["title"] for m in data] == ["Product", "Sales", "Culture"]
        assert [m["status"] for m in data] == ["active", "locked", "locked"]

    def test_video_progress(self, client, trainee, modules):
        headers = auth_headers(trainee.id)
        video_id = modules["product"].videos[0].id

        first = client.post(f"{API}/videos/{video_id}/complete", headers=headers)
        again = client.post(f"{API}/videos/{video_id}/complete", headers=headers)
        assert first.status_code == again.status_code == 200

        product = client.get(f"{API}/modules", headers=headers).json()[0]
        assert product["watched_videos"] == 1
        assert product["progress"] == 40
        assert product["status"] == "in_progress"

    def test_unknown_video(self, client, trainee, modules):
        response = client.post(f"{API}/videos/999/complete", headers=auth_headers(trainee.id))
        assert response.status_code == 404


class TestModuleQuiz:
    """Test module quizzes and step advancement"""

    def watch_all(self, client, headers, module):
        for video in module.videos:
            client.post(f"{API}/videos/{video.id}/complete", headers=headers)

    def test_passing_completes_module_and_unlocks_next(self, client, trainee, modules):
        headers = auth_headers(trainee.id)
        self.watch_all(client, headers, modules["product"])

        response = client.post(
            f"{API}/modules/{modules['product'].id}/quiz",
            json={"answers": answers_for(modules["product"])},
            headers=headers
        )

        assert response.status_code == 200
        assert response.json()["passed"] is True
        assert response.json()["current_step"] == 3

        data = client.get(f"{API}/modules", headers=headers).json()
        assert data[0]["status"] == "completed"
        assert data[1]["status"] == "active"

    def test_sales_quiz_advances_to_interview(self, client, db_session, trainee, modules):
        headers = auth_headers(trainee.id)
        self.watch_all(client, headers, modules["product"])
        client.post(f"{API}/modules/{modules['product'].id}/quiz", json={"answers": answers_for(modules["product"])}, headers=headers)

        response = client.post(
            f"{API}/modules/{modules['sales'].id}/quiz",
            json={"answers": answers_for(modules["sales"])},
            headers=headers
        )

        assert response.json()["current_step"] == 4
        row = db_session.query(Candidate).filter(Candidate.id == trainee.id).one()
        assert row.current_step == 4

    def test_failing_keeps_step(self, client, trainee, modules):
        headers = auth_headers(trainee.id)

        response = client.post(
            f"{API}/modules/{modules['product'].id}/quiz",
            json={"answers": answers_for(modules["product"], correct=False)},
            headers=headers
        )

        assert response.status_code == 200
        assert response.json()["score"] == 0
        assert response.json()["passed"] is False
        assert response.json()["current_step"] == 3

    def test_earlier_module_never_regresses_step(self, client, make_profile, modules, submitted_documents):
        candidate = make_profile(UserRole.CANDIDATE, status="paid_project", current_step=5, **submitted_documents)

        response = client.post(
            f"{API}/modules/{modules['product'].id}/quiz",
            json={"answers": answers_for(modules["product"])},
            headers=auth_headers(candidate.id)
        )

        assert response.json()["passed"] is True
        assert response.json()["current_step"] == 5

    def test_locked_module_rejected(self, client, trainee, modules):
        response = client.post(
            f"{API}/modules/{modules['sales'].id}/quiz",
            json={"answers": answers_for(modules["sales"])},
            headers=auth_headers(trainee.id)
        )
        assert response.status_code == 403

    def test_module_without_quiz_completes_on_videos(self, client, trainee, modules):
        headers = auth_headers(trainee.id)
        for name in ("product", "sales"):
            self.watch_all(client, headers, modules[name])
            client.post(f"{API}/modules/{modules[name].id}/quiz", json={"answers": answers_for(modules[name])}, headers=headers)
        self.watch_all(client, headers, modules["culture"])

        culture = client.get(f"{API}/modules", headers=headers).json()[2]
        assert culture["progress"] == 100
        assert culture["status"] == "completed"

        response = client.post(f"{API}/modules/{modules['culture'].id}/quiz", json={"answers": {}}, headers=headers)
        assert response.status_code == 400


class TestTrainingContent:
    """Test staff management of modules and videos"""

    def test_candidates_cannot_manage_content(self, client, trainee):
        response = client.post(
            f"{API}/content/modules",
            json={"title": "Product", "module": "product"},
            headers=auth_headers(trainee.id)
        )
        assert response.status_code == 403

    def test_managers_cannot_manage_content(self, client, make_profile):
        manager = make_profile(UserRole.MANAGER)
        response = client.get(f"{API}/content/modules", headers=auth_headers(manager.id))
        assert response.status_code == 403

    def test_create_module_with_videos(self, client, db_session, hr_headers):
        quiz = make_quiz(db_session, "Product quiz", [0])
        db_session.commit()

        response = client.post(
            f"{API}/content/modules",
            json={
                "title": "Product",
                "module": "product",
                "order_number": 1,
                "quiz_id": quiz.id,
                "videos": [{"title": "Intro", "url": "https://v/1", "duration": "5:00"}],
            },
            headers=hr_headers
        )

        assert response.status_code == 201
        data = response.json()
        assert data["quiz_id"] == quiz.id
        assert [v["title"] for v in data["videos"]] == ["Intro"]
        assert data["archived"] is False

    def test_create_module_unknown_quiz(self, client, hr_headers):
        response = client.post(
            f"{API}/content/modules",
            json={"title": "Product", "module": "product", "quiz_id": 999},
            headers=hr_headers
        )
        assert response.status_code == 400

    def test_update_module(self, client, modules, hr_headers):
        response = client.patch(
            f"{API}/content/modules/{modules['culture'].id}",
            json={"title": "Company culture", "order_number": 0},
            headers=hr_headers
        )

        assert response.status_code == 200
        assert response.json()["title"] == "Company culture"
        assert response.json()["module"] == "culture"

        listing = client.get(f"{API}/content/modules", headers=hr_headers).json()
        assert listing[0]["title"] == "Company culture"

    def test_empty_update_rejected(self, client, modules, hr_headers):
        response = client.patch(f"{API}/content/modules/{modules['sales'].id}", json={}, headers=hr_headers)
        assert response.status_code == 400

    def test_archived_module_hidden_from_candidates(self, client, modules, trainee, hr_headers):
        response = client.delete(f"{API}/content/modules/{modules['product'].id}", headers=hr_headers)
        assert response.status_code == 204

        titles = [m["title"] for m in client.get(f"{API}/modules", headers=auth_headers(trainee.id)).json()]
        assert titles == ["Sales", "Culture"]

        staff_view = client.get(f"{API}/content/modules?include_archived=true", headers=hr_headers).json()
        assert [m["archived"] for m in staff_view] == [True, False, False]

    def test_add_update_and_archive_video(self, client, modules, trainee, hr_headers):
        culture_id = modules["culture"].id

        added = client.post(
            f"{API}/content/modules/{culture_id}/videos",
            json={"title": "History", "url": "https://v/5"},
            headers=hr_headers
        )
        assert added.status_code == 201
        video_id = added.json()["id"]

        renamed = client.patch(f"{API}/content/videos/{video_id}", json={"duration": "3:30"}, headers=hr_headers)
        assert renamed.json()["duration"] == "3:30"

        assert client.delete(f"{API}/content/videos/{video_id}", headers=hr_headers).status_code == 204

        culture = next(
            m for m in client.get(f"{API}/modules", headers=auth_headers(trainee.id)).json()
            if m["id"] == culture_id
        )
        assert [v["title"] for v in culture["videos"]] == ["Values"]

    def test_missing_module_or_video(self, client, hr_headers):
        assert client.patch(f"{API}/content/modules/999", json={"title": "x"}, headers=hr_headers).status_code == 404
        assert client.delete(f"{API}/content/videos/999", headers=hr_headers).status_code == 404
