import uuid
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.core.route_guard import dashboard_for, resolve_redirect
from app.db.models.database import Course, Question, StudentMessage, SubscriptionPlan, User
from app.services.admin.message import message_matches
from app.services.shares.currency_service import convert_price, format_price
from app.services.shares.subscription_access import course_grantable_by_plan, course_matches_plan
from app.services.user.courses import course_progress
from app.services.user.dashboard import average_best_score
from app.services.user.quiz import grade, is_correct_answer

# ==============================
# 🚦 ROUTE GUARD
# ==============================


@pytest.mark.parametrize(
    "path, role, expected",
    [
        ("/dashboard", None, "/sign-in"),
        ("/dashboard/teacher/courses", None, "/sign-in"),
        ("/dashboard", "USER", None),
        ("/dashboard", "TEACHER", "/dashboard/teacher/courses"),
        ("/dashboard/teacher/courses", "ADMIN", None),
        ("/dashboard/teacher/courses", "USER", "/dashboard"),
        ("/dashboard/admin/staff", "SUPERVISOR", "/dashboard/supervisor/staff"),
        ("/dashboard/parent", "PARENT", None),
        ("/dashboard/parent", "TEACHER", "/dashboard/teacher/courses"),
        ("/sign-in", "PARENT", "/dashboard/parent"),
        ("/sign-in", None, None),
        ("/courses/abc", None, None),
        ("/dashboard-old", None, None),
    ],
)
def test_resolve_redirect(path, role, expected):
    assert resolve_redirect(path, role) == expected


def test_unknown_role_lands_on_student_dashboard():
    assert dashboard_for("SOMETHING") == "/dashboard"


# ==============================
# 💱 CURRENCY
# ==============================


def test_convert_and_format_price():
    assert convert_price(100, 0.032) == Decimal("3.20")
    assert convert_price(Decimal("10.005"), 1) == Decimal("10.01")
    assert format_price(250) == "250.00 EGP"
    assert format_price(250, "USD", {"EGP": 1.0, "USD": 0.02}) == "5.00 $"


# ==============================
# 🎟 SUBSCRIPTION MATCHING
# ==============================


def _course(**targets):
    values = {"is_published": True, "target_curriculum": "egyptian", "target_grade": "3"}
    values.update(targets)
    return Course(user_id=uuid.uuid4(), title="c", **values)


def test_course_matches_plan_requires_level_when_plan_sets_one():
    plan = SubscriptionPlan(curriculum="egyptian", grade="3", level="secondary", price=Decimal("1"))
    assert course_matches_plan(_course(target_level="secondary"), plan)
    assert not course_matches_plan(_course(target_level=None), plan)
    assert not course_matches_plan(_course(target_grade="2", target_level="secondary"), plan)
    assert not course_matches_plan(_course(), None)


def test_course_grantable_ignores_missing_level():
    plan = SubscriptionPlan(curriculum="egyptian", grade="3", level="secondary", price=Decimal("1"))
    assert course_grantable_by_plan(_course(target_level=None), plan)
    assert not course_grantable_by_plan(_course(target_level="primary"), plan)
    assert not course_grantable_by_plan(_course(is_published=False), plan)
    assert not course_grantable_by_plan(_course(target_grade=None), plan)


# ==============================
# 📝 QUIZ GRADING
# ==============================


def _question(kind, correct, points=1):
    return Question(id=uuid.uuid4(), quiz_id=uuid.uuid4(), text="q", type=kind, correct_answer=correct, points=points)


def test_short_answers_ignore_case_and_spaces():
    q = _question("SHORT_ANSWER", "Cairo")
    assert is_correct_answer(q, "  cairo ")
    assert not is_correct_answer(q, "")


def test_choices_must_match_exactly():
    q = _question("MULTIPLE_CHOICE", "Option A")
    assert is_correct_answer(q, " Option A")
    assert not is_correct_answer(q, "option a")


def test_grade_totals_and_percentage():
    q1 = _question("TRUE_FALSE", "true", points=2)
    q2 = _question("MULTIPLE_CHOICE", "B", points=1)
    graded, score, total, percentage = grade([q1, q2], {q1.id: "true"})
    assert (score, total, percentage) == (2, 3, 67)
    assert [g["is_correct"] for g in graded] == [True, False]
    assert graded[1]["student_answer"] == ""


def test_grade_without_points():
    assert grade([], {})[1:] == (0, 0, 0)


# ==============================
# 📊 PROGRESS AND SCORES
# ==============================


def test_course_progress_counts_chapters_and_quizzes():
    ch1, ch2, qz = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    assert course_progress([ch1, ch2], [qz], {ch1}, {qz}) == pytest.approx(200 / 3)
    assert course_progress([], [], set(), set()) == 0


def test_average_best_score_uses_best_attempt_per_quiz():
    a, b = uuid.uuid4(), uuid.uuid4()
    results = [
        SimpleNamespace(quiz_id=a, percentage=40),
        SimpleNamespace(quiz_id=a, percentage=90),
        SimpleNamespace(quiz_id=b, percentage=65),
    ]
    assert average_best_score(results) == 78
    assert average_best_score([]) == 0


# ==============================
# 💬 MESSAGE TARGETING
# ==============================


def test_untargeted_message_reaches_everyone():
    student = User(full_name="s", phone_number="1", email="e", password="p")
    assert message_matches(StudentMessage(message="hi"), student)


def test_targeted_message_needs_every_target():
    student = User(
        full_name="s", phone_number="1", email="e", password="p",
        curriculum="egyptian", grade="3", level="secondary",
    )
    assert message_matches(StudentMessage(message="hi", target_curriculum="egyptian", target_grade="3"), student)
    assert not message_matches(StudentMessage(message="hi", target_grade="2"), student)
    assert not message_matches(StudentMessage(message="hi", target_language="en"), student)


def test_curriculum_type_implies_egyptian():
    student = User(full_name="s", phone_number="1", email="e", password="p", curriculum_type="morning")
    assert message_matches(StudentMessage(message="hi", target_curriculum="egyptian"), student)
