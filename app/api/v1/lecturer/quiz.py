import uuid
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status

from app.core.deps import AuthorizationService
from app.core.enum import CONTENT_ROLES, STAFF_ROLES, UserRole
from app.schemas.lecturer.quiz import QuizCreate, QuizPublish, QuizUpdate
from app.services.lecturer.quiz import QuizService

router = APIRouter(tags=["Quiz Management"])


@router.post("/teacher/quizzes", status_code=status.HTTP_201_CREATED)
async def create_quiz(
    schema: QuizCreate = Body(),
    quiz_service: QuizService = Depends(QuizService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(CONTENT_ROLES, status_code=401)
    return await quiz_service.create_quiz_async(user, schema)


@router.patch("/teacher/quizzes/{quiz_id}/publish")
async def set_quiz_published(
    quiz_id: uuid.UUID,
    schema: QuizPublish = Body(),
    quiz_service: QuizService = Depends(QuizService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(CONTENT_ROLES, status_code=401)
    return await quiz_service.set_published_async(user, quiz_id, schema)


@router.patch("/courses/{course_id}/quizzes/{quiz_id}")
async def update_course_quiz(
    course_id: uuid.UUID,
    quiz_id: uuid.UUID,
    schema: QuizUpdate = Body(),
    quiz_service: QuizService = Depends(QuizService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(CONTENT_ROLES, status_code=401)
    return await quiz_service.update_course_quiz_async(user, course_id, quiz_id, schema)


@router.delete("/courses/{course_id}/quizzes/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course_quiz(
    course_id: uuid.UUID,
    quiz_id: uuid.UUID,
    quiz_service: QuizService = Depends(QuizService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(CONTENT_ROLES, status_code=401)
    await quiz_service.delete_course_quiz_async(user, course_id, quiz_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==============================
# 🛠 ADMIN / SUPERVISOR
# ==============================


@router.get("/admin/quizzes")
async def get_all_quizzes(
    quiz_service: QuizService = Depends(QuizService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(STAFF_ROLES)
    return await quiz_service.get_all_quizzes_async()


@router.get("/admin/quizzes/{quiz_id}")
async def get_quiz(
    quiz_id: uuid.UUID,
    quiz_service: QuizService = Depends(QuizService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(STAFF_ROLES)
    return await quiz_service.get_quiz_async(quiz_id)


@router.patch("/admin/quizzes/{quiz_id}")
async def update_quiz(
    quiz_id: uuid.UUID,
    schema: QuizUpdate = Body(),
    quiz_service: QuizService = Depends(QuizService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(STAFF_ROLES)
    return await quiz_service.update_quiz_async(quiz_id, schema)


@router.delete("/admin/quizzes/{quiz_id}")
async def delete_quiz(
    quiz_id: uuid.UUID,
    quiz_service: QuizService = Depends(QuizService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(STAFF_ROLES)
    return await quiz_service.delete_quiz_async(quiz_id)


@router.get("/admin/quiz-results")
async def get_quiz_results(
    quiz_id: Optional[uuid.UUID] = Query(None),
    quiz_service: QuizService = Depends(QuizService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role([UserRole.ADMIN.value])
    return await quiz_service.get_quiz_results_async(quiz_id)
