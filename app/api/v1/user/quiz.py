import uuid

from fastapi import APIRouter, Body, Depends

from app.core.deps import AuthorizationService
from app.schemas.lecturer.quiz import QuizSubmit
from app.services.user.quiz import StudentQuizService

router = APIRouter(prefix="/courses/{course_id}/quizzes/{quiz_id}", tags=["User Quizzes"])


@router.get("")
async def get_quiz(
    course_id: uuid.UUID,
    quiz_id: uuid.UUID,
    quiz_service: StudentQuizService = Depends(StudentQuizService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(status_code=401)
    return await quiz_service.get_quiz_async(user, course_id, quiz_id)


@router.get("/info")
async def get_quiz_info(
    course_id: uuid.UUID,
    quiz_id: uuid.UUID,
    quiz_service: StudentQuizService = Depends(StudentQuizService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(status_code=401)
    return await quiz_service.get_quiz_info_async(user, course_id, quiz_id)


@router.post("/submit")
async def submit_quiz(
    course_id: uuid.UUID,
    quiz_id: uuid.UUID,
    schema: QuizSubmit = Body(),
    quiz_service: StudentQuizService = Depends(StudentQuizService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(status_code=401)
    return await quiz_service.submit_quiz_async(user, course_id, quiz_id, schema)


@router.get("/result")
async def get_quiz_result(
    course_id: uuid.UUID,
    quiz_id: uuid.UUID,
    quiz_service: StudentQuizService = Depends(StudentQuizService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(status_code=401)
    return await quiz_service.get_latest_result_async(user, course_id, quiz_id)
