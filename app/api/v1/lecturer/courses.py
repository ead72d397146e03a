import uuid

from fastapi import APIRouter, Body, Depends, status

from app.core.deps import AuthorizationService
from app.core.enum import CONTENT_ROLES, STAFF_ROLES, UserRole
from app.schemas.lecturer.courses import CourseCreate, CourseCreateForUser, CourseUpdate
from app.services.lecturer.course import CourseService

router = APIRouter(tags=["Course Management"])


@router.post("/courses", status_code=status.HTTP_201_CREATED)
async def create_course(
    schema: CourseCreate = Body(),
    course_service: CourseService = Depends(CourseService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(
        [UserRole.TEACHER.value, UserRole.ADMIN.value], status_code=401
    )
    return await course_service.create_course_async(user, schema)


@router.post("/courses/create-for-user", status_code=status.HTTP_201_CREATED)
async def create_course_for_user(
    schema: CourseCreateForUser = Body(),
    course_service: CourseService = Depends(CourseService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    staff = await authorization.require_role(STAFF_ROLES, status_code=401)
    return await course_service.create_course_for_user_async(staff, schema)


@router.patch("/courses/{course_id}")
async def update_course(
    course_id: uuid.UUID,
    schema: CourseUpdate = Body(),
    course_service: CourseService = Depends(CourseService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(CONTENT_ROLES, status_code=401)
    return await course_service.update_course_async(user, course_id, schema)


@router.delete("/courses/{course_id}")
async def delete_course(
    course_id: uuid.UUID,
    course_service: CourseService = Depends(CourseService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(CONTENT_ROLES, status_code=401)
    return await course_service.delete_course_async(user, course_id)


@router.patch("/courses/{course_id}/publish")
async def toggle_course_publish(
    course_id: uuid.UUID,
    course_service: CourseService = Depends(CourseService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(CONTENT_ROLES, status_code=401)
    return await course_service.toggle_publish_async(user, course_id)


@router.get("/teacher/courses")
async def get_teacher_courses(
    course_service: CourseService = Depends(CourseService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(CONTENT_ROLES, status_code=401)
    return await course_service.get_teacher_courses_async(user)


@router.get("/admin/courses")
async def get_admin_courses(
    course_service: CourseService = Depends(CourseService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(STAFF_ROLES, status_code=401)
    return await course_service.get_own_courses_async(user)


@router.get("/admin/courses/all")
async def get_all_published_courses(
    course_service: CourseService = Depends(CourseService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(CONTENT_ROLES, status_code=401)
    return await course_service.get_all_published_async()
