import uuid

from fastapi import APIRouter, Depends

from app.core.deps import AuthorizationService
from app.services.user.livestream import StudentLiveStreamService

router = APIRouter(
    prefix="/courses/{course_id}/livestreams/{stream_id}", tags=["User Live Streams"]
)


@router.get("")
async def get_stream(
    course_id: uuid.UUID,
    stream_id: uuid.UUID,
    stream_service: StudentLiveStreamService = Depends(StudentLiveStreamService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(status_code=401)
    return await stream_service.get_stream_async(user, course_id, stream_id)


@router.post("/attend")
async def attend_stream(
    course_id: uuid.UUID,
    stream_id: uuid.UUID,
    stream_service: StudentLiveStreamService = Depends(StudentLiveStreamService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(status_code=401)
    return await stream_service.attend_async(user, stream_id)
