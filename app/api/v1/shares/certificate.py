from fastapi import APIRouter, Body, Depends

from app.core.deps import AuthorizationService
from app.core.enum import CONTENT_ROLES, UserRole
from app.schemas.shares.certificate import CertificateCreate
from app.services.shares.certificate import CertificateService

router = APIRouter(tags=["Certificates"])


@router.post("/certificates")
async def create_certificate(
    schema: CertificateCreate = Body(),
    certificate_service: CertificateService = Depends(CertificateService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(CONTENT_ROLES)
    return await certificate_service.create_certificate_async(user, schema)


@router.get("/certificates")
async def get_certificates(
    certificate_service: CertificateService = Depends(CertificateService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.require_role(CONTENT_ROLES)
    return await certificate_service.get_certificates_async(user)


@router.get("/certificates/my-certificates")
async def get_my_certificates(
    certificate_service: CertificateService = Depends(CertificateService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user()
    return await certificate_service.get_my_certificates_async(user)


@router.get("/parent/certificates")
async def get_children_certificates(
    certificate_service: CertificateService = Depends(CertificateService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    parent = await authorization.require_role([UserRole.PARENT.value])
    return await certificate_service.get_children_certificates_async(parent)
