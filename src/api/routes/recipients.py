"""Recipient API routes."""

from uuid import UUID

from fastapi import APIRouter, Response, status

from src.api.deps import CurrentUser
from src.schemas.recipient import (
    RecipientCreate,
    RecipientListResponse,
    RecipientResponse,
    RecipientUpdate,
)
from src.services.recipient_service import RecipientService

router = APIRouter(prefix="/recipients", tags=["recipients"])


@router.get("", response_model=RecipientListResponse, summary="List my recipients")
async def list_recipients(user: CurrentUser) -> RecipientListResponse:
    service = RecipientService()
    recipients = await service.list_recipients(user.user_id)
    return RecipientListResponse(items=[RecipientResponse(**r) for r in recipients])


@router.post(
    "",
    response_model=RecipientResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add recipient",
)
async def create_recipient(data: RecipientCreate, user: CurrentUser) -> RecipientResponse:
    service = RecipientService()
    recipient = await service.create_recipient(user.user_id, data)
    return RecipientResponse(**recipient)


@router.patch("/{recipient_id}", response_model=RecipientResponse, summary="Update recipient")
async def update_recipient(recipient_id: UUID, data: RecipientUpdate, user: CurrentUser) -> RecipientResponse:
    service = RecipientService()
    recipient = await service.update_recipient(recipient_id, user.user_id, data)
    return RecipientResponse(**recipient)


@router.delete(
    "/{recipient_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete recipient",
    description="Refused with 409 when orders exist for the recipient.",
)
async def delete_recipient(recipient_id: UUID, user: CurrentUser) -> Response:
    service = RecipientService()
    await service.delete_recipient(recipient_id, user.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
