"""Template preview endpoint for the schedule editor."""

from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.scheduled_email import PreviewRequest, PreviewResponse
from app.dependencies import get_actor, get_clock, get_db
from services.instance_service import InstanceService

router = APIRouter(tags=["placeholders"])


@router.post("/preview", response_model=PreviewResponse)
async def preview_template(
    request: PreviewRequest,
    actor: str = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> dict:
    """Render {{token}} placeholders as of a date. Unknown tokens pass through."""
    rendered = await InstanceService(db, clock=clock).preview(
        request.template, request.date, request.language.value, actor
    )
    return {"rendered": rendered}
