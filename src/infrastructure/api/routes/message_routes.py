from __future__ import annotations

from fastapi import APIRouter

from src.application.dtos.common_dto import MessageResponse
from src.domain.errors import ErrorCode
from src.infrastructure.observability.logger import logger

router = APIRouter(prefix="/api", tags=["Sample"])


@router.get("/message", response_model=MessageResponse, summary="Sample message")
def get_message():
    """Sample endpoint used by the frontend data-fetching example."""
    logger.info(source=f"{__name__}:get_message", message="Message retrieved successfully", code=ErrorCode.SUCCESS)
    return MessageResponse(success=True, data={"message": "Hello from the API!"})
