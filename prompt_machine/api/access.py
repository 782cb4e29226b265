"""Access cache administration."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from prompt_machine.api.deps import get_access_cache
from prompt_machine.features.access.cache import AccessCache

logger = logging.getLogger("prompt_machine")

router = APIRouter(prefix="/v1/access", tags=["access"])


class InvalidateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    subject_id: Optional[str] = None
    field_id: Optional[str] = None
    project_id: Optional[str] = None


@router.post("/cache/invalidate")
def invalidate_cache(body: Optional[InvalidateRequest] = None, cache: AccessCache = Depends(get_access_cache)):
    body = body or InvalidateRequest()
    removed = cache.invalidate(subject_id=body.subject_id, field_id=body.field_id, project_id=body.project_id)
    logger.info(
        "access_cache.invalidated",
        extra={"user_id": body.subject_id, "project_id": body.project_id, "field_id": body.field_id, "removed": removed},
    )
    return {"success": True, "removed": removed}
