"""Submission scoring endpoint."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator

from prompt_machine.api.deps import get_project_store, get_resolver, get_subject, get_submission_service
from prompt_machine.api.projects import load_project, require_project_access
from prompt_machine.features.access.resolver import PermissionResolver
from prompt_machine.features.projects.store import ProjectStore
from prompt_machine.features.submissions.service import SubmissionService
from prompt_machine.models.subject import Subject

router = APIRouter(prefix="/v1/projects", tags=["submissions"])


class SubmissionRequest(BaseModel):
    responses: Dict[str, Any] = {}
    strategy: Optional[str] = None

    @field_validator("strategy")
    @classmethod
    def _trim(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


@router.post("/{project_id}/submissions")
def submit(
    project_id: str,
    body: SubmissionRequest,
    subject: Subject = Depends(get_subject),
    store: ProjectStore = Depends(get_project_store),
    resolver: PermissionResolver = Depends(get_resolver),
    service: SubmissionService = Depends(get_submission_service),
):
    project = load_project(project_id, store)
    require_project_access(project, subject, resolver)
    outcome = service.submit(project, body.responses, subject, strategy=body.strategy)
    return outcome.to_dict()
