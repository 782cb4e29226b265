"""Project registration and access endpoints."""
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from pydantic import ValidationError as PydanticValidationError

from prompt_machine.api.deps import get_project_store, get_resolver, get_subject, get_upgrade_builder
from prompt_machine.core.errors import (
    NotFoundError,
    ProjectAccessDeniedError,
    UpgradeRequiredError,
    ValidationError,
)
from prompt_machine.features.access.resolver import PermissionResolver
from prompt_machine.features.projects.store import ProjectStore
from prompt_machine.features.upgrades.builder import UpgradePromptBuilder
from prompt_machine.models.access import AccessDecision
from prompt_machine.models.field import Project
from prompt_machine.models.subject import Subject

router = APIRouter(prefix="/v1/projects", tags=["projects"])


def load_project(project_id: str, store: ProjectStore) -> Project:
    project = store.get(project_id)
    if project is None:
        raise NotFoundError(f"Project {project_id} not found")
    return project


def require_project_access(project: Project, subject: Subject, resolver: PermissionResolver) -> AccessDecision:
    decision = resolver.resolve_project_access(subject, project)
    if not decision.allowed:
        if decision.required_tier:
            message = f"This project requires a {resolver.tiers.display_name(decision.required_tier)} subscription"
        else:
            message = "Access denied"
        raise ProjectAccessDeniedError(message, required_tier=decision.required_tier)
    return decision


@router.put("/{project_id}")
def register_project(
    project_id: str,
    body: Dict[str, Any] = Body(...),
    store: ProjectStore = Depends(get_project_store),
):
    try:
        project = Project.model_validate({**body, "projectId": project_id})
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid project definition: {exc.error_count()} error(s)")
    store.register(project)
    return {"success": True, "data": {"projectId": project.project_id, "fieldCount": len(project.fields)}}


@router.get("/{project_id}/access")
def project_access(
    project_id: str,
    subject: Subject = Depends(get_subject),
    store: ProjectStore = Depends(get_project_store),
    resolver: PermissionResolver = Depends(get_resolver),
):
    project = load_project(project_id, store)
    decision = require_project_access(project, subject, resolver)
    return {"success": True, **decision.to_dict()}


@router.get("/{project_id}/fields")
def field_overview(
    project_id: str,
    subject: Subject = Depends(get_subject),
    store: ProjectStore = Depends(get_project_store),
    resolver: PermissionResolver = Depends(get_resolver),
):
    project = load_project(project_id, store)
    require_project_access(project, subject, resolver)
    overview = resolver.field_overview(subject, project.fields, project.project_id)
    return {"success": True, "data": overview.to_dict()}


@router.get("/{project_id}/fields/{field_id}/access")
def field_access(
    project_id: str,
    field_id: str,
    subject: Subject = Depends(get_subject),
    store: ProjectStore = Depends(get_project_store),
    resolver: PermissionResolver = Depends(get_resolver),
    prompts: UpgradePromptBuilder = Depends(get_upgrade_builder),
):
    project = load_project(project_id, store)
    field = project.field(field_id)
    if field is None:
        raise NotFoundError(f"Field {field_id} not found")

    decision = resolver.resolve_field_access(subject, field, project.project_id)
    if not decision.allowed:
        raise UpgradeRequiredError(
            "Premium field access required",
            upgrade_prompt=prompts.field_denied_prompt(decision.required_tier),
            required_tier=decision.required_tier,
        )
    return {"success": True, **decision.to_dict()}
