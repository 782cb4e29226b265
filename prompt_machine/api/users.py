"""User tier endpoints (account-management hook)."""
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from prompt_machine.api.deps import get_plan_service
from prompt_machine.features.plans.service import PlanService

router = APIRouter(prefix="/v1/users", tags=["users"])


class TierUpdateRequest(BaseModel):
    tier: str


@router.put("/{user_id}/tier")
def set_user_tier(user_id: str, body: TierUpdateRequest, plans: PlanService = Depends(get_plan_service)):
    """Record a tier change; cached access decisions for the user are dropped."""
    assignment = plans.assign_tier(user_id, body.tier)
    return {"success": True, "data": assignment.to_dict()}


@router.get("/{user_id}/tier")
def get_user_tier(user_id: str, plans: PlanService = Depends(get_plan_service)):
    return {"success": True, "data": {"userId": user_id, "tier": plans.get_user_tier(user_id)}}
