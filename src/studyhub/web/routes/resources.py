"""Learning resource endpoints for the signed-in user."""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from studyhub.db.data_service import (
    AuthUser,
    DataService,
    any_of,
    contains,
    desc,
    eq,
    select_one,
)
from studyhub.utils.validators import now_iso
from studyhub.web.deps import get_current_user, get_data_service
from studyhub.web.schemas import Envelope, ResourceCreate, ResourceUpdate

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/resources", tags=["resources"])


def _get_own_resource(service: DataService, resource_id: str, user_id: str) -> dict[str, Any]:
    """Resource owned by the user, or 404."""
    resource = select_one(
        service,
        "learning_resources",
        [eq("id", resource_id), eq("user_id", user_id)],
    )
    if resource is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Resource not found or you don't have permission",
        )
    return resource


@router.post("/", response_model=Envelope, status_code=status.HTTP_201_CREATED)
def create_resource(
    body: ResourceCreate,
    user: AuthUser = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> Envelope:
    resource = service.insert(
        "learning_resources",
        {"user_id": user.id, **body.model_dump()},
    )
    logger.info("resource_created", resource_id=resource["id"], user_id=user.id)
    return Envelope(message="Resource created successfully", data=resource)


@router.get("/", response_model=Envelope)
def get_resources(
    subject: str | None = None,
    resource_type: str | None = None,
    tag: str | None = None,
    user: AuthUser = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Own and public resources, newest first."""
    filters: list = [any_of(eq("user_id", user.id), eq("is_public", True))]
    if subject:
        filters.append(eq("subject", subject))
    if resource_type:
        filters.append(eq("resource_type", resource_type))
    if tag:
        filters.append(contains("tags", [tag]))

    resources = service.select(
        "learning_resources",
        filters=filters,
        order=[desc("created_at")],
    )
    return Envelope(data=resources)


@router.put("/{resource_id}", response_model=Envelope)
def update_resource(
    resource_id: str,
    body: ResourceUpdate,
    user: AuthUser = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> Envelope:
    _get_own_resource(service, resource_id, user.id)
    changes = body.model_dump(exclude_unset=True)
    changes["updated_at"] = now_iso()
    updated = service.update(
        "learning_resources",
        changes,
        [eq("id", resource_id), eq("user_id", user.id)],
    )
    return Envelope(message="Resource updated successfully", data=updated[0])


@router.delete("/{resource_id}", response_model=Envelope)
def delete_resource(
    resource_id: str,
    user: AuthUser = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> Envelope:
    _get_own_resource(service, resource_id, user.id)
    service.delete("learning_resources", [eq("id", resource_id), eq("user_id", user.id)])
    return Envelope(message="Resource deleted successfully")
