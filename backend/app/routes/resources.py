"""
Learning Center resource routes.
Managers curate documents, videos and links; agents browse them by phase.
"""

from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict
from sqlmodel import Session, col, select

from app.auth import require_manager, require_user
from app.database import get_session
from app.models.resource import RESOURCE_TYPES, Resource
from app.models.user import User
from app.services.onboarding import parse_phase

router = APIRouter()


class ResourceCreateRequest(BaseModel):
    title: str
    description: Optional[str] = None
    type: str = "document"
    file_url: Optional[str] = None
    phases: List[str] = []
    order: int = 0


class ResourceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    type: str
    file_url: Optional[str] = None
    phases: List[str]
    order: int
    created_at: datetime


class ResourceListResponse(BaseModel):
    resources: List[ResourceResponse]
    type_counts: Dict[str, int]


@router.post("/resources", response_model=ResourceResponse, status_code=201)
def create_resource(
    request: ResourceCreateRequest,
    session: Session = Depends(get_session),
    manager: User = Depends(require_manager),
):
    if not request.phases:
        raise HTTPException(status_code=400, detail="Please select at least one phase")
    if request.type not in RESOURCE_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid resource type '{request.type}'. Expected one of: {', '.join(RESOURCE_TYPES)}",
        )
    try:
        phases = [parse_phase(p).value for p in request.phases]
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if request.type == "link" and not request.file_url:
        raise HTTPException(status_code=400, detail="Link resources need a URL")

    resource = Resource(
        title=request.title,
        description=request.description,
        type=request.type,
        file_url=request.file_url,
        phases=phases,
        order=request.order,
    )
    session.add(resource)
    session.commit()
    session.refresh(resource)
    return resource


@router.get("/resources", response_model=ResourceListResponse)
def list_resources(
    phase: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    type: str = Query(default="all"),
    session: Session = Depends(get_session),
    user: User = Depends(require_user),
):
    """
    Resources for a phase, filtered by search term and type.

    type_counts reflect the phase and search filters but not the type
    filter, so every tab shows its own total.
    """
    resources = session.exec(
        select(Resource).order_by(col(Resource.order), col(Resource.id))
    ).all()

    if phase:
        try:
            phase = parse_phase(phase).value
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        resources = [r for r in resources if phase in (r.phases or [])]

    if search:
        term = search.lower()
        resources = [
            r
            for r in resources
            if term in (r.title or "").lower() or term in (r.description or "").lower()
        ]

    type_counts = {"all": len(resources)}
    for resource_type in RESOURCE_TYPES:
        type_counts[resource_type] = sum(1 for r in resources if r.type == resource_type)

    if type != "all":
        resources = [r for r in resources if r.type == type]

    return ResourceListResponse(
        resources=[ResourceResponse.model_validate(r) for r in resources],
        type_counts=type_counts,
    )


@router.delete("/resources/{resource_id}", status_code=204)
def delete_resource(
    resource_id: int,
    session: Session = Depends(get_session),
    manager: User = Depends(require_manager),
):
    resource = session.get(Resource, resource_id)
    if not resource:
        raise HTTPException(status_code=404, detail="Resource not found")
    session.delete(resource)
    session.commit()
