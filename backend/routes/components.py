# backend/routes/components.py
from datetime import timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Request, Response, status
from sqlalchemy.orm import Session

import schemas.component as component_schemas
from database import get_db
from models.component import Component
from models.users import UserRole
from services import inventory
from services.permissions import Caller
from utils.audit import client_ip, write_log
from utils.tokenJWT import get_caller, role_required

router = APIRouter(prefix="/components", tags=["Components"])

staff_only = role_required(UserRole.ADMIN, UserRole.TA)


def _last_modified(components: List[Component]):
    stamps = [c.updated_at or c.created_at for c in components if (c.updated_at or c.created_at)]
    if not stamps:
        return None
    latest = max(s if s.tzinfo else s.replace(tzinfo=timezone.utc) for s in stamps)
    # HTTP dates have second precision
    return latest.replace(microsecond=0)


def _not_modified_since(header: Optional[str], last_modified) -> bool:
    if not header or last_modified is None:
        return False
    try:
        since = parsedate_to_datetime(header)
    except (TypeError, ValueError):
        return False
    if since is None:
        return False
    if since.tzinfo is None:
        since = since.replace(tzinfo=timezone.utc)
    return since >= last_modified


@router.get("", response_model=component_schemas.ComponentList)
def list_components(
    response: Response,
    if_modified_since: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    components = inventory.list_components(db)
    last_modified = _last_modified(components)

    if _not_modified_since(if_modified_since, last_modified):
        return Response(status_code=status.HTTP_304_NOT_MODIFIED)

    last_modified_http = format_datetime(last_modified, usegmt=True) if last_modified else None
    if last_modified_http:
        response.headers["Last-Modified"] = last_modified_http
    response.headers["Cache-Control"] = "private, max-age=0, must-revalidate"
    return {"components": components, "last_modified": last_modified_http}


@router.get("/{component_id}", response_model=component_schemas.ComponentEnvelope)
def get_component(component_id: int, db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    return {"component": inventory.get_component(db, component_id)}


@router.post("", response_model=component_schemas.ComponentEnvelope, status_code=status.HTTP_201_CREATED)
def create_component(
    payload: component_schemas.ComponentCreate,
    request: Request,
    db: Session = Depends(get_db),
    caller: Caller = Depends(staff_only),
):
    component = inventory.create_component(
        db,
        name=payload.name,
        description=payload.description,
        image_url=payload.image_url,
        total_quantity=payload.total_quantity,
        available_quantity=payload.available_quantity,
        category=payload.category,
        location=payload.location,
    )
    write_log(db, user_id=caller.user_id, action="COMPONENT_CREATE", resource="components",
              ip=client_ip(request), meta={"id": component.id, "name": component.name})
    return {"component": component}


@router.put("/{component_id}", response_model=component_schemas.ComponentEnvelope)
def update_component(
    component_id: int,
    payload: component_schemas.ComponentUpdate,
    request: Request,
    db: Session = Depends(get_db),
    caller: Caller = Depends(staff_only),
):
    changes = payload.model_dump(exclude_unset=True)
    component = inventory.update_component(db, component_id, changes)
    write_log(db, user_id=caller.user_id, action="COMPONENT_UPDATE", resource="components",
              ip=client_ip(request), meta={"id": component_id, "fields": sorted(changes)})
    return {"component": component}


@router.delete("/{component_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_component(
    component_id: int,
    request: Request,
    db: Session = Depends(get_db),
    caller: Caller = Depends(staff_only),
):
    inventory.delete_component(db, component_id)
    write_log(db, user_id=caller.user_id, action="COMPONENT_DELETE", resource="components",
              ip=client_ip(request), meta={"id": component_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
