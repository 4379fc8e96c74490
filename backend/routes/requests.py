# backend/routes/requests.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, UserRole
from schemas.request import RequestCreate, RequestEnvelope, RequestList, RequestStatusUpdate
from schemas.user import FacultyList
from services import lifecycle
from services.errors import InsufficientStockError
from services.permissions import Caller
from utils.audit import client_ip, write_log
from utils.tokenJWT import get_caller

router = APIRouter(tags=["Requests"])
logger = logging.getLogger(__name__)


# Faculty members a request can be addressed to
@router.get("/faculty", response_model=FacultyList)
def list_faculty(db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    faculty = (
        db.query(User)
        .filter(User.role == UserRole.FACULTY)
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )
    return {"faculty": faculty}


@router.post("/requests", response_model=RequestEnvelope, status_code=status.HTTP_201_CREATED)
def create_request(
    payload: RequestCreate,
    request: Request,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    items = [item.model_dump() for item in payload.items] if payload.items else []
    created = lifecycle.create_request(
        db,
        caller,
        items=items,
        target_faculty_id=payload.target_faculty_id,
        project_title=payload.project_title,
    )
    write_log(db, user_id=caller.user_id, action="REQUEST_CREATE", resource="requests",
              ip=client_ip(request), request_id=created.id, meta={"items": len(items)})
    return {"request": lifecycle.get_request(db, created.id)}


# Role-scoped listing; userId is only honoured for ADMIN/TA
@router.get("/requests", response_model=RequestList)
def list_requests(
    user_id: Optional[int] = Query(None, alias="userId"),
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    return {"requests": lifecycle.list_requests(db, caller, user_id=user_id, status=status_filter)}


@router.put("/requests/{request_id}", response_model=RequestEnvelope)
def update_request_status(
    request_id: int,
    payload: RequestStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    try:
        updated = lifecycle.transition(db, caller, request_id, payload.status)
    except InsufficientStockError as exc:
        write_log(db, user_id=caller.user_id, action="REQUEST_STATUS_CHANGE", resource="requests",
                  status="FAIL", ip=client_ip(request),
                  request_id=request_id, meta={"new": payload.status, "component_id": exc.component_id})
        raise

    write_log(db, user_id=caller.user_id, action="REQUEST_STATUS_CHANGE", resource="requests",
              ip=client_ip(request), request_id=request_id, meta={"new": updated.status.value})
    return {"request": lifecycle.get_request(db, request_id)}


@router.delete("/requests/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_request(
    request_id: int,
    request: Request,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    lifecycle.delete_request(db, caller, request_id)
    write_log(db, user_id=caller.user_id, action="REQUEST_DELETE", resource="requests",
              ip=client_ip(request), request_id=request_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
