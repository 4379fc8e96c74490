# backend/services/lifecycle.py
"""Request lifecycle state machine.

Legal moves are listed in ``TRANSITIONS``: each (current, target) pair maps to
the permission it needs and the side effect it runs. Anything not in the table
is a validation error. Only PENDING -> APPROVED/REJECTED and
APPROVED -> FULFILLED exist; REJECTED and FULFILLED are terminal.

Business checks run before any write. Two checks can only be decided inside
the transaction: the status write is conditional on the status that was read,
so of two callers moving the same request only one wins, and stock
sufficiency on fulfillment. Either failure rolls the whole transition back.
"""
import logging
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload

from models.component import Component
from models.request import ComponentRequest, RequestItem, RequestStatus
from models.users import User, UserRole
from services import inventory
from services.errors import AuthorizationError, InsufficientStockError, NotFoundError, ValidationError
from services.permissions import Caller, can_delete_request, can_fulfill, can_review, is_admin_or_ta, is_faculty

logger = logging.getLogger(__name__)


class TransitionRule(NamedTuple):
    allowed: Callable[[Caller, ComponentRequest], bool]
    forbidden_message: Callable[[Caller], str]
    side_effect: Optional[Callable[[Session, ComponentRequest], None]] = None


def _review_forbidden(caller: Caller) -> str:
    if is_faculty(caller.role):
        return "forbidden: can only approve/reject requests targeting you"
    return "forbidden: only faculty, admin, or TA can approve/reject requests"


def _may_review(caller: Caller, request: ComponentRequest) -> bool:
    return can_review(caller, request.target_faculty_id)


def _may_fulfill(caller: Caller, request: ComponentRequest) -> bool:
    return can_fulfill(caller)


def _fulfill(db: Session, request: ComponentRequest) -> None:
    inventory.deduct_stock(db, request.items)


TRANSITIONS: Dict[Tuple[RequestStatus, RequestStatus], TransitionRule] = {
    (RequestStatus.PENDING, RequestStatus.APPROVED): TransitionRule(_may_review, _review_forbidden),
    (RequestStatus.PENDING, RequestStatus.REJECTED): TransitionRule(_may_review, _review_forbidden),
    (RequestStatus.APPROVED, RequestStatus.FULFILLED): TransitionRule(
        _may_fulfill, lambda caller: "forbidden: only admin or TA can fulfill requests", _fulfill
    ),
}

# Targets a caller may ask for; PENDING is only ever the initial state
SETTABLE_STATUSES = (RequestStatus.APPROVED, RequestStatus.REJECTED, RequestStatus.FULFILLED)

_ILLEGAL_FROM = {
    RequestStatus.PENDING: "request must be APPROVED before it can be FULFILLED",
    RequestStatus.APPROVED: "approved request can only be set to FULFILLED",
}
_TERMINAL_MESSAGE = "request status can only be updated when status is PENDING or APPROVED"


def parse_status(value: Optional[str]) -> RequestStatus:
    value = (value or "").strip()
    if not value:
        raise ValidationError("status is required")
    try:
        return RequestStatus(value)
    except ValueError:
        raise ValidationError("invalid status")


def _load_request(db: Session, request_id: int) -> ComponentRequest:
    request = (
        db.query(ComponentRequest)
        .options(
            joinedload(ComponentRequest.items).joinedload(RequestItem.component),
            joinedload(ComponentRequest.user),
            joinedload(ComponentRequest.target_faculty),
        )
        .filter(ComponentRequest.id == request_id)
        .first()
    )
    if request is None:
        raise NotFoundError("request not found")
    return request


def get_request(db: Session, request_id: int) -> ComponentRequest:
    return _load_request(db, request_id)


def _claim_status(db: Session, request_id: int, current: RequestStatus, new_status: RequestStatus) -> bool:
    """Compare-and-set on the status column; False when another writer moved it first."""
    result = db.execute(
        update(ComponentRequest)
        .where(ComponentRequest.id == request_id, ComponentRequest.status == current)
        .values(status=new_status)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _stale_transition_error(db: Session, request_id: int) -> Exception:
    # Report what a caller arriving after the competing write would have been told
    latest = db.query(ComponentRequest.status).filter(ComponentRequest.id == request_id).scalar()
    if latest is None:
        return NotFoundError("request not found")
    return ValidationError(_ILLEGAL_FROM.get(latest, _TERMINAL_MESSAGE))


def transition(db: Session, caller: Caller, request_id: int, target: Optional[str]) -> ComponentRequest:
    """Move a request to ``target`` if the table allows it for this caller."""
    new_status = parse_status(target)
    if new_status not in SETTABLE_STATUSES:
        raise ValidationError("status can only be set to APPROVED, REJECTED, or FULFILLED")

    request = _load_request(db, request_id)
    current = request.status

    rule = TRANSITIONS.get((current, new_status))
    if rule is None:
        raise ValidationError(_ILLEGAL_FROM.get(current, _TERMINAL_MESSAGE))

    if not rule.allowed(caller, request):
        raise AuthorizationError(rule.forbidden_message(caller))

    try:
        # The status write comes first so a competing writer on the same request
        # fails here, before any stock moves
        if not _claim_status(db, request_id, current, new_status):
            db.rollback()
            raise _stale_transition_error(db, request_id)
        if rule.side_effect is not None:
            rule.side_effect(db, request)
        db.commit()
    except InsufficientStockError as exc:
        db.rollback()
        logger.warning(
            "Fulfillment of request %s aborted: component %s short of %s",
            request_id, exc.component_id, exc.requested,
        )
        raise
    except Exception:
        db.rollback()
        raise

    logger.info("Request %s moved %s -> %s by user %s", request_id, current.value, new_status.value, caller.user_id)
    return _load_request(db, request_id)


def create_request(
    db: Session,
    caller: Caller,
    *,
    items: Optional[Sequence[dict]],
    target_faculty_id: Optional[int],
    project_title: Optional[str],
) -> ComponentRequest:
    """Create a PENDING request with its items in one transaction.

    ``items`` is a sequence of ``{"component_id": int, "quantity": int}``.
    Stock is not touched until fulfillment.
    """
    if not items:
        raise ValidationError("items are required")
    if target_faculty_id is None:
        raise ValidationError("targetFacultyId is required")
    project_title = (project_title or "").strip()
    if not project_title:
        raise ValidationError("projectTitle is required")

    component_ids: List[int] = []
    for item in items:
        component_id = item.get("component_id")
        quantity = item.get("quantity")
        if component_id is None:
            raise ValidationError("componentId is required")
        if quantity is None or isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("quantity must be a positive number")
        component_ids.append(component_id)

    if len(set(component_ids)) != len(component_ids):
        raise ValidationError("duplicate componentId in request")

    faculty = (
        db.query(User.id)
        .filter(User.id == target_faculty_id, User.role == UserRole.FACULTY)
        .first()
    )
    if faculty is None:
        raise ValidationError("invalid targetFacultyId")

    existing = db.query(Component.id).filter(Component.id.in_(component_ids)).count()
    if existing != len(component_ids):
        raise ValidationError("one or more components not found")

    request = ComponentRequest(
        user_id=caller.user_id,
        target_faculty_id=target_faculty_id,
        project_title=project_title,
        status=RequestStatus.PENDING,
        items=[RequestItem(component_id=item["component_id"], quantity=item["quantity"]) for item in items],
    )
    db.add(request)
    db.commit()
    logger.info("Request %s created by user %s with %s item(s)", request.id, caller.user_id, len(component_ids))
    return _load_request(db, request.id)


def delete_request(db: Session, caller: Caller, request_id: int) -> None:
    request = db.query(ComponentRequest).filter(ComponentRequest.id == request_id).first()
    if request is None:
        raise NotFoundError("request not found")
    if not can_delete_request(caller, request.user_id):
        raise AuthorizationError("forbidden: cannot delete this request")
    if request.status != RequestStatus.PENDING:
        raise ValidationError("request can only be deleted when status is PENDING")

    # Items go with the request through the delete-orphan cascade
    db.delete(request)
    db.commit()
    logger.info("Request %s deleted by user %s", request_id, caller.user_id)


def list_requests(
    db: Session,
    caller: Caller,
    *,
    user_id: Optional[int] = None,
    status: Optional[str] = None,
) -> List[ComponentRequest]:
    """Requests visible to ``caller``.

    Faculty see requests addressed to them, staff see everything and may filter
    by requester, everyone else sees only their own (``user_id`` is ignored).
    """
    query = db.query(ComponentRequest).options(
        joinedload(ComponentRequest.items).joinedload(RequestItem.component),
        joinedload(ComponentRequest.user),
        joinedload(ComponentRequest.target_faculty),
    )

    if status is not None and status.strip():
        query = query.filter(ComponentRequest.status == parse_status(status))

    if is_faculty(caller.role):
        query = query.filter(ComponentRequest.target_faculty_id == caller.user_id)
    elif is_admin_or_ta(caller.role):
        if user_id is not None:
            query = query.filter(ComponentRequest.user_id == user_id)
    else:
        query = query.filter(ComponentRequest.user_id == caller.user_id)

    requests = query.order_by(ComponentRequest.created_at.desc(), ComponentRequest.id.desc()).all()

    if is_faculty(caller.role):
        # Stable sort keeps newest-first inside each group
        requests.sort(key=lambda r: r.status != RequestStatus.PENDING)
    return requests
