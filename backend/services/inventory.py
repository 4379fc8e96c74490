# backend/services/inventory.py
"""Inventory ledger.

Keeps ``0 <= available_quantity <= total_quantity`` for every component. Stock
only leaves the ledger through :func:`deduct_stock`, a conditional UPDATE that
matches no row when the component is short, so two concurrent fulfillments
can never both overdraw the same component. The only other writers are the
staff CRUD operations below, which re-validate both quantities before writing.
"""
import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session

from models.component import Component, ComponentCategory, ComponentLocation
from models.request import RequestItem
from services.errors import ConflictError, InsufficientStockError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Fields staff may change on a component, besides the two quantities
EDITABLE_FIELDS = ("name", "description", "image_url", "category", "location")


def _check_non_negative(value: int, field: str) -> None:
    if value is None or isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{field} must be a non-negative number")


def resolve_quantities(
    current_total: int,
    current_available: int,
    total: Optional[int] = None,
    available: Optional[int] = None,
) -> Tuple[int, int]:
    """Work out the quantities a component ends up with after an edit.

    A new total without an explicit available quantity re-bases the available
    quantity onto the new total.
    """
    if total is not None:
        _check_non_negative(total, "totalQuantity")
    if available is not None:
        _check_non_negative(available, "availableQuantity")

    next_total = total if total is not None else current_total
    if available is not None:
        next_available = available
    elif total is not None:
        next_available = total
    else:
        next_available = current_available

    if next_available > next_total:
        raise ValidationError("availableQuantity cannot be greater than totalQuantity")
    return next_total, next_available


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def get_component(db: Session, component_id: int) -> Component:
    component = db.query(Component).filter(Component.id == component_id).first()
    if component is None:
        raise NotFoundError("component not found")
    return component


def list_components(db: Session) -> List[Component]:
    return db.query(Component).order_by(Component.created_at.desc(), Component.id.desc()).all()


def create_component(
    db: Session,
    *,
    name: Optional[str],
    description: Optional[str] = None,
    image_url: Optional[str] = None,
    total_quantity: Optional[int] = None,
    available_quantity: Optional[int] = None,
    category: Optional[ComponentCategory] = None,
    location: Optional[ComponentLocation] = None,
) -> Component:
    name = _clean_text(name)
    if not name:
        raise ValidationError("name is required")

    # Without an explicit available quantity the whole stock starts available
    total, available = resolve_quantities(
        0, 0, total_quantity if total_quantity is not None else 0, available_quantity
    )

    component = Component(
        name=name,
        description=_clean_text(description),
        image_url=_clean_text(image_url),
        total_quantity=total,
        available_quantity=available,
        category=category,
        location=location,
    )
    db.add(component)
    db.commit()
    db.refresh(component)
    logger.info("Component %s created (total=%s, available=%s)", component.id, total, available)
    return component


def update_component(db: Session, component_id: int, changes: dict) -> Component:
    """Apply a partial edit. Only keys present in ``changes`` are touched."""
    component = get_component(db, component_id)

    if "name" in changes:
        name = _clean_text(changes["name"])
        if not name:
            raise ValidationError("name cannot be empty")
        changes = {**changes, "name": name}

    total, available = resolve_quantities(
        component.total_quantity,
        component.available_quantity,
        changes.get("total_quantity"),
        changes.get("available_quantity"),
    )

    for field in EDITABLE_FIELDS:
        if field not in changes:
            continue
        value = changes[field]
        if field in ("description", "image_url"):
            value = _clean_text(value)
        elif field in ("category", "location") and value == "":
            value = None
        setattr(component, field, value)

    component.total_quantity = total
    component.available_quantity = available
    db.commit()
    db.refresh(component)
    logger.info("Component %s updated (total=%s, available=%s)", component.id, total, available)
    return component


def delete_component(db: Session, component_id: int) -> None:
    component = get_component(db, component_id)

    usage_count = db.query(RequestItem).filter(RequestItem.component_id == component_id).count()
    if usage_count > 0:
        raise ConflictError("component cannot be deleted because it is used in one or more requests")

    db.delete(component)
    db.commit()
    logger.info("Component %s deleted", component_id)


def deduct_stock(db: Session, items: Iterable[RequestItem]) -> None:
    """Take every item's quantity out of available stock, or nothing at all.

    Runs inside the caller's transaction and never commits. A short component
    raises InsufficientStockError; the caller must roll back so the decrements
    already issued for earlier items are undone.
    """
    for item in items:
        result = db.execute(
            update(Component)
            .where(
                Component.id == item.component_id,
                Component.available_quantity >= item.quantity,
            )
            .values(available_quantity=Component.available_quantity - item.quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            name = item.component.name if item.component else str(item.component_id)
            raise InsufficientStockError(item.component_id, name, item.quantity)
