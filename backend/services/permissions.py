# backend/services/permissions.py
from typing import NamedTuple

from models.users import UserRole


# Identity resolved from a bearer token; the only source of user id and role for the services
class Caller(NamedTuple):
    user_id: int
    role: UserRole


def is_admin_or_ta(role: UserRole) -> bool:
    return role in (UserRole.ADMIN, UserRole.TA)


def is_faculty(role: UserRole) -> bool:
    return role == UserRole.FACULTY


def is_active(role: UserRole) -> bool:
    return role != UserRole.PENDING


def can_review(caller: Caller, target_faculty_id: int) -> bool:
    """Approve/reject: the targeted faculty member, or staff."""
    if is_faculty(caller.role):
        return caller.user_id == target_faculty_id
    return is_admin_or_ta(caller.role)


def can_fulfill(caller: Caller) -> bool:
    return is_admin_or_ta(caller.role)


def can_delete_request(caller: Caller, owner_id: int) -> bool:
    return caller.user_id == owner_id or is_admin_or_ta(caller.role)
