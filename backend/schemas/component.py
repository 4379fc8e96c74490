# backend/schemas/component.py
from pydantic import StrictInt, field_validator
from datetime import datetime
from typing import List, Optional

from models.component import ComponentCategory, ComponentLocation
from schemas.user import ApiModel

CATEGORY_LABELS = [c.value for c in ComponentCategory]
LOCATION_LABELS = [loc.value for loc in ComponentLocation]


def parse_category(value):
    if value is None or isinstance(value, ComponentCategory):
        return value
    label = str(value).strip()
    if not label:
        return None
    if label not in CATEGORY_LABELS:
        raise ValueError(
            f"invalid category. Must be one of {', '.join(CATEGORY_LABELS)} (use Others if none apply)"
        )
    return ComponentCategory(label)


def parse_location(value):
    if value is None or isinstance(value, ComponentLocation):
        return value
    # Database-style spellings such as "IoT_Lab" are accepted as well
    label = " ".join(str(value).replace("_", " ").split())
    if not label:
        return None
    if label not in LOCATION_LABELS:
        raise ValueError(f"invalid location. Must be one of {', '.join(LOCATION_LABELS)}")
    return ComponentLocation(label)


# Shared attributes for create and update; quantity ranges are checked by the inventory ledger
class ComponentFields(ApiModel):
    name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    total_quantity: Optional[StrictInt] = None
    available_quantity: Optional[StrictInt] = None
    category: Optional[ComponentCategory] = None
    location: Optional[ComponentLocation] = None

    # Numeric strings such as "5" are not quantities
    @field_validator("total_quantity", "available_quantity", mode="before")
    @classmethod
    def validate_quantity(cls, value, info):
        if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
            field = "totalQuantity" if info.field_name == "total_quantity" else "availableQuantity"
            raise ValueError(f"{field} must be a non-negative number")
        return value

    @field_validator("category", mode="before")
    @classmethod
    def validate_category(cls, value):
        return parse_category(value)

    @field_validator("location", mode="before")
    @classmethod
    def validate_location(cls, value):
        return parse_location(value)


class ComponentCreate(ComponentFields):
    pass


# Partial update; only fields present in the body are applied
class ComponentUpdate(ComponentFields):
    pass


class ComponentResponse(ApiModel):
    id: int
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    total_quantity: int
    available_quantity: int
    category: Optional[ComponentCategory] = None
    location: Optional[ComponentLocation] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ComponentEnvelope(ApiModel):
    component: ComponentResponse


class ComponentList(ApiModel):
    components: List[ComponentResponse]
    last_modified: Optional[str] = None
