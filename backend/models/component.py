# backend/models/component.py
import enum
from sqlalchemy import Column, Integer, String, DateTime, Enum, CheckConstraint, func
from database import Base


class ComponentCategory(str, enum.Enum):
    SENSORS = "Sensors"
    ACTUATORS = "Actuators"
    MICROCONTROLLERS = "Microcontrollers"
    MICROPROCESSORS = "Microprocessors"
    OTHERS = "Others"


class ComponentLocation(str, enum.Enum):
    IOT_LAB = "IoT Lab"
    ROBO_LAB = "Robo Lab"
    VLSI_LAB = "VLSI Lab"


# Model Component
# A lab part that can be requested. total_quantity is the owned stock,
# available_quantity what is left after fulfilled requests.
class Component(Base):
    __tablename__ = "components"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String, nullable=True)
    image_url = Column(String, nullable=True)

    total_quantity = Column(Integer, CheckConstraint("total_quantity >= 0"), nullable=False, default=0)
    available_quantity = Column(Integer, CheckConstraint("available_quantity >= 0"), nullable=False, default=0)

    category = Column(Enum(ComponentCategory, name="componentcategory"), nullable=True)
    location = Column(Enum(ComponentLocation, name="componentlocation"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("available_quantity <= total_quantity", name="ck_component_available_le_total"),
    )
