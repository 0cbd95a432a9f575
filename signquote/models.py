from sqlalchemy import Column, String, Text, DateTime
from datetime import datetime
from .database import Base
import enum


# --- Enums ---

class SignCategory(str, enum.Enum):
    """The six sign constructions the shop builds. Values are the display names."""
    SSWOL = "Single Side without light (SSWOL)"
    SSWL = "Single Side Light Board (SSWL)"
    DSWO = "Double Side Without Light (DSWO)"
    DSWL = "Double side with light (DSWL)"
    THREE_D_SS = "3D Sign Single Side"
    THREE_D_DS = "3D Sign Double Side"


class DiscountType(str, enum.Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


class PdfTemplate(str, enum.Enum):
    MODERN = "modern"
    CORPORATE = "corporate"
    MINIMAL = "minimal"


class BuilderKind(str, enum.Enum):
    SIGN = "sign"
    MANUAL = "manual"


# --- Catalog reference data ---
# Subtype order matters: the first entry is what a category change resets to.

SIGN_TYPES_HIERARCHY = {
    SignCategory.SSWOL: [
        "Flex",
        "PVC Paste on Cladding",
        "Paint Finish Echo Letters / Cladding letters",
    ],
    SignCategory.SSWL: [
        "Flex Light Board",
        "PVC Paste on Acrylic Sheet",
        "Cladding CNC Cut Backlit",
    ],
    SignCategory.DSWO: [
        "Flex",
        "PVC Paste on Cladding",
        "Paint Finish Echo Letters",
    ],
    SignCategory.DSWL: [
        "Flex Light Board",
        "PVC Paste on Acrylic Sheet",
        "Cladding CNC Cut Backlit",
        "3D Echo Letter Sign",
    ],
    SignCategory.THREE_D_SS: [
        "3D Acrylic Glow Sign (S/S)",
        "3D Echo Board Backlit Sign (S/S)",
    ],
    SignCategory.THREE_D_DS: [
        "3D Acrylic Glow Sign (D/S)",
        "3D Echo Board Backlit Sign (D/S)",
        "3D Acrylic Glow Sign (D/S Type B)",
    ],
}

# GI stand pipe gauges (diameter x wall)
PIPE_SIZES = [
    '1.5" x 1.6mm',
    '1.5" x 2mm',
    '2" x 1.6mm',
    '2" x 2mm',
    '3" x 1.6mm',
    '3" x 2mm',
    '4" x 2mm',
]


def subtypes_for(category: SignCategory) -> list:
    """Allowed material subtypes for a category."""
    return SIGN_TYPES_HIERARCHY[SignCategory(category)]


# --- Tables ---

class AppSetting(Base):
    """Key/value settings store. value_json holds the raw serialized payload."""
    __tablename__ = "app_settings"

    key = Column(String, primary_key=True)
    value_json = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
