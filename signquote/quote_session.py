"""
Quote session: client details, the committed line items, services, discount,
and the two item builders (sign + manual).

Item lifecycle:
    draft  --add_item-->   committed
    committed --edit_item--> draft   (removed from the list, reloaded into the builder)
    committed --remove_item--> discarded

Committed items are never mutated in place, so a stored breakdown always
matches its stored specification. Every mutation is all-or-nothing: a rejected
add leaves both the item list and the draft untouched.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from .calculators.sign_board import compute_item_cost
from .config import settings
from .models import BuilderKind, DiscountType, SignCategory, PIPE_SIZES, subtypes_for
from .pdf_generator import generate_quote_pdf, save_quote_pdf
from .pricing_engine import PricingEngine
from .schemas import (
    ClientDetails, Discount, ExportOptions, GrandTotal, ItemCostBreakdown,
    ManualLineItem, PriceBook, ServiceCharges, SignLineItem, SignSpecification,
)

logger = logging.getLogger(__name__)

# field -> (label, whole numbers only)
SIGN_FIELDS = {
    "width": ("Width", False),
    "height": ("Height", False),
    "off_cut_sqft": ("Off-cut area", False),
    "gi_stand_qty": ("GI stand quantity", True),
    "angle_support_qty": ("Angle support quantity", True),
    "concrete_base_qty": ("Concrete base quantity", True),
    "concrete_base_rate": ("Concrete base rate", False),
}

MANUAL_FIELDS = {
    "quantity": ("Quantity", False),
    "rate": ("Rate", False),
}


class BuilderValidationError(ValueError):
    """A draft can't be committed. `field` names what needs fixing."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


def parse_field(raw, label: str, integer: bool = False, min_value: float = 0.0):
    """
    Parse one numeric form entry.

    Returns (value, error). Empty input is 0 with no error. On error the value
    is None and the caller keeps whatever it had before.
    """
    if raw is None or str(raw).strip() == "":
        return (0 if integer else 0.0), None
    try:
        number = float(str(raw).strip())
    except (ValueError, TypeError):
        return None, "Invalid number"
    if math.isnan(number) or math.isinf(number):
        return None, "Invalid number"

    error = None
    if number < min_value:
        error = f"{label} too low"
    if integer and not number.is_integer():
        error = f"{label} must be whole"
    if error:
        return None, error
    return (int(number) if integer else number), None


def generate_serial(now: datetime = None) -> str:
    """Prefix + MMDDHHMM of the creation time, e.g. WTG10181452."""
    now = now or datetime.now()
    return f"{settings.SERIAL_PREFIX}{now:%m%d%H%M}"


class SignDraft:
    """Sign specification being edited in the builder, plus per-field input errors."""

    def __init__(self, concrete_base_rate: float = None):
        self.spec = SignSpecification(concrete_base_rate=concrete_base_rate)
        self.errors = {}

    def set_category(self, category):
        """Changing category resets the subtype to the category's first option."""
        category = SignCategory(category)
        self.spec = self.spec.model_copy(update={
            "category": category,
            "sub_type": subtypes_for(category)[0],
        })

    def set_sub_type(self, sub_type: str):
        allowed = subtypes_for(self.spec.category)
        if sub_type not in allowed:
            raise ValueError(
                f"'{sub_type}' is not available for {self.spec.category.value}. Available: {allowed}"
            )
        self.spec = self.spec.model_copy(update={"sub_type": sub_type})

    def set_pipe_size(self, size: str):
        if size not in PIPE_SIZES:
            raise ValueError(f"Unknown pipe size: {size}. Available: {PIPE_SIZES}")
        self.spec = self.spec.model_copy(update={"gi_pipe_size": size})

    def set_field(self, name: str, raw) -> bool:
        """
        Set a numeric field from raw form input. Never raises on bad input:
        the field keeps its last valid value and the message lands in errors.
        Returns True when the value was accepted.
        """
        if name not in SIGN_FIELDS:
            raise ValueError(f"Unknown sign field: {name}. Available: {list(SIGN_FIELDS)}")
        label, integer = SIGN_FIELDS[name]
        value, error = parse_field(raw, label, integer=integer)
        if error:
            self.errors[name] = error
            return False
        self.errors.pop(name, None)
        self.spec = self.spec.model_copy(update={name: value})
        return True

    def suggest_concrete_base(self) -> int:
        """One concrete base per stand and per angle support."""
        qty = self.spec.gi_stand_qty + self.spec.angle_support_qty
        self.spec = self.spec.model_copy(update={"concrete_base_qty": qty})
        self.errors.pop("concrete_base_qty", None)
        return qty

    def reset(self, concrete_base_rate: float = None):
        """Blank dimensions and hardware. Category and subtype carry over to the next sign."""
        self.spec = SignSpecification(
            category=self.spec.category,
            sub_type=self.spec.sub_type,
            concrete_base_rate=concrete_base_rate,
        )
        self.errors = {}

    def load(self, spec: SignSpecification):
        self.spec = spec.model_copy(deep=True)
        self.errors = {}


class ManualDraft:
    """Free-form line item: description, quantity, rate."""

    def __init__(self):
        self.reset()

    def set_description(self, text: str):
        self.description = text or ""

    def set_field(self, name: str, raw) -> bool:
        if name not in MANUAL_FIELDS:
            raise ValueError(f"Unknown manual item field: {name}. Available: {list(MANUAL_FIELDS)}")
        label, integer = MANUAL_FIELDS[name]
        value, error = parse_field(raw, label, integer=integer)
        if error:
            self.errors[name] = error
            return False
        self.errors.pop(name, None)
        setattr(self, name, value)
        return True

    def reset(self):
        self.description = ""
        self.quantity = 1.0
        self.rate = 0.0
        self.errors = {}

    def load(self, item: ManualLineItem):
        self.description = item.description
        self.quantity = item.quantity
        self.rate = item.rate
        self.errors = {}


class QuoteSession:
    """
    One quote being prepared. Holds the price book in effect and passes it
    explicitly to the calculator and pricing engine; nothing is cached.
    """

    def __init__(self, price_book: PriceBook, now: datetime = None):
        self.price_book = price_book
        self.pricing_engine = PricingEngine()
        self._start(now)

    def _start(self, now: datetime = None):
        now = now or datetime.now()
        issue_date = now.date()
        self.client = ClientDetails(
            serial_number=generate_serial(now),
            issue_date=issue_date,
            expire_date=issue_date + timedelta(days=settings.QUOTE_VALID_DAYS),
        )
        self.items = []
        self.services = ServiceCharges()
        self.discount = Discount()
        self.export_options = ExportOptions()
        self.sign_draft = SignDraft(concrete_base_rate=self.price_book.others.concrete_base_unit)
        self.manual_draft = ManualDraft()
        self.active_builder = BuilderKind.SIGN
        self._last_id = 0

    def reset(self, now: datetime = None):
        """Start a new quote: fresh serial, blank client, no items."""
        self._start(now)
        logger.info("Started new quote %s", self.client.serial_number)

    def refresh_serial(self, now: datetime = None) -> str:
        self.client = self.client.model_copy(update={"serial_number": generate_serial(now)})
        return self.client.serial_number

    # --- Field edits (validated before anything is replaced) ---

    def update_client(self, **fields) -> ClientDetails:
        self.client = ClientDetails.model_validate({**self.client.model_dump(), **fields})
        return self.client

    def update_services(self, **fields) -> ServiceCharges:
        self.services = ServiceCharges.model_validate({**self.services.model_dump(), **fields})
        return self.services

    def set_discount(self, amount: float, kind=DiscountType.FIXED) -> Discount:
        self.discount = Discount(amount=amount, kind=kind)
        return self.discount

    def update_export_options(self, **fields) -> ExportOptions:
        self.export_options = ExportOptions.model_validate({**self.export_options.model_dump(), **fields})
        return self.export_options

    def set_price_book(self, price_book: PriceBook):
        """
        Swap the book in effect. The draft's concrete base rate follows the new
        default unless the user had typed their own. Committed items keep their snapshot.
        """
        old_default = self.price_book.others.concrete_base_unit
        self.price_book = price_book
        if self.sign_draft.spec.concrete_base_rate == old_default:
            self.sign_draft.spec = self.sign_draft.spec.model_copy(
                update={"concrete_base_rate": price_book.others.concrete_base_unit})

    def select_builder(self, kind):
        self.active_builder = BuilderKind(kind)

    # --- Derived values ---

    def preview(self) -> ItemCostBreakdown:
        """Breakdown of the sign currently in the builder."""
        return compute_item_cost(self.sign_draft.spec, self.price_book)

    def grand_total(self) -> GrandTotal:
        return self.pricing_engine.build_grand_total(self.items, self.services, self.discount)

    # --- Item lifecycle ---

    def add_item(self):
        """Commit whichever builder is active."""
        if self.active_builder == BuilderKind.MANUAL:
            return self.add_manual()
        return self.add_sign()

    def add_sign(self) -> SignLineItem:
        spec = self.sign_draft.spec
        if spec.width <= 0 or spec.height <= 0:
            raise BuilderValidationError("dimensions", "Please enter valid dimensions (width and height above 0)")

        item = SignLineItem(
            id=self._next_id(),
            spec=spec.model_copy(deep=True),
            breakdown=compute_item_cost(spec, self.price_book),
        )
        self.items.append(item)
        self.sign_draft.reset(concrete_base_rate=self.price_book.others.concrete_base_unit)
        logger.info("Added sign %s: %s %.2f x %.2f ft = %.2f",
                    item.id, spec.category.value, spec.width, spec.height, item.total)
        return item

    def add_manual(self) -> ManualLineItem:
        draft = self.manual_draft
        if not draft.description.strip():
            raise BuilderValidationError("description", "Please enter a description")
        if draft.rate <= 0:
            raise BuilderValidationError("rate", "Please enter a rate greater than 0")

        item = ManualLineItem(
            id=self._next_id(),
            description=draft.description,
            quantity=draft.quantity,
            rate=draft.rate,
        )
        self.items.append(item)
        draft.reset()
        logger.info("Added manual item %s: %s = %.2f", item.id, item.description, item.total)
        return item

    def get_item(self, item_id: str):
        return next((item for item in self.items if item.id == item_id), None)

    def remove_item(self, item_id: str) -> bool:
        before = len(self.items)
        self.items = [item for item in self.items if item.id != item_id]
        removed = len(self.items) < before
        if removed:
            logger.info("Removed item %s", item_id)
        return removed

    def edit_item(self, item_id: str) -> Optional[object]:
        """
        Pull a committed item back into its builder for modification.
        The item leaves the list; re-adding it commits a fresh snapshot.
        """
        item = self.get_item(item_id)
        if item is None:
            return None

        if isinstance(item, SignLineItem):
            self.sign_draft.load(item.spec)
            self.active_builder = BuilderKind.SIGN
        else:
            self.manual_draft.load(item)
            self.active_builder = BuilderKind.MANUAL

        self.remove_item(item_id)
        logger.info("Item %s moved back to the %s builder", item_id, self.active_builder.value)
        return item

    def _next_id(self) -> str:
        """Creation-time millis, bumped when two items land in the same millisecond."""
        stamp = int(datetime.now().timestamp() * 1000)
        self._last_id = max(stamp, self._last_id + 1)
        return str(self._last_id)

    # --- Export ---

    def export_pdf(self) -> bytes:
        return generate_quote_pdf(self, self.grand_total(), self.price_book)

    def save_pdf(self, directory: str = "."):
        return save_quote_pdf(self, self.grand_total(), self.price_book, directory)
