"""
Price book: factory defaults, override merging, and the persisted copy.

Load order:
1. Stored blob from the settings table (user's saved rates, possibly from an
   older release with fewer keys)
2. DEFAULT_PRICE_BOOK in this file (factory rates)

Stored rates win key-by-key; anything the stored blob lacks keeps its default.
A stored blob that can't be parsed is discarded in full.
"""

import json
import logging
from copy import deepcopy

from pydantic import ValidationError

from . import models
from .config import settings
from .database import SessionLocal
from .models import SignCategory, PIPE_SIZES
from .schemas import PriceBook

logger = logging.getLogger(__name__)

# Rate groups merged one level deep. Everything else is replaced wholesale.
NESTED_SECTIONS = ("materials", "pipes", "labor", "structural", "electrical", "others")

# FACTORY RATES (Rs.): materials per sq ft, pipes per stand, structural per ft
DEFAULT_PRICE_BOOK = {
    "currency_symbol": "Rs.",
    "materials": {
        SignCategory.SSWOL.value: {
            "Flex": 260,
            "PVC Paste on Cladding": 600,
            "Paint Finish Echo Letters / Cladding letters": 2250,
        },
        SignCategory.SSWL.value: {
            "Flex Light Board": 350,
            "PVC Paste on Acrylic Sheet": 1250,
            "Cladding CNC Cut Backlit": 2500,
        },
        SignCategory.DSWO.value: {
            "Flex": 260,
            "PVC Paste on Cladding": 600,
            "Paint Finish Echo Letters": 2250,
        },
        SignCategory.DSWL.value: {
            "Flex Light Board": 350,
            "PVC Paste on Acrylic Sheet": 1250,
            "Cladding CNC Cut Backlit": 2500,
            "3D Echo Letter Sign": 2000,
        },
        SignCategory.THREE_D_SS.value: {
            "3D Acrylic Glow Sign (S/S)": 3500,
            "3D Echo Board Backlit Sign (S/S)": 3500,
        },
        SignCategory.THREE_D_DS.value: {
            "3D Acrylic Glow Sign (D/S)": 3500,
            "3D Echo Board Backlit Sign (D/S)": 3500,
            "3D Acrylic Glow Sign (D/S Type B)": 3500,
        },
    },
    "pipes": dict(zip(PIPE_SIZES, [4500, 5500, 6500, 8500, 11000, 13500, 15000])),
    "labor": {
        "tier1": 150,  # < 10 sq ft
        "tier2": 100,  # < 20 sq ft
        "tier3": 100,  # >= 20 sq ft
    },
    "structural": {
        "steel_per_ft": 120,
        "beading_per_ft": 125,
        "depth_cover_per_ft": 250,
        "back_cover_per_sqft": 150,
    },
    "electrical": {
        "tube_light_unit": 850,
    },
    "others": {
        "off_cut_per_sqft": 100,
        "angle_support_unit": 4500,
        "concrete_base_unit": 5000,
    },
}


def merge_price_book(defaults: dict, override: dict = None) -> dict:
    """
    Overlay a (possibly partial) override on the defaults.

    Shallow at the top level, one level deep inside each rate group: an
    override of labor.tier1 keeps the default tier2/tier3. Material categories
    merge per subtype, so a stored category that lacks a newer subtype still
    gets its default. None values count as missing.
    """
    merged = deepcopy(defaults)
    if not override:
        return merged

    for key, value in override.items():
        if value is None:
            continue
        if key in NESTED_SECTIONS:
            if not isinstance(value, dict):
                raise TypeError(f"Price book section '{key}' must be an object, got {type(value).__name__}")
            section = dict(merged.get(key) or {})
            for name, rate in value.items():
                if rate is None:
                    continue
                if key == "materials" and isinstance(rate, dict):
                    rate = {**(section.get(name) or {}),
                            **{k: v for k, v in rate.items() if v is not None}}
                section[name] = rate
            merged[key] = section
        else:
            merged[key] = value
    return merged


def default_price_book() -> PriceBook:
    return PriceBook.model_validate(deepcopy(DEFAULT_PRICE_BOOK))


def build_price_book(override: dict = None) -> PriceBook:
    """Merge an override onto the factory defaults and validate. Raises on bad input."""
    return PriceBook.model_validate(merge_price_book(DEFAULT_PRICE_BOOK, override))


def parse_price_book(payload) -> PriceBook:
    """
    Build a price book from a stored payload (JSON text or already-decoded dict).
    Malformed payloads fall back to factory defaults; never raises.
    """
    if payload is None or payload == "":
        return default_price_book()
    try:
        override = json.loads(payload) if isinstance(payload, (str, bytes)) else payload
        if not isinstance(override, dict):
            raise TypeError(f"expected a JSON object, got {type(override).__name__}")
        return build_price_book(override)
    except (UnicodeDecodeError, json.JSONDecodeError, TypeError, ValidationError) as e:
        logger.warning("Discarding malformed stored price book, using defaults: %s", e)
        return default_price_book()


def price_book_to_json(book: PriceBook) -> str:
    return json.dumps(book.model_dump(mode="json"))


def set_rate(book: PriceBook, section: str, key: str, value, category: str = None) -> PriceBook:
    """
    Return a copy of the book with one rate replaced.

    section: one of NESTED_SECTIONS. For "materials" pass the category too.
    value is parsed leniently: anything non-numeric becomes 0.
    """
    if section not in NESTED_SECTIONS:
        raise ValueError(f"Unknown price book section: {section}. Available: {list(NESTED_SECTIONS)}")
    try:
        rate = float(str(value).strip())
    except (ValueError, TypeError):
        rate = 0.0

    data = book.model_dump(mode="json")
    if section == "materials":
        if category is None:
            raise ValueError("category is required for material rates")
        data["materials"].setdefault(SignCategory(category).value, {})[key] = rate
    else:
        if key not in data[section] and section != "pipes":
            raise ValueError(f"Unknown rate '{key}' in section '{section}'")
        data[section][key] = rate
    return PriceBook.model_validate(data)


class PriceBookStore:
    """
    Load-merge-save cycle for the price book against the settings table.
    Pass the loaded PriceBook into the calculator and pricing engine explicitly.
    """

    def __init__(self, session_factory=None, key: str = None):
        self.session_factory = session_factory or SessionLocal
        self.key = key or settings.PRICE_BOOK_SETTING_KEY

    def load(self) -> PriceBook:
        db = self.session_factory()
        try:
            row = db.get(models.AppSetting, self.key)
            raw = row.value_json if row else None
        finally:
            db.close()

        if raw is None:
            logger.info("No stored price book under '%s', using factory defaults", self.key)
            return default_price_book()
        logger.info("Loaded stored price book from '%s'", self.key)
        return parse_price_book(raw)

    def save(self, book: PriceBook) -> PriceBook:
        """Write the full current shape, replacing whatever was stored."""
        db = self.session_factory()
        try:
            row = db.get(models.AppSetting, self.key)
            if row is None:
                row = models.AppSetting(key=self.key)
                db.add(row)
            row.value_json = price_book_to_json(book)
            db.commit()
        finally:
            db.close()
        logger.info("Saved price book under '%s'", self.key)
        return book

    def reset(self) -> PriceBook:
        """Restore factory rates, overwriting any stored customizations."""
        logger.info("Resetting price book '%s' to factory defaults", self.key)
        return self.save(default_price_book())
