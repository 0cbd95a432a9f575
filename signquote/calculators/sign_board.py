"""
Sign board cost calculator.

Face material + steel frame + beading + tiered labor, then the finishing work
each construction needs (tube lights, depth cover, back cover), then site
hardware (off-cut, GI stands, angle supports, concrete bases).
"""

import logging
import math
from typing import NamedTuple

from ..models import SignCategory
from ..schemas import ItemCostBreakdown, PriceBook, SignSpecification
from .base import BaseCalculator

logger = logging.getLogger(__name__)


class Construction(NamedTuple):
    double_frame: bool        # two faces of framing + 4 ft connector allowance
    double_face: bool         # face material charged twice
    lights: bool              # LED tube lights
    depth_cover: bool         # perimeter depth cover
    back_cover: bool          # closed back panel


# The whole rule table. Six categories, one row each.
CONSTRUCTION_RULES = {
    #                                   frame x2  face x2  lights  depth  back
    SignCategory.SSWOL:      Construction(False,   False,   False,  False, False),
    SignCategory.SSWL:       Construction(False,   False,   True,   True,  True),
    SignCategory.DSWO:       Construction(True,    False,   False,  True,  False),
    SignCategory.DSWL:       Construction(True,    True,    True,   True,  False),
    SignCategory.THREE_D_SS: Construction(False,   False,   False,  False, False),
    SignCategory.THREE_D_DS: Construction(True,    True,    True,   True,  False),
}

# Labor tier breakpoints (sq ft): below first is tier1, below second tier2, else tier3
LABOR_TIER_BREAKS = (10.0, 20.0)

# Connector allowance added to double-sided frame and beading runs (ft)
DOUBLE_SIDE_ALLOWANCE_FT = 4.0

# Tube light spacing: one tube per 4 ft of width per (height + 1) ft
LIGHT_SPACING_FT = 4.0


class SignBoardCalculator(BaseCalculator):

    def calculate(self, spec: SignSpecification, prices: PriceBook) -> ItemCostBreakdown:
        rules = CONSTRUCTION_RULES[spec.category]
        missing = []
        w = spec.width
        h = spec.height
        if w <= 0 or h <= 0:
            # No face to build; every geometry-driven rule comes out at zero.
            w = h = 0.0

        # 1. Area
        area = self.area_sq_ft(w, h)

        # 2. Face material
        material_rate = prices.material_rate(spec.category, spec.sub_type)
        if material_rate is None:
            missing.append(f"material: {spec.category.value} / {spec.sub_type}")
            material_rate = 0.0
        material_cost = area * material_rate
        if rules.double_face:
            material_cost *= 2

        # 3. Steel frame
        steel_length = self.steel_length(w, h, rules.double_frame)
        steel_cost = steel_length * prices.structural.steel_per_ft

        # 4. Beading
        beading_length = self.beading_length(w, h, rules.double_frame)
        beading_cost = beading_length * prices.structural.beading_per_ft

        # 5. Labor
        labor_rate = self.labor_rate(area, prices)
        labor_cost = area * labor_rate

        # 6. Lights
        light_qty = 0
        light_cost = 0.0
        if rules.lights:
            light_qty = self.light_quantity(w, h)
            light_cost = light_qty * prices.electrical.tube_light_unit

        # 7-8. Covers
        perimeter = 0.0
        depth_cover_cost = 0.0
        back_cover_cost = 0.0
        if rules.depth_cover:
            perimeter = self.perimeter_ft(w, h)
            depth_cover_cost = perimeter * prices.structural.depth_cover_per_ft
        if rules.back_cover:
            back_cover_cost = area * prices.structural.back_cover_per_sqft

        # 9-12. Extras, independent of category and geometry
        off_cut_cost = spec.off_cut_sqft * prices.others.off_cut_per_sqft
        pipe_rate = 0.0
        if spec.gi_stand_qty > 0:
            pipe_rate = self.lookup_rate(
                prices.pipes, spec.gi_pipe_size, f"pipe: {spec.gi_pipe_size}", missing)
        stand_cost = spec.gi_stand_qty * pipe_rate
        angle_support_cost = spec.angle_support_qty * prices.others.angle_support_unit
        base_rate = (spec.concrete_base_rate if spec.concrete_base_rate is not None
                     else prices.others.concrete_base_unit)
        concrete_base_cost = spec.concrete_base_qty * base_rate

        if missing:
            logger.warning("No rate for %s, costed at 0", ", ".join(missing))

        costs = [
            self.money(material_cost), self.money(steel_cost), self.money(beading_cost),
            self.money(labor_cost), self.money(light_cost), self.money(depth_cover_cost),
            self.money(back_cover_cost), self.money(off_cut_cost), self.money(stand_cost),
            self.money(angle_support_cost), self.money(concrete_base_cost),
        ]

        return ItemCostBreakdown(
            area=round(area, 4),
            material_cost=costs[0],
            steel_length=round(steel_length, 4),
            steel_cost=costs[1],
            beading_length=round(beading_length, 4),
            beading_cost=costs[2],
            labor_rate=labor_rate,
            labor_cost=costs[3],
            light_qty=light_qty,
            light_cost=costs[4],
            perimeter_length=round(perimeter, 4),
            depth_cover_cost=costs[5],
            back_cover_cost=costs[6],
            off_cut_cost=costs[7],
            stand_cost=costs[8],
            angle_support_cost=costs[9],
            concrete_base_cost=costs[10],
            item_total=self.money(sum(costs)),
            missing_rates=missing,
        )

    def steel_length(self, w: float, h: float, double_frame: bool) -> float:
        """Perimeter framing plus one full-height member per mid-support."""
        if w <= 0 or h <= 0:
            return 0.0
        mid = self.mid_support_count(w) * h
        if double_frame:
            return 4 * w + 4 * h + mid + DOUBLE_SIDE_ALLOWANCE_FT
        return 2 * w + 2 * h + mid

    def beading_length(self, w: float, h: float, double_frame: bool) -> float:
        if w <= 0 or h <= 0:
            return 0.0
        if double_frame:
            return 4 * w + 4 * h + DOUBLE_SIDE_ALLOWANCE_FT
        return 2 * w + 2 * h

    def labor_rate(self, area: float, prices: PriceBook) -> float:
        low, high = LABOR_TIER_BREAKS
        if area < low:
            return prices.labor.tier1
        if area < high:
            return prices.labor.tier2
        return prices.labor.tier3

    def light_quantity(self, w: float, h: float) -> int:
        return math.ceil((w / LIGHT_SPACING_FT) * (h + 1))


_calculator = SignBoardCalculator()


def compute_item_cost(spec: SignSpecification, prices: PriceBook) -> ItemCostBreakdown:
    """Itemized cost of one sign under the given price book."""
    return _calculator.calculate(spec, prices)
