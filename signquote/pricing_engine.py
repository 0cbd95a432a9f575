"""
Quote aggregation: line items + services + discount into a grand total.

Pure math. Sign and manual items are summed through their unified `total`;
installation and transportation only count when flagged, artwork always does.
"""

from .models import DiscountType
from .schemas import Discount, GrandTotal, ServiceCharges


class PricingEngine:
    """Folds a quote's line items and charges into a GrandTotal."""

    def build_grand_total(self, items: list, services: ServiceCharges,
                          discount: Discount) -> GrandTotal:
        items_subtotal = self._calculate_items_subtotal(items)
        installation_cost = services.installation_cost if services.installation_needed else 0.0
        transportation_cost = services.transportation_cost if services.transportation_needed else 0.0
        artwork_cost = services.artwork_cost

        sub_total = round(
            items_subtotal + installation_cost + transportation_cost + artwork_cost,
            2,
        )
        discount_amount = self._calculate_discount(sub_total, discount)

        # Only the final total is floored; a fixed discount may exceed the subtotal.
        final_total = max(0.0, round(sub_total - discount_amount, 2))

        return GrandTotal(
            items_subtotal=items_subtotal,
            installation_cost=round(installation_cost, 2),
            transportation_cost=round(transportation_cost, 2),
            artwork_cost=round(artwork_cost, 2),
            sub_total_before_discount=sub_total,
            discount_amount=discount_amount,
            final_total=final_total,
        )

    def _calculate_items_subtotal(self, items: list) -> float:
        """Sum of every line item's total, sign or manual alike."""
        return round(sum(item.total for item in items), 2)

    def _calculate_discount(self, sub_total: float, discount: Discount) -> float:
        """
        Percentage of the subtotal, or the fixed amount as entered.
        Non-positive amounts mean no discount.
        """
        if discount.amount <= 0:
            return 0.0
        if discount.kind == DiscountType.PERCENTAGE:
            return round(sub_total * discount.amount / 100.0, 2)
        return round(discount.amount, 2)


_engine = PricingEngine()


def compute_grand_total(items: list, services: ServiceCharges, discount: Discount) -> GrandTotal:
    return _engine.build_grand_total(items, services, discount)
