"""
Curtain estimate calculator for storefront quick quotes.

Fabric path (only when a fabric is supplied):
    finished width = width × fullness
    widths needed  = ceil(finished width / fabric width)
    cut drop       = drop + header + hem, rounded up to whole pattern repeats
    fabric metres  = widths × cut drop × quantity, rounded UP to 0.1m

Making cost = (base + fabric metres × labour rate) × quantity. Fabric metres
already include quantity, so the labour term scales with quantity twice. This
is the storefront's simplified linear model, not the workroom pricing grid.
"""

import logging
from decimal import Decimal
from typing import Dict, Optional

from ..schemas import (
    BusinessConfig,
    Dimensions,
    EstimateResult,
    EstimationConfig,
    FabricReference,
    OptionPrice,
    TemplateReference,
)
from .base import BaseCalculator, ZERO

logger = logging.getLogger(__name__)

ESTIMATE_NOTE = (
    "This is an estimate only. Making cost uses a simplified labour model; "
    "final pricing is confirmed by the workroom after measurement."
)


class CurtainCalculator(BaseCalculator):
    """Fabric quantity and price breakdown for one curtain line."""

    def __init__(self, config: Optional[EstimationConfig] = None):
        self.config = config or EstimationConfig()

    # --- Fabric quantity ---

    def fullness_ratio(self, template: Optional[TemplateReference]) -> Decimal:
        default = self.to_decimal(self.config.default_fullness_ratio)
        if template is None or not template.fullness_ratio:
            return default
        return self.to_decimal(template.fullness_ratio, default)

    def fabric_width_m(self, fabric: FabricReference) -> Decimal:
        width_cm = fabric.width_cm or self.config.default_fabric_width_cm
        return self.cm_to_m(width_cm)

    def widths_needed(self, width_mm, fullness: Decimal, fabric_width_m: Decimal) -> int:
        """Full fabric widths joined side by side to cover the gathered width."""
        finished_width = self.mm_to_m(width_mm) * fullness
        return self.ceil_div(finished_width, fabric_width_m)

    def cut_drop_m(self, drop_mm, pattern_repeat_cm=0) -> Decimal:
        """Drop plus header and hem, aligned to whole pattern repeats."""
        cut_drop = (
            self.mm_to_m(drop_mm)
            + self.to_decimal(self.config.header_allowance_m)
            + self.to_decimal(self.config.hem_allowance_m)
        )
        repeat_m = self.cm_to_m(pattern_repeat_cm)
        if repeat_m > 0:
            cut_drop = self.round_up_to_multiple(cut_drop, repeat_m)
        return cut_drop

    def fabric_meters(self, width_mm, drop_mm, quantity: int,
                      fabric: FabricReference,
                      template: Optional[TemplateReference] = None) -> Decimal:
        widths = self.widths_needed(width_mm, self.fullness_ratio(template), self.fabric_width_m(fabric))
        cut_drop = self.cut_drop_m(drop_mm, fabric.pattern_repeat_cm)
        raw = widths * cut_drop * quantity
        return self.round_up_to_increment(raw, self.to_decimal(self.config.fabric_increment_m))

    # --- Costs ---

    def making_cost(self, fabric_meters: Decimal, quantity: int) -> Decimal:
        base = self.to_decimal(self.config.base_making_cost)
        rate = self.to_decimal(self.config.labor_rate_per_meter)
        return (base + fabric_meters * rate) * quantity

    def option_cost(self, price: OptionPrice, quantity: int, fabric_meters: Decimal) -> Optional[Decimal]:
        """Flat modifier wins; per-metre price only when there is no modifier. None = unpriced."""
        if price.price_modifier:
            return self.to_decimal(price.price_modifier) * quantity
        if price.price_per_meter:
            return self.to_decimal(price.price_per_meter) * fabric_meters
        return None

    def calculate(self, width_mm, drop_mm, quantity: int = 1,
                  fabric: Optional[FabricReference] = None,
                  template: Optional[TemplateReference] = None,
                  options: Optional[Dict[str, OptionPrice]] = None,
                  business: Optional[BusinessConfig] = None) -> EstimateResult:
        business = business or BusinessConfig()
        quantity = quantity or 1
        with self.precise_context(*self._magnitudes(width_mm, drop_mm, quantity, fabric,
                                                    template, options, business)):
            return self._calculate(width_mm, drop_mm, quantity, fabric, template, options, business)

    def _magnitudes(self, width_mm, drop_mm, quantity, fabric, template, options, business) -> list:
        """Every number that can end up as a factor in a cost."""
        values = [width_mm, drop_mm, quantity, quantity, quantity, business.tax_rate_percent]
        values += [
            self.config.header_allowance_m, self.config.hem_allowance_m,
            self.config.base_making_cost, self.config.labor_rate_per_meter,
            self.config.default_fullness_ratio, self.config.default_fabric_width_cm,
            self.config.fabric_increment_m,
        ]
        if fabric is not None:
            values += [fabric.price_per_meter, fabric.width_cm, fabric.pattern_repeat_cm]
        if template is not None:
            values.append(template.fullness_ratio)
        for price in (options or {}).values():
            values += [price.price_modifier, price.price_per_meter]
        return values

    def _calculate(self, width_mm, drop_mm, quantity: int,
                   fabric: Optional[FabricReference],
                   template: Optional[TemplateReference],
                   options: Optional[Dict[str, OptionPrice]],
                   business: BusinessConfig) -> EstimateResult:
        places = self.config.money_places

        fabric_meters = ZERO
        fabric_cost = ZERO
        if fabric is not None:
            fabric_meters = self.fabric_meters(width_mm, drop_mm, quantity, fabric, template)
            fabric_cost = fabric_meters * self.to_decimal(fabric.price_per_meter)

        making_cost = self.making_cost(fabric_meters, quantity)

        options_cost = ZERO
        breakdown: Dict[str, float] = {}
        for key, price in (options or {}).items():
            cost = self.option_cost(price, quantity, fabric_meters)
            if cost is None:
                continue
            options_cost += cost
            breakdown[key] = self.as_float(self.round_money(cost, places))

        subtotal = self.round_money(fabric_cost + making_cost + options_cost, places)
        tax_rate = self.to_decimal(business.tax_rate_percent)
        tax_amount = self.round_money(subtotal * tax_rate / 100, places)
        total = subtotal + tax_amount

        logger.debug(
            "Estimate %sx%smm qty=%s fabric=%s → %sm, total %s",
            width_mm, drop_mm, quantity, fabric.name if fabric else None, fabric_meters, total,
        )

        return EstimateResult(
            fabric_name=fabric.name if fabric else None,
            fabric_meters=self.as_float(fabric_meters),
            fabric_cost=self.as_float(self.round_money(fabric_cost, places)),
            making_cost=self.as_float(self.round_money(making_cost, places)),
            options_cost=self.as_float(self.round_money(options_cost, places)),
            options_breakdown=breakdown,
            subtotal=self.as_float(subtotal),
            tax_rate=business.tax_rate_percent,
            tax_amount=self.as_float(tax_amount),
            total=self.as_float(total),
            currency=business.currency,
            quantity=quantity,
            dimensions=Dimensions(width_mm=width_mm, drop_mm=drop_mm),
            note=ESTIMATE_NOTE,
        )


def estimate_treatment(width_mm, drop_mm, quantity: int = 1,
                       fabric: Optional[FabricReference] = None,
                       template: Optional[TemplateReference] = None,
                       options: Optional[Dict[str, OptionPrice]] = None,
                       business: Optional[BusinessConfig] = None,
                       config: Optional[EstimationConfig] = None) -> EstimateResult:
    """Stateless entry point. Same inputs always give the same result."""
    return CurtainCalculator(config).calculate(
        width_mm, drop_mm, quantity=quantity, fabric=fabric,
        template=template, options=options, business=business,
    )
