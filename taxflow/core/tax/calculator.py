"""
Sales tax calculation.

Money is handled as Decimal and rounded half-up at the cent, each amount in
its own rounding pass: tax from subtotal * rate, total from subtotal plus the
already rounded tax.
"""

from decimal import ROUND_HALF_UP, Decimal

from taxflow.core.models import JurisdictionRate, TaxBreakdown

CENT = Decimal("0.01")


def round2(amount: Decimal) -> Decimal:
    """Round to 2 fractional digits, halves away from zero."""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate(subtotal: Decimal, jurisdiction: JurisdictionRate) -> TaxBreakdown:
    """
    Compute the tax breakdown for an order. Pure function.

    Args:
        subtotal: Pre-tax amount (positive)
        jurisdiction: Resolved rate record

    Returns:
        TaxBreakdown with tax_amount and total_amount rounded to cents
    """
    subtotal = Decimal(subtotal)
    rate = jurisdiction.composite_rate
    tax_amount = round2(subtotal * rate)
    total_amount = round2(subtotal + tax_amount)

    return TaxBreakdown(
        tax_region=jurisdiction.name,
        county_fips=jurisdiction.county_fips,
        state_rate=jurisdiction.state_rate,
        county_rate=jurisdiction.county_rate,
        city_rate=jurisdiction.city_rate,
        special_rate=jurisdiction.special_rate,
        composite_tax_rate=rate,
        tax_amount=tax_amount,
        total_amount=total_amount,
        jurisdictions=list(jurisdiction.jurisdictions),
    )
