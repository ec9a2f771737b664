"""Indian income-tax calculation driven by a ``RegimeDefinition``.

For a taxable income T and the regime's ordered bands:

    tax_before_cess = Σ  rate_i × (min(max_i, T) − min_i)   for every band with min_i < T
    cess            = tax_before_cess × cess_rate
    rebate (87A)    = min(tax_before_cess + cess, rebate_cap × (1 + cess_rate))   if T ≤ threshold
    net             = max(0, tax_before_cess + cess − rebate)

The rebate cap is stated on tax before cess, so it is grossed up by the
cess rate to also forgive the cess charged on that tax.
"""

from __future__ import annotations

import logging
from typing import List

from app.models.schemas import (
    IncomeProfile,
    RegimeDefinition,
    SlabBand,
    SlabBreakdownEntry,
    TaxComputation,
    TaxComputationResult,
    TaxSettlement,
)
from app.services.deduction_service import DeductionSet, resolve_deductions
from app.utils.helpers import round_currency, round_rate, validate_amount

logger = logging.getLogger(__name__)

INCOME_FIELDS = (
    "salary",
    "houseProperty",
    "business",
    "shortTermCapitalGains",
    "longTermCapitalGains",
    "otherSources",
)


def gross_total_income(income: IncomeProfile) -> float:
    """Sum of every income head; each must be a non-negative number."""
    total = 0.0
    for name in INCOME_FIELDS:
        total += validate_amount(getattr(income, name), field=f"income {name}")
    return round_currency(total)


def _band_contains(band: SlabBand, amount: float) -> bool:
    return band.min <= amount and (band.max is None or amount < band.max)


def marginal_tax_rate(taxable_income: float, regime: RegimeDefinition) -> float:
    """Cess-inclusive rate of the band holding *taxable_income*."""
    band = next(
        (b for b in regime.slabs if _band_contains(b, taxable_income)),
        regime.slabs[-1],
    )
    return round_rate(band.rate * (1 + regime.cessRate))


def compute_tax(taxable_income: float, regime: RegimeDefinition) -> TaxComputation:
    """Apply *regime*'s slabs, cess and rebate to *taxable_income*.

    Negative or non-finite income raises ``InvalidAmountError``; clamping
    is the caller's job.
    """
    taxable = validate_amount(taxable_income, field="taxable income")

    breakdown: List[SlabBreakdownEntry] = []
    tax_before_cess = 0.0
    for slab_no, band in enumerate(regime.slabs, start=1):
        if taxable <= band.min:
            break
        upper = taxable if band.max is None else min(band.max, taxable)
        taxable_in_slab = upper - band.min
        band_tax = round_currency(taxable_in_slab * band.rate)
        breakdown.append(
            SlabBreakdownEntry(
                slabNo=slab_no,
                min=band.min,
                max=band.max,
                rate=band.rate,
                taxableAmount=round_currency(taxable_in_slab),
                taxAmount=band_tax,
            )
        )
        tax_before_cess += band_tax

    tax_before_cess = round_currency(tax_before_cess)
    cess = round_currency(tax_before_cess * regime.cessRate)
    gross_tax = round_currency(tax_before_cess + cess)

    rebate = 0.0
    if taxable <= regime.rebateThreshold:
        rebate = round_currency(min(gross_tax, regime.rebateCap * (1 + regime.cessRate)))

    net = round_currency(max(0.0, gross_tax - rebate))

    return TaxComputation(
        taxBeforeCess=tax_before_cess,
        cessAmount=cess,
        rebateApplied=rebate,
        netTaxLiability=net,
        slabBreakdown=breakdown,
        marginalTaxRate=marginal_tax_rate(taxable, regime),
    )


def taxable_income_for(gross: float, total_deductions: float, regime: RegimeDefinition) -> float:
    """Gross income less the standard deduction and resolved deductions, floored at 0."""
    return round_currency(max(0.0, gross - regime.standardDeduction - total_deductions))


def net_liability(gross: float, deductions: DeductionSet, regime: RegimeDefinition) -> float:
    """Net tax for a gross income figure, without the full result breakdown."""
    resolved = resolve_deductions(deductions, regime)
    taxable = taxable_income_for(gross, resolved.totalDeductions, regime)
    return compute_tax(taxable, regime).netTaxLiability


def calculate_regime_tax(
    income: IncomeProfile,
    deductions: DeductionSet,
    regime: RegimeDefinition,
) -> TaxComputationResult:
    """Full computation for one regime: gross → deductions → taxable → liability."""
    gross = gross_total_income(income)
    resolved = resolve_deductions(deductions, regime)
    taxable = taxable_income_for(gross, resolved.totalDeductions, regime)
    computation = compute_tax(taxable, regime)
    net = computation.netTaxLiability

    logger.debug(
        "%s regime: gross=%s taxable=%s net=%s",
        regime.regimeId, gross, taxable, net,
    )

    return TaxComputationResult(
        regime=regime.regimeId,
        assessmentYear=regime.assessmentYear,
        grossTotalIncome=gross,
        standardDeduction=regime.standardDeduction,
        resolvedDeductions=resolved.resolved,
        totalDeductions=resolved.totalDeductions,
        taxableIncome=taxable,
        slabBreakdown=computation.slabBreakdown,
        taxBeforeCess=computation.taxBeforeCess,
        cessAmount=computation.cessAmount,
        rebateApplied=computation.rebateApplied,
        netTaxLiability=net,
        effectiveTaxRate=round_rate(net / gross) if gross > 0 else 0.0,
        averageTaxRate=round_rate(net / taxable) if taxable > 0 else 0.0,
        marginalTaxRate=computation.marginalTaxRate,
    )


def settle_liability(
    tax_liability: float,
    tds_deducted: float = 0.0,
    advance_tax_paid: float = 0.0,
) -> TaxSettlement:
    """Net *tax_liability* off against TDS and advance tax already paid.

    Exactly one of ``refundDue`` / ``additionalTaxPayable`` is non-zero
    unless the payments match the liability.
    """
    liability = validate_amount(tax_liability, field="tax liability")
    tds = validate_amount(tds_deducted, field="TDS deducted")
    advance = validate_amount(advance_tax_paid, field="advance tax paid")
    paid = round_currency(tds + advance)

    return TaxSettlement(
        taxLiability=round_currency(liability),
        tdsDeducted=round_currency(tds),
        advanceTaxPaid=round_currency(advance),
        totalTaxPaid=paid,
        refundDue=round_currency(max(0.0, paid - liability)),
        additionalTaxPayable=round_currency(max(0.0, liability - paid)),
    )
