"""Pydantic models for the tax engine and its API endpoints.

Domain snapshots (regimes, income, results, compliance) are frozen so a
computed result can be handed around without anything mutating it.
Field names are camelCase to match the JSON the API speaks.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class DeductionSection(str, Enum):
    """Closed set of deduction sections a return can claim."""

    SECTION_80C = "80C"
    SECTION_80D = "80D"
    SECTION_80E = "80E"
    SECTION_80G = "80G"
    SECTION_80TTA = "80TTA"
    HOUSE_PROPERTY = "houseProperty"
    PROFESSIONAL_TAX = "professionalTax"
    OTHER = "other"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ── Regime tables ─────────────────────────────────────────────────────────

class SlabBand(_Frozen):
    """Income range ``[min, max)`` taxed at a single marginal rate."""
    min: float
    max: Optional[float] = Field(None, description="Upper bound; None = unbounded")
    rate: float = Field(..., description="Marginal rate as a fraction (0.05 = 5%)")


class RegimeDefinition(_Frozen):
    regimeId: str
    assessmentYear: str
    label: str
    slabs: Tuple[SlabBand, ...]
    cessRate: float
    standardDeduction: float
    rebateThreshold: float = Field(..., description="Rebate applies when taxable income ≤ this")
    rebateCap: float
    allowedDeductions: Dict[DeductionSection, Optional[float]] = Field(
        default_factory=dict,
        description="Section → cap (None = uncapped). Sections missing here resolve to 0.",
    )


# ── Inputs ────────────────────────────────────────────────────────────────

class IncomeProfile(_Frozen):
    """Gross income split by head, in INR."""
    salary: float = 0.0
    houseProperty: float = 0.0
    business: float = 0.0
    shortTermCapitalGains: float = 0.0
    longTermCapitalGains: float = 0.0
    otherSources: float = 0.0


# ── Calculator / resolver outputs ─────────────────────────────────────────

class SlabBreakdownEntry(_Frozen):
    slabNo: int
    min: float
    max: Optional[float]
    rate: float
    taxableAmount: float
    taxAmount: float


class TaxComputation(_Frozen):
    """Liability for a given taxable income under one regime."""
    taxBeforeCess: float
    cessAmount: float
    rebateApplied: float
    netTaxLiability: float
    slabBreakdown: List[SlabBreakdownEntry]
    marginalTaxRate: float = Field(..., description="Cess-inclusive rate of the band holding the income")


class ResolvedDeductions(_Frozen):
    resolved: Dict[DeductionSection, float]
    totalDeductions: float


class TaxComputationResult(_Frozen):
    regime: str
    assessmentYear: str
    grossTotalIncome: float
    standardDeduction: float
    resolvedDeductions: Dict[DeductionSection, float]
    totalDeductions: float
    taxableIncome: float
    slabBreakdown: List[SlabBreakdownEntry]
    taxBeforeCess: float
    cessAmount: float
    rebateApplied: float
    netTaxLiability: float
    effectiveTaxRate: float = Field(..., description="netTaxLiability / grossTotalIncome")
    averageTaxRate: float = Field(..., description="netTaxLiability / taxableIncome")
    marginalTaxRate: float


class TaxSettlement(_Frozen):
    """Liability settled against taxes already paid."""
    taxLiability: float
    tdsDeducted: float
    advanceTaxPaid: float
    totalTaxPaid: float
    refundDue: float
    additionalTaxPayable: float


class RegimeComparison(_Frozen):
    oldRegime: TaxComputationResult
    newRegime: TaxComputationResult
    absoluteSavings: float
    savingsPercentage: float = Field(..., description="Savings as % of the higher liability")
    recommendedRegime: str
    breakEvenIncome: Optional[float] = None


class ScenarioResult(_Frozen):
    multiplier: float
    incomeHead: str = Field(..., description="Income head the multiplier was applied to")
    income: float
    oldRegimeTax: float
    newRegimeTax: float
    savings: float = Field(..., description="oldRegimeTax − newRegimeTax")
    bestRegime: str


class DeductionSuggestion(_Frozen):
    section: DeductionSection
    current: float
    cap: float
    headroom: float
    taxSaving: float
    priority: int


# ── Compliance ────────────────────────────────────────────────────────────

class ComplianceProfile(_Frozen):
    entityType: str = Field("individual", description="individual / business / …")
    gstRegistered: bool = False
    hasTdsDeducted: bool = False


class ReturnSummary(_Frozen):
    """The slice of a tax-return record the compliance rules look at."""
    assessmentYear: str
    grossTotalIncome: float = 0.0
    businessIncome: float = 0.0
    grossReceipts: float = Field(0.0, description="Turnover")
    estimatedTax: float = 0.0
    taxLiability: float = 0.0
    completed: List[str] = Field(
        default_factory=list,
        description="Rule ids already discharged for this year",
    )


class ComplianceStatus(_Frozen):
    ruleId: str
    name: str
    priority: str
    assessmentYear: str = Field(..., description="Year whose obligation this status tracks")
    applicable: bool
    dueDate: date
    daysUntilDue: int
    daysOverdue: int
    status: str = Field(..., description="compliant / due_soon / overdue")
    penaltyAmount: float


class ComplianceAlert(_Frozen):
    ruleId: str
    severity: str = Field(..., description="error / warning / info")
    priority: str
    daysUntilDue: int
    message: str


class ComplianceRecommendation(_Frozen):
    type: str = Field(..., description="urgent / warning / improvement")
    title: str
    description: str
    action: str


class ComplianceReport(_Frozen):
    assessmentYear: str
    asOf: date
    statuses: List[ComplianceStatus]
    alerts: List[ComplianceAlert]
    upcomingDeadlines: List[ComplianceStatus] = Field(
        default_factory=list,
        description="Open obligations due within UPCOMING_DAYS, soonest first",
    )
    score: int = Field(..., ge=0, le=100)
    totalPenalty: float
    recommendations: List[ComplianceRecommendation]


# ── API request / response bodies ─────────────────────────────────────────

class CalculateRequest(BaseModel):
    regime: str = Field("new", description="old / new")
    assessmentYear: Optional[str] = None
    income: IncomeProfile
    deductions: Dict[str, float] = Field(default_factory=dict)
    tdsDeducted: float = Field(0.0, ge=0)
    advanceTaxPaid: float = Field(0.0, ge=0)


class CalculateResponse(BaseModel):
    result: TaxComputationResult
    settlement: TaxSettlement


class CompareRequest(BaseModel):
    assessmentYear: Optional[str] = None
    income: IncomeProfile
    deductions: Dict[str, float] = Field(default_factory=dict)


class ScenarioRequest(CompareRequest):
    multipliers: Optional[List[float]] = Field(
        None, description="Income multipliers; defaults to the configured sweep"
    )


class ScenarioResponse(BaseModel):
    scenarios: List[ScenarioResult]


class ResolveRequest(BaseModel):
    regime: str = "old"
    assessmentYear: Optional[str] = None
    deductions: Dict[str, float] = Field(default_factory=dict)


class OptimizeRequest(ResolveRequest):
    income: IncomeProfile
    limit: int = Field(5, ge=1, le=8)


class OptimizeResponse(BaseModel):
    suggestions: List[DeductionSuggestion]
    potentialSavings: float


class ComplianceRequest(BaseModel):
    profile: ComplianceProfile = Field(default_factory=ComplianceProfile)
    returns: List[ReturnSummary] = Field(default_factory=list)
    asOf: date
    assessmentYear: Optional[str] = None
