"""Regulatory deadline tracking — due dates, status, penalties, alerts, score.

Deadlines for assessment year ``Y-(Y+1)`` (income of FY ``Y-1``-``Y``):

    ITR filing              31 Jul Y         late fee ₹5,000 (≤ 90 days) / ₹10,000
    Advance tax Q1..Q4      15 Jun, 15 Sep, 15 Dec of Y−1; 15 Mar Y
                            interest 1 % per 30 days on the cumulative
                            installment (15 / 45 / 75 / 100 % of the tax)
    TDS return Q1           31 Jul Y−1       ₹200 per day, capped at ₹20,000
    GST return (monthly)    20th of the current month
                            ₹50 per day, capped at 0.1 % of turnover
    Tax audit report        30 Sep Y         0.5 % of turnover, capped at ₹1,50,000

Status:  overdue  (days until due < 0)
         due_soon (0 ≤ days ≤ DUE_SOON_DAYS)
         compliant otherwise, or when the rule is listed as completed.

Installments, TDS and GST are tracked for the year in progress on ``as_of``
(the one whose financial year contains it). ITR filing and the audit report
are tracked for the year before it, whose return is filed during that
financial year: on 2024-08-10 advance tax belongs to AY 2025-26 while the
AY 2024-25 return is 10 days late.

Score: mean over applicable rules of compliant 100 / due_soon 70 /
overdue ≤ 30 days 30 / overdue > 30 days 0, rounded half up; 100 when
nothing applies.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Sequence, Union

from app.config import settings
from app.models.schemas import (
    ComplianceAlert,
    ComplianceProfile,
    ComplianceRecommendation,
    ComplianceReport,
    ComplianceStatus,
    ReturnSummary,
)
from app.utils.helpers import (
    assessment_year_for,
    assessment_year_start,
    days_between,
    format_assessment_year,
    parse_date,
    round_currency,
)

logger = logging.getLogger(__name__)

COMPLIANT = "compliant"
DUE_SOON = "due_soon"
OVERDUE = "overdue"

_PRIORITY_RANK: Dict[str, int] = {"high": 3, "medium": 2, "low": 1}

BASIC_EXEMPTION_LIMIT = 250_000.0
ADVANCE_TAX_THRESHOLD = 10_000.0
ADVANCE_TAX_INTEREST_RATE = 0.01     # per 30 days, s.234C
AUDIT_TURNOVER_LIMIT = 10_000_000.0  # ₹1 crore, s.44AB
AUDIT_PRESUMPTIVE_MARGIN = 0.08


@dataclass(frozen=True)
class ComplianceRule:
    """One deadline: who it applies to, when it falls due, what lateness costs."""

    rule_id: str
    name: str
    description: str
    priority: str
    applies: Callable[[ComplianceProfile, ReturnSummary], bool]
    # (assessment-year start, as_of) -> due date
    due_date: Callable[[int, date], date]
    # (days overdue, tax liability, turnover) -> penalty
    penalty: Callable[[int, float, float], float]
    # 0: the year in progress; -1: the year whose return is filed during it
    year_offset: int = 0


def _tax_liability(summary: ReturnSummary) -> float:
    return summary.estimatedTax or summary.taxLiability


# ── Rule definitions ──────────────────────────────────────────────────────

def _late_filing_fee(days: int, liability: float, turnover: float) -> float:
    if days <= 0:
        return 0.0
    return 5_000.0 if days <= 90 else 10_000.0


def _advance_tax_rule(
    quarter: int,
    due: Callable[[int], date],
    cumulative_share: float,
    priority: str,
) -> ComplianceRule:
    def penalty(days: int, liability: float, turnover: float) -> float:
        if days <= 0:
            return 0.0
        installment = liability * cumulative_share
        return round_currency(installment * ADVANCE_TAX_INTEREST_RATE * days / 30)

    return ComplianceRule(
        rule_id=f"advance_tax_q{quarter}",
        name=f"Advance Tax Q{quarter}",
        description=(
            f"Advance tax installment {quarter} "
            f"({cumulative_share:.0%} of estimated tax, cumulative)"
        ),
        priority=priority,
        applies=lambda profile, summary: _tax_liability(summary) > ADVANCE_TAX_THRESHOLD,
        due_date=lambda ay, as_of: due(ay),
        penalty=penalty,
    )


def _audit_applies(profile: ComplianceProfile, summary: ReturnSummary) -> bool:
    if summary.businessIncome <= 0:
        return False
    return (
        summary.grossReceipts > AUDIT_TURNOVER_LIMIT
        or summary.businessIncome < summary.grossReceipts * AUDIT_PRESUMPTIVE_MARGIN
    )


def _audit_penalty(days: int, liability: float, turnover: float) -> float:
    if days <= 0:
        return 0.0
    return round_currency(min(turnover * 0.005, 150_000.0))


DEFAULT_RULES: List[ComplianceRule] = [
    ComplianceRule(
        rule_id="itr_filing",
        name="ITR Filing",
        description="Annual income tax return filing",
        priority="high",
        applies=lambda profile, summary: summary.grossTotalIncome > BASIC_EXEMPTION_LIMIT,
        due_date=lambda ay, as_of: date(ay, 7, 31),
        penalty=_late_filing_fee,
        year_offset=-1,
    ),
    _advance_tax_rule(1, lambda ay: date(ay - 1, 6, 15), 0.15, "medium"),
    _advance_tax_rule(2, lambda ay: date(ay - 1, 9, 15), 0.45, "medium"),
    _advance_tax_rule(3, lambda ay: date(ay - 1, 12, 15), 0.75, "medium"),
    _advance_tax_rule(4, lambda ay: date(ay, 3, 15), 1.00, "high"),
    ComplianceRule(
        rule_id="tds_return_q1",
        name="TDS Return Q1",
        description="Quarterly TDS return filing",
        priority="medium",
        applies=lambda profile, summary: (
            profile.entityType == "business" or profile.hasTdsDeducted
        ),
        due_date=lambda ay, as_of: date(ay - 1, 7, 31),
        penalty=lambda days, liability, turnover: (
            float(min(days * 200, 20_000)) if days > 0 else 0.0
        ),
    ),
    ComplianceRule(
        rule_id="gst_return",
        name="GST Return Filing",
        description="Monthly GST return filing",
        priority="high",
        applies=lambda profile, summary: profile.gstRegistered,
        due_date=lambda ay, as_of: date(as_of.year, as_of.month, 20),
        penalty=lambda days, liability, turnover: (
            round_currency(min(days * 50.0, turnover * 0.001)) if days > 0 else 0.0
        ),
    ),
    ComplianceRule(
        rule_id="tax_audit",
        name="Tax Audit",
        description="Tax audit report for business income (s.44AB)",
        priority="high",
        applies=_audit_applies,
        due_date=lambda ay, as_of: date(ay, 9, 30),
        penalty=_audit_penalty,
        year_offset=-1,
    ),
]


# ── Evaluation ────────────────────────────────────────────────────────────

def _status_for(days_until_due: int) -> str:
    if days_until_due < 0:
        return OVERDUE
    if days_until_due <= settings.DUE_SOON_DAYS:
        return DUE_SOON
    return COMPLIANT


def _points(status: ComplianceStatus) -> int:
    if status.status == COMPLIANT:
        return 100
    if status.status == DUE_SOON:
        return 70
    return 30 if status.daysOverdue <= 30 else 0


def _alert_for(status: ComplianceStatus) -> Optional[ComplianceAlert]:
    days = status.daysUntilDue
    if status.status == OVERDUE:
        severity = "error"
        message = (
            f"{status.name} is overdue by {status.daysOverdue} days. "
            f"Penalty: ₹{status.penaltyAmount:,.0f}"
        )
    elif status.status == COMPLIANT:
        return None
    elif days <= settings.WARNING_DAYS:
        severity = "warning"
        message = f"{status.name} is due in {days} days"
    else:
        severity = "info"
        message = f"{status.name} is due in {days} days"

    return ComplianceAlert(
        ruleId=status.ruleId,
        severity=severity,
        priority=status.priority,
        daysUntilDue=days,
        message=message,
    )


def _recommendations(
    statuses: Sequence[ComplianceStatus],
    score: int,
) -> List[ComplianceRecommendation]:
    urgent: List[ComplianceRecommendation] = []
    upcoming: List[ComplianceRecommendation] = []
    for status in statuses:
        if not status.applicable:
            continue
        if status.status == OVERDUE:
            urgent.append(ComplianceRecommendation(
                type="urgent",
                title=f"File {status.name} immediately",
                description=(
                    f"You are {status.daysOverdue} days overdue. "
                    f"Current penalty: ₹{status.penaltyAmount:,.0f}"
                ),
                action="file_now",
            ))
        elif status.status == DUE_SOON:
            upcoming.append(ComplianceRecommendation(
                type="warning",
                title=f"Prepare {status.name}",
                description=(
                    f"Due in {status.daysUntilDue} days. "
                    "Start preparation now to avoid penalties."
                ),
                action="prepare",
            ))

    extra: List[ComplianceRecommendation] = []
    if score < 80:
        extra.append(ComplianceRecommendation(
            type="improvement",
            title="Improve Compliance Score",
            description="Set up reminders for upcoming deadlines to stay compliant.",
            action="setup_alerts",
        ))
    return urgent + upcoming + extra


def _returns_by_year(returns: Sequence[ReturnSummary]) -> Dict[str, ReturnSummary]:
    """Index *returns* by normalised AY label; the first return for a year wins."""
    by_year: Dict[str, ReturnSummary] = {}
    for summary in returns:
        try:
            label = format_assessment_year(assessment_year_start(summary.assessmentYear))
        except ValueError:
            logger.warning("Ignoring return with bad assessment year %r", summary.assessmentYear)
            continue
        by_year.setdefault(label, summary)
    return by_year


def _score(statuses: Sequence[ComplianceStatus]) -> int:
    if not statuses:
        return 100
    mean = sum(_points(s) for s in statuses) / len(statuses)
    return int(math.floor(mean + 0.5))


def evaluate_compliance(
    profile: ComplianceProfile,
    returns: Sequence[ReturnSummary],
    as_of: Union[date, datetime, str],
    assessment_year: Optional[str] = None,
    rules: Optional[Sequence[ComplianceRule]] = None,
) -> ComplianceReport:
    """Evaluate every rule for the assessment year in progress on *as_of*.

    *assessment_year* defaults to the year whose financial year contains
    *as_of*. Each rule reads the return for that year shifted by its
    ``year_offset``, so filing rules look at the previous year's return.
    Rules that do not apply are reported with ``applicable=False`` and
    take no part in alerts, penalties, upcoming deadlines or the score.
    """
    moment = as_of if isinstance(as_of, datetime) else parse_date(as_of)
    today = parse_date(moment)
    year_label = format_assessment_year(
        assessment_year_start(assessment_year or assessment_year_for(today))
    )
    ay_start = assessment_year_start(year_label)
    by_year = _returns_by_year(returns)

    statuses: List[ComplianceStatus] = []
    upcoming: List[ComplianceStatus] = []
    for rule in DEFAULT_RULES if rules is None else rules:
        rule_year = ay_start + rule.year_offset
        rule_label = format_assessment_year(rule_year)
        summary = by_year.get(rule_label) or ReturnSummary(assessmentYear=rule_label)
        completed = rule.rule_id in summary.completed

        applicable = rule.applies(profile, summary)
        due = rule.due_date(rule_year, today)
        days_until_due = days_between(moment, due)
        days_overdue = max(0, -days_until_due)

        if not applicable or completed:
            status, penalty = COMPLIANT, 0.0
        else:
            status = _status_for(days_until_due)
            penalty = round_currency(
                rule.penalty(days_overdue, _tax_liability(summary), summary.grossReceipts)
            )

        entry = ComplianceStatus(
            ruleId=rule.rule_id,
            name=rule.name,
            priority=rule.priority,
            assessmentYear=rule_label,
            applicable=applicable,
            dueDate=due,
            daysUntilDue=days_until_due,
            daysOverdue=days_overdue if status == OVERDUE else 0,
            status=status,
            penaltyAmount=penalty,
        )
        statuses.append(entry)
        if applicable and not completed and 0 < days_until_due <= settings.UPCOMING_DAYS:
            upcoming.append(entry)

    applicable_statuses = [s for s in statuses if s.applicable]
    alerts = [a for a in (_alert_for(s) for s in applicable_statuses) if a is not None]
    alerts.sort(key=lambda a: (-_PRIORITY_RANK.get(a.priority, 0), a.daysUntilDue))
    upcoming.sort(key=lambda s: s.daysUntilDue)

    score = _score(applicable_statuses)
    total_penalty = round_currency(sum(s.penaltyAmount for s in applicable_statuses))
    logger.info(
        "Compliance AY %s as of %s: %d applicable rules, %d alerts, score %d",
        year_label, today, len(applicable_statuses), len(alerts), score,
    )

    return ComplianceReport(
        assessmentYear=year_label,
        asOf=today,
        statuses=statuses,
        alerts=alerts,
        upcomingDeadlines=upcoming,
        score=score,
        totalPenalty=total_penalty,
        recommendations=_recommendations(statuses, score),
    )
