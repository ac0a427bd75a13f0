# =============================================
# File: app/utils/recommend_core.py
# Purpose: Deterministic coverage rules (profile -> policy, amount, term, explanation)
# =============================================
from __future__ import annotations

import math
from enum import Enum
from typing import Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RiskTolerance(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class PolicyType(str, Enum):
    TERM_LIFE = "TermLife"
    WHOLE_LIFE = "WholeLife"

    @property
    def label(self) -> str:
        return "Term Life" if self is PolicyType.TERM_LIFE else "Whole Life"


# 1e12 * 12 * MAX_MULTIPLIER stays well inside a 64-bit INTEGER column
MAX_ANNUAL_INCOME = 1_000_000_000_000


class UserProfile(BaseModel):
    """
    Validated financial profile.
    Accepts camelCase (wire), snake_case and the legacy `income` key.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    age: int = Field(..., ge=18, le=100)
    annual_income: float = Field(
        ...,
        ge=0,
        le=MAX_ANNUAL_INCOME,
        allow_inf_nan=False,
        validation_alias=AliasChoices("annualIncome", "income", "annual_income"),
        serialization_alias="annualIncome",
    )
    dependents: int = Field(..., ge=0, le=10)
    risk_tolerance: RiskTolerance = Field(
        ...,
        validation_alias=AliasChoices("riskTolerance", "risk_tolerance"),
        serialization_alias="riskTolerance",
    )


class Recommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    policy_type: PolicyType
    coverage_amount: int
    # raw formula; can drop to zero or below for childless profiles aged 65+
    term_years: int
    summary_text: str
    explanation_text: str


# ---------- Rule tables ----------
# Bands are (exclusive upper age bound, value); None closes the table.

BASE_MULTIPLIER = 10.0
MAX_MULTIPLIER = 20.0
PER_DEPENDENT = 0.5
ROUND_TO = 1000

_AGE_ADJUSTMENTS: Tuple[Tuple[Optional[int], float], ...] = (
    (30, 2.0),
    (50, 1.0),
    (None, -1.0),
)

_RISK_ADJUSTMENTS = {
    RiskTolerance.LOW: 1.0,
    RiskTolerance.MEDIUM: 0.0,
    RiskTolerance.HIGH: 2.0,
}

# (upper bound, policy for High risk, policy for everyone else)
_POLICY_BANDS: Tuple[Tuple[Optional[int], PolicyType, PolicyType], ...] = (
    (40, PolicyType.TERM_LIFE, PolicyType.TERM_LIFE),
    (60, PolicyType.WHOLE_LIFE, PolicyType.TERM_LIFE),
    (None, PolicyType.WHOLE_LIFE, PolicyType.WHOLE_LIFE),
)

_RISK_SENTENCES = {
    RiskTolerance.HIGH: "Given your high risk tolerance, we recommend a more comprehensive policy.",
    RiskTolerance.LOW: "With your low risk tolerance, we suggest a conservative but adequate coverage level.",
}


def _band(age: int, table):
    for row in table:
        upper = row[0]
        if upper is None or age < upper:
            return row[1:]
    raise ValueError(f"no band for age {age}")  # tables always end with None


def _money(value: float) -> str:
    """Thousands separators, up to 3 decimals, trailing zeros dropped."""
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


# ---------- Rules ----------

def coverage_multiplier(age: int, dependents: int, risk_tolerance: RiskTolerance) -> float:
    (age_adj,) = _band(age, _AGE_ADJUSTMENTS)
    multiplier = BASE_MULTIPLIER + age_adj
    multiplier += dependents * PER_DEPENDENT
    multiplier += _RISK_ADJUSTMENTS[RiskTolerance(risk_tolerance)]
    return min(multiplier, MAX_MULTIPLIER)


def coverage_amount(annual_income: float, multiplier: float) -> int:
    base_coverage = annual_income * 12
    return _round_half_up(base_coverage * multiplier / ROUND_TO) * ROUND_TO


def policy_type(age: int, risk_tolerance: RiskTolerance) -> PolicyType:
    high_risk, other = _band(age, _POLICY_BANDS)
    return high_risk if RiskTolerance(risk_tolerance) is RiskTolerance.HIGH else other


def term_years(age: int, dependents: int) -> int:
    if dependents > 0:
        # cover until the youngest child is about 25
        return min(max(25 - (age - 25), 10), 30)
    return min(65 - age, 20)


def build_summary(policy: PolicyType, amount: int, term: int) -> str:
    return f"{policy.label} – ${_money(amount)} for {term} years"


def build_explanation(profile: UserProfile, policy: PolicyType, amount: int, term: int) -> str:
    """Fixed order: age/type, dependents, income/coverage, risk, term."""
    parts = [f"Based on your age of {profile.age}, we recommend {policy.label} insurance."]

    if profile.dependents > 0:
        plural = "s" if profile.dependents > 1 else ""
        parts.append(
            f"With {profile.dependents} dependent{plural}, you need sufficient coverage "
            "to protect your family's financial future."
        )

    parts.append(
        f"Your annual income of ${_money(profile.annual_income)} suggests a coverage "
        f"amount of ${_money(amount)}."
    )

    risk_sentence = _RISK_SENTENCES.get(profile.risk_tolerance)
    if risk_sentence:
        parts.append(risk_sentence)

    parts.append(f"This {term}-year policy will provide financial security for your loved ones.")
    return " ".join(parts)


def compute(profile: UserProfile) -> Recommendation:
    multiplier = coverage_multiplier(profile.age, profile.dependents, profile.risk_tolerance)
    amount = coverage_amount(profile.annual_income, multiplier)
    policy = policy_type(profile.age, profile.risk_tolerance)
    term = term_years(profile.age, profile.dependents)
    return Recommendation(
        policy_type=policy,
        coverage_amount=amount,
        term_years=term,
        summary_text=build_summary(policy, amount, term),
        explanation_text=build_explanation(profile, policy, amount, term),
    )
