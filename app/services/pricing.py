# app/services/pricing.py
"""Cálculo da taxa de matrícula e do total devido (funções puras)."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from zoneinfo import ZoneInfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Tuple

from app.core.config import settings

CENTS = Decimal("0.01")

@dataclass(frozen=True)
class FeePolicy:
    base_fee: Decimal
    discount_percentage: Decimal
    deadline_day: int

    @classmethod
    def from_settings(cls) -> "FeePolicy":
        return cls(
            base_fee=settings.REGISTRATION_FEE,
            discount_percentage=settings.REGISTRATION_FEE_DISCOUNT_PERCENTAGE,
            deadline_day=settings.REGISTRATION_DISCOUNT_DEADLINE_DAY,
        )

def registration_discount_active(policy: FeePolicy, today: date) -> bool:
    return today.day <= policy.deadline_day

def registration_fee(policy: FeePolicy, today: date) -> Tuple[Decimal, bool]:
    """Retorna (valor da taxa, se o desconto está valendo)."""
    discount = registration_discount_active(policy, today)
    value = policy.base_fee * policy.discount_percentage if discount else policy.base_fee
    return value.quantize(CENTS, rounding=ROUND_HALF_UP), discount

def compute_total(plan_prices: Iterable[Optional[Decimal]], policy: FeePolicy, today: date) -> Tuple[Decimal, Decimal, bool]:
    """
    Soma dos planos escolhidos + taxa de matrícula.
    Seleções ainda sem plano (None) não entram na soma.
    Retorna (total, taxa, desconto_ativo).
    """
    plans_total = sum((Decimal(p) for p in plan_prices if p is not None), Decimal("0"))
    fee, discount = registration_fee(policy, today)
    return (plans_total + fee).quantize(CENTS, rounding=ROUND_HALF_UP), fee, discount

def local_today() -> date:
    """Data corrente no fuso configurado (a janela de desconto vale pelo calendário local)."""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).date()
