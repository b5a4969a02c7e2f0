"""
금액 유틸리티

Decimal 금액 검증 및 센트(minor unit) 정수 변환.
DB에는 INTEGER 센트로 저장하여 `balance = balance + ?` 형태의 상대 갱신을 가능하게 함.
"""

from decimal import Decimal, InvalidOperation

from core.constants import MoneyLimits
from core.errors import InvalidStateError

_CENTS = Decimal(10) ** MoneyLimits.DECIMAL_PLACES


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """입력값을 Decimal로 변환

    float는 str을 거쳐 변환 (이진 부동소수점 오차 방지).

    Raises:
        InvalidStateError: 숫자로 해석할 수 없는 경우
    """
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise InvalidStateError("INVALID_AMOUNT", f"금액 형식 오류: {value!r}") from e


def validate_amount(value: Decimal | int | float | str, allow_zero: bool = False) -> Decimal:
    """금액 검증

    양수(allow_zero면 0 이상)이고 소수점 이하 2자리 이내여야 함.

    Args:
        value: 검증할 금액
        allow_zero: 0 허용 여부 (초기 잔액 등)

    Returns:
        검증된 Decimal 금액

    Raises:
        InvalidStateError: INVALID_AMOUNT
    """
    amount = to_decimal(value)

    if not amount.is_finite():
        raise InvalidStateError("INVALID_AMOUNT", f"유효하지 않은 금액: {amount}")

    if amount < 0 or (amount == 0 and not allow_zero):
        raise InvalidStateError("INVALID_AMOUNT", f"금액은 0보다 커야 합니다: {amount}")

    if amount != amount.quantize(MoneyLimits.MINOR_UNIT):
        raise InvalidStateError(
            "INVALID_AMOUNT",
            f"금액은 소수점 이하 {MoneyLimits.DECIMAL_PLACES}자리까지만 허용됩니다: {amount}",
        )

    return amount


def to_minor(amount: Decimal) -> int:
    """Decimal 금액 → 센트 정수"""
    return int((amount * _CENTS).to_integral_value())


def from_minor(minor: int | None) -> Decimal:
    """센트 정수 → Decimal 금액 (소수점 2자리)"""
    if minor is None:
        return Decimal("0.00")
    return (Decimal(minor) / _CENTS).quantize(MoneyLimits.MINOR_UNIT)
