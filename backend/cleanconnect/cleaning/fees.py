"""
cleaning/fees.py

Fee Calculator
Pure computation of the escrowed service fee from the base fee, the ordered
extras and the booking frequency. Called at creation only; rebookings reuse
the stored result.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from cleanconnect.cleaning.models import BookingFrequency
from cleanconnect.core.exceptions import InvalidFeeError, ValidationError

CENT = Decimal("0.01")
RECURRING_DISCOUNT_RATE = Decimal("0.10")


@dataclass(frozen=True)
class FeeBreakdown:
    extras_total: Decimal
    discount_amount: Decimal
    service_fee: Decimal
    is_recurring: bool


def _money(value: Decimal | int | float | str) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_fee(
    base_fee: Decimal | int | float | str,
    extra_fees: Iterable[Decimal | int | float | str],
    booking_frequency: BookingFrequency,
) -> FeeBreakdown:
    """
    Compute the fee of a booking.

    A recurring booking (any frequency other than once-off) gets 10% off the
    total of the base fee and the extras.

    Raises:
        ValidationError: negative base fee or extra fee.
        InvalidFeeError: the resulting fee would be negative.
    """
    base = _money(base_fee)
    if base < 0:
        raise ValidationError("Base fee cannot be negative", field="base_fee")

    extras_total = Decimal("0.00")
    for index, fee in enumerate(extra_fees):
        fee = _money(fee)
        if fee < 0:
            raise ValidationError("Extra fee cannot be negative", field=f"extras[{index}].fee")
        extras_total += fee

    is_recurring = BookingFrequency(booking_frequency) != BookingFrequency.ONCE_OFF
    total = base + extras_total
    discount = _money(total * RECURRING_DISCOUNT_RATE) if is_recurring else Decimal("0.00")
    service_fee = total - discount

    if service_fee < 0:
        raise InvalidFeeError("Service fee cannot be negative", service_fee=str(service_fee))

    return FeeBreakdown(
        extras_total=extras_total,
        discount_amount=discount,
        service_fee=service_fee,
        is_recurring=is_recurring,
    )
