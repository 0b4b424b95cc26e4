"""
Values -- Immutable, self-validating EVM input value objects.

Responsibility:
    Provides ``BaseSnapshot``, the raw cost/schedule tuple (PV, EV, AC, BAC)
    produced by the data layer for one WBS element, domain bucket, project or
    portfolio at a single as-of date.  Every derived EVM metric is a pure
    function of a BaseSnapshot.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by the tree model, every engine and the selectors.

Invariants enforced:
    - All amounts are ``Decimal`` (coerced at construction, never float math).
    - All amounts are finite and non-negative.
    - A snapshot carries exactly one currency; sums never mix currencies.

Failure modes:
    - ValueError on construction with negative, non-finite or unparseable
      amounts, or a malformed currency code.
    - CurrencyMismatchError when adding snapshots in different currencies.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from orion_kernel.exceptions import CurrencyMismatchError

DEFAULT_CURRENCY = "USD"

_AMOUNT_FIELDS = (
    "planned_value",
    "earned_value",
    "actual_cost",
    "budget_at_completion",
)


def to_decimal(value: Any, field_name: str = "amount") -> Decimal:
    """
    Coerce a raw amount to Decimal.

    ``None`` is read as zero: the mirrored tables leave PV/EV/AC/BAC null
    for elements that have no cost loading yet.

    Raises:
        ValueError: if the value cannot be parsed or is not finite.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Invalid {field_name}: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Invalid {field_name}: {value!r}")
    return result


def _normalize_currency(code: Any) -> str:
    if not isinstance(code, str):
        raise ValueError(f"currency must be a string, got {type(code).__name__}")
    normalized = code.strip().upper()
    if len(normalized) != 3 or not normalized.isalpha():
        raise ValueError(f"Invalid currency code: {code!r}")
    return normalized


@dataclass(frozen=True, slots=True)
class BaseSnapshot:
    """
    Raw EVM inputs at a single as-of date.

    Contract:
        Holds PV, EV, AC and BAC in one currency.  Immutable once produced.

    Guarantees:
        - Every amount is a finite, non-negative ``Decimal``.
        - ``currency`` is an upper-case three letter code.
        - ``a + b`` is the component-wise sum; both operands must share a
          currency.

    Non-goals:
        - Does NOT compute indices or forecasts (see ``orion_engines.evm``).
        - Does NOT round.  Amounts keep full precision until serialization.
    """

    planned_value: Decimal
    earned_value: Decimal
    actual_cost: Decimal
    budget_at_completion: Decimal
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        for name in _AMOUNT_FIELDS:
            amount = to_decimal(getattr(self, name), name)
            if amount < 0:
                raise ValueError(f"{name} must be non-negative, got {amount}")
            object.__setattr__(self, name, amount)
        object.__setattr__(self, "currency", _normalize_currency(self.currency))

    @classmethod
    def of(
        cls,
        pv: Decimal | str | int,
        ev: Decimal | str | int,
        ac: Decimal | str | int,
        bac: Decimal | str | int,
        currency: str = DEFAULT_CURRENCY,
    ) -> BaseSnapshot:
        """Factory using the short EVM names."""
        return cls(
            planned_value=pv,
            earned_value=ev,
            actual_cost=ac,
            budget_at_completion=bac,
            currency=currency,
        )

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> BaseSnapshot:
        """All-zero snapshot in the given currency."""
        return cls.of(0, 0, 0, 0, currency)

    @classmethod
    def total(
        cls,
        snapshots: Iterable[BaseSnapshot],
        currency: str = DEFAULT_CURRENCY,
    ) -> BaseSnapshot:
        """
        Component-wise sum of ``snapshots``.

        An empty iterable yields ``BaseSnapshot.zero(currency)``.  A non-empty
        iterable takes its currency from the first element.
        """
        result: BaseSnapshot | None = None
        for snapshot in snapshots:
            result = snapshot if result is None else result + snapshot
        return result if result is not None else cls.zero(currency)

    @property
    def pv(self) -> Decimal:
        return self.planned_value

    @property
    def ev(self) -> Decimal:
        return self.earned_value

    @property
    def ac(self) -> Decimal:
        return self.actual_cost

    @property
    def bac(self) -> Decimal:
        return self.budget_at_completion

    @property
    def is_zero(self) -> bool:
        """True when every amount is zero."""
        return not any(getattr(self, name) for name in _AMOUNT_FIELDS)

    def __add__(self, other: BaseSnapshot) -> BaseSnapshot:
        """Component-wise sum. Must be same currency."""
        if not isinstance(other, BaseSnapshot):
            return NotImplemented
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency, other.currency)
        return BaseSnapshot(
            planned_value=self.planned_value + other.planned_value,
            earned_value=self.earned_value + other.earned_value,
            actual_cost=self.actual_cost + other.actual_cost,
            budget_at_completion=self.budget_at_completion + other.budget_at_completion,
            currency=self.currency,
        )
