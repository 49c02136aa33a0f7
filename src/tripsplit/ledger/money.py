"""Fixed-precision money type.

Amounts are whole currency units (the trip currency has no minor unit), held
as Python ints so that balances add up exactly.  A :class:`Money` may be
negative: balances use the sign to say who owes whom.  Expense amounts are
kept strictly positive by the ledger models, not by this type.

Even splitting uses **floor** division (see :meth:`Money.split`): every
member's share is rounded down and the remainder stays with whoever paid.
"""

from __future__ import annotations

from functools import total_ordering
from typing import Any

from pydantic_core import core_schema

from tripsplit.config import settings


@total_ordering
class Money:
    """An exact, immutable amount in whole currency units."""

    __slots__ = ("_units",)

    def __init__(self, units: int = 0) -> None:
        if isinstance(units, bool) or not isinstance(units, int):
            raise TypeError(f"Money needs an int, got {type(units).__name__}")
        object.__setattr__(self, "_units", units)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Money is immutable")

    def __reduce__(self) -> tuple[type[Money], tuple[int]]:
        return (Money, (self._units,))

    @property
    def units(self) -> int:
        return self._units

    # ── Construction ──────────────────────────────────────────────────

    @classmethod
    def coerce(cls, value: Any) -> Money:
        """Build a :class:`Money` from user or wire input.

        Accepts ``Money``, ``int``, integral ``float`` and digit strings
        (optionally signed, surrounding whitespace ignored).

        Raises:
            ValueError: If *value* is fractional, boolean or not numeric.
        """
        if isinstance(value, Money):
            return value
        if isinstance(value, bool):
            raise ValueError("Amount must be a number, not a boolean.")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, float):
            if not value.is_integer():
                raise ValueError(f"Amount {value} has a fractional part.")
            return cls(int(value))
        if isinstance(value, str):
            text = value.strip()
            digits = text[1:] if text[:1] in "+-" else text
            if not digits.isdigit():
                raise ValueError(f"Amount {value!r} is not a whole number.")
            return cls(int(text))
        raise ValueError(f"Cannot interpret {value!r} as an amount.")

    @classmethod
    def zero(cls) -> Money:
        return cls(0)

    # ── Arithmetic ────────────────────────────────────────────────────

    def __add__(self, other: Money | int) -> Money:
        return Money(self._units + _units_of(other))

    __radd__ = __add__

    def __sub__(self, other: Money | int) -> Money:
        return Money(self._units - _units_of(other))

    def __rsub__(self, other: Money | int) -> Money:
        return Money(_units_of(other) - self._units)

    def __mul__(self, factor: int) -> Money:
        if isinstance(factor, bool) or not isinstance(factor, int):
            return NotImplemented
        return Money(self._units * factor)

    __rmul__ = __mul__

    def __neg__(self) -> Money:
        return Money(-self._units)

    def __abs__(self) -> Money:
        return Money(abs(self._units))

    def split(self, n: int) -> tuple[Money, Money]:
        """Divide evenly among *n* people.

        Returns ``(share, remainder)`` where ``share`` is rounded down and
        ``share * n + remainder == self``.  For non-negative amounts the
        remainder lies in ``[0, n - 1]``.

        Raises:
            ValueError: If *n* is not positive.
        """
        if n <= 0:
            raise ValueError("Cannot split an amount among zero people.")
        share, remainder = divmod(self._units, n)
        return Money(share), Money(remainder)

    # ── Comparison ────────────────────────────────────────────────────

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Money):
            return self._units == other._units
        if isinstance(other, int) and not isinstance(other, bool):
            return self._units == other
        return NotImplemented

    def __lt__(self, other: Money | int) -> bool:
        if isinstance(other, (Money, int)) and not isinstance(other, bool):
            return self._units < _units_of(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._units)

    def __bool__(self) -> bool:
        return self._units != 0

    def __int__(self) -> int:
        return self._units

    def __repr__(self) -> str:
        return f"Money({self._units})"

    def __str__(self) -> str:
        return str(self._units)

    # ── Display ───────────────────────────────────────────────────────

    def format(self, symbol: str | None = None) -> str:
        """Render as e.g. ``Rp1.500.000`` (``.`` as thousands separator)."""
        symbol = settings.currency_symbol if symbol is None else symbol
        sign = "-" if self._units < 0 else ""
        grouped = f"{abs(self._units):,}".replace(",", ".")
        return f"{sign}{symbol}{grouped}"

    def format_short(self, symbol: str | None = None) -> str:
        """Render large amounts abbreviated: ``Rp1.5M``, ``Rp150K``."""
        symbol = settings.currency_symbol if symbol is None else symbol
        value = abs(self._units)
        sign = "-" if self._units < 0 else ""
        if value >= 1_000_000:
            return f"{sign}{symbol}{value / 1_000_000:.1f}M"
        if value >= 1_000:
            return f"{sign}{symbol}{value / 1_000:.0f}K"
        return self.format(symbol)

    # ── Pydantic integration ──────────────────────────────────────────

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any) -> core_schema.CoreSchema:
        # Serialized as a plain integer so snapshots stay self-describing.
        return core_schema.no_info_plain_validator_function(
            cls.coerce,
            serialization=core_schema.plain_serializer_function_ser_schema(
                int,
                return_schema=core_schema.int_schema(),
            ),
        )


def _units_of(value: Money | int) -> int:
    if isinstance(value, Money):
        return value.units
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise TypeError(f"Unsupported operand for Money: {type(value).__name__}")
