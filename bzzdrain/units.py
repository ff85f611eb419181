"""Decimal string <-> base unit conversion."""

from decimal import Decimal, InvalidOperation, localcontext

from .exceptions import InvalidNumberFormat

BZZ_DECIMALS = 16
DAI_DECIMALS = 18


def _parse(value) -> Decimal:
    if isinstance(value, float):
        # floats carry binary noise, go through repr like the caller typed it
        value = repr(value)
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise InvalidNumberFormat(f"Not a decimal number: {value!r}") from e
    if not parsed.is_finite():
        raise InvalidNumberFormat(f"Not a finite number: {value!r}")
    if parsed < 0:
        raise InvalidNumberFormat(f"Negative amount: {value!r}")
    return parsed


def to_base_units(value, decimals: int) -> str:
    """Scale a human decimal string by 10**decimals and return the integer as a string.

    Raises InvalidNumberFormat when the input is not a decimal or has more
    fractional digits than the unit can hold.
    """
    amount = _parse(value)
    with localcontext() as ctx:
        ctx.prec = max(len(amount.as_tuple().digits) + decimals + 2, 28)
        scaled = amount.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise InvalidNumberFormat(
                f"{value!r} has more than {decimals} fractional digits"
            )
        return str(int(scaled))


def from_base_units(amount, decimals: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = max(len(str(int(amount))) + decimals + 2, 28)
        result = Decimal(int(amount)).scaleb(-decimals).normalize()
        if result == result.to_integral_value():
            result = result.quantize(Decimal(1))
        return result


def to_bzz(value) -> str:
    return to_base_units(value, BZZ_DECIMALS)


def to_dai(value) -> str:
    return to_base_units(value, DAI_DECIMALS)
