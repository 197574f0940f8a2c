from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN
from typing import TYPE_CHECKING, Iterable, Mapping, Optional, Sequence
from uuid import uuid4

from billshare.db.models import Entry, SplitType
from billshare.utils.money import MATERIALITY_CENTS, to_cents

if TYPE_CHECKING:
    from billshare.services.roster import Roster

PERCENT_TOLERANCE = Decimal("0.1")


class ShareValidationError(ValueError):
    pass


def _distribute_remainder(shares: list[int], amount_cents: int) -> list[int]:
    remainder = amount_cents - sum(shares)
    if not shares:
        return shares

    idx = 0
    n = len(shares)
    step = 1 if remainder > 0 else -1
    while remainder != 0:
        shares[idx] += step
        remainder -= step
        idx = (idx + 1) % n
    return shares


def split_amount(amount_cents: int, consumers: Sequence[str]) -> dict[str, int]:
    if amount_cents < 0:
        raise ShareValidationError("amount_cents must be non-negative")
    if not consumers:
        raise ShareValidationError("consumers must not be empty")

    n = len(consumers)
    base_share = (Decimal(amount_cents) / Decimal(n)).quantize(Decimal("1"), rounding=ROUND_HALF_EVEN)

    shares = _distribute_remainder([int(base_share) for _ in consumers], amount_cents)
    return {consumer: share for consumer, share in zip(consumers, shares)}


def percentage_split(amount_cents: int, percentages: Mapping[str, Decimal | float | int | str]) -> dict[str, int]:
    """Turn per-participant percentages into cent shares.

    Percentages must add up to 100 within 0.1. Each share is taken
    proportionally to the actual percentage total, so the shares always add
    up to ``amount_cents`` exactly.
    """
    if not percentages:
        raise ShareValidationError("percentages must not be empty")

    parsed: dict[str, Decimal] = {}
    for code, value in percentages.items():
        try:
            pct = Decimal(str(value))
        except InvalidOperation as exc:
            raise ShareValidationError(f"invalid percentage for {code}: {value!r}") from exc
        if not pct.is_finite():
            raise ShareValidationError(f"invalid percentage for {code}: {value!r}")
        if pct < 0:
            raise ShareValidationError(f"percentage for {code} must be non-negative")
        parsed[code] = pct

    total = sum(parsed.values(), Decimal(0))
    if abs(total - Decimal(100)) > PERCENT_TOLERANCE:
        raise ShareValidationError(f"percentages must add up to 100%, got {total}%")

    raw = [
        (Decimal(amount_cents) * pct / total).quantize(Decimal("1"), rounding=ROUND_HALF_EVEN)
        for pct in parsed.values()
    ]
    shares = _distribute_remainder([int(value) for value in raw], amount_cents)
    return dict(zip(parsed, shares))


def custom_split(amount_cents: int, amounts: Mapping[str, Decimal | float | int | str]) -> dict[str, int]:
    if not amounts:
        raise ShareValidationError("custom amounts must not be empty")

    shares: dict[str, int] = {}
    for code, value in amounts.items():
        try:
            share = to_cents(value)
        except ValueError as exc:
            raise ShareValidationError(f"invalid amount for {code}: {value!r}") from exc
        if share < 0:
            raise ShareValidationError(f"amount for {code} must be non-negative")
        shares[code] = share

    difference = amount_cents - sum(shares.values())
    if abs(difference) > MATERIALITY_CENTS:
        raise ShareValidationError("custom amounts must add up to the total")
    if difference:
        largest = max(shares, key=lambda code: shares[code])
        shares[largest] += difference
    return shares


def resolve_shares(
    split_type: SplitType | str,
    amount_cents: int,
    participants: Sequence[str],
    values: Optional[Mapping[str, Decimal | float | int | str]] = None,
) -> dict[str, int]:
    try:
        split_type = SplitType(split_type)
    except ValueError as exc:
        raise ShareValidationError(f"unknown split type: {split_type!r}") from exc

    if amount_cents <= 0:
        raise ShareValidationError("amount must be positive")

    ordered = list(dict.fromkeys(participants))
    if not ordered:
        raise ShareValidationError("select at least one participant")

    if split_type == SplitType.EQUAL:
        return split_amount(amount_cents, ordered)

    values = values or {}
    unknown = [code for code in values if code not in ordered]
    if unknown:
        raise ShareValidationError(f"values given for unselected participants: {', '.join(unknown)}")
    per_participant = {code: values.get(code, 0) for code in ordered}

    if split_type == SplitType.CUSTOM:
        return custom_split(amount_cents, per_participant)
    return percentage_split(amount_cents, per_participant)


def build_entry(
    amount: Decimal | float | int | str,
    payer: str,
    split_type: SplitType | str,
    participants: Sequence[str],
    values: Optional[Mapping[str, Decimal | float | int | str]] = None,
    *,
    description: str = "",
    roster: Optional["Roster"] = None,
    entry_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> Entry:
    """Validate user input and build an :class:`Entry`.

    ``amount`` and custom ``values`` are in major currency units; percentage
    ``values`` are percents. Shares on the returned entry are resolved cents
    that add up to the amount.
    """
    try:
        amount_cents = to_cents(amount)
    except ValueError as exc:
        raise ShareValidationError(str(exc)) from exc

    if roster is not None:
        unknown = [code for code in [payer, *participants] if code not in roster]
        if unknown:
            raise ShareValidationError(f"unknown participants: {', '.join(dict.fromkeys(unknown))}")

    shares = resolve_shares(split_type, amount_cents, participants, values)
    return Entry(
        id=entry_id or uuid4().hex,
        amount_cents=amount_cents,
        payer=payer,
        split_type=SplitType(split_type),
        shares=shares,
        description=description.strip(),
        created_at=created_at or datetime.now(timezone.utc),
    )


def reconcile_shares(shares: Mapping[str, int], amount_cents: int) -> dict[str, int]:
    """Spread rounding drift so ``shares`` add up to ``amount_cents``.

    At most one cent per share is absorbed; a larger gap is returned as is
    and left for bill validation to report.
    """
    codes = list(shares)
    if not codes or abs(amount_cents - sum(shares.values())) > len(codes) * MATERIALITY_CENTS:
        return dict(shares)
    return dict(zip(codes, _distribute_remainder([shares[code] for code in codes], amount_cents)))


def entry_net(entry: Entry) -> dict[str, int]:
    net = {code: -share for code, share in entry.shares.items()}
    net[entry.payer] = net.get(entry.payer, 0) + entry.amount_cents
    return net


def merge_shares(shares: Iterable[Mapping[str, int]]) -> dict[str, int]:
    result: dict[str, int] = {}
    for share in shares:
        for code, amount in share.items():
            result[code] = result.get(code, 0) + amount
    return result
