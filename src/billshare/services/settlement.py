from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Mapping

from billshare.logging import get_logger
from billshare.utils.money import MATERIALITY_CENTS


@dataclass(slots=True)
class Transfer:
    from_code: str
    to_code: str
    amount_cents: int


@dataclass(slots=True)
class SettlementPlan:
    transfers: list[Transfer]
    residual: dict[str, int] = field(default_factory=dict)

    @property
    def is_settled(self) -> bool:
        return not self.residual


def solve(balances: Mapping[str, int]) -> List[Transfer]:
    """Greedy largest-debtor / largest-creditor matching.

    Balances are sorted ascending (stable, so input order breaks ties) and
    two cursors walk in from both ends, each step paying the smaller of the
    two open amounts. On a zero-sum input this settles everyone with at most
    ``n - 1`` transfers for ``n`` non-zero balances. It is a heuristic: some
    inputs admit fewer transfers than it finds.

    Input that does not sum to zero is not an error; whatever cannot be
    matched is left over (see :func:`settle`).
    """
    people = sorted(([code, balance] for code, balance in balances.items()), key=lambda x: x[1])

    transfers: list[Transfer] = []
    i, j = 0, len(people) - 1

    while i < j:
        debtor = people[i]
        creditor = people[j]

        amount = min(-debtor[1], creditor[1])
        if amount >= MATERIALITY_CENTS:
            transfers.append(Transfer(from_code=debtor[0], to_code=creditor[0], amount_cents=amount))
            debtor[1] += amount
            creditor[1] -= amount

        if debtor[1] >= 0:
            i += 1
        if creditor[1] <= 0:
            j -= 1

    return transfers


def apply_transfers(balances: Mapping[str, int], transfers: Iterable[Transfer]) -> dict[str, int]:
    after = dict(balances)
    for t in transfers:
        after[t.from_code] = after.get(t.from_code, 0) + t.amount_cents
        after[t.to_code] = after.get(t.to_code, 0) - t.amount_cents
    return after


def settle(balances: Mapping[str, int]) -> SettlementPlan:
    transfers = solve(balances)
    after = apply_transfers(balances, transfers)
    residual = {code: amount for code, amount in after.items() if amount != 0}
    if residual:
        get_logger(__name__).warning(
            "settlement.residual",
            residual=residual,
            imbalance=sum(balances.values()),
        )
    return SettlementPlan(transfers=transfers, residual=residual)
