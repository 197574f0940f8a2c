from billshare.services.settlement import Transfer, apply_transfers, settle, solve
from billshare.utils.money import cents_map


def _nonzero(balances):
    return sum(1 for value in balances.values() if value != 0)


def test_solve_balances():
    balances = {
        "A": 500,
        "B": -300,
        "C": -200,
    }

    transfers = solve(balances)

    assert transfers == [
        Transfer(from_code="B", to_code="A", amount_cents=300),
        Transfer(from_code="C", to_code="A", amount_cents=200),
    ]

    after = apply_transfers(balances, transfers)
    assert all(value == 0 for value in after.values())


def test_largest_debtor_pays_largest_creditor_first():
    balances = cents_map({"A": -30, "B": 10, "C": 20})

    transfers = solve(balances)

    assert transfers == [
        Transfer(from_code="A", to_code="C", amount_cents=2000),
        Transfer(from_code="A", to_code="B", amount_cents=1000),
    ]
    assert apply_transfers(balances, transfers) == {"A": 0, "B": 0, "C": 0}


def test_two_debtors_one_creditor():
    balances = cents_map({"A": -15, "B": -15, "C": 30})

    transfers = solve(balances)

    assert transfers == [
        Transfer(from_code="A", to_code="C", amount_cents=1500),
        Transfer(from_code="B", to_code="C", amount_cents=1500),
    ]


def test_all_zero_is_noop():
    assert solve({"A": 0, "B": 0, "C": 0}) == []


def test_empty_input():
    assert solve({}) == []
    plan = settle({})
    assert plan.transfers == []
    assert plan.is_settled


def test_sub_cent_balances_are_settled():
    balances = cents_map({"A": -0.005, "B": 0.005})
    assert balances == {"A": 0, "B": 0}
    assert solve(balances) == []


def test_ties_keep_input_order():
    balances = {"B": -100, "A": -100, "C": 200}
    transfers = solve(balances)
    assert [t.from_code for t in transfers] == ["B", "A"]


def test_transfer_count_bound_and_positivity():
    balances = {"A": -1234, "B": 0, "C": 517, "D": -99, "E": 816, "F": 0}
    assert sum(balances.values()) == 0

    transfers = solve(balances)

    assert len(transfers) <= _nonzero(balances) - 1
    assert all(t.amount_cents > 0 for t in transfers)
    assert all(value == 0 for value in apply_transfers(balances, transfers).values())


def test_input_not_mutated():
    balances = {"A": -300, "B": 300}
    solve(balances)
    assert balances == {"A": -300, "B": 300}


def test_non_zero_sum_leaves_residual():
    balances = {"A": -500, "B": 800}

    plan = settle(balances)

    assert plan.transfers == [Transfer(from_code="A", to_code="B", amount_cents=500)]
    assert plan.residual == {"B": 300}
    assert not plan.is_settled


def test_same_sign_balances_terminate():
    assert solve({"A": 500, "B": 1000}) == []
    assert solve({"A": -500, "B": -1000}) == []
