import datetime as dt

import pytest
from hypothesis import given
from hypothesis import strategies as st

from ledger_sync import (
    Directive,
    LedgerFile,
    NoSyncPointError,
    UnorderableTransactionsError,
    merge,
    parse_ledger,
    tail,
)
from ledger_sync.zipper import choose_first
from tests.helpers.ledgers import dedent, ids, keys, tx


def test_merge_keeps_agreed_history_and_interleaves_the_rest():
    a = LedgerFile(
        [tx("2020-01-01", "a"), tx("2020-01-02", "b"), tx("2020-01-03", "c"), tx("2020-01-05", "d")]
    )
    b = LedgerFile(
        [tx("2020-01-02", "b"), tx("2020-01-03", "c"), tx("2020-01-04", "e"), tx("2020-01-06", "f")]
    )
    assert ids(merge(a, b)) == ["a", "b", "c", "e", "d", "f"]


def test_sync_point_is_the_last_occurrence():
    a = LedgerFile(
        [tx("2020-01-01", "a", rid="r1"), tx("2020-01-02", "x"), tx("2020-01-01", "a", rid="r2")]
    )
    b = LedgerFile([tx("2020-01-01", "a", rid="r2"), tx("2020-01-03", "y")])
    assert keys(merge(a, b)) == [("a", "r1"), ("x", None), ("a", "r2"), ("y", None)]


def test_matching_ids_right_after_the_sync_point_count_as_agreed():
    a = LedgerFile([tx("2020-01-01", "s"), tx("2020-01-02", "t", rid="r2")])
    b = LedgerFile([tx("2020-01-01", "s"), tx("2020-01-02", "t", rid="r1")])
    assert keys(merge(a, b)) == [("s", None), ("t", "r2")]


def test_diverged_same_date_revisions_are_ordered_by_rid():
    a = LedgerFile(
        [tx("2020-01-01", "s"), tx("2020-01-02", "a1"), tx("2020-01-03", "t", rid="r2")]
    )
    b = LedgerFile([tx("2020-01-01", "s"), tx("2020-01-03", "t", rid="r1")])
    assert keys(merge(a, b)) == [("s", None), ("a1", None), ("t", "r1"), ("t", "r2")]


@pytest.mark.parametrize(
    ("left", "right", "expected"),
    [
        (tx("2020-01-01", "z"), tx("2020-01-02", "a"), -1),
        (tx("2020-01-01", "b"), tx("2020-01-01", "a"), 1),
        (tx("2020-01-01", "a", rid="r1"), tx("2020-01-01", "a", rid="r2"), -1),
        (tx("2020-01-01", "a"), tx("2020-01-01", "a", rid="r1"), 1),
        (tx("2020-01-01", fitid="9"), tx("2020-01-01", fitid="10"), 1),
        (tx("2020-01-01", fitid="1"), tx("2020-01-01"), -1),
    ],
)
def test_choose_first(left, right, expected):
    assert choose_first(left, right) == expected


@pytest.mark.parametrize(
    ("left", "right"),
    [
        (tx("2020-01-01"), tx("2020-01-01")),
        (tx("2020-01-01", "a", rid="r"), tx("2020-01-01", "a", rid="r")),
    ],
)
def test_unorderable_transactions(left, right):
    with pytest.raises(UnorderableTransactionsError):
        choose_first(left, right)


def test_merge_fails_when_diverged_tails_cannot_be_ordered():
    a = LedgerFile([tx("2020-01-01", "s"), tx("2020-01-02", fitid="f")])
    b = LedgerFile([tx("2020-01-01", "s"), tx("2020-01-02", fitid="f")])
    with pytest.raises(UnorderableTransactionsError):
        merge(a, b)


def test_no_sync_point():
    a = LedgerFile([tx("2020-01-01", "a")])
    with pytest.raises(NoSyncPointError):
        merge(a, LedgerFile([tx("2020-01-01", "zzz")]))
    with pytest.raises(NoSyncPointError):
        merge(a, LedgerFile([tx("2020-01-01")]))


def test_merge_with_empty_incoming_file_copies_master():
    a = LedgerFile([tx("2020-01-01", "a")], [Directive("payee", "P", anchor=1)])
    out = merge(a, LedgerFile())
    assert out.transactions == a.transactions
    assert [d.anchor for d in out.directives] == [0]


def test_merge_unions_directives_at_the_top():
    a = parse_ledger(
        dedent(
            """
            2020/01/01 s
                ; ID: s
                A  $1
                B
            account Assets:Cash
                note wallet
            """
        )
    )
    b = parse_ledger(
        dedent(
            """
            account Assets:Cash
                note wallet
            payee Grocer

            2020/01/01 s
                ; ID: s
                A  $1
                B
            """
        )
    )
    out = merge(a, b)
    assert [(d.type, d.argument, d.anchor) for d in out.directives] == [
        ("account", "Assets:Cash", 0),
        ("payee", "Grocer", 0),
    ]
    # Inputs keep their own anchors.
    assert a.directives[0].anchor == 1
    assert out.to_text().startswith("\naccount Assets:Cash\n\tnote wallet\n\npayee Grocer\n")


def test_merge_does_not_share_state_with_inputs():
    a = LedgerFile([tx("2020-01-01", "a"), tx("2020-01-02", "b")])
    b = LedgerFile([tx("2020-01-01", "a"), tx("2020-01-03", "c")])
    out = merge(a, b)
    for t in out.transactions:
        t.kv_pairs["touched"] = "yes"
        t.postings[0].value = 0
    assert all("touched" not in t.kv_pairs for t in a.transactions + b.transactions)
    assert all(t.postings[0].value == 10_000 for t in a.transactions + b.transactions)


def test_merge_is_repeatable_and_symmetric():
    a = LedgerFile([tx("2020-01-01", "s"), tx("2020-01-02", "a1"), tx("2020-01-04", "a2")])
    b = LedgerFile([tx("2020-01-01", "s"), tx("2020-01-02", "b1"), tx("2020-01-03", "b2")])
    assert merge(a, b).to_text() == merge(a, b).to_text()
    assert merge(a, b).transactions == merge(b, a).transactions
    assert ids(merge(a, b)) == ["s", "a1", "b1", "b2", "a2"]


@given(st.lists(st.tuples(st.integers(min_value=0, max_value=20), st.booleans()), max_size=12))
def test_merge_order_does_not_depend_on_argument_order(entries):
    base = dt.date(2020, 1, 1)
    sync = tx("2019-12-31", "sync")
    side_a, side_b = [sync], [sync.clean_copy()]
    for k, (offset, to_a) in enumerate(sorted(entries, key=lambda e: e[0])):
        t = tx((base + dt.timedelta(days=offset)).isoformat(), f"t{k:03d}")
        (side_a if to_a else side_b).append(t)

    ab = merge(LedgerFile(side_a), LedgerFile(side_b))
    ba = merge(LedgerFile(side_b), LedgerFile(side_a))
    assert ab.transactions == ba.transactions
    assert len(ab.transactions) == len(entries) + 1


# ---- tail ------------------------------------------------------------------------


def _history() -> LedgerFile:
    return LedgerFile(
        [
            tx("2020-01-01", "a", rid="r1"),
            tx("2020-01-02", "b"),
            tx("2020-01-01", "a", rid="r2"),
            tx("2020-01-03", "c"),
        ],
        [
            Directive("payee", "D0", anchor=0),
            Directive("payee", "D2", anchor=2),
            Directive("payee", "D3", anchor=3),
            Directive("payee", "D4", anchor=4),
        ],
    )


def test_tail_cuts_at_latest_revision():
    out = tail(_history(), "a")
    assert keys(out) == [("a", "r2"), ("c", None)]
    assert [(d.argument, d.anchor) for d in out.directives] == [("D3", 1), ("D4", 2)]


def test_tail_with_revision_id():
    out = tail(_history(), "a", "r1")
    assert keys(out) == [("a", "r1"), ("b", None), ("a", "r2"), ("c", None)]
    assert [(d.argument, d.anchor) for d in out.directives] == [("D2", 2), ("D3", 3), ("D4", 4)]


@pytest.mark.parametrize(("tx_id", "rid"), [("zzz", None), ("a", "r9")])
def test_tail_without_match_returns_whole_file(tx_id, rid):
    f = _history()
    out = tail(f, tx_id, rid)
    assert out.transactions == f.transactions
    assert out.directives == f.directives
    assert out.transactions[0] is not f.transactions[0]


def test_tail_then_merge_reconstructs_the_file():
    f = LedgerFile(
        [tx("2020-01-01", "a"), tx("2020-01-02", "b"), tx("2020-01-02", "c"), tx("2020-01-05", "d")],
        [Directive("account", "Assets:Cash", anchor=1), Directive("payee", "Grocer", anchor=3)],
    )
    suffix = tail(f, "b")
    assert [(d.argument, d.anchor) for d in suffix.directives] == [("Grocer", 2)]

    prefix = LedgerFile(f.transactions[:2], [d for d in f.directives if d.anchor <= 1])
    merged = merge(prefix, suffix)
    assert merged.transactions == f.transactions
    assert merged.directives == prefix.directives + suffix.directives
    assert [d.anchor for d in merged.directives] == [0, 0]
