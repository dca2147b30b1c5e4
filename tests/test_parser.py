import datetime as dt

import pytest

from ledger_sync import (
    BadAmountError,
    BadDateError,
    MalformedTagLineError,
    MalformedTransactionError,
    MultipleNullError,
    Posting,
    Status,
    UnexpectedEndError,
    parse_ledger,
    sum_transactions,
)
from tests.helpers.ledgers import dedent

EXAMPLE = (
    "2012/03/10 * TesT\n"
    "\t; Example\n"
    "\t; :Tag1:Tag2:\n"
    "\t; Key: Value\n"
    "\tExpenses:Food       $20.00\n"
    "\tAssets:C a s h             ; Poor wallet :(\n"
)


def test_example_transaction():
    f = parse_ledger(EXAMPLE)
    assert f.directives == []
    (t,) = f.transactions

    assert t.date == dt.date(2012, 3, 10)
    assert t.status is Status.CLEARED
    assert t.description == "TesT"
    assert t.comments == ["Example"]
    assert t.tags == {"Tag1", "Tag2"}
    assert t.kv_pairs == {"Key": "Value"}
    assert t.postings == [
        Posting(account="Expenses:Food", value=200_000),
        Posting(account="Assets:C a s h", null=True, note="Poor wallet :("),
    ]
    assert t.line == 1

    result = t.balance()
    assert result.balanced
    assert result.accounts == {"Expenses:Food": 200_000, "Assets:C a s h": -200_000}


def test_two_inferred_postings_fail_balance():
    f = parse_ledger("2012/03/10 Desc\n\tA   $5\n\tB\n\tC\n")
    (t,) = f.transactions
    assert t.balance() == (False, None)
    with pytest.raises(MultipleNullError):
        t.canonicalize()
    with pytest.raises(MultipleNullError):
        sum_transactions(f.transactions)


def test_header_fields():
    text = dedent(
        """
        2012/3/5=2012/03/07 ! (1042) Rent for March
            Expenses:Rent  $1,000
            Assets:Bank
        """
    )
    (t,) = parse_ledger(text).transactions
    assert t.date == dt.date(2012, 3, 5)
    assert t.clear_date == dt.date(2012, 3, 7)
    assert t.status is Status.PENDING
    assert t.code == "1042"
    assert t.description == "Rent for March"
    assert t.postings[0].value == 10_000_000


@pytest.mark.parametrize("header", ["2012-03-10 x", "2012.3.10 x", "2012/03/10x"])
def test_date_separators(header):
    (t,) = parse_ledger(header + "\n").transactions
    assert t.date == dt.date(2012, 3, 10)
    assert t.description == "x"


@pytest.mark.parametrize(
    ("text", "error"),
    [
        ("201/03/10 x\n", BadDateError),
        ("2012/13/01 x\n", BadDateError),
        ("2012/03/100 x\n", BadDateError),
        ("2012:03:10 x\n", BadDateError),
        ("2012/03", UnexpectedEndError),
        ("2012/03/10", UnexpectedEndError),
        ("2012/03/10 *", UnexpectedEndError),
        ("2012/03/10 (abc", UnexpectedEndError),
        ("2012/03/10 (ab\nc) x\n", MalformedTransactionError),
        ("2012/03/10 x\n\t*\n", MalformedTransactionError),
        ("2012/03/10 x\n\tA  $5 x\n", MalformedTransactionError),
        ("2012/03/10 x\n\tA  $5.5.5\n", BadAmountError),
        ("2012/03/10 x\n\t; :a:b\n", MalformedTagLineError),
        ("  orphan line\n", MalformedTransactionError),
    ],
)
def test_parse_errors(text, error):
    with pytest.raises(error):
        parse_ledger(text)


def test_error_names_its_location():
    text = "2012/03/10 ok\n\tA  $1\n\tB\n\n2012/13/01 bad\n"
    with pytest.raises(BadDateError) as exc:
        parse_ledger(text)
    assert exc.value.line == 5
    assert str(exc.value) == "Malformed transaction date at 5:1"


def test_attached_comment_classification():
    text = dedent(
        """
        2012/03/10 x
            ; :a: b :
            ; Key:Value
            ; two words: here
            ; K: first
            ; K:   second
            ;
            ; Empty:
            A  $1
            B
        """
    )
    (t,) = parse_ledger(text).transactions
    assert t.tags == {"a", "b"}
    assert t.comments == ["Key:Value", "two words: here", "Empty:"]
    assert t.kv_pairs == {"K": "second"}


def test_top_level_comments_and_blank_lines_are_skipped():
    text = dedent(
        """
        ; a file comment

          ; indented comment
        2012/03/10 first
            A  $1
            B

        ; between
        2012/03/11 second
            A  $2
            B
        """
    )
    f = parse_ledger(text)
    assert [t.description for t in f.transactions] == ["first", "second"]
    assert [t.line for t in f.transactions] == [4, 9]


def test_blank_indented_line_ends_transaction():
    text = "2012/03/10 x\n\tA  $1\n\tB\n  \n2012/03/11 y\n\tA  $1\n\tB\n"
    f = parse_ledger(text)
    assert len(f.transactions) == 2
    assert [len(t.postings) for t in f.transactions] == [2, 2]


def test_end_of_input_and_crlf():
    plain = parse_ledger("2012/03/10 x\n\tA  $1 ; n\n\tB\n")
    assert parse_ledger("2012/03/10 x\r\n\tA  $1 ; n\r\n\tB").transactions == plain.transactions


def test_dash_without_digits_is_an_inferred_posting():
    (t,) = parse_ledger("2012/03/10 x\n\tA  $5\n\tB  -\n").transactions
    assert t.postings[1] == Posting(account="B", null=True)
    assert t.balance() == (True, {"A": 50_000, "B": -50_000})


def test_posting_status_and_note():
    (t,) = parse_ledger("2012/03/10 x\n\t* A  $-1.5 ; paid\n\t! B\n").transactions
    assert t.postings[0] == Posting(account="A", value=-15_000, status=Status.CLEARED, note="paid")
    assert t.postings[1] == Posting(account="B", null=True, status=Status.PENDING)


def test_directives_are_anchored_before_the_next_transaction():
    text = dedent(
        """
        account Assets:Cash
            note Wallet
            alias cash

        2012/03/10 x
            Assets:Cash  $1
            Income
        payee Grocer
            alias ^GROCER
        """
    )
    f = parse_ledger(text)
    assert [(d.type, d.argument, d.anchor) for d in f.directives] == [
        ("account", "Assets:Cash", 0),
        ("payee", "Grocer", 1),
    ]
    assert f.directives[0].lines == ["note Wallet", "alias cash"]
    assert f.directives[1].location.line == 8


def test_round_trip_through_format():
    text = dedent(
        """
        account Expenses:Food
            payee ^MARKET

        2012/03/10=2012/03/12 * (42) Market
            ; bought lunch
            ; :food:lunch:
            ; ID: abc
            ; RID: r1
            Expenses:Food  $12.3456  ; sub-cent
            ! Assets:Cash Box    $-2
            Assets:Bank

        2012/03/11 Paycheck
            Assets:Bank  $1,000.00
            Income:Salary
        """
    )
    first = parse_ledger(text)
    second = parse_ledger(first.to_text())

    assert second.transactions == first.transactions
    assert second.directives == first.directives
    assert [d.anchor for d in second.directives] == [d.anchor for d in first.directives]
    # Formatting is stable once canonical.
    assert second.to_text() == first.to_text()
