"""Deterministic merge ("zipper") of two diverged ledger histories.

Both inputs are assumed to stamp every transaction with a unique ``ID`` key.
The incoming file ``b`` must start with a transaction the master file ``a``
also has (the *sync point*); everything after it is either history both
sides already agree on, or a diverged tail that is interleaved by date with
cascading tie-break keys.

:func:`tail` is the matching slicing primitive: it cuts a file at a given
transaction so only the suffix needs to be exchanged.
"""

from __future__ import annotations

from collections.abc import Mapping

from .errors import NoSyncPointError, UnorderableTransactionsError
from .ledger_file import LedgerFile
from .logging_setup import get_logger
from .models import Transaction, find_by_key

logger = get_logger(__name__)

# Consulted in order when two transactions share a date.
TIE_BREAK_KEYS: tuple[str, ...] = ("ID", "RID", "FITID")


def _choose(a: Mapping[str, str], b: Mapping[str, str], key: str) -> int:
    """-1 when ``a`` sorts first on ``key``, 1 for ``b``, 0 when undecided."""

    in_a, in_b = key in a, key in b
    # The side that has the key goes first.
    if in_a and not in_b:
        return -1
    if in_b and not in_a:
        return 1
    if not in_a or a[key] == b[key]:
        return 0
    return -1 if a[key] < b[key] else 1


def choose_first(a: Transaction, b: Transaction) -> int:
    """Decide which of two diverged transactions is written first.

    Returns ``-1`` for ``a`` and ``1`` for ``b``. The earlier date wins; on a
    tie the ``ID``, ``RID`` and ``FITID`` keys are compared lexically, in that
    order, and the first one that differs decides. Raises
    :class:`UnorderableTransactionsError` when none does.
    """

    if a.date != b.date:
        return -1 if a.date < b.date else 1
    for key in TIE_BREAK_KEYS:
        direction = _choose(a.kv_pairs, b.kv_pairs, key)
        if direction:
            return direction
    raise UnorderableTransactionsError(a.line, b.line)


def _same_id(a: Transaction, b: Transaction) -> bool:
    aid = a.kv_pairs.get("ID")
    return aid is not None and aid == b.kv_pairs.get("ID")


def merge(a: LedgerFile, b: LedgerFile) -> LedgerFile:
    """Zip ``b`` into the master file ``a`` and return a new file.

    - Directives: all of ``a``'s, plus those of ``b`` not equal to one in
      ``a``, every anchor reset to 0 (directives move to the top).
    - Transactions: ``a`` up to and including the last transaction whose
      ``ID`` equals that of ``b``'s first; then the run where both sides keep
      the same ``ID``\\ s; then the remaining transactions of both, ordered by
      :func:`choose_first`, with the leftover of whichever side runs out
      last appended as is.

    Neither input is modified. Raises :class:`NoSyncPointError` when ``b``'s
    first transaction has no ``ID`` or ``a`` does not contain it, and
    :class:`UnorderableTransactionsError` when the diverged tails cannot be
    ordered deterministically.
    """

    directives = [d.clean_copy() for d in a.directives]
    for d2 in b.directives:
        if any(d2 == d1 for d1 in a.directives):
            continue
        directives.append(d2.clean_copy())
    for d in directives:
        d.anchor = 0

    ta, tb = a.transactions, b.transactions
    if not tb:
        return LedgerFile([t.clean_copy() for t in ta], directives)

    sync_id = tb[0].kv_pairs.get("ID")
    if not sync_id:
        raise NoSyncPointError("No sync point found: the first incoming transaction has no ID.")
    sync = find_by_key(ta, "ID", sync_id)
    if sync is None:
        raise NoSyncPointError(f"No sync point found: ID {sync_id!r} is not in the master file.")

    out: list[Transaction] = list(ta[: sync + 1])

    # History both sides already agree on.
    i, j = sync + 1, 1
    while i < len(ta) and j < len(tb) and _same_id(ta[i], tb[j]):
        out.append(ta[i])
        i += 1
        j += 1
    logger.debug("sync point at %d, %d agreed transactions after it", sync, i - sync - 1)

    while i < len(ta) and j < len(tb):
        if choose_first(ta[i], tb[j]) < 0:
            out.append(ta[i])
            i += 1
        else:
            out.append(tb[j])
            j += 1
    out.extend(ta[i:])
    out.extend(tb[j:])

    return LedgerFile([t.clean_copy() for t in out], directives)


def tail(f: LedgerFile, tx_id: str, rid: str | None = None) -> LedgerFile:
    """Return the suffix of ``f`` starting at the transaction with ID ``tx_id``.

    The search runs from the end backwards, so the latest revision wins;
    when ``rid`` is given the ``RID`` key must match as well. Directives
    anchored after the cut are kept with anchors rebased onto the suffix.
    When no transaction matches, a copy of the whole file is returned.
    """

    trs = f.transactions
    cut: int | None = None
    for i in range(len(trs) - 1, -1, -1):
        kv = trs[i].kv_pairs
        if kv.get("ID") != tx_id:
            continue
        if rid and kv.get("RID") != rid:
            continue
        cut = i
        break

    if cut is None:
        logger.debug("tail: no transaction with ID %r (RID %r); keeping the whole file", tx_id, rid)
        return f.clean_copy()

    logger.debug("tail: cutting at transaction %d of %d", cut, len(trs))
    directives = []
    for d in f.directives:
        if d.anchor <= cut:
            continue
        nd = d.clean_copy()
        nd.anchor -= cut
        directives.append(nd)
    return LedgerFile([t.clean_copy() for t in trs[cut:]], directives)


__all__ = ["TIE_BREAK_KEYS", "choose_first", "merge", "tail"]
