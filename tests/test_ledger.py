"""Request ledger and NFT inventory."""

from __future__ import annotations

import logging

from token_request_projector.ledger.inventory import NFTInventory
from token_request_projector.ledger.requests import RequestLedger
from token_request_projector.models.snapshots import RequestStatus

from tests.factories import NFT_CONTRACT, OTHER_REQUESTER, REQUESTER, make_nft, make_request


# ── Request ledger ────────────────────────────────────────────────


def test_append_keeps_insertion_order():
    ledger = RequestLedger().append(make_request(1, date=3)).append(make_request(2, date=5))
    assert [r.request_id for r in ledger.entries] == [1, 2]
    assert len(ledger) == 2


def test_append_duplicate_id_is_a_noop():
    ledger = RequestLedger().append(make_request(1))
    assert ledger.append(make_request(1, date=99)) is ledger


def test_transition_unknown_id_leaves_ledger_unchanged(caplog):
    ledger = RequestLedger().append(make_request(1))

    with caplog.at_level(logging.ERROR):
        result = ledger.transition(42, RequestStatus.APPROVED)

    assert result is ledger
    assert result.entries == ledger.entries
    assert "#42" in caplog.text


def test_transition_from_pending_only():
    ledger = RequestLedger().append(make_request(1))

    approved = ledger.transition(1, RequestStatus.APPROVED)
    assert approved.get(1).status is RequestStatus.APPROVED
    assert ledger.get(1).status is RequestStatus.PENDING  # earlier ledger untouched

    again = approved.transition(1, RequestStatus.WITHDRAWN)
    assert again is approved
    assert not approved.can_transition(1)


def test_by_date_newest_first():
    ledger = RequestLedger((make_request(1, date=10), make_request(2, date=30), make_request(3, date=20)))
    assert [r.request_id for r in ledger.by_date()] == [2, 3, 1]


def test_for_requester_ignores_address_case():
    ledger = RequestLedger((
        make_request(1, requester_address=REQUESTER),
        make_request(2, requester_address=OTHER_REQUESTER),
    ))
    mine = ledger.for_requester(REQUESTER.upper().replace("0X", "0x"))
    assert [r.request_id for r in mine] == [1]


# ── NFT inventory ─────────────────────────────────────────────────


def test_receive_is_an_upsert():
    inventory = NFTInventory().receive(make_nft(token_id=7, uri="ipfs://old"))
    updated = inventory.receive(make_nft(token_id=7, uri="ipfs://new"))

    assert len(updated) == 1
    assert updated.get(NFT_CONTRACT, 7).uri == "ipfs://new"


def test_receive_keeps_known_uri_when_new_one_is_empty():
    inventory = NFTInventory().receive(make_nft(token_id=7, uri="ipfs://known"))
    assert inventory.receive(make_nft(token_id=7, uri="")) is inventory


def test_remove_by_id_and_by_address():
    inventory = NFTInventory((make_nft(token_id=1), make_nft(token_id=2)))

    assert len(inventory.remove(NFT_CONTRACT, 1)) == 1
    assert len(inventory.remove(NFT_CONTRACT.upper().replace("0X", "0x"))) == 0
    assert inventory.remove(NFT_CONTRACT, 99) is inventory


def test_restore_never_duplicates():
    inventory = NFTInventory((make_nft(token_id=1),))
    assert inventory.restore(make_nft(token_id=1)) is inventory
    assert len(inventory.restore(make_nft(token_id=2))) == 2
