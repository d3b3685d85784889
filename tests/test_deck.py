import random
from collections import Counter
from datetime import datetime

import pytest

from cardmatch.components.save_snapshot import CardRecord, SaveSnapshot
from cardmatch.components.score_state import ScoreState
from cardmatch.errors import DeckError, SaveDataError
from cardmatch.factories.deck import allocate_symbols, new_deck, restore_deck, shuffle_cards
from cardmatch.utils.shapes import ShapeKind


@pytest.mark.parametrize("pair_count", [1, 2, 6, 8, 18])
def test_new_deck_has_two_cards_per_pair(pair_count):
    cards = new_deck(pair_count, 12, random.Random(pair_count))

    assert len(cards) == 2 * pair_count
    assert sorted(card.card_id for card in cards) == list(range(2 * pair_count))
    by_id = {card.card_id: card for card in cards}
    for index in range(pair_count):
        assert by_id[2 * index].pair_symbol == by_id[2 * index + 1].pair_symbol
    # Symbols may repeat across pairs but always in whole pairs.
    assert all(count % 2 == 0 for count in Counter(card.pair_symbol for card in cards).values())


def test_new_deck_cards_start_face_down():
    cards = new_deck(4, 12, random.Random(0))
    assert not any(card.face_up or card.matched or card.pending for card in cards)


def test_new_deck_is_reproducible_with_seed():
    first = [(c.card_id, c.pair_symbol) for c in new_deck(8, 12, random.Random(3))]
    second = [(c.card_id, c.pair_symbol) for c in new_deck(8, 12, random.Random(3))]
    assert first == second


def test_symbols_are_drawn_from_pool():
    symbols = allocate_symbols(50, 3, random.Random(1))
    assert len(symbols) == 50
    assert set(symbols) <= {0, 1, 2}


def test_shuffle_keeps_every_card():
    cards = new_deck(8, 12, random.Random(5))
    before = sorted(card.card_id for card in cards)
    shuffle_cards(cards, random.Random(9))
    assert sorted(card.card_id for card in cards) == before


def test_new_deck_rejects_bad_requests():
    with pytest.raises(DeckError):
        new_deck(0, 12)
    with pytest.raises(DeckError):
        new_deck(2, 0)


def _snapshot(records):
    return SaveSnapshot(
        shape_kind=ShapeKind.SQUARE,
        size=2,
        elapsed_time=3.0,
        score=ScoreState(),
        cards=records,
        saved_at=datetime(2024, 1, 1),
    )


def test_restore_deck_keeps_saved_order_and_identity():
    records = [
        CardRecord(card_id=3, symbol_id=7, matched=True, face_up=True),
        CardRecord(card_id=0, symbol_id=2, matched=False, face_up=True),
        CardRecord(card_id=2, symbol_id=7, matched=True, face_up=True),
        CardRecord(card_id=1, symbol_id=2, matched=False, face_up=False),
    ]
    cards = restore_deck(_snapshot(records), 4)

    assert [(c.card_id, c.pair_symbol) for c in cards] == [(3, 7), (0, 2), (2, 7), (1, 2)]
    assert not any(card.face_up or card.matched for card in cards)


def test_restore_deck_rejects_mismatched_count():
    records = [CardRecord(card_id=i, symbol_id=0, matched=False, face_up=False) for i in range(4)]
    with pytest.raises(SaveDataError):
        restore_deck(_snapshot(records), 6)
    with pytest.raises(SaveDataError):
        restore_deck(_snapshot([]), 4)


def test_restore_deck_rejects_duplicate_ids():
    records = [CardRecord(card_id=0, symbol_id=0, matched=False, face_up=False) for _ in range(2)]
    with pytest.raises(SaveDataError):
        restore_deck(_snapshot(records), 2)


def test_restore_deck_rejects_unpaired_symbols():
    records = [
        CardRecord(card_id=i, symbol_id=symbol, matched=False, face_up=False)
        for i, symbol in enumerate([0, 0, 0, 1])
    ]
    with pytest.raises(SaveDataError):
        restore_deck(_snapshot(records), 4)


def test_restore_deck_allows_symbol_shared_by_two_pairs():
    records = [CardRecord(card_id=i, symbol_id=3, matched=False, face_up=False) for i in range(4)]
    assert len(restore_deck(_snapshot(records), 4)) == 4
