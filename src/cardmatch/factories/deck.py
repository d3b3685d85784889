from __future__ import annotations

import logging
import random
from collections import Counter
from typing import List, Optional

from cardmatch.components.card import Card
from cardmatch.components.save_snapshot import SaveSnapshot
from cardmatch.errors import DeckError, SaveDataError

logger = logging.getLogger(__name__)


def allocate_symbols(pair_count: int, symbol_pool_size: int, rng: random.Random) -> List[int]:
    """Draw one symbol per pair, uniformly and with replacement.

    Two different pairs may share a symbol; matching only ever compares the two
    cards of a pending pair so a repeat is harmless.
    """
    return [rng.randrange(symbol_pool_size) for _ in range(pair_count)]


def shuffle_cards(cards: List[Card], rng: random.Random) -> None:
    """In-place Fisher-Yates shuffle."""
    n = len(cards)
    while n > 1:
        n -= 1
        k = rng.randrange(n + 1)
        cards[k], cards[n] = cards[n], cards[k]


def new_deck(pair_count: int, symbol_pool_size: int, rng: Optional[random.Random] = None) -> List[Card]:
    if pair_count < 1:
        raise DeckError(f"a deck needs at least one pair, got {pair_count}")
    if symbol_pool_size < 1:
        raise DeckError(f"symbol pool must not be empty, got {symbol_pool_size}")
    rng = rng or random.Random()
    cards: List[Card] = []
    for index, symbol in enumerate(allocate_symbols(pair_count, symbol_pool_size, rng)):
        cards.append(Card(card_id=2 * index, pair_symbol=symbol))
        cards.append(Card(card_id=2 * index + 1, pair_symbol=symbol))
    shuffle_cards(cards, rng)
    logger.debug("Dealt %d cards from a pool of %d symbols", len(cards), symbol_pool_size)
    return cards


def restore_deck(snapshot: SaveSnapshot, expected_count: int) -> List[Card]:
    """Rebuild the saved cards in their saved order, all face-down and unmatched.

    Matched flags are applied afterwards by reconciliation against the board.
    """
    records = snapshot.cards
    if not records:
        raise SaveDataError("saved game has no cards")
    if len(records) != expected_count:
        raise SaveDataError(
            f"saved game has {len(records)} cards but the board needs {expected_count}"
        )
    odd = sorted(symbol for symbol, count in Counter(r.symbol_id for r in records).items() if count % 2)
    if odd:
        raise SaveDataError(f"saved symbols {odd} do not come in pairs")
    seen: set[int] = set()
    cards: List[Card] = []
    for record in records:
        if record.card_id in seen:
            raise SaveDataError(f"duplicate card id {record.card_id} in saved game")
        seen.add(record.card_id)
        cards.append(Card(card_id=record.card_id, pair_symbol=record.symbol_id))
    return cards
