import random
from datetime import datetime

from cardmatch.components.game_state import GameMode
from cardmatch.components.save_snapshot import CardRecord, SaveSnapshot
from cardmatch.components.score_state import ScoreState
from cardmatch.config import GameConfig
from cardmatch.events.bus import (
    EVENT_BOARD_TORN_DOWN,
    EVENT_GAME_MODE_CHANGED,
    EVENT_GAME_RESUMED,
    EVENT_GAME_STARTED,
)
from cardmatch.session import CardMatchSession
from cardmatch.utils.shapes import ShapeKind
from tests.helpers import matching_pairs, play_pair, record_events


def test_new_game_deals_default_board(session):
    events = record_events(session, EVENT_GAME_STARTED, EVENT_GAME_MODE_CHANGED)

    assert session.start_new_game()

    snapshot = session.board_snapshot()
    assert snapshot.shape_kind is ShapeKind.SQUARE
    assert snapshot.size == 4
    assert len(snapshot.cards) == 16
    assert not any(status.face_up for status in snapshot.cards)
    assert session.mode == GameMode.PLAYING
    assert events[0] == (EVENT_GAME_STARTED, {"shape_kind": ShapeKind.SQUARE, "size": 4, "card_count": 16})
    assert events[1][1]["new_mode"] == GameMode.PLAYING


def test_new_game_accepts_shape_names(session):
    assert session.start_new_game("heart", 5)
    assert session.board_snapshot().shape_kind is ShapeKind.HEART
    assert len(session.board_snapshot().cards) == 16


def test_invalid_size_starts_nothing(session):
    assert session.start_new_game(ShapeKind.SQUARE, 7) is False
    assert session.start_new_game(ShapeKind.SQUARE, 1) is False
    assert session.start_new_game(ShapeKind.PLUS, 2) is False
    assert session.start_new_game("hexagon", 4) is False

    assert session.mode == GameMode.MENU
    assert session.board_snapshot().cards == ()


def test_new_game_replaces_running_board(session):
    session.start_new_game(ShapeKind.SQUARE, 4)
    pairs = matching_pairs(session)
    play_pair(session, *pairs[0])
    # Leave a comparison in flight.
    session.handle_click(pairs[1][0])
    session.handle_click(pairs[1][1])
    torn_down = record_events(session, EVENT_BOARD_TORN_DOWN)

    assert session.start_new_game(ShapeKind.O_SHAPE, 4)

    assert len(torn_down) == 1
    assert session.current_score_state() == ScoreState()
    assert session.elapsed_time == 0.0
    assert session.match_system.in_flight_pairs() == []
    assert not any(status.matched or status.face_up for status in session.board_snapshot().cards)


def test_elapsed_time_advances_while_playing(session):
    session.tick(3.0)
    assert session.elapsed_time == 0.0

    session.start_new_game(ShapeKind.SQUARE, 2)
    session.tick(1.5)
    session.tick(0.5)
    assert session.elapsed_time == 2.0


def test_preview_reveals_then_hides_cards(tmp_path):
    config = GameConfig(card_flip_duration=0, reveal_on_start=True, card_reveal_duration=0.3)
    game = CardMatchSession(config, save_path=tmp_path / "save.json", rng=random.Random(3))
    game.start_new_game(ShapeKind.SQUARE, 2)

    assert game.mode == GameMode.PREVIEW
    assert all(status.face_up for status in game.board_snapshot().cards)
    assert game.handle_click(0) is False

    game.tick(0.5)

    assert game.mode == GameMode.PLAYING
    assert not any(status.face_up for status in game.board_snapshot().cards)
    assert game.elapsed_time == 0.0
    game.close()


def test_give_up_then_resume_restores_progress(session):
    session.start_new_game(ShapeKind.DIAMOND, 5)
    first, second = matching_pairs(session)[0]
    play_pair(session, first, second)
    score_before = session.current_score_state()
    elapsed_before = session.elapsed_time

    assert session.give_up()
    assert session.mode == GameMode.MENU
    assert session.board_snapshot().cards == ()
    assert session.can_resume()

    resumed = record_events(session, EVENT_GAME_RESUMED)
    assert session.resume_game()

    snapshot = session.board_snapshot()
    assert session.mode == GameMode.PLAYING
    assert snapshot.shape_kind is ShapeKind.DIAMOND
    assert len(snapshot.cards) == 12
    assert snapshot.card(first).matched and snapshot.card(second).matched
    assert sum(status.matched for status in snapshot.cards) == 2
    assert not any(status.face_up and not status.matched for status in snapshot.cards)
    assert session.current_score_state() == score_before
    assert session.elapsed_time == elapsed_before
    assert resumed[0][1]["card_count"] == 12


def test_resume_without_save_does_nothing(session):
    assert session.resume_game() is False
    assert session.mode == GameMode.MENU


def test_resume_corrupt_save_starts_new_game(session):
    session.save_system.save_path.write_text("][", encoding="utf-8")

    assert session.resume_game() is False

    assert session.mode == GameMode.PLAYING
    assert len(session.board_snapshot().cards) == 16
    assert not session.save_system.has_save()


def test_resume_completed_save_is_discarded(session):
    session.save_system.write(
        SaveSnapshot(
            shape_kind=ShapeKind.SQUARE,
            size=2,
            elapsed_time=4.0,
            score=ScoreState(),
            cards=[CardRecord(card_id=i, symbol_id=0, matched=True, face_up=True) for i in range(4)],
            saved_at=datetime(2024, 1, 1),
        )
    )

    assert session.resume_game() is False
    assert session.mode == GameMode.MENU
    assert not session.save_system.has_save()


def test_resume_mismatched_save_falls_back_to_saved_shape(session):
    session.save_system.write(
        SaveSnapshot(
            shape_kind=ShapeKind.O_SHAPE,
            size=3,
            elapsed_time=4.0,
            score=ScoreState(moves=9),
            cards=[CardRecord(card_id=i, symbol_id=i // 2, matched=False, face_up=False) for i in range(6)],
            saved_at=datetime(2024, 1, 1),
        )
    )

    assert session.resume_game() is False

    snapshot = session.board_snapshot()
    assert snapshot.shape_kind is ShapeKind.O_SHAPE
    assert snapshot.size == 4
    assert session.current_score_state().moves == 0
    assert not session.save_system.has_save()


def test_suspend_keeps_playing_and_saves(session):
    assert session.suspend() is False
    session.start_new_game(ShapeKind.SQUARE, 2)

    assert session.suspend()

    assert session.mode == GameMode.PLAYING
    assert session.save_system.has_save()


def test_abandon_deletes_save(session):
    session.start_new_game(ShapeKind.SQUARE, 4)
    session.suspend()

    session.abandon()

    assert session.mode == GameMode.MENU
    assert not session.save_system.has_save()
    assert not session.can_resume()


def test_resume_undecodable_save_starts_new_game(session):
    session.save_system.save_path.write_bytes(b"\xff\xfe\x00garbage")

    assert session.can_resume() is False
    session.save_system.save_path.write_bytes(b"\xff\xfe\x00garbage")
    assert session.resume_game() is False

    assert session.mode == GameMode.PLAYING
    assert not session.save_system.has_save()


def _write_raw_save(session: CardMatchSession, elapsed: str, symbols: list[int]) -> None:
    cards = ", ".join(
        f'{{"card_id": {i}, "symbol_id": {symbol}, "matched": false, "face_up": false}}'
        for i, symbol in enumerate(symbols)
    )
    session.save_system.save_path.write_text(
        f'{{"shape_kind": 0, "size": 2, "elapsed_time": {elapsed}, "score": {{}}, "cards": [{cards}]}}',
        encoding="utf-8",
    )


def test_resume_rejects_non_finite_elapsed_time(session):
    _write_raw_save(session, "NaN", [0, 0, 1, 1])

    assert session.resume_game() is False

    assert session.mode == GameMode.PLAYING
    assert session.elapsed_time == 0.0
    assert not session.save_system.has_save()
    # The fallback game can still be won.
    for first, second in matching_pairs(session):
        play_pair(session, first, second)
    assert session.mode == GameMode.WON


def test_resume_rejects_unpaired_symbols(session):
    _write_raw_save(session, "3.0", [0, 0, 0, 1])

    assert session.resume_game() is False

    snapshot = session.board_snapshot()
    assert session.mode == GameMode.PLAYING
    assert snapshot.size == 4
    assert not session.save_system.has_save()


def test_resume_valid_raw_save(session):
    _write_raw_save(session, "3.0", [0, 0, 1, 1])

    assert session.resume_game()
    assert session.elapsed_time == 3.0
