from dataclasses import dataclass


@dataclass(slots=True)
class ScoreState:
    """Running score of the current session."""
    base_score: int = 0
    combo_multiplier: int = 1
    combo_count: int = 0
    time_bonus: int = 0
    total_score: int = 0
    moves: int = 0
    combos: int = 0

    def recalculate_total(self) -> int:
        self.total_score = self.base_score * self.combo_multiplier + self.time_bonus
        return self.total_score

    def copy(self) -> "ScoreState":
        return ScoreState(
            base_score=self.base_score,
            combo_multiplier=self.combo_multiplier,
            combo_count=self.combo_count,
            time_bonus=self.time_bonus,
            total_score=self.total_score,
            moves=self.moves,
            combos=self.combos,
        )
