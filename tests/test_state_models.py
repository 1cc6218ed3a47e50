import pytest
from pydantic import ValidationError

from state_models import GuessRound, load_model


def test_start_round_resets_attempts():
    guess_round = GuessRound(secret_number=10, attempts_this_round=4, best_score=6)
    guess_round.start_round(57)
    assert guess_round.secret_number == 57
    assert guess_round.attempts_this_round == 0
    assert guess_round.best_score == 6


@pytest.mark.parametrize("secret", [0, 100, -3])
def test_start_round_rejects_out_of_range_secret(secret):
    with pytest.raises(ValueError):
        GuessRound().start_round(secret)


def test_register_attempt_counts_by_one():
    guess_round = GuessRound()
    guess_round.start_round(5)
    assert guess_round.register_attempt() == 1
    assert guess_round.register_attempt() == 2
    assert guess_round.attempts_this_round == 2


def test_first_completed_round_sets_best_without_improvement():
    guess_round = GuessRound()
    guess_round.start_round(5)
    for _ in range(4):
        guess_round.register_attempt()
    assert guess_round.complete_round() is None
    assert guess_round.best_score == 4
    assert guess_round.attempts_this_round == 0


def test_better_round_reports_improvement():
    guess_round = GuessRound(best_score=5)
    guess_round.start_round(5)
    for _ in range(3):
        guess_round.register_attempt()
    assert guess_round.complete_round() == 2
    assert guess_round.best_score == 3


@pytest.mark.parametrize("attempts", [5, 9])
def test_best_score_never_increases(attempts):
    guess_round = GuessRound(best_score=5)
    guess_round.start_round(5)
    for _ in range(attempts):
        guess_round.register_attempt()
    assert guess_round.complete_round() is None
    assert guess_round.best_score == 5
    assert guess_round.attempts_this_round == 0


def test_negative_attempts_rejected_on_assignment():
    guess_round = GuessRound()
    with pytest.raises(ValidationError):
        guess_round.attempts_this_round = -1


def test_load_model_handles_storage_shapes():
    assert load_model(GuessRound, None) == GuessRound()
    existing = GuessRound(best_score=3)
    assert load_model(GuessRound, existing) is existing
    loaded = load_model(GuessRound, {"secret_number": 7, "attempts_this_round": 2, "best_score": 0, "e_tag": "*"})
    assert loaded.secret_number == 7
    assert loaded.attempts_this_round == 2
    assert load_model(GuessRound, "garbage") == GuessRound()
