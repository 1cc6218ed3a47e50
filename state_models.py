import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# Get logger for state management
log = logging.getLogger("state")

# Names of the persisted state slots
GUESS_STATE_PROPERTY = "GuessState"
DIALOG_STATE_PROPERTY = "DialogState"

MIN_SECRET_NUMBER = 1
MAX_SECRET_NUMBER = 99


class GuessRound(BaseModel):
    """Per-user record for the guessing game. ``best_score`` of 0 means no round finished yet."""
    model_config = ConfigDict(validate_assignment=True)

    secret_number: int = Field(default=0, ge=0, le=MAX_SECRET_NUMBER, description="Number the user is trying to guess")
    attempts_this_round: int = Field(default=0, ge=0, description="Guesses submitted in the current round")
    best_score: int = Field(default=0, ge=0, description="Fewest attempts in any completed round")

    def start_round(self, secret_number: int) -> None:
        if not MIN_SECRET_NUMBER <= secret_number <= MAX_SECRET_NUMBER:
            raise ValueError(f"secret number {secret_number} outside {MIN_SECRET_NUMBER}..{MAX_SECRET_NUMBER}")
        self.secret_number = secret_number
        self.attempts_this_round = 0

    def register_attempt(self) -> int:
        self.attempts_this_round += 1
        return self.attempts_this_round

    def complete_round(self) -> Optional[int]:
        """
        Close the round and fold its attempt count into the best score.

        Returns:
            How many turns better than the previous best this round was, or
            None if there was no previous best or it was not beaten.
        """
        attempts = self.attempts_this_round
        improvement = None
        if self.best_score == 0 or attempts < self.best_score:
            if self.best_score != 0:
                improvement = self.best_score - attempts
            self.best_score = attempts
        self.attempts_this_round = 0
        return improvement



def load_model(model_cls, raw: Any):
    """Rebuild a state model from whatever the storage layer handed back."""
    if raw is None:
        return model_cls()
    if isinstance(raw, model_cls):
        return raw
    if isinstance(raw, dict):
        data = {k: v for k, v in raw.items() if k != "e_tag"}
        return model_cls.model_validate(data)
    log.error(f"Loaded state is neither dict nor {model_cls.__name__} (type: {type(raw)}). Re-initializing.")
    return model_cls()
