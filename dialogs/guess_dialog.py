"""
The "guess the number" dialog.

Steps run strictly forward: initialize -> prompting -> evaluating -> ended.
The step and the round's secret live in the dialog's own instance state, so
whoever answers in the conversation is checked against the same number.
Prompting hands control to a ``NumberPrompt`` whose validator counts every
reply and only lets the prompt finish on the secret number.
"""
import logging
import random
from enum import Enum
from typing import Any, Optional

from botbuilder.core import MessageFactory, TurnContext  # type: ignore
from botbuilder.dialogs import Dialog, DialogContext, DialogReason, DialogTurnResult  # type: ignore
from botbuilder.dialogs.prompts import NumberPrompt, PromptOptions, PromptValidatorContext  # type: ignore

from bot_core.state_store import BotStateStore, StateScope
from state_models import (
    GUESS_STATE_PROPERTY,
    MAX_SECRET_NUMBER,
    MIN_SECRET_NUMBER,
    GuessRound,
    load_model,
)

logger = logging.getLogger(__name__)

INTRO_MESSAGE = f"I have a number between {MIN_SECRET_NUMBER} and {MAX_SECRET_NUMBER} in mind."
PROMPT_MESSAGE = "What's your guess?"
OUT_OF_RANGE_MESSAGE = (
    f"I'm pretty certain it's a number between {MIN_SECRET_NUMBER} and {MAX_SECRET_NUMBER}. Give it another try!"
)
HINT_MESSAGE = "My number is {hint}, try again!"

GUESS_PROMPT_ID = "GuessPrompt"
STEP_KEY = "step"
SECRET_KEY = "secret_number"


class GuessStep(str, Enum):
    INITIALIZE = "initialize"
    PROMPTING = "prompting"
    EVALUATING = "evaluating"
    ENDED = "ended"


class GuessCheck(str, Enum):
    OUT_OF_RANGE = "out_of_range"
    BIGGER = "bigger"
    SMALLER = "smaller"
    CORRECT = "correct"


def as_whole_number(value: Any) -> Optional[int]:
    """The recognizer hands back decimals; only whole numbers can be guesses."""
    if value is None:
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number == value else None


def check_guess(secret_number: int, value: Optional[int]) -> GuessCheck:
    # An unrecognized reply is reported like 0: out of range.
    if value is None or value < MIN_SECRET_NUMBER or value > MAX_SECRET_NUMBER:
        return GuessCheck.OUT_OF_RANGE
    if value < secret_number:
        return GuessCheck.BIGGER
    if value > secret_number:
        return GuessCheck.SMALLER
    return GuessCheck.CORRECT


def completion_message(attempts: int, improvement: Optional[int]) -> str:
    suffix = "."
    if improvement is not None:
        suffix = f", it's {improvement} better than your previous best score!"
    return f"Exactly! It took you {attempts} turns{suffix}"


class GuessDialog(Dialog):
    def __init__(self, state_store: BotStateStore, random_source: Optional[random.Random] = None):
        super().__init__("GuessDialog")
        self.state_store = state_store
        self.random_source = random_source or random.Random()
        self.prompt = NumberPrompt(GUESS_PROMPT_ID, self.validate_guess)

    async def _get_round(self, turn_context: TurnContext) -> GuessRound:
        raw = await self.state_store.get(turn_context, StateScope.USER, GUESS_STATE_PROPERTY, dict)
        return load_model(GuessRound, raw)

    async def _save_round(self, turn_context: TurnContext, guess_round: GuessRound) -> None:
        await self.state_store.set(
            turn_context, StateScope.USER, GUESS_STATE_PROPERTY, guess_round.model_dump(mode="json")
        )

    async def begin_dialog(self, dialog_context: DialogContext, options: object = None) -> DialogTurnResult:
        dialog_context.active_dialog.state[STEP_KEY] = GuessStep.INITIALIZE.value
        return await self._run_steps(dialog_context)

    async def continue_dialog(self, dialog_context: DialogContext) -> DialogTurnResult:
        return await self._run_steps(dialog_context)

    async def resume_dialog(
        self, dialog_context: DialogContext, reason: DialogReason, result: object = None
    ) -> DialogTurnResult:
        # The guess prompt only ends once the validator accepted the reply.
        dialog_context.active_dialog.state[STEP_KEY] = GuessStep.EVALUATING.value
        return await self._run_steps(dialog_context)

    async def _run_steps(self, dc: DialogContext) -> DialogTurnResult:
        state = dc.active_dialog.state
        while True:
            step = state.get(STEP_KEY)
            if step == GuessStep.INITIALIZE.value:
                guess_round = await self.initialize_round(dc.context)
                state[SECRET_KEY] = guess_round.secret_number
                state[STEP_KEY] = GuessStep.PROMPTING.value
            elif step == GuessStep.PROMPTING.value:
                return await dc.prompt(
                    GUESS_PROMPT_ID,
                    PromptOptions(
                        prompt=MessageFactory.text(PROMPT_MESSAGE),
                        validations={SECRET_KEY: state[SECRET_KEY]},
                    ),
                )
            elif step == GuessStep.EVALUATING.value:
                await self.evaluate_result(dc.context)
                state[STEP_KEY] = GuessStep.ENDED.value
            else:
                return await dc.end_dialog()

    async def initialize_round(self, turn_context: TurnContext) -> GuessRound:
        guess_round = await self._get_round(turn_context)
        guess_round.start_round(self.random_source.randrange(MIN_SECRET_NUMBER, MAX_SECRET_NUMBER + 1))
        logger.info("New guessing round started")
        logger.debug(f"New round. Number is {guess_round.secret_number}")
        await self._save_round(turn_context, guess_round)
        await turn_context.send_activity(INTRO_MESSAGE)
        return guess_round

    async def validate_guess(self, prompt_context: PromptValidatorContext) -> bool:
        """Count the reply, then accept it only if it is exactly the secret number."""
        turn_context = prompt_context.context
        guess_round = await self._get_round(turn_context)
        guess_round.register_attempt()
        await self._save_round(turn_context, guess_round)

        recognized = prompt_context.recognized
        value = as_whole_number(recognized.value) if recognized.succeeded else None
        outcome = check_guess(prompt_context.options.validations[SECRET_KEY], value)
        logger.debug(f"Guess {value!r} -> {outcome.value} (attempt {guess_round.attempts_this_round})")
        if outcome == GuessCheck.OUT_OF_RANGE:
            await turn_context.send_activity(OUT_OF_RANGE_MESSAGE)
            return False
        if outcome in (GuessCheck.BIGGER, GuessCheck.SMALLER):
            await turn_context.send_activity(HINT_MESSAGE.format(hint=outcome.value))
            return False
        return True

    async def evaluate_result(self, turn_context: TurnContext) -> None:
        guess_round = await self._get_round(turn_context)
        attempts = guess_round.attempts_this_round
        improvement = guess_round.complete_round()
        await self._save_round(turn_context, guess_round)
        logger.info(f"Round finished in {attempts} turns (best score {guess_round.best_score})")
        await turn_context.send_activity(completion_message(attempts, improvement))
