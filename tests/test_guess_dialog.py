from decimal import Decimal

import pytest

from dialogs.guess_dialog import (
    GUESS_PROMPT_ID,
    HINT_MESSAGE,
    INTRO_MESSAGE,
    OUT_OF_RANGE_MESSAGE,
    PROMPT_MESSAGE,
    SECRET_KEY,
    STEP_KEY,
    GuessCheck,
    GuessStep,
    as_whole_number,
    check_guess,
    completion_message,
)


def test_check_guess_over_full_range():
    for secret in range(1, 100):
        for value in range(1, 100):
            outcome = check_guess(secret, value)
            if value == secret:
                assert outcome == GuessCheck.CORRECT
            elif value < secret:
                assert outcome == GuessCheck.BIGGER
            else:
                assert outcome == GuessCheck.SMALLER


@pytest.mark.parametrize("value", [None, -5, 0, 100, 1000])
def test_check_guess_out_of_range(value):
    assert check_guess(42, value) == GuessCheck.OUT_OF_RANGE


@pytest.mark.parametrize("value,expected", [
    (Decimal("42"), 42),
    (Decimal("42.0"), 42),
    (7, 7),
    (Decimal("4.5"), None),
    (4.5, None),
    ("abc", None),
    (None, None),
])
def test_as_whole_number(value, expected):
    assert as_whole_number(value) == expected


def test_completion_message():
    assert completion_message(3, None) == "Exactly! It took you 3 turns."
    assert completion_message(3, 2) == "Exactly! It took you 3 turns, it's 2 better than your previous best score!"


@pytest.mark.asyncio
async def test_full_game_with_hints(conversation):
    assert await conversation.say_texts("guess") == [INTRO_MESSAGE, PROMPT_MESSAGE]
    prompt, game = await conversation.dialog_stack()
    assert prompt.id == GUESS_PROMPT_ID
    assert game.state[STEP_KEY] == GuessStep.PROMPTING.value
    assert game.state[SECRET_KEY] == 42

    assert await conversation.say_texts("10") == ["My number is bigger, try again!"]
    assert await conversation.say_texts("70") == ["My number is smaller, try again!"]
    assert await conversation.say_texts("42") == ["Exactly! It took you 3 turns."]

    guess_round = await conversation.guess_round()
    assert guess_round.best_score == 3
    assert guess_round.attempts_this_round == 0
    assert await conversation.dialog_stack() == []


@pytest.mark.asyncio
async def test_secret_drawn_from_one_to_ninety_nine(make_bot, make_conversation):
    bot = make_bot(42)
    conversation = make_conversation(bot)
    await conversation.say("guess")
    assert bot.guess_dialog.random_source.calls == [(1, 100)]
    assert (await conversation.guess_round()).secret_number == 42


@pytest.mark.asyncio
async def test_rejected_replies_still_count_as_attempts(conversation):
    await conversation.say("guess")

    assert await conversation.say_texts("150") == [OUT_OF_RANGE_MESSAGE]
    assert await conversation.say_texts("no idea") == [OUT_OF_RANGE_MESSAGE]
    assert await conversation.say_texts("0") == [OUT_OF_RANGE_MESSAGE]
    assert await conversation.say_texts("4.5") == [OUT_OF_RANGE_MESSAGE]

    guess_round = await conversation.guess_round()
    assert guess_round.attempts_this_round == 4
    assert (await conversation.dialog_stack())[-1].state[STEP_KEY] == GuessStep.PROMPTING.value

    assert await conversation.say_texts("42") == ["Exactly! It took you 5 turns."]


@pytest.mark.asyncio
async def test_number_words_are_recognized(conversation):
    await conversation.say("guess")
    assert await conversation.say_texts("I think it is 13") == [HINT_MESSAGE.format(hint="bigger")]
    assert await conversation.say_texts("forty two") == ["Exactly! It took you 2 turns."]


@pytest.mark.asyncio
async def test_second_round_reports_improvement(make_bot, make_conversation):
    conversation = make_conversation(make_bot(42, 42))
    await conversation.say("guess")
    for value in ("1", "2", "3", "4"):
        assert await conversation.say_texts(value) == [HINT_MESSAGE.format(hint="bigger")]
    assert await conversation.say_texts("42") == ["Exactly! It took you 5 turns."]

    await conversation.say("guess")
    await conversation.say("10")
    await conversation.say("70")
    assert await conversation.say_texts("42") == [
        "Exactly! It took you 3 turns, it's 2 better than your previous best score!"
    ]
    assert (await conversation.guess_round()).best_score == 3


@pytest.mark.asyncio
async def test_worse_round_keeps_best_score(make_bot, make_conversation):
    conversation = make_conversation(make_bot(42, 42))
    await conversation.say("guess")
    assert await conversation.say_texts("42") == ["Exactly! It took you 1 turns."]

    await conversation.say("guess")
    await conversation.say("50")
    assert await conversation.say_texts("42") == ["Exactly! It took you 2 turns."]
    assert (await conversation.guess_round()).best_score == 1


@pytest.mark.asyncio
async def test_users_keep_separate_rounds(make_bot, make_conversation):
    bot = make_bot(42)
    alice = make_conversation(bot, conversation_id="convo-a", user_id="alice")
    bob = make_conversation(bot, conversation_id="convo-b", user_id="bob")

    await alice.say("guess")
    await bob.say("guess")
    await alice.say("10")
    await alice.say("42")

    assert (await alice.guess_round()).best_score == 2
    bob_round = await bob.guess_round()
    assert bob_round.best_score == 0
    assert bob_round.attempts_this_round == 0


@pytest.mark.asyncio
async def test_anyone_in_a_group_conversation_can_win(make_bot, make_conversation):
    bot = make_bot(42)
    alice = make_conversation(bot, conversation_id="room", user_id="alice")
    bob = make_conversation(bot, conversation_id="room", user_id="bob")

    await alice.say("guess")
    assert await bob.say_texts("1") == [HINT_MESSAGE.format(hint="bigger")]
    assert await bob.say_texts("99") == [HINT_MESSAGE.format(hint="smaller")]
    assert await bob.say_texts("42") == ["Exactly! It took you 3 turns."]

    assert (await bob.guess_round()).best_score == 3
    assert await alice.dialog_stack() == []
