# File: bot_core/adapter_with_error_handler.py
import logging
from datetime import datetime, timezone

from botbuilder.core import (
    BotFrameworkAdapter,
    BotFrameworkAdapterSettings,
    TurnContext,
)  # type: ignore
from botbuilder.schema import ActivityTypes, Activity  # type: ignore

logger = logging.getLogger(__name__)

ERROR_MESSAGE = "The bot encountered an error or bug."
FIX_MESSAGE = "To continue to run this bot, please fix the bot source code."


async def send_turn_error(context: TurnContext, error: Exception):
    """Tell the user (and the emulator) that the turn failed."""
    logger.error(f"[on_turn_error] unhandled error: {error}", exc_info=error)

    await context.send_activity(ERROR_MESSAGE)
    await context.send_activity(FIX_MESSAGE)
    # Send a trace activity if connected to the Bot Framework Emulator
    if context.activity.channel_id == "emulator":
        trace_activity = Activity(
            label="TurnError",
            name="on_turn_error Trace",
            timestamp=datetime.now(timezone.utc),
            type=ActivityTypes.trace,
            value=f"{error}",
            value_type="https://www.botframework.com/schemas/error",
        )
        await context.send_activity(trace_activity)


class AdapterWithErrorHandler(BotFrameworkAdapter):
    def __init__(self, settings: BotFrameworkAdapterSettings):
        super().__init__(settings)
        self.on_turn_error = send_turn_error
