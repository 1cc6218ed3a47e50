# -- app.py --
"""
Main entry point for the guess bot (Bot Framework Version).
"""
import logging
import sys

from aiohttp import web
from botbuilder.core import BotFrameworkAdapterSettings  # type: ignore
from botbuilder.schema import Activity, ActivityTypes  # type: ignore
from dotenv import load_dotenv, find_dotenv

from bot_core.adapter_with_error_handler import AdapterWithErrorHandler
from bot_core.guess_bot import GuessBot
from bot_core.storage_factory import close_storage, create_storage
from config import Config, get_config
from health_checks import run_health_checks
from utils.logging_config import setup_logging

APP_VERSION = "1.0.0"

logger = logging.getLogger(__name__)

BOT_KEY = web.AppKey("bot", GuessBot)
ADAPTER_KEY = web.AppKey("adapter", AdapterWithErrorHandler)
CONFIG_KEY = web.AppKey("config", Config)


async def messages(req: web.Request) -> web.Response:
    if "application/json" not in req.headers.get("Content-Type", ""):
        logger.warning("Request received with non-JSON content type.")
        return web.Response(status=415)

    try:
        body = await req.json()
    except ValueError as json_e:
        logger.error(f"Failed to parse request body as JSON: {json_e}")
        return web.Response(status=400, text="Invalid JSON body")

    activity = Activity().deserialize(body)
    auth_header = req.headers.get("Authorization", "")

    user_id = activity.from_property.id if activity.from_property else "N/A"
    conversation_id = activity.conversation.id if activity.conversation else "N/A"
    logger.info(f"Received activity: Type='{activity.type}', From='{user_id}', ConvID='{conversation_id}'")
    if activity.type == ActivityTypes.message and activity.text:
        logger.debug(f"  Message Text: '{activity.text[:100]}{'...' if len(activity.text) > 100 else ''}'")

    bot = req.app[BOT_KEY]
    response = await req.app[ADAPTER_KEY].process_activity(activity, auth_header, bot.on_turn)
    if response:
        return web.json_response(data=response.body, status=response.status)
    return web.Response(status=201)


async def healthz(req: web.Request) -> web.Response:
    results = await run_health_checks(req.app[BOT_KEY], req.app[CONFIG_KEY])
    http_status_code = 503 if results["overall_status"] == "ERROR" else 200
    results["version"] = APP_VERSION
    return web.json_response(results, status=http_status_code)


async def on_bot_shutdown(app: web.Application):
    logger.info("Bot application shutting down. Closing state storage...")
    await close_storage(app[BOT_KEY].storage)


def create_app(app_config: Config, bot: GuessBot = None) -> web.Application:
    settings = app_config.settings
    if bot is None:
        bot = GuessBot.from_config(app_config, create_storage(settings))

    adapter = AdapterWithErrorHandler(
        BotFrameworkAdapterSettings(
            app_id=settings.MicrosoftAppId or "",
            app_password=settings.MicrosoftAppPassword or "",
        )
    )

    app = web.Application()
    app[BOT_KEY] = bot
    app[ADAPTER_KEY] = adapter
    app[CONFIG_KEY] = app_config
    app.router.add_post(settings.bot_api_messages_endpoint, messages)
    app.router.add_get(settings.bot_api_healthcheck_endpoint, healthz)
    app.on_cleanup.append(on_bot_shutdown)
    return app


def main():
    setup_logging("INFO")
    load_dotenv(find_dotenv(usecwd=True))
    try:
        app_config = get_config()
    except ValueError as config_e:  # pydantic ValidationError is a ValueError
        print(f"FATAL: Configuration error: {config_e}", file=sys.stderr)
        sys.exit(1)

    # Re-apply with the configured level and optional JSON file
    setup_logging(app_config.settings.log_level, app_config.settings.log_json_file)
    server_app = create_app(app_config)
    port_to_use = app_config.settings.port
    logger.info(f"Bot server starting on http://0.0.0.0:{port_to_use}")
    web.run_app(server_app, host="0.0.0.0", port=port_to_use)


if __name__ == "__main__":
    main()
