"""
Health checks for the bot's collaborators: state storage and intent recognition.
"""
import logging
import time
from typing import Any, Dict

from config import Config

log = logging.getLogger("health")

HEALTH_CHECK_KEY = "healthcheck/ping"


async def check_storage(bot) -> Dict[str, Any]:
    start_time = time.monotonic()
    try:
        await bot.storage.read([HEALTH_CHECK_KEY])
    except Exception as e:
        log.error(f"Storage health check failed: {e}", exc_info=True)
        return {"status": "DOWN", "message": str(e), "elapsed_time": time.monotonic() - start_time}
    return {
        "status": "OK",
        "backend": type(bot.storage).__name__,
        "elapsed_time": time.monotonic() - start_time,
    }


def check_intent_classifier(bot, config: Config) -> Dict[str, Any]:
    recognizer = config.settings.intent_recognizer
    if recognizer == "none":
        return {"status": "NOT CONFIGURED", "recognizer": recognizer}
    if bot.intent_classifier is None:
        return {"status": "ERROR", "recognizer": recognizer, "message": "Configured recognizer was not created."}
    return {"status": "OK", "recognizer": recognizer, "classifier": type(bot.intent_classifier).__name__}


async def run_health_checks(bot, config: Config) -> Dict[str, Any]:
    """
    Run every check and fold the results into an overall status.

    Returns:
        {"overall_status": "OK" | "DEGRADED" | "ERROR", "components": {...}}
    """
    components = {
        "State Storage": await check_storage(bot),
        "Intent Classifier": check_intent_classifier(bot, config),
    }
    overall_status = "OK"
    for name, result in components.items():
        status = result.get("status", "UNKNOWN")
        if status in ("OK", "NOT CONFIGURED"):
            continue
        if name == "State Storage":
            overall_status = "ERROR"
            break
        overall_status = "DEGRADED"
    log.info(f"Health check completed. Overall status: {overall_status}")
    return {"overall_status": overall_status, "components": components}
