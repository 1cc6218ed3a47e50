"""
Intent classification for the guess bot.

The dispatcher only cares about two coarse labels, ``Game`` and ``Cancel``.
Everything else (including LUIS's own ``None`` intent) is reported as no intent.
"""

import logging
import re
from typing import Optional, Pattern, Sequence, Tuple

from botbuilder.ai.luis import LuisApplication, LuisPredictionOptions, LuisRecognizer  # type: ignore
from botbuilder.core import TurnContext  # type: ignore

logger = logging.getLogger(__name__)


class TopIntent:
    GAME = "Game"
    CANCEL = "Cancel"


class IntentClassifier:
    """Maps the text of an incoming message to a top intent label (or None)."""

    async def classify(self, text: str) -> Optional[str]:
        raise NotImplementedError

    async def recognize(self, turn_context: TurnContext) -> Optional[str]:
        text = turn_context.activity.text
        if not text:
            return None
        intent = await self.classify(text)
        logger.debug(f"{type(self).__name__} classified message as {intent!r}")
        return intent


class KeywordIntentClassifier(IntentClassifier):
    """Offline classifier driven by regular expressions; Cancel is checked first."""

    DEFAULT_PATTERNS: Tuple[Tuple[str, str], ...] = (
        (TopIntent.CANCEL, r"(?i)^\s*(cancel|stop|quit|exit|abort|reset|start over|never ?mind)\b"),
        (TopIntent.GAME, r"(?i)\b(play|game|guess(ing)?)\b"),
    )

    def __init__(self, patterns: Optional[Sequence[Tuple[str, str]]] = None):
        self._patterns: Sequence[Tuple[str, Pattern[str]]] = [
            (intent, re.compile(pattern)) for intent, pattern in (patterns or self.DEFAULT_PATTERNS)
        ]

    async def classify(self, text: str) -> Optional[str]:
        for intent, pattern in self._patterns:
            if pattern.search(text):
                return intent
        return None


class LuisIntentClassifier(IntentClassifier):
    """Asks a LUIS application for the top intent through ``LuisRecognizer``."""

    NONE_INTENT = "None"

    def __init__(
        self,
        app_id: str,
        api_key: str,
        endpoint: str,
        slot: str = "production",
        timeout_seconds: float = 10.0,
        recognizer: Optional[LuisRecognizer] = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        if not self.endpoint.startswith("http"):
            self.endpoint = f"https://{self.endpoint}"
        self.slot = slot
        self.recognizer = recognizer or LuisRecognizer(
            LuisApplication(app_id, api_key, self.endpoint),
            LuisPredictionOptions(staging=slot == "staging", timeout=timeout_seconds * 1000),
        )

    async def recognize(self, turn_context: TurnContext) -> Optional[str]:
        if not turn_context.activity.text:
            return None
        result = await self.recognizer.recognize(turn_context)
        top_intent = LuisRecognizer.top_intent(result, default_intent=self.NONE_INTENT)
        logger.debug(f"LUIS top intent {top_intent!r}")
        if not top_intent or top_intent == self.NONE_INTENT:
            return None
        return top_intent


def create_intent_classifier(settings) -> Optional[IntentClassifier]:
    """Build the classifier selected by INTENT_RECOGNIZER, or None when disabled."""
    recognizer = settings.intent_recognizer
    if recognizer == "keyword":
        logger.info("Using keyword intent classifier.")
        return KeywordIntentClassifier()
    if recognizer == "luis":
        logger.info(f"Using LUIS intent classifier (app {settings.luis_app_id}, slot {settings.luis_slot}).")
        return LuisIntentClassifier(
            app_id=settings.luis_app_id,
            api_key=settings.luis_api_key,
            endpoint=settings.luis_endpoint,
            slot=settings.luis_slot,
            timeout_seconds=settings.luis_timeout_seconds,
        )
    logger.info("Intent classification disabled.")
    return None
