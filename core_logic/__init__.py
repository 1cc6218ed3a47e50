"""Core logic package: intent classification for incoming messages."""

from .intent_classifier import (
    IntentClassifier,
    KeywordIntentClassifier,
    LuisIntentClassifier,
    TopIntent,
    create_intent_classifier,
)

__all__ = [
    'IntentClassifier',
    'KeywordIntentClassifier',
    'LuisIntentClassifier',
    'TopIntent',
    'create_intent_classifier',
]
