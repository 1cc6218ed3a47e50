import json
import logging
import os
from typing import Any, Dict, Optional

from botbuilder.core import CardFactory  # type: ignore
from botbuilder.schema import Attachment  # type: ignore

logger = logging.getLogger(__name__)

DEFAULT_MENU_CARD_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "resources", "menu_card.json")


def read_card_json(path: Optional[str] = None) -> Dict[str, Any]:
    card_path = path or DEFAULT_MENU_CARD_PATH
    with open(card_path, "r", encoding="utf-8") as card_file:
        card = json.load(card_file)
    logger.debug(f"Loaded adaptive card from {card_path}")
    return card


def load_menu_card(path: Optional[str] = None) -> Attachment:
    """Build the welcome menu attachment from the bundled (or configured) card JSON."""
    return CardFactory.adaptive_card(read_card_json(path))
