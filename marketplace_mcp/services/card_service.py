"""
Saved payment cards

Card numbers are Luhn-checked before anything is sent. Switching the
default card is applied locally first and rolled back if the backend
refuses it.
"""

from dataclasses import replace
from typing import Any, Dict, List, Optional

from ..marketplace_backend_client import MarketplaceBackendClient, unwrap_data
from ..models.profile import Card, detect_card_brand, validate_card_number
from ..models.result import Err, Ok, Result
from ..protocol.errors import ErrorHandler, MarketplaceError, ValidationError
from ..utils.logger import get_logger
from ..utils.notifier import ToastNotifier

logger = get_logger(__name__)


class CardService:
    """List and manage the signed-in user's saved cards"""

    def __init__(self, backend: MarketplaceBackendClient, notifier: ToastNotifier):
        self.backend = backend
        self.notifier = notifier
        self.cards: List[Card] = []

    def _error(self, e: Exception, fallback: str) -> Err:
        message = ErrorHandler.user_message(e, fallback)
        self.notifier.error(message)
        return Err(message, e)

    @property
    def default_card(self) -> Optional[Card]:
        return next((card for card in self.cards if card.is_default), None)

    async def list_cards(self) -> Result:
        try:
            response = await self.backend.get_cards()
        except MarketplaceError as e:
            return Err(ErrorHandler.user_message(e, "Failed to load cards"), e)
        self.cards = [Card.from_dict(entry) for entry in unwrap_data(response, [])]
        return Ok(self.cards)

    async def create_card(self, card_number: str, expiry_month: int, expiry_year: int, cvv: str,
                          cardholder_name: str, is_default: bool = False) -> Result:
        """Add a card from raw details (number is validated locally first)"""
        number = "".join(card_number.split())
        if not validate_card_number(number):
            return self._error(ValidationError("Invalid card number"), "Failed to add card")

        payload: Dict[str, Any] = {
            "cardNumber": number,
            "expiryMonth": expiry_month,
            "expiryYear": expiry_year,
            "cvv": cvv,
            "cardholderName": cardholder_name,
            "isDefault": is_default,
        }
        try:
            response = await self.backend.create_card(payload)
        except MarketplaceError as e:
            return self._error(e, "Failed to add card")

        card = Card.from_dict(unwrap_data(response, {}))
        if not card.brand:
            card.brand = detect_card_brand(number)
        if card.is_default:
            self.cards = [replace(c, is_default=False) for c in self.cards]
        self.cards.append(card)
        self.notifier.success("Card added successfully")
        logger.info(f"[Cards] Added {card.display_name}")
        return Ok(card)

    async def update_card(self, card_id: str, cardholder_name: Optional[str] = None,
                          is_default: Optional[bool] = None) -> Result:
        payload: Dict[str, Any] = {}
        if cardholder_name is not None:
            payload["cardholderName"] = cardholder_name
        if is_default is not None:
            payload["isDefault"] = is_default

        try:
            response = await self.backend.update_card(card_id, payload)
        except MarketplaceError as e:
            return self._error(e, "Failed to update card")

        updated = Card.from_dict(unwrap_data(response, {}) or {"id": card_id})
        self.cards = [updated if card.id == card_id and updated.id else card for card in self.cards]
        self.notifier.success("Card updated successfully")
        return Ok(updated)

    async def set_default(self, card_id: str) -> Result:
        """Optimistically mark ``card_id`` as the only default card"""
        snapshot = [replace(card) for card in self.cards]
        self.cards = [replace(card, is_default=card.id == card_id) for card in self.cards]

        try:
            await self.backend.set_default_card(card_id)
        except MarketplaceError as e:
            self.cards = snapshot
            logger.warning(f"[Cards] Default switch to {card_id} rolled back: {e}")
            return self._error(e, "Failed to update default card")

        self.notifier.success("Default card updated successfully")
        return Ok(self.default_card)

    async def delete_card(self, card_id: str) -> Result:
        try:
            await self.backend.delete_card(card_id)
        except MarketplaceError as e:
            return self._error(e, "Failed to remove card")
        self.cards = [card for card in self.cards if card.id != card_id]
        self.notifier.success("Card removed successfully")
        return Ok(card_id)
