"""Saved delivery and shipping addresses"""

from dataclasses import replace
from typing import Any, Dict, List, Optional

from ..marketplace_backend_client import MarketplaceBackendClient, unwrap_data
from ..models.checkout import DeliveryAddress
from ..models.result import Err, Ok, Result
from ..protocol.errors import ErrorHandler, MarketplaceError
from ..utils.logger import get_logger
from ..utils.notifier import ToastNotifier

logger = get_logger(__name__)


class AddressService:

    def __init__(self, backend: MarketplaceBackendClient, notifier: ToastNotifier):
        self.backend = backend
        self.notifier = notifier
        self.addresses: List[DeliveryAddress] = []

    def _error(self, e: Exception, fallback: str) -> Err:
        message = ErrorHandler.user_message(e, fallback)
        self.notifier.error(message)
        return Err(message, e)

    @property
    def default_address(self) -> Optional[DeliveryAddress]:
        return next((address for address in self.addresses if address.is_default), None)

    async def list_addresses(self) -> Result:
        try:
            response = await self.backend.get_addresses()
        except MarketplaceError as e:
            return Err(ErrorHandler.user_message(e, "Failed to load saved addresses"), e)
        self.addresses = [DeliveryAddress.from_dict(entry) for entry in unwrap_data(response, [])]
        return Ok(self.addresses)

    async def create_address(self, address: DeliveryAddress) -> Result:
        payload: Dict[str, Any] = address.to_request_dict()
        payload["isDefault"] = address.is_default
        try:
            response = await self.backend.create_address(payload)
        except MarketplaceError as e:
            return self._error(e, "Failed to add saved address")

        created = DeliveryAddress.from_dict(unwrap_data(response, {}))
        if created.is_default:
            self.addresses = [replace(a, is_default=False) for a in self.addresses]
        self.addresses.append(created)
        self.notifier.success(response.get("message") or "Saved address added successfully")
        return Ok(created)

    async def update_address(self, address_id: str, address: DeliveryAddress) -> Result:
        try:
            response = await self.backend.update_address(address_id, address.to_request_dict())
        except MarketplaceError as e:
            return self._error(e, "Failed to update saved address")

        updated = DeliveryAddress.from_dict(unwrap_data(response, {}) or {"id": address_id})
        self.addresses = [updated if a.id == address_id else a for a in self.addresses]
        self.notifier.success(response.get("message") or "Saved address updated successfully")
        return Ok(updated)

    async def set_default(self, address_id: str) -> Result:
        try:
            response = await self.backend.set_default_address(address_id)
        except MarketplaceError as e:
            return self._error(e, "Failed to update default saved address")
        self.addresses = [replace(a, is_default=a.id == address_id) for a in self.addresses]
        self.notifier.success(response.get("message") or "Default saved address updated")
        return Ok(self.default_address)

    async def delete_address(self, address_id: str) -> Result:
        try:
            response = await self.backend.delete_address(address_id)
        except MarketplaceError as e:
            return self._error(e, "Failed to delete saved address")
        self.addresses = [a for a in self.addresses if a.id != address_id]
        self.notifier.success(response.get("message") or "Saved address deleted successfully")
        return Ok(address_id)
