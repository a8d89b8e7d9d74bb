"""Seller CMS pages (terms and conditions, privacy policy, about us)"""

from typing import Optional

from ..marketplace_backend_client import MarketplaceBackendClient, unwrap_data
from ..models.profile import CmsContent, ContentType
from ..models.result import Err, Ok, Result
from ..protocol.errors import ErrorHandler, MarketplaceError
from ..utils.logger import get_logger
from ..utils.notifier import ToastNotifier

logger = get_logger(__name__)


class CmsService:

    def __init__(self, backend: MarketplaceBackendClient, notifier: ToastNotifier):
        self.backend = backend
        self.notifier = notifier

    def _error(self, e: Exception, fallback: str) -> Err:
        message = ErrorHandler.user_message(e, fallback)
        self.notifier.error(message)
        return Err(message, e)

    async def save_content(self, content: CmsContent) -> Result:
        """Create or replace the seller's page of ``content.type``"""
        payload = {
            "type": content.type.value,
            "title": content.title,
            "content": content.content,
            "isActive": content.is_active,
        }
        try:
            response = await self.backend.save_cms_content(payload)
        except MarketplaceError as e:
            return self._error(e, "Failed to save content")
        self.notifier.success(response.get("message") or "Content saved successfully")
        return Ok(CmsContent.from_dict(unwrap_data(response) or payload))

    async def list_content(self) -> Result:
        try:
            response = await self.backend.get_all_cms_content()
        except MarketplaceError as e:
            return Err(ErrorHandler.user_message(e, "Failed to load content"), e)
        return Ok([CmsContent.from_dict(entry) for entry in unwrap_data(response, [])])

    async def get_content(self, content_type: ContentType) -> Result:
        content_type = ContentType(content_type)
        try:
            response = await self.backend.get_cms_content(content_type.value)
        except MarketplaceError as e:
            return Err(ErrorHandler.user_message(e, "Failed to load content"), e)
        data = unwrap_data(response)
        return Ok(CmsContent.from_dict(data) if data else None)

    async def update_content(self, content_type: ContentType, title: Optional[str] = None,
                             content: Optional[str] = None, is_active: Optional[bool] = None) -> Result:
        content_type = ContentType(content_type)
        payload = {key: value for key, value in
                   (("title", title), ("content", content), ("isActive", is_active)) if value is not None}
        try:
            response = await self.backend.update_cms_content(content_type.value, payload)
        except MarketplaceError as e:
            return self._error(e, "Failed to update content")
        self.notifier.success(response.get("message") or "Content updated successfully")
        data = unwrap_data(response)
        return Ok(CmsContent.from_dict(data) if data else None)

    async def delete_content(self, content_type: ContentType) -> Result:
        content_type = ContentType(content_type)
        try:
            response = await self.backend.delete_cms_content(content_type.value)
        except MarketplaceError as e:
            return self._error(e, "Failed to delete content")
        self.notifier.success(response.get("message") or "Content deleted successfully")
        return Ok(content_type.value)

    async def get_public_content(self, seller_id: str, content_type: Optional[ContentType] = None) -> Result:
        """Published pages of a seller, readable without signing in"""
        type_value = ContentType(content_type).value if content_type else None
        try:
            response = await self.backend.get_public_cms_content(seller_id, type_value)
        except MarketplaceError as e:
            return Err(ErrorHandler.user_message(e, "Failed to load content"), e)

        data = unwrap_data(response)
        if isinstance(data, list):
            return Ok([CmsContent.from_dict(entry) for entry in data])
        return Ok(CmsContent.from_dict(data) if data else None)
