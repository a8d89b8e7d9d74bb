"""Seller and driver payout bank accounts"""

from dataclasses import replace
from typing import Any, Dict, List

from ..marketplace_backend_client import MarketplaceBackendClient, unwrap_data
from ..models.profile import BankAccount, BankAccountType
from ..models.result import Err, Ok, Result
from ..protocol.errors import ErrorHandler, MarketplaceError, ValidationError
from ..utils.logger import get_logger
from ..utils.notifier import ToastNotifier

logger = get_logger(__name__)

REQUIRED_FIELDS = ("accountHolderName", "bankName", "accountNumber", "routingNumber")


class BankAccountService:

    def __init__(self, backend: MarketplaceBackendClient, notifier: ToastNotifier):
        self.backend = backend
        self.notifier = notifier
        self.accounts: List[BankAccount] = []

    def _error(self, e: Exception, fallback: str) -> Err:
        message = ErrorHandler.user_message(e, fallback)
        self.notifier.error(message)
        return Err(message, e)

    async def list_accounts(self) -> Result:
        try:
            response = await self.backend.get_bank_accounts()
        except MarketplaceError as e:
            return Err(ErrorHandler.user_message(e, "Failed to load bank accounts"), e)
        self.accounts = [BankAccount.from_dict(entry) for entry in unwrap_data(response, [])]
        return Ok(self.accounts)

    async def get_account(self, account_id: str) -> Result:
        try:
            response = await self.backend.get_bank_account(account_id)
        except MarketplaceError as e:
            return Err(ErrorHandler.user_message(e, "Failed to load bank account"), e)
        return Ok(BankAccount.from_dict(unwrap_data(response, {})))

    async def create_account(self, details: Dict[str, Any]) -> Result:
        """
        Add a bank account

        Args:
            details: camelCase fields (accountHolderName, bankName,
                accountNumber, routingNumber, swiftCode, accountType, isDefault)
        """
        missing = [name for name in REQUIRED_FIELDS if not str(details.get(name) or "").strip()]
        if missing:
            return self._error(ValidationError(f"Missing bank account fields: {', '.join(missing)}"),
                               "Failed to add bank account")

        payload = dict(details)
        payload["accountType"] = BankAccountType(payload.get("accountType", "checking")).value
        try:
            response = await self.backend.create_bank_account(payload)
        except MarketplaceError as e:
            return self._error(e, "Failed to add bank account")

        account = BankAccount.from_dict(unwrap_data(response, {}))
        self.accounts.append(account)
        self.notifier.success(response.get("message") or "Bank account added successfully")
        return Ok(account)

    async def set_default(self, account_id: str) -> Result:
        """Optimistic default switch with rollback"""
        snapshot = [replace(account) for account in self.accounts]
        self.accounts = [replace(account, is_default=account.id == account_id) for account in self.accounts]

        try:
            response = await self.backend.set_default_bank_account(account_id)
        except MarketplaceError as e:
            self.accounts = snapshot
            logger.warning(f"[BankAccounts] Default switch to {account_id} rolled back: {e}")
            return self._error(e, "Failed to set default bank account")

        self.notifier.success(response.get("message") or "Default bank account updated")
        return Ok(account_id)

    async def delete_account(self, account_id: str) -> Result:
        try:
            response = await self.backend.delete_bank_account(account_id)
        except MarketplaceError as e:
            return self._error(e, "Failed to delete bank account")
        self.accounts = [account for account in self.accounts if account.id != account_id]
        self.notifier.success(response.get("message") or "Bank account deleted successfully")
        return Ok(account_id)
