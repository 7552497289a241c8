"""Release warranty holds whose window has passed."""

from datetime import datetime, timezone
from typing import List, Optional

from techmarket.application.services.escrow_manager import EscrowManager
from techmarket.application.services.transaction_service import TransactionService
from techmarket.domain.entities.payment_split import PaymentSplit


class ReleaseExpiredHoldsUseCase:
    def __init__(
        self,
        escrow_manager: EscrowManager,
        transaction_service: TransactionService,
        batch_size: int = 100,
    ):
        self.escrow_manager = escrow_manager
        self.transaction_service = transaction_service
        self.batch_size = batch_size

    async def execute(self, now: Optional[datetime] = None) -> List[PaymentSplit]:
        now = now or datetime.now(timezone.utc)
        return await self.transaction_service.execute_in_transaction(
            lambda: self.escrow_manager.release_expired_holds(now, limit=self.batch_size)
        )
