"""GetPayment Use Case"""

from libs.result import Result, Return, Error
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.errors import BillingError, NotFoundError
from .dtos import PaymentDTO


class GetPayment:
    """Use Case: Get a single payment ledger entry"""

    def __init__(self, payment_repo: PaymentRepository):
        self.payment_repo = payment_repo

    async def execute(self, payment_id: int) -> Result[PaymentDTO]:
        try:
            payment = await self.payment_repo.get_by_id(payment_id)
            if not payment:
                raise NotFoundError("Payment", payment_id)

            return Return.ok(PaymentDTO.from_entity(payment))

        except BillingError as e:
            return Return.err(e.to_error())

        except Exception as e:
            return Return.err(
                Error(
                    code="GET_PAYMENT_FAILED",
                    message="Failed to retrieve payment",
                    reason=str(e),
                )
            )
