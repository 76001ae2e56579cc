"""Call window checks consulted when creating and submitting proposals."""
from datetime import datetime
from typing import Callable, Optional, Protocol

from app.core.errors import ValidationError
from app.models.call import Call, CallStatus
from app.models.proposal import Proposal


class CallRegistry(Protocol):
    """Read-only access to calls for proposals."""

    async def get_call(self, call_id: str) -> Optional[Call]:
        ...


class CallWindowValidator:
    """
    공모 마감/예산 검증기.

    Every failure is a ValidationError whose details carry a machine-readable
    ``reason``.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock

    def check_accepting(self, call: Optional[Call], call_id: str, operation: str = "create") -> Call:
        """Require that the call exists, is published and its deadline has not passed."""
        if call is None:
            raise ValidationError(
                "Call not found",
                operation=operation,
                details={"call_id": call_id, "reason": "call_not_found"},
            )
        if call.status is not CallStatus.PUBLISHED:
            raise ValidationError(
                "Call is not accepting submissions",
                operation=operation,
                details={"call_id": call.id, "reason": "call_not_published", "call_status": call.status.value},
            )
        if self._clock() > call.deadline:
            raise ValidationError(
                "Call deadline has passed",
                operation=operation,
                details={"call_id": call.id, "reason": "deadline_passed", "deadline": call.deadline.isoformat()},
            )
        return call

    def check_budget(self, budget: float, call: Call, operation: str = "create", proposal_id: Optional[str] = None) -> None:
        if not call.budget_min <= budget <= call.budget_max:
            raise ValidationError(
                f"Requested budget must be between {call.budget_min:,.0f} and {call.budget_max:,.0f} {call.currency}",
                operation=operation,
                proposal_id=proposal_id,
                details={
                    "reason": "budget_out_of_range",
                    "budget": budget,
                    "budget_min": call.budget_min,
                    "budget_max": call.budget_max,
                },
            )

    def check_submission(self, proposal: Proposal, call: Optional[Call]) -> None:
        """DRAFT → SUBMITTED precondition."""
        if not proposal.document_ref:
            raise ValidationError(
                "A document must be attached before submission",
                operation="submit",
                proposal_id=proposal.id,
                details={"reason": "document_missing"},
            )
        call = self.check_accepting(call, proposal.call_id, operation="submit")
        self.check_budget(proposal.budget, call, operation="submit", proposal_id=proposal.id)
