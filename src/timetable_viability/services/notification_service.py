import httpx # Using httpx for async requests
from uuid import UUID

from ..common.config import settings
from ..common.logger import log
from ..database.db_enums import RISK_TYPE_ATTENDANCE_VIABILITY
from ..models.feasibility import ViabilityRiskDecision


class RiskNotifier:
    """
    Pushes newly created viability risks to the external notification sink
    (email / counsellor alerting lives behind the webhook).
    Delivery is best-effort: failures are logged and never fail an analysis.
    """
    def __init__(
        self,
        webhook_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None
    ):
        self.webhook_url = webhook_url if webhook_url is not None else settings.RISK_WEBHOOK_URL
        self.timeout = timeout if timeout is not None else settings.RISK_WEBHOOK_TIMEOUT_SECONDS
        self.transport = transport

    async def notify_new_risk(self, student_id: UUID, decision: ViabilityRiskDecision) -> bool:
        """Returns True when the sink acknowledged the notification."""
        if not self.webhook_url:
            log.info(f"No risk webhook configured; new risk for student {student_id} recorded without notification.")
            return False

        payload = {
            "risk_type": RISK_TYPE_ATTENDANCE_VIABILITY,
            "student_id": str(student_id),
            **decision.model_dump(mode="json"),
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.webhook_url, json=payload)
                response.raise_for_status() # Raise an exception for HTTP errors (4xx or 5xx)
            log.info(f"Risk notification delivered for student {student_id}.")
            return True
        except httpx.HTTPStatusError as e:
            log.warning(f"Risk webhook returned an error for student {student_id}: {e.response.status_code} - {e.response.text}")
        except httpx.RequestError as e:
            log.warning(f"Risk webhook request failed for student {student_id}: {e}")
        return False
