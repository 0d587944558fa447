from dataclasses import dataclass, field
from typing import Any, Optional

BID_ACCEPTED = 'bid-accepted'
BID_REJECTED = 'bid-rejected'
BID_RECEIVED = 'bid-received'
JOB_ASSIGNED = 'job-assigned'
JOB_CANCELLED = 'job-cancelled'
NEW_MESSAGE = 'new-message'
REVIEW_RECEIVED = 'review-received'


@dataclass(frozen=True)
class LifecycleEvent:
    """One outbound event for the notification dispatcher."""
    type: str
    job_id: int
    recipient_id: int
    bid_id: Optional[int] = None
    payload: dict[str, Any] = field(default_factory=dict)

    def as_dict(self):
        return {
            'type': self.type,
            'jobId': self.job_id,
            'bidId': self.bid_id,
            'recipientId': self.recipient_id,
            'payload': self.payload,
        }
