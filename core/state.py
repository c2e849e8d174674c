"""
Status state machines for applications and notification records.

Transitions are pure functions: they take the current state and an event
and return the next state plus the side effects the caller must perform.
Nothing here touches the database; the persistence layer applies the
result with a conditional UPDATE guarded on the observed state.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from core.errors import InvalidTransition


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    ANALYZING = "analyzing"
    ANALYZED = "analyzed"
    # Driven by recruiters outside this pipeline
    NEW = "new"
    REVIEWED = "reviewed"
    INTERVIEW = "interview"
    OFFER = "offer"
    HIRED = "hired"
    REJECTED = "rejected"


class AnalysisEvent(str, Enum):
    START = "start"
    SUCCEED = "succeed"
    FAIL = "fail"


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class DeliveryEvent(str, Enum):
    DELIVERED = "delivered"
    DELIVERY_FAILED = "delivery_failed"


class Effect(str, Enum):
    CLAIM_ANALYSIS = "claim_analysis"
    RELEASE_CLAIM = "release_claim"
    NOTIFY_CANDIDATE = "notify_candidate"
    CLEAR_ERROR = "clear_error"
    RECORD_ERROR = "record_error"


@dataclass(frozen=True)
class Transition:
    state: Enum
    effects: Tuple[Effect, ...] = ()


def transition_application(state: ApplicationStatus, event: AnalysisEvent) -> Transition:
    """Apply an analysis event to an application status.

    START is accepted from every state except ANALYZING, so re-analysis of an
    analyzed or recruiter-progressed application goes back through ANALYZING.
    SUCCEED and FAIL are only meaningful while ANALYZING.
    """
    state = ApplicationStatus(state)
    event = AnalysisEvent(event)

    if event is AnalysisEvent.START:
        if state is ApplicationStatus.ANALYZING:
            raise InvalidTransition(state, event)
        return Transition(ApplicationStatus.ANALYZING, (Effect.CLAIM_ANALYSIS,))

    if state is not ApplicationStatus.ANALYZING:
        raise InvalidTransition(state, event)

    if event is AnalysisEvent.SUCCEED:
        return Transition(ApplicationStatus.ANALYZED, (Effect.RELEASE_CLAIM, Effect.NOTIFY_CANDIDATE))
    return Transition(ApplicationStatus.PENDING, (Effect.RELEASE_CLAIM,))


def transition_notification(state: NotificationStatus, event: DeliveryEvent) -> Transition:
    """Apply a delivery outcome to a notification record. SENT is terminal."""
    state = NotificationStatus(state)
    event = DeliveryEvent(event)

    if state is NotificationStatus.SENT:
        raise InvalidTransition(state, event)

    if event is DeliveryEvent.DELIVERED:
        return Transition(NotificationStatus.SENT, (Effect.CLEAR_ERROR,))
    return Transition(NotificationStatus.FAILED, (Effect.RECORD_ERROR,))
