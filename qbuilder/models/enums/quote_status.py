# qbuilder/models/enums/quote_status.py
import enum


class QuoteStatus(str, enum.Enum):
    draft = "draft"
    sent = "sent"
    accepted = "accepted"
    rejected = "rejected"
    expired = "expired"


# accepted is terminal
QUOTE_STATUS_TRANSITIONS: dict[QuoteStatus, frozenset[QuoteStatus]] = {
    QuoteStatus.draft: frozenset({QuoteStatus.sent, QuoteStatus.accepted, QuoteStatus.rejected}),
    QuoteStatus.sent: frozenset({QuoteStatus.accepted, QuoteStatus.rejected, QuoteStatus.expired, QuoteStatus.draft}),
    QuoteStatus.rejected: frozenset({QuoteStatus.draft}),
    QuoteStatus.expired: frozenset({QuoteStatus.draft, QuoteStatus.sent}),
    QuoteStatus.accepted: frozenset(),
}


def can_transition(current: QuoteStatus, target: QuoteStatus) -> bool:
    return target in QUOTE_STATUS_TRANSITIONS[current]
