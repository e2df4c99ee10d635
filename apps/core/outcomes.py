"""
Business-rule outcomes shared by the workflow and ledger services.

A service returns ``Result(outcome, payload)``. ``Outcome.OK`` carries the
created or updated object as payload; every other member is a rejection
whose label is the human-readable message sent to clients.
"""
from dataclasses import dataclass
from typing import Any, Optional

from django.db import models


class Outcome(models.TextChoices):
    OK = 'ok', 'success'
    ALREADY_REQUESTED = 'already_requested', 'already requested'
    ALREADY_MEMBER = 'already_member', 'already a member'
    FORBIDDEN = 'forbidden', 'forbidden'
    NOT_FOUND = 'not_found', 'not found'
    UNAVAILABLE = 'unavailable', 'apartment unavailable'
    NOT_PENDING = 'not_pending', 'request already decided'
    NOT_ACCEPTED = 'not_accepted', 'request not accepted'
    NO_ALLOCATION = 'no_allocation', 'no apartment allocated'
    AMOUNT_MISMATCH = 'amount_mismatch', 'amount does not match the authorized charge'
    UNCONFIRMED = 'unconfirmed', 'payment not confirmed by the processor'


# HTTP status for outcomes that are not plain 200 responses
OUTCOME_STATUS_CODES = {
    Outcome.FORBIDDEN: 403,
    Outcome.NOT_FOUND: 404,
}


@dataclass(frozen=True)
class Result:
    outcome: Outcome
    payload: Optional[Any] = None

    @property
    def ok(self) -> bool:
        return self.outcome == Outcome.OK

    @property
    def message(self) -> str:
        return self.outcome.label

    @property
    def status_code(self) -> int:
        return OUTCOME_STATUS_CODES.get(self.outcome, 200)
