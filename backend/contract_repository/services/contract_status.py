from __future__ import annotations

from typing import Mapping

from contract_repository.core.errors import InvalidStatusTransition
from contract_repository.models.domain import ContractStatus

# Allowed (from -> to) pairs. Anything not listed here is rejected.
TRANSITIONS: Mapping[ContractStatus, frozenset[ContractStatus]] = {
    ContractStatus.DRAFT: frozenset({ContractStatus.ACTIVE}),
    ContractStatus.ACTIVE: frozenset(
        {ContractStatus.SUSPENDED, ContractStatus.TERMINATED, ContractStatus.RENEWED}
    ),
    ContractStatus.SUSPENDED: frozenset({ContractStatus.TERMINATED}),
}

TERMINAL_STATUSES: frozenset[ContractStatus] = frozenset(
    {ContractStatus.TERMINATED, ContractStatus.RENEWED}
)

# EXPIRED is never entered by a transition but blocks edits like a terminal state.
NON_EDITABLE_STATUSES: frozenset[ContractStatus] = frozenset(
    {ContractStatus.TERMINATED, ContractStatus.EXPIRED}
)

NON_DELETABLE_STATUSES: frozenset[ContractStatus] = frozenset({ContractStatus.ACTIVE})


def allowed_targets(from_status: ContractStatus) -> frozenset[ContractStatus]:
    return TRANSITIONS.get(from_status, frozenset())


def can_transition(from_status: ContractStatus, to_status: ContractStatus) -> bool:
    return to_status in allowed_targets(from_status)


def assert_transition(from_status: ContractStatus, to_status: ContractStatus) -> None:
    if not can_transition(from_status, to_status):
        raise InvalidStatusTransition(from_status, to_status)


def is_terminal(status: ContractStatus) -> bool:
    return status in TERMINAL_STATUSES
