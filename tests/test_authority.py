"""Administrator authority tests."""

import pytest

from ballot.lib.exceptions import UnauthorizedError
from ballot.lib.models import WorkflowPhase
from ballot.workflow import OwnerAuthority
from helpers import ADMIN, BOB, open_proposals


def test_owner_is_administrator():
    authority = OwnerAuthority(ADMIN)

    assert authority.is_administrator(ADMIN)
    assert not authority.is_administrator(BOB)


def test_empty_owner_rejected():
    with pytest.raises(ValueError):
        OwnerAuthority("")


def test_transfer_requires_current_owner():
    authority = OwnerAuthority(ADMIN)

    with pytest.raises(UnauthorizedError):
        authority.transfer_ownership(BOB, BOB)

    assert authority.owner == ADMIN


def test_transferred_owner_drives_workflow(workflow):
    workflow.authority.transfer_ownership(ADMIN, BOB)

    with pytest.raises(UnauthorizedError):
        workflow.start_proposals_registration(ADMIN)
    workflow.start_proposals_registration(BOB)

    assert workflow.workflow_phase == WorkflowPhase.PROPOSALS_REGISTRATION_STARTED


def test_administrator_survives_reset(workflow):
    open_proposals(workflow, BOB)
    workflow.stop_proposals_registration(ADMIN)
    workflow.reset_session(ADMIN)

    workflow.register_voter(ADMIN, BOB)

    assert workflow.authority.owner == ADMIN
