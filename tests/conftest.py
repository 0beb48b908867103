"""Shared fixtures for workflow tests."""

import pytest

from ballot.config import reset_settings
from ballot.lib.models import WorkflowEvent
from ballot.workflow import OwnerAuthority, VotingWorkflow
from helpers import ADMIN


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def workflow() -> VotingWorkflow:
    return VotingWorkflow(authority=OwnerAuthority(ADMIN))


@pytest.fixture
def events(workflow: VotingWorkflow) -> list[WorkflowEvent]:
    """Events received by a subscribed listener."""
    received: list[WorkflowEvent] = []
    workflow.subscribe(received.append)
    return received
