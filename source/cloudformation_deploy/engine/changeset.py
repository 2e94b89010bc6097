# ABOUTME: Creates new stacks or applies change sets to existing ones
# ABOUTME: Drives each operation through an explicit state machine until it settles

"""Change set planning and execution."""

import logging
import uuid
from enum import Enum

from ..audit import AuditLog
from ..capabilities import StackAPI
from ..errors import RemoteFatalError
from ..models import ChangeSetResult, StackDescription
from .poller import PollExhausted, Poller, Verdict

logger = logging.getLogger(__name__)

NO_CHANGES_REASONS = (
    "The submitted information didn't contain changes",
    "No updates are to be performed",
)

CHANGE_SET_TERMINAL_STATUSES = {"CREATE_COMPLETE", "FAILED", "DELETE_COMPLETE", "DELETE_FAILED"}

ROLLBACK_STATUSES = {
    "ROLLBACK_COMPLETE",
    "ROLLBACK_FAILED",
    "UPDATE_ROLLBACK_COMPLETE",
    "UPDATE_ROLLBACK_FAILED",
}


class PlannerState(Enum):
    NEW = "new"
    CHANGESET_REQUESTED = "changeset_requested"
    CHANGESET_READY = "changeset_ready"
    NO_CHANGES = "no_changes"
    CHANGES_PENDING = "changes_pending"
    EXECUTING = "executing"
    SETTLED = "settled"
    ROLLED_BACK = "rolled_back"


def classify_change_set(result: ChangeSetResult) -> Verdict:
    if result.status in CHANGE_SET_TERMINAL_STATUSES:
        return Verdict.TERMINAL
    return Verdict.PENDING


def classify_stack(description: StackDescription | None) -> Verdict:
    if description is None:
        return Verdict.AMBIGUOUS
    if description.status.endswith("_IN_PROGRESS"):
        return Verdict.PENDING
    return Verdict.TERMINAL


def is_no_changes(reason: str | None) -> bool:
    return bool(reason) and any(reason.startswith(item) for item in NO_CHANGES_REASONS)


class ChangeSetPlanner:
    """Applies a template and parameters to one stack."""

    def __init__(self, stacks: StackAPI, poller: Poller, audit: AuditLog, capabilities: list[str] | None = None):
        self.stacks = stacks
        self.poller = poller
        self.audit = audit
        self.capabilities = capabilities or []
        self.state = PlannerState.NEW
        self.history = [PlannerState.NEW]
        self.change_set: ChangeSetResult | None = None

    def _enter(self, state: PlannerState) -> None:
        logger.debug(f"Change set planner: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def exists(self, name: str) -> bool:
        """Whether the stack exists, allowing a few ambiguous answers before concluding it does not."""
        try:
            self.poller.poll(
                lambda: self.stacks.describe(name),
                lambda description: Verdict.AMBIGUOUS if description is None else Verdict.TERMINAL,
            )
        except PollExhausted:
            return False
        return True

    def describe(self, name: str) -> StackDescription:
        """Describe a stack that is known to exist."""
        try:
            return self.poller.poll(lambda: self.stacks.describe(name), classify_stack)
        except PollExhausted as e:
            raise RemoteFatalError(f"Stack {name} could not be described") from e

    def wait_for_stack(self, name: str) -> StackDescription:
        """Poll until the stack leaves every in-progress status."""
        try:
            description = self.poller.poll(lambda: self.stacks.describe(name), classify_stack)
        except PollExhausted as e:
            raise RemoteFatalError(f"Stack {name} disappeared while waiting for it to settle") from e
        logger.info(f"Stack {name} settled in status {description.status}")
        return description

    def create(self, name: str, template_url: str, parameters: list[dict[str, str]]) -> StackDescription:
        """Create a stack that does not exist yet.

        Raises:
            RemoteFatalError: If the stack lands in any status but CREATE_COMPLETE.
        """
        stack_id = self.poller.call(lambda: self.stacks.create(name, template_url, parameters, self.capabilities))
        self.audit.write(f"Created {name} with id: {stack_id}.")
        self._enter(PlannerState.EXECUTING)

        description = self.wait_for_stack(name)
        if description.status != "CREATE_COMPLETE":
            self._enter(PlannerState.ROLLED_BACK)
            reason = f": {description.status_reason}" if description.status_reason else ""
            raise RemoteFatalError(f"Stack {name} creation ended in {description.status}{reason}")

        self._enter(PlannerState.SETTLED)
        self.audit.write("Stack Finished.")
        return description

    def update(self, name: str, template_url: str, parameters: list[dict[str, str]]) -> PlannerState:
        """Diff an existing stack against the new template and apply any changes.

        Returns:
            ``NO_CHANGES`` or ``SETTLED``.

        Raises:
            RemoteFatalError: If the change set fails for a reason other than
                having no changes, or the stack rolls back.
        """
        change_set_name = f"N-{uuid.uuid4()}"
        self.poller.call(
            lambda: self.stacks.create_change_set(name, change_set_name, template_url, parameters, self.capabilities)
        )
        self._enter(PlannerState.CHANGESET_REQUESTED)

        result = self.poller.poll(lambda: self.stacks.describe_change_set(name, change_set_name), classify_change_set)
        self.change_set = result
        self._enter(PlannerState.CHANGESET_READY)

        if result.status == "FAILED" and not is_no_changes(result.reason):
            raise RemoteFatalError(f"ChangeSet Error: {result.reason}")
        if result.status not in ("FAILED", "CREATE_COMPLETE"):
            raise RemoteFatalError(f"ChangeSet Error: change set ended in {result.status}")

        if result.status == "FAILED" or not result.changes:
            self._enter(PlannerState.NO_CHANGES)
            self.poller.call(lambda: self.stacks.delete_change_set(name, change_set_name))
            self.audit.write("No changes to the Stack required.")
            return self.state

        self._enter(PlannerState.CHANGES_PENDING)
        self.poller.call(lambda: self.stacks.execute_change_set(name, change_set_name))
        self._enter(PlannerState.EXECUTING)

        description = self.wait_for_stack(name)
        if description.status in ROLLBACK_STATUSES:
            self._enter(PlannerState.ROLLED_BACK)
            raise RemoteFatalError(f"Stack {name} update rolled back ({description.status})")

        self._enter(PlannerState.SETTLED)
        self.audit.write(f"Updated {name} with id: {result.stack_id or description.stack_id}.")
        self.audit.write("Stack Finished.")
        return self.state
