"""
ARBOLEDA ADMIN - Guarded Execution

Check-then-act-then-log wrapper tying permission checks, the business
action and the audit trail together.

Each invocation moves through:
    CHECKING -> DENIED                (terminal, PermissionDenied raised)
    CHECKING -> EXECUTING -> SUCCEEDED (terminal, result returned)
    CHECKING -> EXECUTING -> FAILED    (terminal, original error re-raised)
"""

import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from arboleda_admin.api.access.audit import ANONYMOUS_ACTOR, UNKNOWN_RESOURCE, AuditLogWriter
from arboleda_admin.api.access.rbac import PermissionResolver
from arboleda_admin.api.access.roles import PermissionLike, as_token
from arboleda_admin.api.users.schemas import AdminUser
from arboleda_admin.exceptions import PermissionDenied

logger = logging.getLogger(__name__)

Action = Callable[[], Union[Any, Awaitable[Any]]]


class ExecutionState(str, Enum):
    """State of one guarded invocation."""

    CHECKING = "checking"
    DENIED = "denied"
    EXECUTING = "executing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class AuditContext:
    """What the guarded action touches, for the audit record."""

    resource: str = UNKNOWN_RESOURCE
    verb: str = "modificar"
    resource_id: str = ""
    changes: Dict[str, Any] = field(default_factory=dict)


class GuardedExecutor:
    """Runs actions only for callers holding the required permission."""

    def __init__(self, resolver: PermissionResolver, audit: AuditLogWriter):
        self.resolver = resolver
        self.audit = audit

    async def execute(
        self,
        user: Optional[AdminUser],
        permission: PermissionLike,
        action: Action,
        context: Optional[AuditContext] = None,
    ) -> Any:
        """
        Check permission, run ``action`` at most once, and audit the outcome.

        Args:
            user: Caller's admin record, or None for an unknown caller
            permission: Permission required to run the action
            action: Zero-argument callable, sync or async
            context: Resource description for the audit record

        Returns:
            The action's result

        Raises:
            PermissionDenied: If the caller lacks ``permission``
            Exception: Whatever the action raised, unchanged
        """
        context = context or AuditContext()
        permission = as_token(permission)
        actor = user.actor if user else ANONYMOUS_ACTOR

        self._transition(actor, permission, ExecutionState.CHECKING)
        if not self.resolver.has_permission(user, permission):
            await self.audit.record_denial(actor, permission, context.resource)
            self._transition(actor, permission, ExecutionState.DENIED)
            raise PermissionDenied(permission, actor=actor)

        self._transition(actor, permission, ExecutionState.EXECUTING)
        try:
            result = action()
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            await self.audit.record_error(actor, context.resource, str(e), context.resource_id or None)
            self._transition(actor, permission, ExecutionState.FAILED)
            raise

        await self.audit.record_success(
            actor,
            context.verb,
            context.resource,
            context.resource_id,
            context.changes,
        )
        self._transition(actor, permission, ExecutionState.SUCCEEDED)
        return result

    @staticmethod
    def _transition(actor: str, permission: str, state: ExecutionState) -> None:
        logger.debug(f"Guarded {permission} for {actor}: {state.value}")
