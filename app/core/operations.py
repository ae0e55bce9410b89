"""
Guarded operations

Every callable endpoint runs through the same pipeline:

    authenticate -> validate -> load target -> authorize -> effect -> audit

An effect is a small function registered with ``@guarded_operation``. The
wrapper owns error translation, so effects raise ``OperationError`` for
expected failures and let anything else bubble up to become ``internal``.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Type

from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from app.core.errors import (
    OperationError,
    internal,
    invalid_argument,
    not_found,
    permission_denied,
    unauthenticated,
)
from app.core.permissions import ANY_AUTHENTICATED, Requirement, resolve_role, role_satisfies
from app.models.user import Role
from app.utils.json_serializer import to_json_safe

logger = logging.getLogger(__name__)


@dataclass
class Caller:
    """Verified identity attached to a request"""
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict)


class OperationContext:
    """
    Everything an operation may touch, passed in explicitly per call.

    ``params`` and ``resource`` are filled in by the wrapper as the
    pipeline advances.
    """

    def __init__(self, db: Session, caller: Optional[Caller], identity, storage, audit):
        self.db = db
        self.caller = caller
        self.identity = identity
        self.storage = storage
        self.audit = audit
        self.params: Any = None
        self.resource: Any = None
        self._role: Optional[Role] = None

    @property
    def role(self) -> Role:
        # Read from the store once per call, never across calls
        if self._role is None:
            self._role = resolve_role(self.db, self.caller.uid)
        return self._role

    def has_role(self, required: Role) -> bool:
        return role_satisfies(self.role, required)


Effect = Callable[[OperationContext], Dict[str, Any]]
Loader = Callable[[OperationContext], Any]
AuditDetails = Callable[[OperationContext, Dict[str, Any]], Dict[str, Any]]


def describe_validation_error(exc: ValidationError) -> str:
    """Human-readable reason for the first failing field"""
    first = exc.errors()[0]
    loc = ".".join(str(part) for part in first.get("loc", ()))
    msg = first.get("msg", "Invalid value")
    return f"{loc}: {msg}" if loc else msg


def _default_failure_message(name: str) -> str:
    words = re.sub(r"(?<!^)(?=[A-Z])", " ", name).lower()
    return f"Failed to {words}"


class GuardedOperation:
    def __init__(
        self,
        name: str,
        effect: Effect,
        schema: Optional[Type[BaseModel]] = None,
        requires: Requirement = ANY_AUTHENTICATED,
        load: Optional[Loader] = None,
        audit_action: Optional[str] = None,
        audit_details: Optional[AuditDetails] = None,
        failure_message: Optional[str] = None,
    ):
        self.name = name
        self.effect = effect
        self.schema = schema
        self.requires = requires
        self.load = load
        self.audit_action = audit_action
        self.audit_details = audit_details
        self.failure_message = failure_message or _default_failure_message(name)

    def __repr__(self) -> str:
        return f"GuardedOperation({self.name!r}, requires={self.requires!r})"

    def validate(self, payload: Any) -> Any:
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise invalid_argument("Payload must be a JSON object")
        if self.schema is None:
            return payload
        try:
            return self.schema.model_validate(payload)
        except ValidationError as exc:
            raise invalid_argument(describe_validation_error(exc))

    def _guarded(self, ctx: OperationContext, step: Callable[[OperationContext], Any]) -> Any:
        try:
            return step(ctx)
        except OperationError:
            ctx.db.rollback()
            raise
        except Exception:
            ctx.db.rollback()
            logger.error("Operation %s failed for %s", self.name, ctx.caller.uid, exc_info=True)
            raise internal(self.failure_message)

    def _record_audit(self, ctx: OperationContext, result: Dict[str, Any]) -> None:
        try:
            details = self.audit_details(ctx, result) if self.audit_details else {}
        except Exception:
            logger.exception("Could not build audit details for %s", self.name)
            details = {}
        ctx.audit.record(ctx.caller.uid, self.audit_action, details)

    def __call__(self, ctx: OperationContext, payload: Any = None) -> Dict[str, Any]:
        if ctx.caller is None:
            raise unauthenticated()

        ctx.params = self.validate(payload)

        if self.load is not None:
            ctx.resource = self._guarded(ctx, self.load)

        if not self._guarded(ctx, self.requires.allows):
            raise permission_denied()

        result = self._guarded(ctx, self.effect)

        if self.audit_action:
            self._record_audit(ctx, result)

        return to_json_safe(result)


OPERATIONS: Dict[str, GuardedOperation] = {}


def guarded_operation(name: str, **options) -> Callable[[Effect], Effect]:
    """
    Register an effect as a named guarded operation

    Usage:
        @guarded_operation(
            "lockUserAccount",
            schema=TargetUserRequest,
            requires=ADMIN_OR_ABOVE,
            audit_action=AuditAction.USER_LOCKED,
        )
        def lock_user_account(ctx):
            ...
    """
    def decorator(effect: Effect) -> Effect:
        if name in OPERATIONS:
            raise ValueError(f"Operation {name!r} is already registered")
        OPERATIONS[name] = GuardedOperation(name, effect, **options)
        return effect
    return decorator


def get_operation(name: str) -> GuardedOperation:
    operation = OPERATIONS.get(name)
    if operation is None:
        raise not_found(f"Unknown operation: {name}")
    return operation


def run_operation(name: str, payload: Any, ctx: OperationContext) -> Dict[str, Any]:
    """Look up an operation by name and execute it"""
    return get_operation(name)(ctx, payload)
