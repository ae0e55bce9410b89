"""
Callable operation endpoint

Every guarded operation is invoked by name with a JSON object payload.
"""
import json

from fastapi import APIRouter, Depends, Request

from app.core.deps import get_operation_context
from app.core.operations import OPERATIONS, OperationContext, run_operation
import app.operations  # noqa: F401  registers the operations

router = APIRouter()


async def _read_payload(request: Request):
    """
    Parse the request body without judging it.

    Shape errors are reported by the operation pipeline, after the caller
    has been authenticated; undecodable JSON is passed on as raw text so
    it fails that check.
    """
    body = await request.body()
    if not body.strip():
        return None
    try:
        return json.loads(body)
    except ValueError:
        return body.decode("utf-8", errors="replace")


@router.get("")
async def list_operations():
    """Names of all callable operations"""
    return {"operations": sorted(OPERATIONS)}


@router.post("/{name}")
async def call_operation(
    name: str,
    request: Request,
    ctx: OperationContext = Depends(get_operation_context),
):
    """
    Run a guarded operation

    Returns the operation's success payload, or an error envelope whose
    ``code`` is one of unauthenticated, invalid-argument, not-found,
    permission-denied or internal.
    """
    payload = await _read_payload(request)
    return run_operation(name, payload, ctx)
