"""
Stored file download endpoint

Files are served under the same rules as the operations that produced
them: exports need an admin, incident reports need access to the incident.
"""
import re

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from app.core.deps import get_operation_context
from app.core.errors import not_found, permission_denied, unauthenticated
from app.core.operations import OperationContext
from app.core.permissions import ADMIN_OR_ABOVE
from app.operations.incidents import CAN_ACCESS_INCIDENT, require_visible
from app.services.incident_service import get_incident_or_404
from app.storage.local_provider import LocalStorageProvider
from app.storage.provider import normalize_key

router = APIRouter()

EXPORTS_PREFIX = "exports/"
REPORT_KEY = re.compile(r"^reports/incident_(?P<incident_id>[^/]+)_\d+\.pdf$")


def authorize_download(ctx: OperationContext, key: str) -> None:
    """
    Raise unless the caller may read the file stored under key

    Keys that belong to no known family are reported as missing.
    """
    if ctx.caller is None:
        raise unauthenticated()

    if key.startswith(EXPORTS_PREFIX):
        if not ADMIN_OR_ABOVE.allows(ctx):
            raise permission_denied()
        return

    match = REPORT_KEY.match(key)
    if match is None:
        raise not_found("File not found")

    ctx.resource = get_incident_or_404(ctx.db, match.group("incident_id"))
    if not CAN_ACCESS_INCIDENT.allows(ctx):
        raise permission_denied()
    require_visible(ctx)


@router.get("/{key:path}")
async def download_file(
    key: str,
    ctx: OperationContext = Depends(get_operation_context),
):
    """Download a generated report or export"""
    try:
        key = normalize_key(key)
    except ValueError:
        raise not_found("File not found")

    authorize_download(ctx, key)

    if not ctx.storage.exists(key):
        raise not_found("File not found")
    filename = key.rsplit("/", 1)[-1]
    return Response(
        content=ctx.storage.open(key),
        media_type=LocalStorageProvider.guess_content_type(key),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
