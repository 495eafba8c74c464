import mimetypes
import os
from typing import Any
from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from cloudvault.api import deps
from cloudvault.storage.object_store import LocalObjectStore

router = APIRouter()


@router.get("/{token}")
def fetch_object(
    token: str,
    store: LocalObjectStore = Depends(deps.get_store),
) -> Any:
    """
    Serve a presigned link. The token alone authorises the fetch.
    """
    key = store.resolve_presigned(token)
    path = store.open_path(key)
    filename = os.path.basename(key)
    mime_type, _ = mimetypes.guess_type(filename)
    if not mime_type:
        mime_type = "application/octet-stream"
    # URL encode the filename to handle non-ASCII characters
    encoded_filename = quote(filename)
    return FileResponse(
        path,
        media_type=mime_type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{encoded_filename}"},
    )
