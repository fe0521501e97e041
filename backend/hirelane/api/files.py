from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from ..services.storage import LocalBlobStorage
from ..utils.dependencies import get_storage
from ..utils.validation import sanitize_filename

router = APIRouter(prefix="/files", tags=["Files"])


@router.get("/{bucket}/{job_id}/{filename}")
def download_object(
    bucket: str,
    job_id: str,
    filename: str,
    storage: LocalBlobStorage = Depends(get_storage),
):
    """Public read of a stored resume (the URL handed out at submission)."""
    if bucket != storage.bucket or filename != sanitize_filename(filename):
        raise HTTPException(status_code=404, detail="File not found")
    path = storage.resolve(f"{job_id}/{filename}")
    if path is None:
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(str(path), filename=filename)
