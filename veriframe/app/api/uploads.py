from pathlib import Path

from fastapi import HTTPException, UploadFile

from veriframe.domain.settings import MAX_UPLOAD_MB

MAX_UPLOAD_BYTES = MAX_UPLOAD_MB * 1024 * 1024 if MAX_UPLOAD_MB else 0
CHUNK_SIZE = 1024 * 1024  # 1 MB per read, keeps memory use low for large files


def _too_large() -> HTTPException:
    return HTTPException(
        status_code=413,
        detail=f"File too large. Maximum size is {MAX_UPLOAD_BYTES // (1024 * 1024)} MB "
        "(set MAX_UPLOAD_MB to allow more).",
    )


async def save_upload(file: UploadFile, destination: Path) -> int:
    """
    Stream an upload to `destination` in chunks, enforcing MAX_UPLOAD_MB.

    Raises HTTPException (400 empty, 413 too large, 507 disk full, 500 other
    I/O errors); on any failure the partial file is removed.
    """
    size = getattr(file, "size", None)
    if MAX_UPLOAD_BYTES and size is not None and size > MAX_UPLOAD_BYTES:
        raise _too_large()

    try:
        total = 0
        with destination.open("wb") as f:
            while True:
                chunk = await file.read(CHUNK_SIZE)
                if not chunk:
                    break
                total += len(chunk)
                if MAX_UPLOAD_BYTES and total > MAX_UPLOAD_BYTES:
                    raise _too_large()
                f.write(chunk)

        if total == 0:
            raise HTTPException(status_code=400, detail="Uploaded file is empty")
    except HTTPException:
        destination.unlink(missing_ok=True)
        raise
    except OSError as e:
        destination.unlink(missing_ok=True)
        if e.errno == 28:  # ENOSPC
            raise HTTPException(
                status_code=507,
                detail="Server ran out of disk space. Free space on the instance or use a smaller file.",
            ) from e
        raise HTTPException(
            status_code=500,
            detail=f"Failed to save file: {e!s}. Check disk space and permissions.",
        ) from e

    return total
