from __future__ import annotations

from fastapi import HTTPException, Request, status


# PUBLIC_INTERFACE
def get_caller_id(request: Request) -> str:
    """
    Return the authenticated caller id for the current request.

    Credentials are verified upstream (gateway / session layer); the verified
    user id arrives in the header named by settings.user_id_header
    (X-User-Id by default) and is trusted as-is.

    Raises:
        HTTPException(401) if the header is missing or blank.
    """
    header_name = request.app.state.settings.user_id_header
    caller_id = (request.headers.get(header_name) or "").strip()
    if not caller_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return caller_id
