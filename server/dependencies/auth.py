import secrets

from fastapi import Header, HTTPException, Request


async def verify_api_key(request: Request, x_api_key: str | None = Header(default=None)) -> None:
    """Check the X-Api-Key header of a browser shim request.

    Raises:
        HTTPException: 401 if the header is missing or does not match API_SERVER_API_KEY.
    """
    expected_key = request.app.state.helper_config.get_string_val("API_SERVER_API_KEY")
    if not x_api_key or not secrets.compare_digest(x_api_key, expected_key):
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
