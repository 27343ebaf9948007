"""Edit/save round-trip: uploads edited content back into its folder."""

import asyncio

import httpx

from shared.clients.storage.StorageClientInterface import StorageClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import SaveOutcome
from shared.models.page import SessionCredentials

SAVE_FAILED_MESSAGE = "Save failed"
SAVE_SUCCESS_MESSAGE = "Saved"


def _is_server_fault(status_code: int) -> bool:
    return 500 <= status_code < 600


def _extract_error_message(response: httpx.Response) -> str:
    """Builds a readable failure message from an error response, best-effort."""
    try:
        data = response.json()
    except ValueError:
        return SAVE_FAILED_MESSAGE
    detail = (data.get("message") or data.get("error")) if isinstance(data, dict) else None
    return f"{SAVE_FAILED_MESSAGE}: {detail}" if detail else SAVE_FAILED_MESSAGE


class SaveService:
    """Persists edited Markdown through the storage client with one bounded retry."""

    def __init__(self, helper_config: HelperConfig, storage_client: StorageClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._storage_client = storage_client
        self.retry_delay = helper_config.get_number_val("SAVE_RETRY_DELAY", default=1.5)

    async def save(
        self,
        parent_id: str,
        filename: str,
        content: str,
        session: SessionCredentials | None = None,
    ) -> SaveOutcome:
        """Uploads new content for a file, overwriting it inside its folder.

        A server fault (5xx) is retried exactly once after retry_delay seconds and
        the retried result is reported as is. Client errors are not retried.

        Args:
            parent_id (str): Id of the folder that holds the file.
            filename (str): Name of the file to write.
            content (str): The new Markdown content.
            session (SessionCredentials | None): Credentials of the user's session.

        Returns:
            SaveOutcome: Success, or a failure with a message fit for the user.
        """
        payload = (content or "").encode("utf-8")
        try:
            response = await self._storage_client.do_upload(parent_id, filename, payload, session=session)
            if _is_server_fault(response.status_code):
                self.logging.warning(
                    "Saving '%s' hit server fault %d, retrying once in %.1fs.",
                    filename, response.status_code, self.retry_delay,
                )
                await asyncio.sleep(self.retry_delay)
                response = await self._storage_client.do_upload(parent_id, filename, payload, session=session)
        except Exception as exc:
            self.logging.error("Saving '%s' into folder %s failed: %s", filename, parent_id, exc)
            return SaveOutcome(success=False, message=f"Error: {str(exc) or 'could not save'}")

        if response.is_success:
            self.logging.info("Saved '%s' (%d bytes) into folder %s.", filename, len(payload), parent_id)
            return SaveOutcome(success=True, status_code=response.status_code, message=SAVE_SUCCESS_MESSAGE)

        message = _extract_error_message(response)
        self.logging.warning("Saving '%s' rejected with status %d: %s", filename, response.status_code, message)
        return SaveOutcome(success=False, status_code=response.status_code, message=message)
