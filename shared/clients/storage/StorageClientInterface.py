from abc import abstractmethod

import httpx

from shared.clients.ClientInterface import ClientInterface
from shared.clients.storage.models.Node import NodeDetails, NodesListResponse
from shared.helper.HelperConfig import HelperConfig
from shared.models.page import SessionCredentials

ACCEPT_JSON = "application/json"
ACCEPT_TEXT = "text/plain,text/markdown,text/html,*/*"
ACCEPT_UPLOAD = "application/json, text/plain, */*"
UPLOAD_CONTENT_TYPE = "application/octet-stream"


class StorageClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "storage"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_contents(self, container_id: str, page_size: int = 100) -> str:
        """
        Returns the endpoint path listing the active contents of a folder.

        Args:
            container_id (str): The id of the folder.
            page_size (int): Maximum number of entries returned.
        """
        pass

    @abstractmethod
    def _get_endpoint_node_details(self, node_id: str) -> str:
        """
        Returns the endpoint path for the metadata of a single node.
        """
        pass

    @abstractmethod
    def _get_endpoint_download(self, node_id: str) -> str:
        """
        Returns the endpoint path serving the raw content of a file node.
        """
        pass

    @abstractmethod
    def _get_endpoint_upload(self, parent_id: str) -> str:
        """
        Returns the endpoint path that creates or overwrites a file inside a folder.
        """
        pass

    def get_download_url(self, node_id: str) -> str:
        """Returns the absolute download URL of a file node."""
        return self.build_url(self._get_endpoint_download(node_id))

    @abstractmethod
    def extract_download_node_id(self, href: str) -> str | None:
        """
        Returns the node id if the href already points at a node's download endpoint.

        Args:
            href (str): The href of a link as found in the host UI.

        Returns:
            str | None: The node id, or None if the href has another shape.
        """
        pass

    ################ HEADERS ##################
    def _get_session_headers(self, session: SessionCredentials | None, accept: str) -> dict:
        headers = {"Accept": accept}
        if session:
            headers.update(session.get_headers())
        return headers

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def _parse_endpoint_contents(self, container_id: str, response: object) -> NodesListResponse:
        """
        Parses the response of the contents endpoint.

        Args:
            container_id (str): The id of the listed folder.
            response (object): The parsed JSON body.

        Returns:
            NodesListResponse: The listed nodes. Empty if the payload has no recognisable collection.
        """
        pass

    @abstractmethod
    def _parse_endpoint_node(self, node_id: str, response: object) -> NodeDetails:
        """
        Parses the metadata of a single node.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_fetch_contents(self, container_id: str, session: SessionCredentials | None = None) -> NodesListResponse:
        """
        Fetches the active contents of a folder.

        Raises:
            Exception: On a non-2xx status.
            httpx.HTTPError: On transport failures.
            ValueError: If the body is not valid JSON.
        """
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_contents(container_id),
            additional_headers=self._get_session_headers(session, ACCEPT_JSON),
            raise_on_error=True,
        )
        return self._parse_endpoint_contents(container_id, resp.json())

    async def do_fetch_node_details(self, node_id: str, session: SessionCredentials | None = None) -> NodeDetails:
        """
        Fetches the metadata of a single node.

        Raises:
            Exception: On a non-2xx status.
            httpx.HTTPError: On transport failures.
            ValueError: If the body is not valid JSON.
        """
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_node_details(node_id),
            additional_headers=self._get_session_headers(session, ACCEPT_JSON),
            raise_on_error=True,
        )
        return self._parse_endpoint_node(node_id, resp.json())

    async def do_open_download(self, download_url: str, session: SessionCredentials | None = None) -> httpx.Response:
        """
        Opens a download without reading the body. The caller must close the response.

        Args:
            download_url (str): Absolute or base-relative download URL.
            session (SessionCredentials | None): Credentials of the user's session.
        """
        return await self.do_stream_request(
            method="GET",
            endpoint=download_url,
            additional_headers=self._get_session_headers(session, ACCEPT_TEXT),
        )

    async def do_upload(self, parent_id: str, filename: str, content: bytes, session: SessionCredentials | None = None) -> httpx.Response:
        """
        Uploads raw content as a file inside a folder, overwriting a file with the same name.

        The response is returned whatever its status; the caller decides on retries.
        """
        headers = self._get_session_headers(session, ACCEPT_UPLOAD)
        headers["Content-Type"] = UPLOAD_CONTENT_TYPE
        if session and session.csrf_token:
            headers["X-CSRF-Token"] = session.csrf_token
        return await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_upload(parent_id),
            params={"filename": filename, "size": len(content)},
            content=content,
            additional_headers=headers,
        )
