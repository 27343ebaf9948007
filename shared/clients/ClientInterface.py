from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

import httpx
from httpx._types import QueryParamTypes, RequestContent

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

ResponseHook = Callable[[httpx.Response], Awaitable[None]]


class ClientInterface(ABC):
    """
    Base for clients talking to a remote HTTP backend.

    Settings are read from "<TYPE>_<ENGINE>_<KEY>" environment variables and
    validated on construction. The httpx client only exists between boot() and
    close(); every response it receives is passed to the registered hooks
    before the caller sees it.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0)

        self._client: httpx.AsyncClient | None = None
        self._response_hooks: list[ResponseHook] = []
        for setting in self._get_required_config():
            self.get_config_val(setting.env_key, default=setting.default, val_type=setting.val_type)

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_client_type(self) -> str:
        """Lowercase client type, e.g. "storage"."""
        return self._get_client_type().lower()

    def get_engine_name(self) -> str:
        """Lowercase engine name, e.g. "acronis"."""
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        pass

    @abstractmethod
    def _get_engine_name(self) -> str:
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """
        Returns the settings this client reads. Entries without a default are mandatory.
        """
        pass

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """
        Reads one client setting, e.g. raw_key "BASE_URL" of the Acronis storage
        client reads STORAGE_ACRONIS_BASE_URL.

        Raises:
            ValueError: If a mandatory setting is missing, malformed, or val_type is unknown.
        """
        readers = {
            "string": self._helper_config.get_string_val,
            "number": self._helper_config.get_number_val,
            "bool": self._helper_config.get_bool_val,
            "list": self._helper_config.get_list_val,
        }
        if val_type not in readers:
            raise ValueError(f"Unsupported config value type '{val_type}' for '{raw_key}' of {self.get_client_type()} client '{self.get_engine_name()}'.")
        key = f"{self.get_client_type()}_{self.get_engine_name()}_{raw_key}".upper()
        return readers[val_type](key, default=default)

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """
        Static authentication headers sent with every request. Empty if the backend authenticates per session.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_base_url(self) -> str:
        """
        Base URL of the backend, e.g. "https://cloud.example.com".
        """
        pass

    def build_url(self, endpoint: str) -> str:
        """
        Joins an endpoint path onto the base URL. Absolute URLs are returned unchanged.
        """
        endpoint = endpoint.strip()
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        base_url = self._get_base_url().rstrip("/")
        return f"{base_url}/{endpoint.lstrip('/')}" if endpoint else base_url

    ##########################################
    ############### OBSERVERS ################
    ##########################################

    def add_response_hook(self, hook: ResponseHook) -> None:
        """Registers an async callback run on every response, also after boot()."""
        self._response_hooks.append(hook)
        if self._client is not None:
            self._client.event_hooks = {"request": [], "response": list(self._response_hooks)}

    ##########################################
    ############## LIFECYCLE #################
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Creates the httpx client. Tests pass an httpx.MockTransport as transport."""
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            transport=transport,
            event_hooks={"response": list(self._response_hooks)},
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def _send(
        self,
        method: str,
        endpoint: str,
        additional_headers: dict | None,
        stream: bool,
        content: RequestContent | None = None,
        params: QueryParamTypes | None = None,
    ) -> httpx.Response:
        if self._client is None:
            raise Exception(f"{self.get_engine_name()} {self.get_client_type()} client is not booted.")
        headers = {**self._get_auth_header(), **(additional_headers or {})}
        request = self._client.build_request(
            method,
            self.build_url(endpoint),
            headers=headers,
            params=params,
            content=content,
        )
        return await self._client.send(request, stream=stream)

    async def do_request(
        self,
        method: str = "GET",
        content: RequestContent | None = None,
        params: QueryParamTypes | None = None,
        endpoint: str = "",
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Sends a request and reads the whole body.

        Args:
            method: HTTP method.
            content: Raw request body; the caller sets its Content-Type in additional_headers.
            params: Query parameters, merged with any query already in the endpoint.
            endpoint: Path below the base URL, or an absolute URL.
            additional_headers: Headers on top of the static auth headers.
            raise_on_error: Raise on a non-2xx status instead of returning the response.

        Raises:
            Exception: If the client is not booted, or on a non-2xx status with raise_on_error.
            httpx.HTTPError: On transport failures.
        """
        response = await self._send(method, endpoint, additional_headers, stream=False, content=content, params=params)
        if raise_on_error and not response.is_success:
            self.logging.error(
                "%s %s answered %d: %s", method, response.request.url, response.status_code, response.text[:500],
            )
            raise Exception(f"{method} {response.request.url} failed with status {response.status_code}")
        return response

    async def do_stream_request(
        self,
        method: str = "GET",
        endpoint: str = "",
        additional_headers: dict | None = None,
    ) -> httpx.Response:
        """Sends a request and returns as soon as the headers arrive.

        The body stays unread until ``await response.aread()``; the caller must
        always ``await response.aclose()``.
        """
        return await self._send(method, endpoint, additional_headers, stream=True)
