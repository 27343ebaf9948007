import re

from shared.clients.storage.StorageClientInterface import StorageClientInterface
from shared.clients.storage.models.Node import NodeDetails, NodesListResponse
from shared.helper.HelperConfig import HelperConfig
from shared.helper.response_probes import extract_collection, extract_parent_id
from shared.models.config import EnvConfig

DOWNLOAD_URL_PATTERN = re.compile(r"sync_and_share_nodes/([a-f0-9-]+)/download", re.IGNORECASE)


class StorageClientAcronis(StorageClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_path = "/" + self.get_config_val("API_PATH", default="/fc/api/v1", val_type="string").strip("/")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Acronis"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_PATH", val_type="string", default="/fc/api/v1"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        # the host authenticates through the forwarded session cookie only
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_contents(self, container_id: str, page_size: int = 100) -> str:
        return (
            f"{self._api_path}/sync_and_share_nodes/{container_id}/contents"
            f"?fields=uuid,name,is_directory&filter_deleted=active&per_page={page_size}"
        )

    def _get_endpoint_node_details(self, node_id: str) -> str:
        return f"{self._api_path}/sync_and_share_nodes/{node_id}"

    def _get_endpoint_download(self, node_id: str) -> str:
        return f"{self._api_path}/sync_and_share_nodes/{node_id}/download"

    def _get_endpoint_upload(self, parent_id: str) -> str:
        return f"{self._api_path}/sync_and_share_nodes/{parent_id}/upload"

    def extract_download_node_id(self, href: str) -> str | None:
        match = DOWNLOAD_URL_PATTERN.search(href or "")
        return match.group(1) if match else None

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def _parse_endpoint_contents(self, container_id: str, response: object) -> NodesListResponse:
        nodes = []
        for item in extract_collection(response) or []:
            if not item.get("uuid"):
                continue
            nodes.append(NodeDetails(
                engine=self._get_engine_name(),
                id=str(item.get("uuid")),
                name=item.get("name"),
                is_directory=bool(item.get("is_directory")),
                parent_id=container_id,
            ))
        return NodesListResponse(engine=self._get_engine_name(), container_id=container_id, nodes=nodes)

    def _parse_endpoint_node(self, node_id: str, response: object) -> NodeDetails:
        data = response if isinstance(response, dict) else {}
        return NodeDetails(
            engine=self._get_engine_name(),
            id=str(data.get("uuid") or node_id),
            name=data.get("name"),
            is_directory=bool(data.get("is_directory")),
            parent_id=extract_parent_id(data),
        )
