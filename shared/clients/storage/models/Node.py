"""Generic storage node model, independent of the storage backend."""

from pydantic import BaseModel


class NodeBase(BaseModel):
    """
    Represents a single file or folder as returned by a storage client.
    """
    engine: str
    id: str


class NodeDetails(NodeBase):
    """
    Represents a single file or folder with the metadata the preview pipeline uses.
    """
    name: str | None = None
    is_directory: bool = False
    parent_id: str | None = None


class NodesListResponse(BaseModel):
    """
    Represents the response from a storage backend when listing the contents of a folder.
    """
    engine: str
    container_id: str
    nodes: list[NodeDetails] = []

    def find_file(self, name: str) -> NodeDetails | None:
        """Returns the first non-folder entry whose name equals the given name exactly."""
        for node in self.nodes:
            if node.name == name and not node.is_directory:
                return node
        return None
