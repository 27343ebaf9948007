from abc import ABC, abstractmethod

from shared.helper.HelperConfig import HelperConfig


class RenderClientInterface(ABC):
    """
    Converts Markdown text into HTML for the rendered preview mode.

    Engines differ in fidelity; callers must not assume two engines produce the same markup.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        return "render"

    def get_engine_name(self) -> str:
        """
        Returns the name of the engine used by the client in lowercase. E.g. "markdownit"
        """
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        pass

    ################ RENDER ##################
    @abstractmethod
    def render(self, markdown: str) -> str:
        """
        Renders Markdown to an HTML fragment.

        Args:
            markdown (str): The Markdown source.

        Returns:
            str: The HTML fragment.
        """
        pass
