from shared.clients.render.RenderClientInterface import RenderClientInterface
from shared.helper.HelperConfig import HelperConfig


class MarkdownRenderer:
    """Renders through the configured engine, falling back to the basic engine if it fails."""

    def __init__(
        self,
        helper_config: HelperConfig,
        render_client: RenderClientInterface,
        fallback_client: RenderClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._render_client = render_client
        self._fallback_client = fallback_client

    def render(self, markdown: str) -> str:
        try:
            return self._render_client.render(markdown)
        except Exception as exc:
            self.logging.warning(
                "Renderer '%s' failed (%s), using '%s'.",
                self._render_client.get_engine_name(), exc, self._fallback_client.get_engine_name(),
            )
            return self._fallback_client.render(markdown)
