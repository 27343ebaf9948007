from markdown_it import MarkdownIt

from shared.clients.render.RenderClientInterface import RenderClientInterface
from shared.helper.HelperConfig import HelperConfig


class RenderClientMarkdownit(RenderClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        # raw HTML in documents stays escaped, tables and strikethrough as on GitHub
        self._md = (
            MarkdownIt("commonmark", {"html": False, "breaks": False})
            .enable("table")
            .enable("strikethrough")
        )

    def _get_engine_name(self) -> str:
        return "Markdownit"

    def render(self, markdown: str) -> str:
        return self._md.render(markdown or "")
