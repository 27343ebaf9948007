import html
import re

from shared.clients.render.RenderClientInterface import RenderClientInterface
from shared.helper.HelperConfig import HelperConfig

# (pattern, replacement, max substitutions; 0 = all), applied in order on escaped text
_SUBSTITUTIONS: list[tuple[re.Pattern, str, int]] = [
    (re.compile(r"^```(\w*)\n(.*?)```", re.MULTILINE | re.DOTALL), r'<pre><code class="language-\1">\2</code></pre>', 0),
    (re.compile(r"^### (.*)$", re.MULTILINE), r"<h3>\1</h3>", 0),
    (re.compile(r"^## (.*)$", re.MULTILINE), r"<h2>\1</h2>", 0),
    (re.compile(r"^# (.*)$", re.MULTILINE), r"<h1>\1</h1>", 0),
    (re.compile(r"\*\*(.*?)\*\*"), r"<strong>\1</strong>", 0),
    (re.compile(r"\*(.*?)\*"), r"<em>\1</em>", 0),
    (re.compile(r"`([^`\n]+)`"), r"<code>\1</code>", 0),
    (re.compile(r"^- (.*)$", re.MULTILINE), r"<li>\1</li>", 0),
    (re.compile(r"(<li>.*</li>)", re.DOTALL), r"<ul>\1</ul>", 1),
    (re.compile(r"\[([^\]]+)\]\(([^)]+)\)"), r'<a href="\2" target="_blank">\1</a>', 0),
    (re.compile(r"^\n", re.MULTILINE), "<br>", 0),
]


class RenderClientBasic(RenderClientInterface):
    """
    Minimal deterministic renderer based on a fixed list of pattern substitutions.

    Covers headings h1-h3, bold, italic, inline and fenced code, one bullet list,
    links and blank lines. Nested structures, tables and ordered lists stay as text.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    def _get_engine_name(self) -> str:
        return "Basic"

    def render(self, markdown: str) -> str:
        text = html.escape(markdown or "")
        for pattern, replacement, count in _SUBSTITUTIONS:
            text = pattern.sub(replacement, text, count=count)
        return text
