import markdown as md
from markupsafe import Markup

EXTENSIONS = ["fenced_code", "tables", "sane_lists", "nl2br"]


class MarkdownRenderer:
    def _build(self) -> md.Markdown:
        renderer = md.Markdown(extensions=EXTENSIONS, output_format="html")
        # Raw HTML in lesson text is shown as text, never passed through
        renderer.preprocessors.deregister("html_block")
        renderer.inlinePatterns.deregister("html")
        return renderer

    def render(self, text) -> Markup:
        if not text:
            return Markup("")
        return Markup(self._build().convert(text))


markdown_renderer = MarkdownRenderer()
