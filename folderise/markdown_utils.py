import re
from urllib.parse import quote

import markdown

# GitHub-flavoured basics plus soft line breaks.
MARKDOWN_EXTENSIONS = [
    "fenced_code",
    "tables",
    "nl2br",
    "sane_lists",
    "pymdownx.tilde",
    "pymdownx.magiclink",
]
MARKDOWN_EXTENSION_CONFIGS = {
    "pymdownx.tilde": {"subscript": False},
}

_MARKDOWN_SPECIAL = re.compile(r"([\\`*_{}\[\]()#+\-.!>|])")
_LIST_START = re.compile(r"^ {0,3}(?:[-*+]|1[.)])[ \t]+\S")
_FENCE = re.compile(r"^ {0,3}(```|~~~)")


def separate_lists(md_text: str) -> str:
    """Let a list start right after a paragraph line, as GFM does."""
    lines = md_text.split("\n")
    out: list[str] = []
    fence = None
    previous = ""
    for line in lines:
        fence_match = _FENCE.match(line)
        if fence_match:
            marker = fence_match.group(1)
            if fence is None:
                fence = marker
            elif marker == fence:
                fence = None
        elif (
            fence is None
            and _LIST_START.match(line)
            and previous.strip()
            and not _LIST_START.match(previous)
            and not previous.startswith(("    ", "\t"))
        ):
            out.append("")
        out.append(line)
        previous = line
    return "\n".join(out)


def markdown_to_html(md_text: str) -> str:
    """Convert Markdown text to an HTML fragment."""
    md_text = md_text.replace("\xa0", " ")
    md_text = separate_lists(md_text)
    return markdown.markdown(
        md_text,
        extensions=MARKDOWN_EXTENSIONS,
        extension_configs=MARKDOWN_EXTENSION_CONFIGS,
        output_format="html5",
    )


def escape_markdown(text: str) -> str:
    """Escape a filename for use as Markdown link text.

    '<' and '&' become entities so they never open raw HTML; '~' becomes an
    entity so two of them cannot start a strikethrough.
    """
    text = _MARKDOWN_SPECIAL.sub(r"\\\1", text)
    return text.replace("&", "&amp;").replace("<", "&lt;").replace("~", "&#126;")


def escape_url(name: str) -> str:
    """Percent-encode a filename for use inside a Markdown link target."""
    return quote(name, safe="~!*'")


def make_link(name: str, href: str) -> str:
    return f"[{name}]({href})"
