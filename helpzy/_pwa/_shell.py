"""Page shell served at / and /index.html.

Either a minimal standalone shell, or a built SPA's index.html with the PWA
head and body snippets injected.
"""

import html
from string import Template

from ._offline import BANNER_CSS, INSTALL_BANNER_TEMPLATE, OFFLINE_BANNER_HTML, UPDATE_BANNER_TEMPLATE

_SHELL_TEMPLATE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
$head
    <title>$title</title>
</head>
<body>
    <div id="root"></div>
$body
</body>
</html>
""")


def _head_snippet(theme_color: str) -> str:
    return (
        f'    <meta name="theme-color" content="{html.escape(theme_color)}">\n'
        f'    <link rel="manifest" href="/manifest.json">\n'
        f"    <style>{BANNER_CSS}    </style>"
    )


def _body_snippet(app_name: str, registration_js: str) -> str:
    name = html.escape(app_name)
    return "\n".join(
        [
            OFFLINE_BANNER_HTML,
            UPDATE_BANNER_TEMPLATE.format(app_name=name),
            INSTALL_BANNER_TEMPLATE.format(app_name=name),
            f"<script>{registration_js}</script>",
        ]
    )


def render_shell(app_name: str, theme_color: str, registration_js: str) -> str:
    """Render the standalone page shell."""
    return _SHELL_TEMPLATE.substitute(
        head=_head_snippet(theme_color),
        title=html.escape(app_name),
        body=_body_snippet(app_name, registration_js),
    )


def inject_pwa(index_html: str, app_name: str, theme_color: str, registration_js: str) -> str:
    """Add the manifest link, banners and registration script to an existing page.

    Snippets go before the closing head and body tags, or are appended when a
    tag is missing.
    """
    head = _head_snippet(theme_color) + "\n"
    body = _body_snippet(app_name, registration_js) + "\n"

    lower = index_html.lower()
    head_at = lower.find("</head>")
    if head_at == -1:
        index_html = head + index_html
    else:
        index_html = index_html[:head_at] + head + index_html[head_at:]

    lower = index_html.lower()
    body_at = lower.rfind("</body>")
    if body_at == -1:
        return index_html + body
    return index_html[:body_at] + body + index_html[body_at:]
