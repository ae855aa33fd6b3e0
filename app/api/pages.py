"""HTML pages for the login flow.

TRADE-OFF: Inline HTML keeps the service free of a template engine for
three tiny pages.  Every value that came from the visitor or the provider
goes through html.escape before it is interpolated.
"""

from __future__ import annotations

import html

_PAGE_HTML = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{title}</title>
  <style>
    * {{ margin: 0; padding: 0; box-sizing: border-box; }}
    body {{
      font-family: system-ui, -apple-system, sans-serif;
      display: flex; justify-content: center; align-items: center;
      min-height: 100vh; background: #f5f5f5;
    }}
    .card {{
      background: #fff; padding: 2rem; border-radius: 8px;
      box-shadow: 0 2px 8px rgba(0,0,0,.1); min-width: 320px; text-align: center;
    }}
    h1 {{ font-size: 1.25rem; margin-bottom: 1rem; }}
    .error {{ color: #c00; }}
    a {{ color: #5865f2; }}
  </style>
</head>
<body>
  <div class="card">
{body}
  </div>
</body>
</html>
"""


def _page(title: str, body: str) -> str:
    return _PAGE_HTML.format(title=html.escape(title), body=body)


def index_page() -> str:
    return _page("Login", '    <a href="/login"> login </a>')


def authorized_page(username: str, discriminator: str) -> str:
    body = (
        "    <h1>Signed in</h1>\n"
        f'    <p>username: <span class="username">{html.escape(username)}</span></p>\n'
        f'    <p>discriminator: <span class="discriminator">{html.escape(discriminator)}</span></p>'
    )
    return _page("Authorized", body)


def authorize_error_page(error: str, description: str | None = None) -> str:
    body = "    <h1>Authorization failed</h1>\n"
    body += f'    <p class="error">{html.escape(error)}</p>\n'
    if description:
        body += f'    <p class="description">{html.escape(description)}</p>\n'
    body += '    <p><a href="/">back</a></p>'
    return _page("Authorization failed", body)
