"""
HTML bodies returned by the request handlers.

Every user-supplied value is escaped before it is rendered.
"""

from __future__ import annotations

from html import escape
from typing import Optional
from urllib.parse import quote

_STYLE = """
        body {
            font-family: system-ui, sans-serif;
            max-width: 640px; margin: 40px auto; color: #1f2330;
        }
        textarea { width: 100%; font-family: monospace; }
"""


def _page(title: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
    <title>Gmail Notifier — {escape(title)}</title>
    <style>{_STYLE}</style>
</head>
<body>
{body}
</body>
</html>"""


def callback_page(email: str, signature: str) -> str:
    """Confirmation shown after a successful authorization."""
    escaped = quote(email, safe="")
    cron_href = f"/setCron?emailAddress={escaped}"
    query_href = f"/setEditQuery?emailAddress={escaped}&sig={quote(signature, safe='')}"
    body = f"""    <h2>Authorized</h2>
    <p>Gmail access granted for {escape(email)}.</p>
    <ul>
        <li><a href="{escape(cron_href)}">Start the periodic check</a></li>
        <li><a href="{escape(query_href)}">Edit the search query</a></li>
    </ul>"""
    return _page("Authorized", body)


def query_form_page(email: str, query: Optional[str], signature: str = "") -> str:
    """Query editor form, pre-filled with the current query if any."""
    if query is None:
        current = "<p>No query set.</p>"
    else:
        current = f"<p>Current query: <code>{escape(query)}</code></p>"

    body = f"""    <h2>Search query for {escape(email)}</h2>
    {current}
    <form method="post" action="/setEditQuery">
        <input type="hidden" name="emailAddress" value="{escape(email)}">
        <input type="hidden" name="sig" value="{escape(signature)}">
        <textarea name="query" rows="4">{escape(query or "")}</textarea>
        <button type="submit">Save</button>
    </form>"""
    return _page("Query editor", body)
