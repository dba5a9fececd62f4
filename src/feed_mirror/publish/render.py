"""Standalone HTML page wrapping a mirrored item."""

from html import escape

from feed_mirror.models import MirroredItem
from feed_mirror.utils.datetime import parse_datetime

PAGE_STYLE = """
        * { margin: 0; padding: 0; box-sizing: border-box; }
        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif;
            background: #f5f5f7;
            color: #1d1d1f;
            line-height: 1.6;
        }
        .header {
            background: white;
            border-bottom: 1px solid #e5e5e7;
            padding: 20px 0;
            position: sticky;
            top: 0;
            z-index: 100;
        }
        .header-content, .content-wrapper { max-width: 1200px; margin: 0 auto; padding: 0 20px; }
        .header h1 { font-size: 1.5em; font-weight: 600; margin-bottom: 8px; }
        .header-meta { display: flex; gap: 20px; flex-wrap: wrap; font-size: 0.9em; color: #86868b; }
        .header-meta a, .content a { color: #0071e3; text-decoration: none; }
        .content-wrapper { padding-top: 40px; padding-bottom: 40px; }
        .content {
            background: white;
            border-radius: 12px;
            padding: 40px;
            border: 1px solid #e5e5e7;
        }
        .content img { max-width: 100%; height: auto; }
        @media (max-width: 768px) {
            .header h1 { font-size: 1.2em; }
            .content { padding: 20px; }
        }
"""


def format_timestamp(value: str) -> str:
    try:
        return parse_datetime(value).strftime("%d/%m/%Y %H:%M UTC")
    except ValueError:
        return value


def render_page(item: MirroredItem) -> str:
    """Wrap the sanitized body with a title, timestamp and source banner."""
    safe_title = escape(item.title)
    safe_url = escape(item.source_url or "")
    source_link = f'<a href="{safe_url}" target="_blank">Fonte original</a>' if safe_url else ""

    return f"""<!DOCTYPE html>
<html lang="pt-BR">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{safe_title}</title>
    <style>{PAGE_STYLE}    </style>
</head>
<body>
    <div class="header">
        <div class="header-content">
            <h1>{safe_title}</h1>
            <div class="header-meta">
                <span>{escape(format_timestamp(item.published_at))}</span>
                {source_link}
            </div>
        </div>
    </div>
    <div class="content-wrapper">
        <div class="content">
            {item.body_html}
        </div>
    </div>
</body>
</html>"""
