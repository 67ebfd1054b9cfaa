# ruff: noqa: E501
"""HTML templates for UI resources."""

import html
import json
import re

from multiconnect_mcp.models import RemoteEntry


def minify_html(markup: str) -> str:
    """Minify HTML by removing unnecessary whitespace.

    Removes comments (except IE conditional comments), whitespace between
    tags, and repeated spaces.

    Args:
        markup: HTML string to minify

    Returns:
        Minified HTML string
    """
    markup = re.sub(r"<!--(?!\[if\s).*?-->", "", markup, flags=re.DOTALL)
    markup = re.sub(r"[ \t]+", " ", markup)
    markup = re.sub(r"\n\s*", "\n", markup)
    markup = re.sub(r"\n+", "\n", markup)
    markup = re.sub(r">\s+<", "><", markup)
    return markup.strip()


def get_base_styles() -> str:
    """Get base CSS styles inspired by shadcn/ui design.

    Returns:
        CSS string with shadcn-like styling
    """
    return """
    <style>
        :root {
            --background: 0 0% 100%;
            --foreground: 222.2 84% 4.9%;
            --card: 0 0% 100%;
            --primary: 221.2 83.2% 53.3%;
            --primary-foreground: 210 40% 98%;
            --secondary: 210 40% 96.1%;
            --secondary-foreground: 222.2 47.4% 11.2%;
            --muted: 210 40% 96.1%;
            --muted-foreground: 215.4 16.3% 46.9%;
            --accent: 210 40% 96.1%;
            --border: 214.3 31.8% 91.4%;
            --input: 214.3 31.8% 91.4%;
            --ring: 221.2 83.2% 53.3%;
            --radius: 0.5rem;
        }

        * { box-sizing: border-box; margin: 0; padding: 0; }

        body {
            font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, "Inter", sans-serif;
            font-size: 14px;
            line-height: 1.5;
            color: hsl(var(--foreground));
            background: hsl(var(--background));
            padding: 24px;
            -webkit-font-smoothing: antialiased;
        }

        .container { max-width: 1200px; margin: 0 auto; }

        .header {
            border-bottom: 1px solid hsl(var(--border));
            padding-bottom: 16px;
            margin-bottom: 24px;
        }

        .title { font-size: 24px; font-weight: 600; letter-spacing: -0.025em; }

        .subtitle { font-size: 14px; color: hsl(var(--muted-foreground)); margin-top: 4px; }

        button {
            display: inline-flex;
            align-items: center;
            justify-content: center;
            font-size: 14px;
            font-weight: 500;
            border: none;
            border-radius: var(--radius);
            padding: 8px 16px;
            height: 40px;
            cursor: pointer;
            background: hsl(var(--primary));
            color: hsl(var(--primary-foreground));
        }

        button:disabled { opacity: 0.5; cursor: not-allowed; }

        .btn-secondary {
            background: hsl(var(--secondary));
            color: hsl(var(--secondary-foreground));
        }

        input[type="text"], select {
            width: 100%;
            border-radius: var(--radius);
            border: 1px solid hsl(var(--input));
            background: hsl(var(--background));
            padding: 8px 12px;
            font-size: 14px;
            color: hsl(var(--foreground));
        }

        input[type="text"]:focus, select:focus {
            outline: none;
            box-shadow: 0 0 0 2px hsl(var(--ring));
        }
    </style>
    """


def _tool_call_script() -> str:
    """JS helper posting an MCP-UI tool call to the host."""
    return """
    function callTool(toolName, params) {
        if (window.parent) {
            window.parent.postMessage({
                type: 'tool',
                payload: { toolName: toolName, params: params }
            }, '*');
        }
    }
    """


def get_remote_explorer_html(alias: str, path: str, entries: list[RemoteEntry]) -> str:
    """Generate file explorer HTML for a remote directory.

    Clicking a directory lists it, clicking a file opens it for editing.

    Args:
        alias: Connection alias
        path: Listed directory
        entries: Sorted directory entries

    Returns:
        Complete HTML page with file explorer
    """
    rows = []
    for entry in entries:
        icon = "&#128193;" if entry.is_directory else "&#128196;"
        size = "-" if entry.is_directory or entry.size is None else str(entry.size)
        rows.append(f"""
        <tr class="entry clickable" data-name="{html.escape(entry.name)}"
            data-path="{html.escape(entry.path)}" data-dir="{'1' if entry.is_directory else '0'}"
            onclick="openEntry(this)">
            <td class="icon">{icon}</td>
            <td class="name">{html.escape(entry.name)}</td>
            <td class="size">{size}</td>
        </tr>
        """)

    table = "\n".join(rows) if rows else """
        <tr><td colspan="3" class="empty">Empty directory</td></tr>
    """

    markup = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="UTF-8">
        <title>{html.escape(alias)}:{html.escape(path)}</title>
        {get_base_styles()}
        <style>
            .toolbar {{ margin-bottom: 16px; display: flex; gap: 8px; }}
            table {{
                width: 100%;
                border-collapse: collapse;
                background: hsl(var(--card));
                border: 1px solid hsl(var(--border));
                border-radius: var(--radius);
            }}
            td {{ padding: 10px 16px; border-bottom: 1px solid hsl(var(--border)); }}
            tr.clickable {{ cursor: pointer; }}
            tr.clickable:hover {{ background: hsl(var(--accent)); }}
            .icon {{ width: 48px; font-size: 18px; }}
            .name {{ font-weight: 500; }}
            .size {{ width: 120px; color: hsl(var(--muted-foreground)); font-variant-numeric: tabular-nums; }}
            .empty {{ text-align: center; color: hsl(var(--muted-foreground)); padding: 32px; }}
            .hidden {{ display: none; }}
        </style>
    </head>
    <body>
        <div class="container">
            <div class="header">
                <div class="title">{html.escape(alias)}:{html.escape(path)}</div>
                <div class="subtitle">Remote Files</div>
            </div>
            <div class="toolbar">
                <input type="text" id="filter" placeholder="Filter files and directories..." oninput="filterEntries()" />
                <button class="btn-secondary" onclick="openParent()">Parent</button>
            </div>
            <table><tbody>{table}</tbody></table>
        </div>
        <script>
            const ALIAS = {json.dumps(alias)};
            const CURRENT = {json.dumps(path)};
            {_tool_call_script()}

            function openEntry(row) {{
                const tool = row.dataset.dir === '1' ? 'list_remote_dir' : 'open_remote_file';
                callTool(tool, {{ alias: ALIAS, path: row.dataset.path }});
            }}

            function openParent() {{
                const parts = CURRENT.split('/').filter(p => p);
                parts.pop();
                callTool('list_remote_dir', {{ alias: ALIAS, path: '/' + parts.join('/') }});
            }}

            function filterEntries() {{
                const search = document.getElementById('filter').value.toLowerCase();
                document.querySelectorAll('.entry').forEach(row => {{
                    row.classList.toggle('hidden', !row.dataset.name.toLowerCase().includes(search));
                }});
            }}
        </script>
    </body>
    </html>
    """
    return minify_html(markup)


def get_broadcast_panel_html(targets: list[tuple[str, str]]) -> str:
    """Generate the command broadcast panel.

    A multi-select of connected sessions plus a command box. Send is
    disabled until at least one target is selected and the command is
    not blank.

    Args:
        targets: (alias, label) pairs of connected sessions

    Returns:
        Complete HTML page
    """
    options = "\n".join(
        f'<option value="{html.escape(alias)}">{html.escape(alias)} ({html.escape(label)})</option>'
        for alias, label in targets
    )
    empty_note = "" if targets else '<p class="subtitle">No active connections.</p>'

    markup = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="UTF-8">
        <title>Broadcast Command</title>
        {get_base_styles()}
        <style>
            select {{ height: 160px; margin-bottom: 16px; }}
            .row {{ display: flex; gap: 8px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <div class="header">
                <div class="title">Broadcast Command</div>
                <div class="subtitle">Send one command to several terminals</div>
            </div>
            {empty_note}
            <select id="connections" multiple>{options}</select>
            <div class="row">
                <input type="text" id="command" placeholder="Command to send..." />
                <button id="send" disabled>Send</button>
            </div>
        </div>
        <script>
            {_tool_call_script()}
            const select = document.getElementById('connections');
            const input = document.getElementById('command');
            const send = document.getElementById('send');

            function selected() {{
                return Array.from(select.selectedOptions).map(o => o.value);
            }}

            function updateSendButtonState() {{
                send.disabled = selected().length === 0 || !input.value.trim();
            }}

            select.addEventListener('change', updateSendButtonState);
            input.addEventListener('input', updateSendButtonState);
            send.addEventListener('click', () => {{
                callTool('broadcast_command', {{ command: input.value, aliases: selected() }});
                input.value = '';
                updateSendButtonState();
            }});
            updateSendButtonState();
        </script>
    </body>
    </html>
    """
    return minify_html(markup)
