"""Plain HTML rendering of a directory listing with upload/download affordances."""

import html
import json
import urllib.parse

from fileshare.bootstrap.config import DOWNLOAD_SUFFIX, UPLOAD_SUFFIX
from fileshare.domain.listing import DirectoryEntry, format_age, format_size

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{title}</title>
</head>
<body>
<h1>{breadcrumbs}</h1>
<form method="post" action="{upload_target}" enctype="multipart/form-data">
<input type="file" name="file" multiple>
<button type="submit">Upload</button>
</form>
<table>
<thead><tr><th></th><th>Name</th><th>Size</th><th>Modified</th></tr></thead>
<tbody>
{rows}
</tbody>
</table>
{empty}
<button id="download" type="button">Download selected</button>
<script>
document.getElementById("download").addEventListener("click", async () => {{
  const files = [...document.querySelectorAll(".sel:checked")].map(cb => cb.dataset.path);
  if (!files.length) return;
  const response = await fetch({download_target}, {{
    method: "POST",
    headers: {{"Content-Type": "application/json"}},
    body: JSON.stringify({{files}}),
  }});
  if (!response.ok) return;
  const link = document.createElement("a");
  link.href = URL.createObjectURL(await response.blob());
  link.download = "download.zip";
  link.click();
}});
</script>
</body>
</html>
"""

ROW_TEMPLATE = (
    '<tr><td><input type="checkbox" class="sel" data-path="{href}"></td>'
    '<td><a href="{href}">{label}</a></td><td>{size}</td><td>{age}</td></tr>'
)
PARENT_ROW_TEMPLATE = '<tr><td></td><td><a href="{href}">..</a></td><td></td><td></td></tr>'


def _directory_base(uri_path: str) -> str:
    return uri_path if uri_path.endswith("/") else uri_path + "/"


def _script_string(value: str) -> str:
    """Quote ``value`` as a JavaScript string literal safe inside a script element."""
    return json.dumps(value).replace("<", "\\u003c")


def _parent_href(uri_path: str) -> str:
    trimmed = uri_path.rstrip("/")
    parent, _, _ = trimmed.rpartition("/")
    return parent + "/" if parent else "/"


def _breadcrumbs(uri_path: str) -> str:
    crumbs = ['<a href="/">~</a>']
    href = ""
    parts = [part for part in uri_path.split("/") if part]
    for position, part in enumerate(parts):
        href += "/" + part
        label = html.escape(urllib.parse.unquote(part))
        if position == len(parts) - 1:
            crumbs.append(label)
        else:
            crumbs.append(f'<a href="{html.escape(href)}/">{label}</a>')
    return " / ".join(crumbs)


def render_listing(uri_path: str, entries: list[DirectoryEntry], at_root: bool) -> str:
    """Render ``entries`` of the directory addressed by ``uri_path``."""
    base = _directory_base(uri_path)
    rows = []
    if not at_root:
        rows.append(PARENT_ROW_TEMPLATE.format(href=html.escape(_parent_href(uri_path))))
    for entry in entries:
        href = base + urllib.parse.quote(entry.name, safe="")
        if entry.is_dir:
            href += "/"
        rows.append(
            ROW_TEMPLATE.format(
                href=html.escape(href),
                label=html.escape(entry.name) + ("/" if entry.is_dir else ""),
                size="&mdash;" if entry.is_dir else format_size(entry.size),
                age=format_age(entry.age_seconds),
            )
        )
    return PAGE_TEMPLATE.format(
        title=html.escape(urllib.parse.unquote(base)),
        breadcrumbs=_breadcrumbs(uri_path),
        upload_target=html.escape(base.rstrip("/") + UPLOAD_SUFFIX),
        download_target=_script_string(base.rstrip("/") + DOWNLOAD_SUFFIX),
        rows="\n".join(rows),
        empty="" if entries else "<p>This directory is empty.</p>",
    )
