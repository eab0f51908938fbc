"""Export: standalone HTML documents and sidecar JSON for built pages"""

import html
import json
from pathlib import Path

from dokupub.core.models import RenderedPage


def page_title(page: RenderedPage, page_id: str) -> str:
    """First heading title, else the page id."""
    return page.headings[0].title if page.headings else page_id


def build_html(page: RenderedPage, title: str) -> str:
    """Wrap the rendered fragment in a minimal HTML document."""
    return (
        "<!DOCTYPE html>\n"
        "<html>\n<head>\n"
        '<meta charset="utf-8">\n'
        f"<title>{html.escape(title)}</title>\n"
        "</head>\n<body>\n"
        f"{page.html}\n"
        "</body>\n</html>\n"
    )


def build_sidecar(page: RenderedPage, page_id: str, namespace: str) -> dict:
    """Build the sidecar JSON dict: id, namespace, title, headings, toc flag, footnote count.

    'toc' is False when the page opted out with ~~NOTOC~~; headings are listed either way.
    """
    return {
        "id": page_id,
        "namespace": namespace,
        "title": page_title(page, page_id),
        "toc": page.toc,
        "headings": [h.model_dump() for h in page.headings],
        "footnotes": len(page.footnotes),
    }


def write_page(
    page: RenderedPage,
    page_id: str,
    namespace: str,
    dest_dir: Path,
    name: str,
    ) -> tuple[Path, Path]:
    """Write <name>.html + <name>.json into dest_dir. Returns (html_path, json_path)."""
    dest_dir.mkdir(parents=True, exist_ok=True)
    html_path = dest_dir / f"{name}.html"
    json_path = dest_dir / f"{name}.json"

    html_path.write_text(build_html(page, page_title(page, page_id)), encoding='utf-8')
    json_path.write_text(
        json.dumps(build_sidecar(page, page_id, namespace), indent=2, ensure_ascii=False),
        encoding='utf-8',
    )
    return html_path, json_path
