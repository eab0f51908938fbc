"""Static build pipeline: page discovery, namespace derivation, render, and export"""

from pathlib import Path

from dokupub.config import Settings
from dokupub.core.export import write_page
from dokupub.core.models import RenderedPage
from dokupub.core.namespace import SEPARATOR, clean_id
from dokupub.core.render import Renderer


def discover_files(path: Path, extension: str = '.txt') -> list[Path]:
    """Return sorted page files under path, or [path] if a single matching file."""
    if path.is_file():
        return [path] if path.suffix == extension else []
    return sorted(p for p in path.rglob('*') if p.is_file() and p.suffix == extension)


def _relative(path: Path, root: Path) -> Path:
    return path.relative_to(root) if root.is_dir() else Path(path.name)


def page_namespace(path: Path, root: Path, base: str = '') -> str:
    """Namespace of a page from its directory below root ('a/b/page.txt' -> 'a:b'), under base."""
    parts = [base] if base else []
    parts += [clean_id(p) for p in _relative(path, root).parent.parts]
    return SEPARATOR.join(parts)


def page_id(path: Path, root: Path, base: str = '') -> str:
    """Full page id: namespace plus the cleaned file stem."""
    namespace = page_namespace(path, root, base)
    stem = clean_id(path.stem)
    return f"{namespace}{SEPARATOR}{stem}" if namespace else stem


def render_file(path: Path, settings: Settings) -> RenderedPage:
    """Render a single page file."""
    return Renderer(settings).render_document(path.read_text(encoding='utf-8'))


def run_build(path: str, settings: Settings, output_dir: Path) -> list[tuple[Path, Path]]:
    """Render every page under path into output_dir. Returns (source_path, html_path) pairs.

    Each page renders with current_namespace set to its own namespace so relative
    links resolve the way they would on the live wiki. Output mirrors the source tree.
    """
    root = Path(path)
    base = settings.current_namespace
    results = []
    for p in discover_files(root, settings.page_extension):
        try:
            namespace = page_namespace(p, root, base)
            page = render_file(p, settings.model_copy(update={"current_namespace": namespace}))
            dest_dir = output_dir / _relative(p, root).parent
            html_path, _ = write_page(page, page_id(p, root, base), namespace, dest_dir, p.stem)
            results.append((p, html_path))
        except (OSError, ValueError) as e:
            raise RuntimeError(f"Failed to render {p}: {e}") from e
    return results
