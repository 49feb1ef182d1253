"""Human-readable rendering of index listings."""

from zipindex.models import IndexedEntry, Page, Project


def format_size(size: int | None) -> str:
    """Format a byte count the way listings show it."""
    if size is None:
        return "--"
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def format_entry(entry: IndexedEntry) -> str:
    if entry.is_directory:
        return f"{entry.path + '/':<60} {'':>10} [dir]"
    marker = "[preview]" if entry.has_preview else ""
    return f"{entry.path:<60} {format_size(entry.size_bytes):>10} {marker}".rstrip()


def format_entry_page(page: Page[IndexedEntry]) -> str:
    """Render a page of entries followed by its pagination footer."""
    lines = [format_entry(entry) for entry in page.items]
    lines.append("")
    lines.append(
        f"page {page.page}/{max(page.pages, 1)} "
        f"({page.total} entries, {page.limit} per page)"
    )
    return "\n".join(lines)


def format_project(project: Project) -> str:
    return (
        f"#{project.id:<5} {project.name:<30} {project.status.value:<11} "
        f"{format_size(project.archive_size):>10}  {project.original_filename}"
    )
