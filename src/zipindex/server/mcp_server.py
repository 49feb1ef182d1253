"""FastMCP server implementation for zipindex."""

from mcp.server.fastmcp import FastMCP

from zipindex import config
from zipindex.errors import ZipIndexError
from zipindex.services import ProjectService
from zipindex.utils.formatting import format_entry_page, format_project


def create_mcp_server(service: ProjectService) -> FastMCP:
    """Create an MCP server over one index database.

    Args:
        service: Project service bound to the database to serve

    Returns:
        Configured FastMCP server instance
    """
    mcp = FastMCP(
        name="zipindex",
    )

    @mcp.tool()
    def projects(page: int = 1, limit: int = 10) -> str:
        """List indexed projects, newest first.

        Args:
            page: 1-based page number
            limit: Projects per page

        Returns:
            One line per project with id, name, status and archive size
        """
        result = service.list_projects(page=page, limit=limit)
        if not result.items:
            return "No projects found"
        lines = [format_project(p) for p in result.items]
        lines.append(f"\npage {result.page}/{result.pages} ({result.total} projects)")
        return "\n".join(lines)

    @mcp.tool()
    def ls(
        project_id: int, directory: str | None = None, page: int = 1, limit: int = config.PAGE_SIZE
    ) -> str:
        """List files and directories of an indexed archive.

        Nested JAR contents appear under the JAR's own path
        (e.g. "lib/core.jar/META-INF/MANIFEST.MF").

        Args:
            project_id: Project to list
            directory: Only list this directory level; "" for the top level;
                omit to list every entry
            page: 1-based page number
            limit: Entries per page

        Returns:
            Formatted listing, directories first, with pagination footer
        """
        try:
            result = service.list_entries(project_id, directory=directory, page=page, limit=limit)
        except (ZipIndexError, ValueError) as e:
            return f"Error: {e}"

        if not result.items:
            return f"No entries found in '{directory}'" if directory else "No entries found"
        return format_entry_page(result)

    @mcp.tool()
    def read(project_id: int, path: str) -> str:
        """Read the stored text preview of a file.

        Args:
            project_id: Project the file belongs to
            path: Full logical path of the file (as shown in ls output)

        Returns:
            Up to 500 characters of the file, or a note when no preview exists
        """
        try:
            content = service.read_entry(project_id, path)
        except ZipIndexError as e:
            return f"Error: {e}"

        if content is None:
            return f"Error: File not found: {path}"
        if content.content is None:
            return (
                f"[No preview]\n"
                f"  Path: {content.path}\n"
                f"  Extension: {content.extension or '--'}"
            )
        suffix = "\n[preview truncated]" if content.truncated else ""
        return content.content + suffix

    @mcp.tool()
    def status(project_id: int) -> str:
        """Report the ingestion status of a project.

        Args:
            project_id: Project to inspect

        Returns:
            Status, entry count and number of entries that failed to index
        """
        try:
            summary = service.summary(project_id, sample=0)
        except ZipIndexError as e:
            return f"Error: {e}"

        project = summary.project
        return (
            f"{project.name}: {project.status.value}\n"
            f"  Entries: {summary.total_entries}\n"
            f"  Errors: {project.error_count}"
        )

    return mcp
