"""Entry point for the sqlshell MCP server."""

from sqlshell.server import create_server


def main() -> None:
    """Run the sqlshell MCP server."""
    server = create_server()
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
