"""Digital Library MCP Server - FastMCP Implementation

Exposes the lending engine as MCP tools over the stdio transport:
search, borrow, reserve, cancel, return, renew, pick up and the
circulation sweep.
"""

import logging
import signal
import sys
from typing import Any

from fastmcp import FastMCP

from .config import LibraryConfig, get_config
from .database import get_db_manager, seed_demo_data
from .observability import initialize_observability
from .tools import all_tools

logger = logging.getLogger(__name__)


def configure_logging(config: LibraryConfig) -> None:
    """Send logs to stderr; stdout carries the MCP protocol."""
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    if config.debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Debug mode enabled - verbose protocol logging active")
    else:
        logging.getLogger("fastmcp").setLevel(logging.WARNING)


def create_server(config: LibraryConfig | None = None) -> FastMCP:
    """Build the FastMCP server and register every tool."""
    config = config or get_config()

    mcp = FastMCP(
        name=config.server_name,
        version=config.server_version,
        instructions=(
            "Digital Library MCP Server - lending and reservations for a library of "
            "physical and digital books. Search the catalog, borrow available copies, "
            "reserve titles whose copies are all out, and return or renew loans."
        ),
    )

    for tool in all_tools:
        logger.debug("Registering tool: %s", tool["name"])
        mcp.tool(name=tool["name"], description=tool["description"])(tool["function"])

    logger.info("Registered %d tools", len(all_tools))
    return mcp


def prepare_database(config: LibraryConfig) -> None:
    """Create the schema and load the demo catalog if it is missing."""
    db_manager = get_db_manager(config.get_database_url())
    db_manager.init_database()
    with db_manager.session_scope() as session:
        seed_demo_data(session)


def run_stdio_server(config: LibraryConfig) -> None:
    """Run the MCP server using stdio transport."""
    logger.info("Starting %s v%s on stdio transport", config.server_name, config.server_version)

    def signal_handler(signum: int, _frame: Any) -> None:
        logger.info("Received signal %s, initiating shutdown...", signum)
        get_db_manager().close()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    mcp = create_server(config)
    logger.info("MCP Server ready and waiting for connections...")
    mcp.run(transport="stdio")


def main() -> None:
    """Entry point for the ``digital-library`` command."""
    config = get_config()
    configure_logging(config)
    initialize_observability()

    try:
        prepare_database(config)
        run_stdio_server(config)
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception:
        logger.exception("Fatal error in MCP server")
        sys.exit(1)


if __name__ == "__main__":
    main()
