#!/usr/bin/env python3
"""Serve StarWiki with uvicorn using host and port from the loaded config."""
import uvicorn

from starwiki.api.container import get_container


def main() -> None:
    server = get_container().config.server
    uvicorn.run("starwiki.main:app", host=server.host, port=server.port, reload=True)


if __name__ == "__main__":
    main()
