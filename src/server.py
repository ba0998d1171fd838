"""Protean Engine runner for the production domain.

With asynchronous event processing (the ``production`` config overlay) the
Engine drives the progress projector and the broadcaster outside the
request path.

Usage:
    python src/server.py
"""

import argparse
import asyncio

from protean.server.engine import Engine


async def run():
    from production.domain import production

    production.init()
    await Engine(production).run()


def main():
    argparse.ArgumentParser(description="Production tracker Engine runner").parse_args()
    asyncio.run(run())


if __name__ == "__main__":
    main()
