"""Entry point for ``python -m tripsplit``."""

import asyncio

from tripsplit.server import run_server


def main() -> None:
    """Launch the reference remote trip store."""
    asyncio.run(run_server())


if __name__ == "__main__":
    main()
