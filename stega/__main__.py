"""
process entry point: `python -m stega` and the `stega` console script.

renders StegaError faults on stderr and maps them to exit status 1; anything else
propagates with its traceback.
"""
import asyncio
import os
import sys

from .core import CLI
from .faults import StegaError, report
from .logs import setup


def main(argv=None, /):
    setup(os.environ.get("STEGA_LOG_LEVEL", "info"))
    cli = CLI(os.environ.get("STEGA_CONFIG", "./config.json"))
    try:
        asyncio.run(cli.run(sys.argv[1:] if argv is None else argv))
    except StegaError as fault:
        report(fault)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
