"""
Package entrypoint that delegates to the top-level issuecord script.

Allows `python -m issuebot.main` or the `forum-issue-bot` console script
to run the bot.
"""

import asyncio

from issuecord import main as issuecord_main


def main() -> None:
    try:
        asyncio.run(issuecord_main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
