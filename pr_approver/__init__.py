# Slack PR Approver

import asyncio
import sys

from pr_approver.app import main as _main


def main():
    """Entry point for the pr-approver CLI command."""
    sys.exit(asyncio.run(_main()))
