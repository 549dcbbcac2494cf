#!/usr/bin/env python3
"""Convenience script to run the Slack PR approver."""

import asyncio
import sys

from pr_approver.app import main as _main


def main():
    sys.exit(asyncio.run(_main()))


if __name__ == "__main__":
    main()
