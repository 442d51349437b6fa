#!/usr/bin/env python3
"""Development runner, equivalent to the log-archive console script"""
from logarchive.cli import main

if __name__ == '__main__':
    main()
