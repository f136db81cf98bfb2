#!/usr/bin/env python3
"""
Main entry point for the ircstatus relay
"""

from ircstatus.main import run

if __name__ == "__main__":
    run()
