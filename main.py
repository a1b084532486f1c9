#!/usr/bin/env python3
"""
Main entry point for the Twitch chat TUI
"""

from twitch_chat_tui.main import run

if __name__ == "__main__":
    run()
