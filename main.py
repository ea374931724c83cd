#!/usr/bin/env python3
"""
ticket-printer - WebSocket to thermal printer bridge

Keeps a connection to a WebSocket message source open and prints every
text message it receives as a ticket on a connected receipt printer.
"""

from ticket_printer.cli import main

if __name__ == "__main__":
    main()
