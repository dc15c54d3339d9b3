"""Ticket marketplace backend.

Users browse and buy tickets for approved events, sellers submit events for
review, and admins decide seller applications and event requests.
"""

__version__ = "0.1.0"
