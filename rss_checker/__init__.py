"""
RSS Checker - Detect new entries in RSS/Atom feeds.

A Python application that polls a registry of RSS/Atom feeds concurrently,
reports which ones published a new entry since the last run and remembers
the latest entry of each feed.
"""

__version__ = "1.0.0"
__author__ = "Grégoire Compagnon"
__email__ = "obeone@obeone.org"
