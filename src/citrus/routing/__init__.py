"""Routing — path template compiler and first-match-wins route table.

Routes are registered during setup, scanned in registration order at
request time, and resolved to handlers lazily through a name table.
"""
