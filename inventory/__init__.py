"""inventory/ -- Classifications, vehicles, and favorites.

Layer rule: inventory/ imports only core/, stdlib, and third-party libraries.
"""
