"""auth/ -- Credential and token package for HelpBoard.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/, web/, posts/, or client/.
api/ imports from auth/, not the other way around.
"""
