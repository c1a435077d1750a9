"""auth/ -- Users table, credential check, and session cookie handling for userdir.

Layer rule: auth/ imports only stdlib, third-party libraries, core/ and
sessions/. It does NOT import from server/ or web/.
server/ and web/ import from auth/, not the other way around.
"""
