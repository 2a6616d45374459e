"""auth/ -- Authentication and identity package for Inkwell.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/, web/, or posts/.
api/, web/ and posts/ import from auth/, not the other way around.
"""
