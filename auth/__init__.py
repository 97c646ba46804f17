"""auth/ -- Accounts, PIN hashing, and bearer tokens for EasyPass.

Layer rule: auth/ imports from core/ and third-party libraries only.
It does NOT import from api/ or vault/.
api/ imports from auth/, not the other way around.
"""
