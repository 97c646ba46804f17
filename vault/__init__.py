"""vault/ -- Encrypted, owner-scoped storage of saved service logins.

Layer rule: vault/ imports from core/ and third-party libraries only.
It does NOT import from api/ or auth/. Callers pass the verified owner id in.
"""
