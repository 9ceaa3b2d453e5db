"""auth/ -- Credential lifecycle for the identity service.

Leaves: hashing (CredentialHasher), tokens (TokenIssuer), store (UserStore).
Orchestration: directory (UserDirectory), service (AuthenticationService).
wiring.build_identity() constructs them in that order.

Layer rule: auth/ imports only stdlib + third-party libraries (and fastapi in
dependencies.py). It does NOT import from api/; core/ appears only as a
type hint in wiring.py.
api/ imports from auth/, not the other way around.
"""
