"""
Admin BFF Gateway
=================

Backend-for-Frontend gateway for the admin dashboard. Holds the session
credential in an HTTP-only cookie, gates protected pages on it, and proxies
API calls to the backend with the credential re-presented in the form the
backend expects.

Packages:
    - auth:  credential claims, cookie access, route gate, session endpoints
    - proxy: catch-all upstream proxy
"""
