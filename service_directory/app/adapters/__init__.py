"""
Adapters for the upstream employee directory.

- directory_client: raw HTTP transport (timeouts, connect retry).
- directory_gateway: translates raw responses into Result envelopes.
"""
