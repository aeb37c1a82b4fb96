"""
Employee Directory Service package for the Employee Directory Access Layer.

The service fronts the remote employee directory, providing:
- A fetch-through snapshot cache of the full employee collection
- Uniform success/error results for every operation
- Read analytics (search, highest salary, top earners) and cache-consistent writes

Structure:
- app.main: FastAPI app, routes, and middleware wiring.
- app.adapters: HTTP transport client and the directory gateway.
- app.caching: Snapshot cache with TTL expiry and single-flight population.
- app.ratelimit: Token-bucket admission control.
- app.domain: Result envelope, employee models, and the employee operations.
"""
