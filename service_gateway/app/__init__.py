"""
API Gateway Service package for the Keyword Gateway.

The gateway fronts client requests to cost-bearing third-party APIs,
enforcing:
- Rate limiting: fixed window per client identity
- Caching: short-lived in-process response cache per route
- Credentials: OAuth refresh-token exchange for the Google Ads API
- Deadlines: every upstream call is cancelled after its timeout

Structure:
- app.main: FastAPI app, routes, and service wiring.
- app.adapters: Upstream executor and third-party API clients.
- app.caching: TTL response cache.
- app.ratelimit: Fixed window limiter and client identity.
- app.domain: Request models, payload normalization, route handlers.
"""
