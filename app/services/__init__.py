"""
                        Services Module

Business logic, independent of HTTP. Routers translate results and
AppError failures into responses.

Services:
    - accounts: registration (user + account bootstrap), login, profile
    - verification: email verification tokens
    - orders: account-scoped order CRUD
    - notifications: email dispatch (Mock / SendGrid)
    - rate_limit: request counters (in-memory / Redis)
"""
