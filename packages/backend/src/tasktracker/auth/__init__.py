"""Authentication and authorization.

Learn: Users log in with email/password and receive a short-lived JWT
bearer token. Every protected request resolves that token back to a
user (AuthGuard), and every task query is then scoped to that user's id.
"""
