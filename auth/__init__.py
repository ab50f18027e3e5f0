"""
Authentication Module

Accounts and access tokens for the workbench:
- bcrypt password hashing
- HS256 JWT issue and verification
- Token persistence between CLI invocations
"""

__version__ = "0.0.1"
