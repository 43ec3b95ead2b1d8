"""JWT authentication and role checks.

Import from the submodules (``src.core.auth.models``, ``.dependencies`` ...):
the audit service depends on ``User``, and the auth service writes audit
entries, so this package must not import its submodules eagerly.
"""
