"""
ARBOLEDA ADMIN API Test Suite

End-to-end checks of the admin HTTP surface: permission gating,
directory management and the audit trail behind it.

Test Files:
- conftest.py: Shared fixtures (in-memory services, seeded users, client)
- test_routes.py: Role catalogue, user management and audit endpoints
- test_failure_modes.py: Store outages and error rendering

Run Commands:
    pytest arboleda_admin/api/tests -v
"""
