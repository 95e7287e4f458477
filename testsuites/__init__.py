"""
Test suites package.

Kept importable so tests can share helpers such as `testsuites.fakes`.
"""
