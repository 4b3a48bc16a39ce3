"""
Integration tests.

These tests run workloads against the bundled target application over
real HTTP, verifying the whole path from RunConfig to recorded checks.
"""
