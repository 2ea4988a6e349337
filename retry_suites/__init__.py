"""
Retry test suites package.

This repository keeps `retry_suites` importable to support:
  - IDE navigation
  - reuse of the retry harness from other suites (`retry_test`, `with_retry`)
  - CI/CD module imports

All content is demo-safe and does not include production secrets.
"""
