"""LLM integration layer.

This package is intentionally small:
- No prompt/output logging (speech samples may contain personal data).
- Configurable via environment variables.
- One outbound request per call, no retries; callers treat clients as stateless.
"""
