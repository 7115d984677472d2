"""
StayBook Backend — Middleware Package
=======================================

Middleware Chain (request direction):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    1. Rate Limit first: abusive clients are refused before anything else runs
    2. Request ID: correlation id for every log line and error body
    3. Logging: one access line per request, with status and duration
"""
