"""
SolisCloud telemetry poller package.

Polls the SolisCloud vendor API for inverter detail records, signs every
request with the vendor's HMAC scheme, normalizes the vendor's free-form
fields into canonical numeric metrics, and hands them to a time-series sink.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""
