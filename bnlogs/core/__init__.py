"""bnlogs core — sanitizer, keepalive ticker, sessions and the supervisor.

Modules
-------
sanitizer
    Strips terminal control sequences from payloads and decodes strict UTF-8.
ticker
    ``Ticker`` protocol and ``KeepaliveTicker``, a fixed-period tick source
    with skip-on-miss.
tls
    One-time, idempotent TLS context bootstrap.
session
    ``ConnectionSession``, one endpoint's connect / read / ping lifecycle.
supervisor
    ``FanoutSupervisor``, one concurrent session per discovered endpoint.
"""
