"""Bridge layer between bnlogs sessions and the network.

Modules
-------
transport
    Wraps the ``websockets`` asyncio client behind a small ``Transport``
    class (``receive()`` / ``send_ping()`` / ``close()``) and the
    ``Connector`` protocol that opens one.
"""
