"""Services package initialization.

Engine services import the shared ``TickerContext``, which itself depends
on the queue, registry and store modules here, so nothing is re-exported.
"""
