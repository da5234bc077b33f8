"""Loop expansion: product calls in ``for`` statements become nested loops.

The runtime combinator covers the same ground without touching source; the
expander exists for callers that want real nested loops (and their
performance) while writing a single flat loop header.
"""
