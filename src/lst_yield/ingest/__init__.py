"""Ingest helpers: chain access, header linkage checks and CSV I/O.

These modules produce the validated observation series consumed by
`lst_yield.aggregate`.
"""
