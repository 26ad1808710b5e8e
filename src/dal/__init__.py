"""Data Abstraction Layer (DAL) for schema sync.

Per-dialect connection adapters, schema analyzers and DDL renderers behind the
interfaces in ``common.interfaces``. Use ``dal.factory`` to select a dialect.
"""
