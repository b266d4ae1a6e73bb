"""Data source integrations.

Each subdirectory is one source with a consistent structure:

    datasources/{name}/
    ├── __init__.py       # Public API re-exports
    ├── client.py         # API URLs, constants (remote sources only)
    └── {feature}.py      # Fetch/parse functions (one per endpoint/concept)

Sources:
  - dataset/  Offline occurrence dataset (store reference tier)
  - gbif/     GBIF name matching and nearby occurrence search

Every source returns ``wilder.schemas`` models; the core never sees raw
records.

Adding a new datasource
-----------------------
1. Create ``datasources/{name}/`` with the files above.
2. Use ``wilder.services.http.session`` for HTTP so retries apply.
3. Re-export public API in ``__init__.py`` with ``__all__``.
4. Wire into ``flows/fetch.py`` with a ``@task`` and a store path.
5. Add tests in ``tests/test_{name}.py``.
"""
