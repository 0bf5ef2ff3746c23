"""q-explore exploration history client.

- core: unit conversion and coordinate helpers
- schemas: pydantic models for requests, records and settings
- services: record codec, history store, replay, sync and export
- infrastructure: key-value persistence, settings and logging
"""

__version__ = "0.1.0"
