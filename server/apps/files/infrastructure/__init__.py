"""Infrastructure layer for the file store.

Adapters to the outside world:
- blob stores for version bytes (local directory or S3-compatible bucket)
- the metadata record store on top of the ``FileVersion`` table
- bearer token identity resolution
- content type and filename helpers
"""
