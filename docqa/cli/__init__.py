"""Command-line tools for docqa.

- ``python -m docqa.cli init`` -- create the database schema and vector collection
- ``python -m docqa.cli ingest`` -- upload a local PDF for a user
- ``python -m docqa.cli ask`` -- ask a question about an ingested document
- ``python -m docqa.cli history`` -- print a user's questions and answers
"""
