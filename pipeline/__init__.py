"""Pipeline components.

This package contains the DuckDB utilities, table DDL, CSV import, exploration
and cleanup statements, the business queries and the result exporters.
"""
