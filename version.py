"""Project version constants.

These constants are written into the run manifest so that exported report
files can be traced back to a specific engine and table schema version.
"""

ENGINE_NAME: str = "invsnap"
ENGINE_VERSION: str = "0.1.0"

SCHEMA_VERSION: int = 1
