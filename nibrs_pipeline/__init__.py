"""
NIBRS Pipeline

Ingests the U.S. law enforcement agencies table, cleans and enriches it,
and produces the snapshot used to report NIBRS adoption over time and
across jurisdictions.
"""

__version__ = "0.1.0"
