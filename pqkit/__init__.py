"""PostgreSQL wire-format helpers: type OIDs, column metadata, errors, value codecs, hstore, SCRAM and notice handlers."""

__version__ = "0.1.0"