# pqkit

Building blocks for working with PostgreSQL's wire formats from Python. Everything
here is pure computation on bytes, strings and Python values; no server is needed.

## Modules

- `pqkit.oid` – `Oid`, an `IntEnum` of the built-in type OIDs (array types carry an
  `_ARRAY` suffix, e.g. `Oid.TEXT_ARRAY`), and `type_name(oid)`, which returns the
  upper-case catalogue name (`"_TEXT"` for `Oid.TEXT_ARRAY`) or `""` if unknown.
- `pqkit.fields` – `FieldDesc(oid, size, modifier)`, describing a result column:
  `scan_type()` gives the Python type values decode to, `name()` the type name,
  `length()` the length of `text`, `bytea`, `varchar` and `bpchar` columns (else
  `None`), and `precision_scale()` a `(precision, scale)` tuple for numeric columns
  (else `None`).
- `pqkit.errors` – `PqError`, an exception holding the fields of an ErrorResponse or
  NoticeResponse, built from a message body with `parse_error(payload)`. It offers
  `fatal()`, `sql_state()`, `get(field)` by wire field code, `code_name()`,
  `code_class()` and `to_dict()`. The SQLSTATE condition names are available through
  `error_code_name()`, `error_class()` and `error_class_name()`; `Severity` lists the
  severity levels.
- `pqkit.timestamps` – `parse_timestamp()` and `format_timestamp()` for the
  `ISO, MDY` text format, including `BC` suffixes on input and offsets with seconds;
  `parse_ts()` and `format_ts()`, which map `-infinity`/`infinity` once
  `enable_infinity_ts()` has been called (undone by `disable_infinity_ts()`); and
  `NullTime`, a datetime that may be NULL. Dates outside Python's `datetime` range
  (before year 1 or after 9999) raise `ValueError` when parsed.
- `pqkit.encode` – parameter encoding (`encode`, `binary_encode`) and result decoding
  (`decode`, `text_decode`, `binary_decode`) driven by a type OID, a `Format` and a
  `ParameterStatus` (server version and session time zone); `time`/`timetz` parsing
  with `parse_time_of_day`, including `24:00`; bytea in hex and escape form
  (`encode_bytea`, `parse_bytea`); and COPY text encoding (`encode_copy_text`,
  `escape_copy_text`).
- `pqkit.hstore` – `Hstore`, whose `map` is a `dict[str, str | None]` (or `None` for a
  NULL hstore), with `scan()` and `value()` for the hstore text format, and
  `quote_hstore()`.
- `pqkit.scram` – `ScramClient`, the client side of a SCRAM conversation (such as
  SCRAM-SHA-256) driven by `step()`, `out()`, `err()` and `set_nonce()`; failures are
  recorded as `ScramError`.
- `pqkit.notices` – `notice_handler()` and `set_notice_handler()` for any object with a
  `notice_handler` attribute, and `NoticeHandlerConnector` /
  `connector_with_notice_handler()` / `connector_notice_handler()` to set a handler on
  every connection a connector makes.

## Install

    pip install pqkit

## Examples

Parse and format timestamps:

    from pqkit.timestamps import parse_timestamp, format_timestamp

    ts = parse_timestamp(None, "2001-02-03 04:05:06.123-07")
    format_timestamp(ts)   # b"2001-02-03 04:05:06.123-07:00"

Encode and decode a bytea value:

    from pqkit.encode import encode_bytea, parse_bytea

    encode_bytea(90000, b"\x00\xff")   # b"\\x00ff"
    parse_bytea(b"\\x00ff")            # b"\x00\xff"

Round-trip an hstore:

    from pqkit.hstore import Hstore

    h = Hstore({"key1": "value1", "gone": None})
    back = Hstore()
    back.scan(h.value())
    back.map   # {"key1": "value1", "gone": None}

Start a SCRAM exchange:

    import hashlib
    from pqkit.scram import ScramClient

    password = "password"
    client = ScramClient(hashlib.sha256, "user", password)
    client.step(None)
    first_message = client.out()   # b"n,,n=user,r=..."

Look up an error condition:

    from pqkit.errors import error_code_name

    error_code_name("23505")   # "unique_violation"

## What it does not do

pqkit does not open connections, send queries, run COPY, or listen for
notifications; there is no connection string parsing, no TLS, and no GSS/Kerberos
authentication. It provides the encoding, decoding and authentication steps that a
client built on top of it would use.

## Tests

    pip install -e ".[test]"
    pytest