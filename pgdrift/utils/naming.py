# ==============================================
# SQL naming and quoting helpers
# ==============================================
#
# Every caller-supplied name (schema, table, column, PK) passes
# through quote_identifier before it is put into query or DDL text.
# JSON keys embedded in string literals pass through quote_literal.
#
# ==============================================

import hashlib
import re
from typing import Optional, Tuple

from pgdrift.errors import InvalidIdentifierError


# PostgreSQL NAMEDATALEN - 1
MAX_IDENTIFIER_LENGTH = 63

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_]")


def quote_identifier(identifier: str) -> str:
    """
    Quote a PostgreSQL identifier so it can be interpolated safely.

    Examples:
        quote_identifier("users") → '"users"'
        quote_identifier('my"table') → '"my""table"'

    Raises:
        InvalidIdentifierError: For empty names or names containing NUL
    """
    if not identifier:
        raise InvalidIdentifierError("Identifier must not be empty")
    if "\x00" in identifier:
        raise InvalidIdentifierError(f"Identifier contains a NUL byte: {identifier!r}")
    return '"' + identifier.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    """Quote a string literal, doubling embedded single quotes."""
    return "'" + value.replace("'", "''") + "'"


def qualified_name(table: str, schema: Optional[str] = None) -> str:
    """
    Build a quoted, optionally schema-qualified relation name.

    Examples:
        qualified_name("users") → '"users"'
        qualified_name("users", "public") → '"public"."users"'
    """
    if schema:
        return f"{quote_identifier(schema)}.{quote_identifier(table)}"
    return quote_identifier(table)


def parse_table_name(name: str, default_schema: str = "public") -> Tuple[str, str]:
    """
    Split "schema.table" into its parts.

    Examples:
        parse_table_name("myschema.users") → ("myschema", "users")
        parse_table_name("users") → ("public", "users")
    """
    if "." in name:
        schema, table = name.split(".", 1)
        return schema, table
    return default_schema, name


def build_index_name(table: str, column: str, path: str, kind: str) -> str:
    """
    Build a deterministic, identifier-safe index name.

    "[]" becomes "_arr", "." becomes "_", anything outside [A-Za-z0-9_]
    is dropped. Flattening is lossy ("user.email" and "user_email" both
    become "user_email"), so a path that is not already a plain
    identifier gets a short md5 of the raw inputs appended. Names over
    63 characters are truncated and suffixed the same way.

    Examples:
        build_index_name("users", "metadata", "plan", "partial_gin")
            → "idx_users_metadata_plan_partial_gin"
        build_index_name("users", "metadata", "user.email", "btree_ext")
            → "idx_users_metadata_user_email_btree_ext_<md5[:8]>"
        build_index_name("users", "metadata", "addresses[].city", "partial_gin")
            → "idx_users_metadata_addresses_arr_city_partial_gin_<md5[:8]>"
    """
    parts = ["idx", table, column]
    if path:
        parts.append(path.replace("[]", "_arr").replace(".", "_"))
    parts.append(kind)
    name = _UNSAFE_NAME_CHARS.sub("", "_".join(parts))

    lossy = bool(path) and _UNSAFE_NAME_CHARS.search(path) is not None
    if not lossy and len(name) <= MAX_IDENTIFIER_LENGTH:
        return name

    raw = "\x00".join((table, column, path, kind))
    digest = hashlib.md5(raw.encode("utf-8")).hexdigest()[:8]
    return f"{name[:MAX_IDENTIFIER_LENGTH - len(digest) - 1]}_{digest}"
