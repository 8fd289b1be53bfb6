"""SQL functions used by search predicates, per dialect.

PostgreSQL gets ``similarity`` from the pg_trgm extension and full-text
matching from tsvector/tsquery. SQLite gets Python implementations of the
same semantics registered on every new DBAPI connection.
"""

from sqlalchemy import Boolean, Float
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import FunctionElement

from ..search.trigram import text_match as _py_text_match
from ..search.trigram import trigram_similarity


class similarity(FunctionElement):
    """Trigram similarity between a column and a search term."""
    type = Float()
    name = "similarity"
    inherit_cache = True


class text_match(FunctionElement):
    """True when every word of the term occurs in the column's document."""
    type = Boolean()
    name = "text_match"
    inherit_cache = True


@compiles(similarity)
def _compile_similarity(element, compiler, **kw):
    return "similarity(%s)" % compiler.process(element.clauses, **kw)


@compiles(text_match)
def _compile_text_match(element, compiler, **kw):
    return "text_match(%s)" % compiler.process(element.clauses, **kw)


@compiles(text_match, "postgresql")
def _compile_text_match_pg(element, compiler, **kw):
    document, term = list(element.clauses)
    return "to_tsvector('simple', %s) @@ plainto_tsquery('simple', %s)" % (
        compiler.process(document, **kw),
        compiler.process(term, **kw),
    )


def register_sqlite_functions(dbapi_connection, connection_record) -> None:
    """``connect`` event hook installing the search functions on SQLite."""
    dbapi_connection.create_function("similarity", 2, trigram_similarity, deterministic=True)
    dbapi_connection.create_function("text_match", 2, _py_text_match, deterministic=True)
