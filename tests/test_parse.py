from dbseed.errors.codes import ErrorCode
from dbseed.schema.lexer import TokenKind, tokenize
from dbseed.schema.parse import (
    parse_enum_check,
    parse_tables,
    split_declarations,
)
from dbseed.schema.types import ForeignKey, SemanticType


def _only(sql):
    tables = parse_tables(sql)
    assert len(tables) == 1
    return tables[0]


def _col(table, name):
    return table.columns[table.index(name)]


# --- tokenizer ------------------------------------------------------------------


def test_tokenize_quotes_and_escapes():
    tokens = tokenize("\"Order Id\" TEXT DEFAULT 'it''s'")
    assert [t.kind for t in tokens] == [
        TokenKind.QUOTED,
        TokenKind.WORD,
        TokenKind.WORD,
        TokenKind.STRING,
    ]
    assert tokens[0].value == "Order Id"
    assert tokens[3].value == "it's"


# --- declarations ---------------------------------------------------------------


def test_split_declarations_handles_qualifiers_and_schema_prefix():
    decls = split_declarations(
        "create table if not exists public.users (id int); "
        "CREATE TEMP TABLE `logs` (msg text);"
    )
    assert [d.name for d in decls] == ["users", "logs"]
    assert decls[0].body == "id int"
    assert not decls[0].truncated


def test_unbalanced_body_is_truncated_not_fatal():
    sql = "CREATE TABLE a (id INT PRIMARY KEY, name TEXT NOT NULL, price DECIMAL(10,2"
    table = _only(sql)
    assert table.truncated is True
    assert [c.name for c in table.columns] == ["id", "name", "price"]
    assert _col(table, "name").not_null


def test_unbalanced_body_stops_at_next_declaration():
    tables = parse_tables("CREATE TABLE a (id INT, CREATE TABLE b (id INT);")
    assert [t.name for t in tables] == ["a", "b"]
    assert tables[0].truncated is True
    assert tables[1].truncated is False


# --- column definitions ---------------------------------------------------------


def test_column_flags_and_types():
    table = _only(
        """
        CREATE TABLE users (
          id SERIAL PRIMARY KEY,
          email VARCHAR(255) NOT NULL UNIQUE,
          role VARCHAR(50) NOT NULL CHECK (role IN ('admin', "user", 'moderator')),
          score DOUBLE PRECISION,
          born_at TIMESTAMP WITH TIME ZONE,
          active BOOLEAN DEFAULT (true)
        );
        """
    )
    by_name = {c.name: c for c in table.columns}
    assert by_name["id"].primary_key and by_name["id"].type == SemanticType.INTEGER
    assert by_name["email"].not_null and by_name["email"].unique
    assert by_name["email"].raw_type == "VARCHAR(255)"
    assert by_name["role"].allowed_values == ("admin", "user", "moderator")
    assert by_name["score"].type == SemanticType.DECIMAL
    assert by_name["born_at"].type == SemanticType.TIMESTAMP
    assert by_name["active"].type == SemanticType.BOOLEAN
    assert not by_name["active"].not_null


def test_defaults_when_no_constraints():
    col = _col(_only("CREATE TABLE t (note TEXT);"), "note")
    assert (col.not_null, col.unique, col.primary_key) == (False, False, False)
    assert col.allowed_values == ()
    assert col.foreign_key is None


def test_inline_reference_defaults_to_id():
    table = _only("CREATE TABLE posts (author INT REFERENCES users, editor INT REFERENCES users(uid));")
    assert _col(table, "author").foreign_key == ForeignKey("users", "id")
    assert _col(table, "editor").foreign_key == ForeignKey("users", "uid")


def test_non_enum_check_is_ignored():
    col = _col(_only("CREATE TABLE r (rating INT CHECK (rating >= 1 AND rating <= 5));"), "rating")
    assert col.allowed_values == ()
    assert col.type == SemanticType.INTEGER


def test_unknown_type_is_text():
    col = _col(_only("CREATE TABLE g (shape GEOMETRY);"), "shape")
    assert col.type == SemanticType.TEXT
    assert col.raw_type == "GEOMETRY"


def test_duplicate_column_keeps_first():
    table = _only("CREATE TABLE t (a INT NOT NULL, a TEXT);")
    assert len(table.columns) == 1
    assert _col(table, "a").not_null
    assert table.issues[0][0] == ErrorCode.SCHEMA_DUPLICATE_COLUMN


# --- table-level constraints ----------------------------------------------------


def test_table_level_primary_and_foreign_keys():
    table = _only(
        """
        CREATE TABLE order_items (
          order_id INT NOT NULL,
          product_id INT NOT NULL,
          PRIMARY KEY (order_id, product_id),
          FOREIGN KEY (order_id) REFERENCES orders(id),
          CONSTRAINT fk_product FOREIGN KEY (product_id) REFERENCES products (id)
        );
        """
    )
    assert _col(table, "order_id").primary_key
    assert _col(table, "product_id").primary_key
    assert _col(table, "order_id").foreign_key == ForeignKey("orders", "id")
    assert _col(table, "product_id").foreign_key == ForeignKey("products", "id")
    assert table.issues == []


def test_table_level_unique_and_check():
    table = _only(
        "CREATE TABLE t (code TEXT, kind TEXT, UNIQUE (code), CHECK (kind IN ('a', 'b')));"
    )
    assert _col(table, "code").unique
    assert _col(table, "kind").allowed_values == ("a", "b")


def test_constraint_columns_match_case_insensitively():
    table = _only("CREATE TABLE t (UserId INT, PRIMARY KEY (userid));")
    assert _col(table, "UserId").primary_key


def test_unmatched_constraint_columns_are_skipped_with_a_note():
    table = _only("CREATE TABLE t (a INT, PRIMARY KEY (missing), FOREIGN KEY (nope) REFERENCES x(id));")
    assert not _col(table, "a").primary_key
    assert _col(table, "a").foreign_key is None
    codes = {code for code, _ in table.issues}
    assert codes == {ErrorCode.SCHEMA_SKIPPED_CLAUSE}
    assert len(table.issues) == 2


def test_unsupported_clauses_do_not_break_other_columns():
    table = _only(
        """
        CREATE TABLE t (
          id INT PRIMARY KEY,
          INDEX idx_name (name),
          EXCLUDE USING gist (period WITH &&),
          name TEXT NOT NULL,
          CHECK (length(name) > 2)
        );
        """
    )
    assert [c.name for c in table.columns] == ["id", "name"]
    assert _col(table, "name").not_null
    assert len(table.issues) == 3


# --- enumeration checks ---------------------------------------------------------


def test_parse_enum_check_shapes():
    assert parse_enum_check("status IN ('pending', 'paid')") == ("status", ("pending", "paid"))
    assert parse_enum_check("(status in ('a'))") == ("status", ("a",))
    assert parse_enum_check("status IN ('a') AND x > 1") is None
    assert parse_enum_check("rating >= 1") is None
    assert parse_enum_check("") is None
