from __future__ import annotations

from sqlloadgen.ddl import emit_ddl
from sqlloadgen.naming import ConstraintKind, derive_constraint_name, partition_name
from sqlloadgen.schema import build_schema


def test_constraint_names():
    assert derive_constraint_name(ConstraintKind.FOREIGN_KEY, "orders", ["customer_id", "customers", "id"]) == (
        "fk_orders_customer_id_customers_id"
    )
    assert derive_constraint_name(ConstraintKind.UNIQUE, "items", ["sku", "code"]) == "uniq_items_sku_code"
    assert derive_constraint_name(ConstraintKind.INDEX, "t", ["a", "b"]) == "idx_t_a_b"
    assert partition_name("t", 3) == "t_p3"


def test_shop_ddl_is_emitted_in_phases(shop):
    _, schema, _, _ = shop
    assert emit_ddl(schema) == [
        "CREATE TABLE customers (id serial PRIMARY KEY, name varchar(16) NOT NULL);",
        "COMMENT ON TABLE customers IS 'Customers';",
        "COMMENT ON COLUMN customers.name IS 'Full name';",
        "CREATE TABLE orders (id int PRIMARY KEY, customer_id int, amount numeric, status varchar(8));",
        "COMMENT ON TABLE orders IS 'Orders placed by customers';",
        "CREATE TABLE items (sku bigint PRIMARY KEY, code uuid, price int, label text);",
        "ALTER TABLE orders ADD CONSTRAINT fk_orders_customer_id_customers_id "
        "FOREIGN KEY (customer_id) REFERENCES customers (id);",
        "ALTER TABLE items ADD CONSTRAINT uniq_items_sku_code UNIQUE (code);",
        "CREATE INDEX IF NOT EXISTS idx_items_price ON items (price);",
        "CREATE INDEX IF NOT EXISTS idx_items_label ON items USING HASH (label);",
    ]


def test_old_engines_use_btree_for_character_indexes(shop):
    _, schema, _, _ = shop
    ddl = emit_ddl(schema, engine_version=9)
    assert "CREATE INDEX IF NOT EXISTS idx_items_label ON items (label);" in ddl


def test_implicit_index_on_column_one(make_profile):
    schema = build_schema(make_profile("table.log=\nlog.column.1=tag\nlog.column.1.type=varchar(8)\nlog.column.2=n\n"))
    assert emit_ddl(schema) == [
        "CREATE TABLE log (tag varchar(8), n int);",
        "CREATE INDEX idx_log_tag ON log USING HASH (tag);",
    ]


def test_referenced_implicit_key_gets_unique_index(make_profile):
    text = (
        "table.parent=\nparent.column.1=code\nparent.column.1.type=varchar(8)\nparent.column.2=n\n"
        "table.child=\nchild.column.1=id\nchild.column.1.primarykey=true\n"
        "child.column.2=parent_code\nchild.column.2.type=varchar(8)\nchild.column.2.foreignkey.table=parent\n"
    )
    schema = build_schema(make_profile(text))
    assert emit_ddl(schema) == [
        "CREATE TABLE parent (code varchar(8), n int);",
        "CREATE UNIQUE INDEX idx_parent_code ON parent (code);",
        "CREATE TABLE child (id int PRIMARY KEY, parent_code varchar(8));",
        "ALTER TABLE child ADD CONSTRAINT fk_child_parent_code_parent_code "
        "FOREIGN KEY (parent_code) REFERENCES parent (code);",
    ]
    assert schema.table("parent").indexes == ()


def test_partitioned_table_with_unique_column(make_profile):
    text = (
        "table.t=\n"
        "t.column.1=id\nt.column.1.primarykey=true\n"
        "t.column.2=code\nt.column.2.type=char(4)\nt.column.2.unique=true\n"
        "t.partitions=2\n"
    )
    assert emit_ddl(build_schema(make_profile(text))) == [
        "CREATE TABLE t (id int PRIMARY KEY, code char(4)) PARTITION BY HASH (id);",
        "CREATE TABLE t_p0 PARTITION OF t FOR VALUES WITH (MODULUS 2, REMAINDER 0);",
        "CREATE TABLE t_p1 PARTITION OF t FOR VALUES WITH (MODULUS 2, REMAINDER 1);",
        "ALTER TABLE t ADD CONSTRAINT uniq_t_id_code UNIQUE (id, code);",
    ]


def test_comment_quotes_are_escaped(make_profile):
    schema = build_schema(make_profile("table.t=Bob's table\nt.column.1=a\nt.column.1.primarykey=true\n"))
    assert "COMMENT ON TABLE t IS 'Bob''s table';" in emit_ddl(schema)
