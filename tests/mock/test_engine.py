import datetime

import pytest

import athenaduck
from athenaduck import AthenaDate, ExecutionFailed
from athenaduck.client import ColumnInfo
from athenaduck.connector import Connection
from athenaduck.mock import DuckDBAthenaClient
from athenaduck.mock.engine import athena_column, bind_parameters, format_cell, has_header_row


def test_select_decodes_athena_types(duck_conn: Connection):
    rows = duck_conn.run_query(
        "SELECT 1 AS id, CAST(2.5 AS DOUBLE) AS score, true AS active,"
        " DATE '2024-01-01' AS signup, 'vic' AS name, NULL::VARCHAR AS note,"
        " TIMESTAMP '2024-01-02 03:04:05' AS seen"
    )

    assert list(rows) == [
        (
            1,
            2.5,
            True,
            AthenaDate(datetime.date(2024, 1, 1)),
            "vic",
            None,
            datetime.datetime(2024, 1, 2, 3, 4, 5),
        )
    ]
    assert rows.columns == ["id", "score", "active", "signup", "name", "note", "seen"]
    assert [c.type for c in rows.column_info] == [
        "integer",
        "double",
        "boolean",
        "date",
        "varchar",
        "varchar",
        "timestamp",
    ]


def test_parameters_are_bound(duck_conn: Connection):
    duck_conn.exec("CREATE TABLE users (id INTEGER, name VARCHAR, signup DATE)")
    duck_conn.exec(
        "INSERT INTO users VALUES (?, ?, ?)", [1, "o'neil", datetime.date(2024, 1, 1)]
    )
    duck_conn.exec("INSERT INTO users VALUES (?, ?, ?)", [2, "ann", None])

    with duck_conn.cursor() as cur:
        cur.execute("SELECT id, name FROM users WHERE name = ? ORDER BY id", ["o'neil"])
        assert cur.fetchall() == [(1, "o'neil")]

        cur.execute("SELECT id FROM users WHERE signup IS NULL")
        assert cur.fetchall() == [(2,)]


def test_missing_table_fails_with_reason(duck_conn: Connection):
    with pytest.raises(ExecutionFailed) as excinfo:
        duck_conn.run_query("SELECT * FROM missing")

    assert str(excinfo.value).startswith("TABLE_NOT_FOUND: ")
    assert "missing" in str(excinfo.value)


def test_syntax_error_fails_with_reason(duck_conn: Connection):
    with pytest.raises(ExecutionFailed) as excinfo:
        duck_conn.run_query("SELEC 1")

    assert str(excinfo.value).startswith("SYNTAX_ERROR: ")


def test_results_are_paginated(duck_client: DuckDBAthenaClient):
    with athenaduck.connect(database="analytics", client=duck_client, page_size=2) as conn:
        rows = conn.run_query("SELECT * FROM range(5)")

        assert [row[0] for row in rows] == [0, 1, 2, 3, 4]


def test_ddl_results_have_no_header(duck_conn: Connection):
    rows = duck_conn.run_query("CREATE TABLE more_events (id INTEGER)", skip_header=False)

    assert list(rows) == []


def test_database_maps_to_schema(duck_client: DuckDBAthenaClient, duck_conn: Connection):
    duck_conn.exec("CREATE TABLE events (id INTEGER)")

    tables = duck_client.duck_conn.sql(
        "SELECT table_schema FROM information_schema.tables WHERE table_name = 'events'"
    ).fetchall()

    assert tables == [("analytics",)]


def test_stop_after_completion_keeps_state(duck_client: DuckDBAthenaClient):
    query_id = duck_client.submit("SELECT 1", "analytics", None, "s3://results/", None, [])

    duck_client.stop(query_id)

    status = duck_client.get_status(query_id)
    assert status.state == "SUCCEEDED"
    assert status.output_location == f"s3://results/{query_id}.csv"


def test_results_of_failed_query_are_unavailable(duck_client: DuckDBAthenaClient):
    query_id = duck_client.submit("SELECT * FROM missing", None, None, None, None, [])

    with pytest.raises(ValueError):
        duck_client.get_result_page(query_id, None, 10)


@pytest.mark.parametrize(
    "query, params, expected",
    [
        ("SELECT ?", ["1"], "SELECT 1"),
        ("SELECT ?, ?", ["'a'", "NULL"], "SELECT 'a', NULL"),
        ("SELECT '?', ?", ["2"], "SELECT '?', 2"),
        ('SELECT "a?" FROM t WHERE x = ?', ["3"], 'SELECT "a?" FROM t WHERE x = 3'),
        ("SELECT 1", [], "SELECT 1"),
    ],
)
def test_bind_parameters(query, params, expected):
    assert bind_parameters(query, params) == expected


@pytest.mark.parametrize(
    "query, params",
    [
        ("SELECT ?, ?", ["1"]),
        ("SELECT ?", ["1", "2"]),
    ],
)
def test_bind_parameters_count_mismatch(query, params):
    with pytest.raises(ValueError):
        bind_parameters(query, params)


@pytest.mark.parametrize(
    "duck_type, expected",
    [
        ("INTEGER", ColumnInfo(name="c", type="integer", nullable="UNKNOWN")),
        ("HUGEINT", ColumnInfo(name="c", type="bigint", nullable="UNKNOWN")),
        ("DECIMAL(10,2)", ColumnInfo(name="c", type="decimal", precision=10, scale=2, nullable="UNKNOWN")),
        ("VARCHAR", ColumnInfo(name="c", type="varchar", precision=2147483647, nullable="UNKNOWN")),
        ("INTEGER[]", ColumnInfo(name="c", type="array", nullable="UNKNOWN")),
        ("STRUCT(a INTEGER)", ColumnInfo(name="c", type="row", nullable="UNKNOWN")),
        ("MAP(VARCHAR, INTEGER)", ColumnInfo(name="c", type="map", nullable="UNKNOWN")),
        ("BLOB", ColumnInfo(name="c", type="varbinary", nullable="UNKNOWN")),
    ],
)
def test_athena_column(duck_type, expected):
    assert athena_column("c", duck_type) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, None),
        (True, "true"),
        (7, "7"),
        (datetime.date(2024, 1, 1), "2024-01-01"),
        (datetime.datetime(2024, 1, 2, 3, 4, 5), "2024-01-02 03:04:05.000"),
        (
            datetime.datetime(2024, 1, 2, 5, 4, 5, tzinfo=datetime.timezone(datetime.timedelta(hours=2))),
            "2024-01-02 03:04:05.000 UTC",
        ),
        (b"\x01\xff", "01 ff"),
        ([1, None], "[1, null]"),
        ({"a": 1, "b": None}, "{a=1, b=null}"),
    ],
)
def test_format_cell(value, expected):
    assert format_cell(value) == expected


def test_show_tables_has_no_header(duck_conn: Connection):
    duck_conn.exec("CREATE TABLE events (id INTEGER)")

    rows = duck_conn.run_query("SHOW TABLES", skip_header=False)

    assert list(rows) == [("events",)]


def test_timestamp_with_time_zone_is_read_as_utc(duck_conn: Connection):
    rows = duck_conn.run_query(
        "SELECT TIMESTAMPTZ '2024-01-01 14:00:00+02' AS seen, 'x' AS tag, NULL::TIMESTAMPTZ AS gone"
    )

    assert rows.column_type(0) == "timestamp with time zone"
    assert list(rows) == [
        (datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc), "x", None)
    ]


@pytest.mark.parametrize(
    "query, expected",
    [
        ("SELECT 1", True),
        ("  with t AS (SELECT 1) SELECT * FROM t", True),
        ("(SELECT 1) UNION ALL (SELECT 2)", True),
        ("-- latest\nSELECT 1", True),
        ("/* n */ VALUES (1)", True),
        ("SHOW TABLES", False),
        ("DESCRIBE events", False),
        ("CREATE TABLE t (id INTEGER)", False),
        ("", False),
    ],
)
def test_has_header_row(query, expected):
    assert has_header_row(query) is expected
