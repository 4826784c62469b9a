import datetime

import pytest

import athenaduck
from athenaduck import AthenaDate, CallerCancelled, ExecutionFailed, InterfaceError, ProgrammingError
from athenaduck.connector import Connection
from athenaduck.mock import MockAthenaClient

COLUMNS = ["id", "name", "signup"]
TYPES = ["integer", "varchar", "date"]
ROWS = [
    ["1", "vic", "2024-01-01"],
    ["2", "ann", None],
    ["3", "bob", "2024-03-15"],
]


@pytest.fixture
def cursor(conn: Connection, mock_client: MockAthenaClient):
    mock_client.mock_query(COLUMNS, TYPES, ROWS, page_size=2)
    with conn.cursor() as cur:
        cur.execute("SELECT id, name, signup FROM users")
        yield cur


def test_fetchone(cursor):
    assert cursor.fetchone() == (1, "vic", AthenaDate(datetime.date(2024, 1, 1)))
    assert cursor.fetchone() == (2, "ann", None)
    assert cursor.fetchone() == (3, "bob", AthenaDate(datetime.date(2024, 3, 15)))
    assert cursor.fetchone() is None


def test_fetchmany(cursor):
    assert len(cursor.fetchmany()) == 1

    cursor.arraysize = 5
    assert [row[0] for row in cursor.fetchmany()] == [2, 3]
    assert cursor.fetchmany(2) == []


def test_fetchall(cursor):
    cursor.fetchone()

    assert [row[1] for row in cursor.fetchall()] == ["ann", "bob"]
    assert cursor.fetchall() == []


def test_iteration(cursor):
    assert [row[0] for row in cursor] == [1, 2, 3]


def test_description(cursor):
    description = cursor.description

    assert [d.name for d in description] == COLUMNS
    assert [d.type_code for d in description] == TYPES
    assert description[0].type_code == athenaduck.NUMBER
    assert description[1].type_code == athenaduck.STRING
    assert description[2].type_code == athenaduck.DATETIME
    assert cursor.column_type(2) == "date"


def test_rowcount_and_query_id(cursor, mock_client: MockAthenaClient):
    assert cursor.rowcount == -1
    assert cursor.query_id == mock_client.submissions[0]["query_id"]


def test_execute_binds_parameters(conn: Connection, mock_client: MockAthenaClient):
    mock_client.mock_query(["id"], ["integer"], [["1"]])

    with conn.cursor() as cur:
        cur.execute(
            "SELECT id FROM users WHERE name = ? AND signup >= ?",
            ["o'neil", datetime.date(2024, 1, 1)],
        )

    assert mock_client.submissions[0]["params"] == ["'o''neil'", "date '2024-01-01'"]


def test_execute_replaces_previous_result(conn: Connection, mock_client: MockAthenaClient):
    mock_client.mock_query(["a"], ["int"], [["1"], ["2"]])
    mock_client.mock_query(["b"], ["varchar"], [["x"]])

    with conn.cursor() as cur:
        cur.execute("SELECT a FROM t")
        assert cur.fetchone() == (1,)
        cur.execute("SELECT b FROM t")
        assert cur.fetchall() == [("x",)]
        assert cur.description[0].name == "b"


def test_fetch_without_result_set(conn: Connection):
    with conn.cursor() as cur:
        assert cur.description is None
        with pytest.raises(ProgrammingError) as excinfo:
            cur.fetchone()

    assert "No open result set" in str(excinfo.value)


def test_failed_execute_keeps_query_id(conn: Connection, mock_client: MockAthenaClient):
    script = mock_client.mock_failure("TABLE_NOT_FOUND: Table 'missing' does not exist")

    with conn.cursor() as cur:
        with pytest.raises(ExecutionFailed):
            cur.execute("SELECT * FROM missing")

        assert cur.query_id == script.query_id
        assert cur.description is None


def test_cancelled_execute(conn: Connection, mock_client: MockAthenaClient):
    mock_client.mock_query(["a"], ["int"], [], statuses=["RUNNING"])
    token = athenaduck.CancelToken()
    token.cancel()

    with conn.cursor() as cur:
        with pytest.raises(CallerCancelled):
            cur.execute("SELECT a FROM t", cancel=token)

    assert mock_client.call_count("stop") == 1


def test_executemany(conn: Connection, mock_client: MockAthenaClient):
    for _ in range(3):
        mock_client.mock_query(["rows"], ["bigint"], [])

    with conn.cursor() as cur:
        cur.executemany("INSERT INTO t VALUES (?)", [[1], [2], [3]])
        assert cur.query_id == mock_client.submissions[-1]["query_id"]

    assert [s["params"] for s in mock_client.submissions] == [["1"], ["2"], ["3"]]
    assert mock_client.call_count("get_result_page") == 0


def test_closed_cursor(cursor):
    cursor.close()

    assert cursor.is_closed()
    with pytest.raises(InterfaceError):
        cursor.fetchone()
    with pytest.raises(InterfaceError):
        cursor.execute("SELECT 1")


def test_input_and_output_sizes_are_ignored(cursor):
    cursor.setinputsizes([10])
    cursor.setoutputsize(10)

    assert cursor.fetchone()[0] == 1
