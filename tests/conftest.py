"""
Pytest configuration and fixtures
"""

import pytest
import pytest_asyncio
import httpx
from typing import Any, Callable, Dict, List, Optional, Tuple
from datetime import date
from sqlalchemy import Insert, Select
from sqlalchemy.sql import operators
from sqlalchemy.sql.elements import BinaryExpression, BindParameter, BooleanClauseList, Null
from core.exceptions import StoreError
from ingestion.extractors.report_fetcher import ReportFetcher
from schemas.normalized import CommodityRef
from schemas.window import QueryWindow, PriceType

TEST_REPORT_URL = "http://sniim.test/ResultadosConsulta.aspx"

HEADER_CELLS = ["Fecha", "Presentación", "Origen", "Destino", "Precio Mín", "Precio Máx", "Precio Frec", "Obs."]


def where_criteria(clause) -> List[Tuple[str, Any]]:
    """
    (column, value) pairs of an AND of equality and IS NULL comparisons.

    IS NULL comes back as (column, None), so a row matches it only when
    the column is None.
    """
    if clause is None:
        return []
    if isinstance(clause, BooleanClauseList):
        if clause.operator is not operators.and_:
            raise NotImplementedError(f"Unsupported where clause: {clause}")
        return [pair for c in clause.clauses for pair in where_criteria(c)]

    if isinstance(clause, BinaryExpression):
        if clause.operator is operators.is_ and isinstance(clause.right, Null):
            return [(clause.left.name, None)]
        if clause.operator is operators.eq and isinstance(clause.right, BindParameter):
            return [(clause.left.name, clause.right.value)]

    raise NotImplementedError(f"Unsupported where clause: {clause}")


class FakeQueryExecutor:
    """
    In-memory stand-in for QueryExecutor.

    Interprets the Core statements built in ingestion.queries against
    per-table lists of dictionaries.
    """

    def __init__(self, commodities: Optional[List[Dict[str, Any]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            "commodities": list(commodities or []),
            "markets": [],
            "prices": [],
            "ingestion_runs": [],
        }
        self.statements = []
        self.fail_when: Optional[Callable[[Any], bool]] = None
        self.shutdown_called = False

    async def execute_query(self, statement, params=None):
        self.statements.append(statement)
        if self.fail_when and self.fail_when(statement):
            raise StoreError("Simulated store failure", context={"statement": str(statement)})

        if isinstance(statement, Insert):
            bound = dict(statement.compile().params)
            table = self.tables[statement.table.name]
            row = {"id": len(table) + 1, **bound}
            table.append(row)
            return [dict(row)]

        if isinstance(statement, Select):
            table_name = statement.get_final_froms()[0].name
            criteria = where_criteria(statement.whereclause)
            return [
                dict(row) for row in self.tables[table_name]
                if all(row.get(column) == value for column, value in criteria)
            ]

        raise NotImplementedError(f"Unsupported statement: {statement}")

    async def shutdown(self):
        self.shutdown_called = True

    def inserts_into(self, table_name: str) -> int:
        return sum(
            1 for s in self.statements
            if isinstance(s, Insert) and s.table.name == table_name
        )


def build_report_html(rows: List[List[str]], header: bool = True) -> str:
    """Report page with rows in the results table; blank strings become &nbsp; cells"""
    body = []
    if header:
        body.append(
            '<tr class="titDATtab2">'
            + "".join(f"<td><strong>{cell}</strong></td>" for cell in HEADER_CELLS)
            + "</tr>"
        )
    for index, row in enumerate(rows):
        cells = "".join(f"<td>{cell or '&nbsp;'}</td>" for cell in row)
        body.append(f'<tr class="Datos{index % 2 + 1}">\n  {cells}\n</tr>')

    return (
        "<html><body>\n"
        '<table id="tblResultados" width="100%">\n<tbody>\n'
        + "\n".join(body)
        + "\n</tbody>\n</table>\n</body></html>"
    )


@pytest.fixture
def commodities():
    return [CommodityRef(id=1, external_id=355, name="Papa alpha")]


@pytest.fixture
def fake_executor():
    return FakeQueryExecutor(commodities=[{"id": 1, "external_id": 355, "name": "Papa alpha"}])


@pytest.fixture
def empty_executor():
    return FakeQueryExecutor()


@pytest.fixture
def historic_window():
    return QueryWindow(
        start_date=date(2021, 1, 1),
        end_date=date(2021, 12, 31),
        price_type=PriceType.COMMERCIAL,
        page_size=50000,
    )


@pytest_asyncio.fixture
async def make_fetcher():
    """Build a ReportFetcher whose requests are answered by ``handler``"""
    created = []

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> ReportFetcher:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        fetcher = ReportFetcher(base_url=TEST_REPORT_URL, timeout=5.0, client=client)
        created.append(client)
        return fetcher

    yield _make

    for client in created:
        await client.aclose()


@pytest.fixture
def report_rows():
    """One valid row and one row with an impossible date"""
    return [
        ["15/03/2021", "Arpilla 25 kg", "Sinaloa", "Jalisco: Mercado de Abasto de Guadalajara",
         "1,000.50", "2,000.00", "1,500.25", ""],
        ["00/13/2021", "Arpilla 25 kg", "Sinaloa", "Jalisco: Mercado de Abasto de Guadalajara",
         "1,000.00", "1,100.00", "1,050.00", ""],
    ]


@pytest.fixture
def render_report():
    return build_report_html
