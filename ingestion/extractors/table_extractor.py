"""
Results-table extraction.

The extractor only sees the abstract TabularDocument / TabularRow
capability; SoupDocument is the BeautifulSoup-backed implementation
returned by the report fetcher.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from bs4 import BeautifulSoup, Tag
import logging

logger = logging.getLogger(__name__)

RESULTS_TABLE_ID = "tblResultados"


class TabularRow(ABC):
    """A table row exposing its cells as text"""

    @abstractmethod
    def has_content(self) -> bool:
        """True when the row node carries attributes and children"""
        pass

    @abstractmethod
    def cell_texts(self) -> List[str]:
        """First text of each cell, left to right, skipping cells without text"""
        pass


class TabularDocument(ABC):
    """A parsed report page"""

    @abstractmethod
    def find_rows(self, anchor: str) -> Optional[List[TabularRow]]:
        """
        Rows of the table identified by ``anchor``.

        Returns:
            The row nodes in document order, or None if the anchor is absent
        """
        pass


class SoupRow(TabularRow):
    def __init__(self, tag: Tag):
        self.tag = tag

    def has_content(self) -> bool:
        return bool(self.tag.attrs) and bool(self.tag.contents)

    def cell_texts(self) -> List[str]:
        texts = []
        for cell in self.tag.find_all(["td", "th"], recursive=False):
            text = next(cell.stripped_strings, None)
            if text:
                texts.append(text)
        return texts


class SoupDocument(TabularDocument):
    """TabularDocument over BeautifulSoup's html.parser tree"""

    def __init__(self, soup: BeautifulSoup):
        self.soup = soup

    @classmethod
    def from_html(cls, html: str) -> "SoupDocument":
        return cls(BeautifulSoup(html, "html.parser"))

    def find_rows(self, anchor: str) -> Optional[List[TabularRow]]:
        table = self.soup.find(id=anchor)
        if table is None:
            return None

        body = table.find("tbody", recursive=False) or table
        return [SoupRow(tr) for tr in body.find_all("tr", recursive=False)]


def extract_rows(document: TabularDocument, anchor: str = RESULTS_TABLE_ID) -> List[List[str]]:
    """
    Project the results table into raw text rows.

    Args:
        document: Parsed report page
        anchor: Id of the results table

    Returns:
        One list of cell texts per populated row; empty when the page has
        no results table
    """
    rows = document.find_rows(anchor)
    if rows is None:
        logger.debug(f"No '{anchor}' table in document, treating as zero results")
        return []

    raw_rows = []
    for row in rows:
        if not row.has_content():
            continue
        cells = row.cell_texts()
        if cells:
            raw_rows.append(cells)

    return raw_rows
