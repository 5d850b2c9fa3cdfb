"""Shared fixtures for the eCFR agency metrics test suite."""

import pytest
from unittest.mock import Mock

from ecfr_metrics.core.models import Success


@pytest.fixture
def title_structure():
    """A title 7 structure with two chapters; chapter I holds parts 1, 2 and 3."""
    return {
        "type": "title",
        "identifier": "7",
        "children": [
            {
                "type": "subtitle",
                "identifier": "A",
                "children": [
                    {"type": "part", "identifier": "0"},
                ],
            },
            {
                "type": "chapter",
                "identifier": "I",
                "children": [
                    {
                        "type": "subchapter",
                        "identifier": "A",
                        "children": [
                            {"type": "part", "identifier": "1"},
                            {"type": "part", "identifier": "2"},
                        ],
                    },
                    {"type": "part", "identifier": "3"},
                ],
            },
            {
                "type": "chapter",
                "identifier": "II",
                "children": [
                    {"type": "part", "identifier": "210"},
                ],
            },
        ],
    }


@pytest.fixture
def make_response():
    """Build a fake requests.Response."""
    def _make(status_code=200, json_data=None, text=""):
        response = Mock()
        response.status_code = status_code
        response.ok = 200 <= status_code < 300
        response.json.return_value = json_data
        response.text = text
        return response
    return _make


@pytest.fixture
def ecfr_client(title_structure):
    """Mock EcfrClient serving ``title_structure`` for every date."""
    client = Mock()
    client.fetch_structure.return_value = Success(data=title_structure)
    client.fetch_part_xml.return_value = Success(data="<P>Entities SHALL comply.</P>")
    return client
