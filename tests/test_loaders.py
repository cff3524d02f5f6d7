"""
Tests for reading CSV/XLSX sheets into normalized records.
"""

import io

import pandas as pd
import pytest

from data_alchemist.errors import UnsupportedInputError
from data_alchemist.loaders import load_entity_file, read_table
from data_alchemist.models import EntityKind

CLIENTS_CSV = (
    "Client ID,Client Name,Priority Level,Requested Task IDs,Group Tag,AttributesJSON\n"
    'C1,Acme,4,"T1,T2",enterprise,"{""budget"": 10}"\n'
    ",,,,,\n"
    "C2,Globex,,T3,,\n"
)


@pytest.fixture
def clients_csv(tmp_path):
    path = tmp_path / "clients.csv"
    path.write_text(CLIENTS_CSV)
    return path


class TestReadTable:
    def test_cells_are_kept_as_text(self, clients_csv):
        rows, headers = read_table(str(clients_csv))
        assert headers[0] == "Client ID"
        assert rows[0]["Priority Level"] == "4"
        assert rows[1]["Client ID"] == ""

    def test_file_object_with_filename(self):
        rows, headers = read_table(io.BytesIO(b"TaskID,Duration\nT1,2\n"), filename="tasks.csv")
        assert headers == ["TaskID", "Duration"]
        assert rows == [{"TaskID": "T1", "Duration": "2"}]

    def test_unnamed_columns_dropped(self, tmp_path):
        path = tmp_path / "tasks.csv"
        path.write_text("TaskID,,Duration\nT1,x,2\n")
        _, headers = read_table(str(path))
        assert headers == ["TaskID", "Duration"]

    def test_excel_sheet(self, tmp_path):
        path = tmp_path / "workers.xlsx"
        pd.DataFrame([{"WorkerID": "W1", "WorkerName": "Alice", "Skills": "Python, SQL"}]).to_excel(path, index=False)
        rows, headers = read_table(str(path))
        assert headers == ["WorkerID", "WorkerName", "Skills"]
        assert rows[0]["Skills"] == "Python, SQL"

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "clients.txt"
        path.write_text("ClientID\nC1\n")
        with pytest.raises(UnsupportedInputError):
            read_table(str(path))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "clients.csv"
        path.write_text("")
        with pytest.raises(UnsupportedInputError):
            read_table(str(path))


class TestLoadEntityFile:
    def test_normalizes_loaded_rows(self, clients_csv):
        records, mapping, errors = load_entity_file(str(clients_csv), EntityKind.CLIENT)

        assert mapping["ClientID"] == "Client ID"
        assert [r["ClientID"] for r in records] == ["C1", "C2"]
        assert records[0]["RequestedTaskIDs"] == ["T1", "T2"]
        assert records[0]["AttributesJSON"] == '{"budget": 10}'
        # Blank priority falls back to the medium default
        assert records[1]["PriorityLevel"] == 3
        assert errors == []
