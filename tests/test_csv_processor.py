import pytest

from scraper.csv_processor import CsvProcessor
from scraper.errors import EmptyOrCorruptFileError
from tests.fakes import CSV_HEADER, write_csv


def test_header_only_file_is_rejected(tmp_path):
    path = write_csv(tmp_path / "solo_encabezado.csv", [CSV_HEADER])

    with pytest.raises(EmptyOrCorruptFileError):
        CsvProcessor().parse(path)


def test_empty_file_is_rejected(tmp_path):
    path = tmp_path / "vacio.csv"
    path.write_text("", encoding="utf-8")

    with pytest.raises(EmptyOrCorruptFileError):
        CsvProcessor().parse(path)


def test_whitespace_only_file_is_rejected(tmp_path):
    path = tmp_path / "blanco.csv"
    path.write_text("   \n  \n", encoding="utf-8")

    with pytest.raises(EmptyOrCorruptFileError):
        CsvProcessor().parse(path)


def test_missing_file_raises_file_not_found(tmp_path):
    with pytest.raises(FileNotFoundError):
        CsvProcessor().parse(tmp_path / "no-existe.csv")


def test_fields_are_mapped_by_position_and_trimmed(tmp_path):
    path = write_csv(tmp_path / "emisores.csv", [
        "A,B,C,D,E,F",
        " 1 , 101000011 ,  ACME SRL , ACME , 01/02/2024 , 01/02/2025 ",
    ])

    records = CsvProcessor().parse(path)

    assert len(records) == 1
    record = records[0]
    assert record.orden == "1"
    assert record.rnc == "101000011"
    assert record.razon_social == "ACME SRL"
    assert record.nombre_comercial == "ACME"
    assert record.fecha_autorizacion == "01/02/2024"
    assert record.fecha_limite == "01/02/2025"


def test_missing_trailing_fields_default_to_empty(tmp_path):
    path = write_csv(tmp_path / "corto.csv", [CSV_HEADER, "7,130000022,BANCO SA"])

    record = CsvProcessor().parse(path)[0]

    assert record.razon_social == "BANCO SA"
    assert record.nombre_comercial == ""
    assert record.fecha_limite == ""


def test_blank_lines_are_skipped(tmp_path):
    path = write_csv(tmp_path / "huecos.csv", [
        CSV_HEADER,
        "1,101000011,ACME SRL,ACME,01/02/2024,",
        "",
        " , , ",
        "2,130000022,BANCO SA,,15/03/2024,",
    ])

    records = CsvProcessor().parse(path)

    assert [r.rnc for r in records] == ["101000011", "130000022"]


def test_quoted_fields_keep_commas(tmp_path):
    path = write_csv(tmp_path / "comillas.csv", [
        CSV_HEADER,
        '1,101000011,"ACME, S.R.L.",ACME,01/02/2024,',
    ])

    record = CsvProcessor().parse(path)[0]

    assert record.razon_social == "ACME, S.R.L."
    assert record.nombre_comercial == "ACME"


def test_byte_order_mark_is_dropped(tmp_path):
    path = tmp_path / "bom.csv"
    path.write_bytes(("\ufeff" + CSV_HEADER + "\r\n1,101000011,ACME SRL,,,\r\n").encode("utf-8"))

    records = CsvProcessor().parse(path)

    assert len(records) == 1
    assert records[0].orden == "1"


def test_sample_file_preserves_order(sample_csv):
    records = CsvProcessor().parse(sample_csv)

    assert [r.orden for r in records] == ["1", "2", "3"]
    assert records[1].razon_social == "BANCO DEL CARIBE SA"


def test_header_followed_by_blank_lines_is_rejected(tmp_path):
    path = write_csv(tmp_path / "sin_filas.csv", [CSV_HEADER, "", "", " , , "])

    with pytest.raises(EmptyOrCorruptFileError):
        CsvProcessor().parse(path)
