import asyncio

import pytest

from scraper.database import DatabaseService
from scraper.errors import EmptyOrCorruptFileError
from scraper.orchestrator import ProcessOrchestrator
from tests.fakes import CSV_HEADER, write_csv


class FakeScraper:
    def __init__(self, csv_path):
        self.csv_path = csv_path
        self.calls = 0

    async def download_csv(self):
        self.calls += 1
        return self.csv_path


def _run_process(orchestrator: ProcessOrchestrator):
    async def main():
        try:
            count = await orchestrator.run_full_process()
            return count, await orchestrator.database.count()
        finally:
            await orchestrator.database.close()
    return asyncio.run(main())


def test_full_process_loads_rows_and_removes_csv(tmp_path, sample_csv):
    orchestrator = ProcessOrchestrator(FakeScraper(sample_csv), DatabaseService(tmp_path / "test.db"))

    assert _run_process(orchestrator) == (3, 3)
    assert not sample_csv.exists()


def test_keep_downloads_preserves_csv(tmp_path, sample_csv):
    orchestrator = ProcessOrchestrator(
        FakeScraper(sample_csv), DatabaseService(tmp_path / "test.db"), keep_downloads=True
    )

    assert _run_process(orchestrator) == (3, 3)
    assert sample_csv.exists()


def test_corrupt_download_leaves_previous_data(tmp_path, sample_csv):
    db_path = tmp_path / "test.db"
    _run_process(ProcessOrchestrator(FakeScraper(sample_csv), DatabaseService(db_path)))

    empty_csv = write_csv(tmp_path / "vacio.csv", [CSV_HEADER])
    orchestrator = ProcessOrchestrator(FakeScraper(empty_csv), DatabaseService(db_path))

    with pytest.raises(EmptyOrCorruptFileError):
        _run_process(orchestrator)

    async def count():
        database = DatabaseService(db_path)
        try:
            return await database.count()
        finally:
            await database.close()

    assert asyncio.run(count()) == 3
    assert empty_csv.exists()


def test_download_failure_propagates(tmp_path):
    class BrokenScraper:
        async def download_csv(self):
            raise RuntimeError("navegador no disponible")

    orchestrator = ProcessOrchestrator(BrokenScraper(), DatabaseService(tmp_path / "test.db"))

    with pytest.raises(RuntimeError, match="navegador"):
        _run_process(orchestrator)


def test_csv_without_rows_after_header_keeps_previous_data(tmp_path, sample_csv):
    db_path = tmp_path / "test.db"
    _run_process(ProcessOrchestrator(FakeScraper(sample_csv), DatabaseService(db_path)))

    blank_csv = write_csv(tmp_path / "en_blanco.csv", [CSV_HEADER, "", "", ""])

    with pytest.raises(EmptyOrCorruptFileError):
        _run_process(ProcessOrchestrator(FakeScraper(blank_csv), DatabaseService(db_path)))

    async def count():
        database = DatabaseService(db_path)
        try:
            return await database.count()
        finally:
            await database.close()

    assert asyncio.run(count()) == 3
