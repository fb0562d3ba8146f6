import httpx
import pytest

from app.models import Company
from app.services.company_import import CompanyImportError, import_companies, map_company
from conftest import make_company

API = "https://companies.example.test/api/company/list"

PAGES = {
    "1": {
        "items": [
            {"alias": "acme", "name": " Acme ", "name_en": "Acme LLC", "branch_name": "IT", "modifiedLogo": "acme.png"},
            {"alias": "noname", "name": ""},
        ],
        "meta": {"page": 1, "totalPages": 2, "hasNextPage": True},
    },
    "2": {
        "items": [{"alias": "globex", "name": "Globex", "branch_name": "Energy"}],
        "meta": {"page": 2, "totalPages": 2, "hasNextPage": False},
    },
}


def _client(pages=PAGES, fail_on=None):
    requested = []

    def handler(request: httpx.Request) -> httpx.Response:
        page = request.url.params["page"]
        requested.append(page)
        if page == fail_on:
            return httpx.Response(503, json={"message": "unavailable"})
        return httpx.Response(200, json=pages[page])

    return httpx.Client(transport=httpx.MockTransport(handler)), requested


def test_map_company():
    assert map_company({"alias": "a", "name": " A ", "name_en": "A", "branch_name": "IT", "modifiedLogo": "a.png"}) == {
        "alias": "a",
        "name": "A",
        "name_en": "A",
        "industry": "IT",
        "modified_logo": "a.png",
    }
    assert map_company({})["name"] == ""


def test_import_walks_pages_and_upserts(db):
    make_company(db, "Acme", description="kept", industry="Old")
    client, requested = _client()
    sleeps = []

    total = import_companies(db, client, url=API, delay=0.5, sleep=sleeps.append)

    assert total == 2
    assert requested == ["1", "2"]
    assert sleeps == [0.5]
    companies = {c.name: c for c in db.query(Company).all()}
    assert set(companies) == {"Acme", "Globex"}
    assert companies["Acme"].industry == "IT"
    assert companies["Acme"].description == "kept"
    assert companies["Acme"].modified_logo == "acme.png"
    assert companies["Globex"].industry == "Energy"


def test_import_is_idempotent(db):
    client, _ = _client()
    import_companies(db, client, url=API, delay=0)
    import_companies(db, client, url=API, delay=0)
    assert db.query(Company).count() == 2


def test_import_can_resume_from_page(db):
    client, requested = _client()
    assert import_companies(db, client, url=API, start_page=2, delay=0) == 1
    assert requested == ["2"]


def test_failing_page_aborts_import(db):
    client, _ = _client(fail_on="2")
    with pytest.raises(CompanyImportError):
        import_companies(db, client, url=API, delay=0)
    # page 1 was already saved
    assert [c.name for c in db.query(Company).all()] == ["Acme"]


def test_failing_record_is_skipped(db, monkeypatch):
    from app.services import company_import

    real_upsert = company_import.upsert_company_by_name

    def flaky(session, values):
        if values["name"] == "Acme":
            raise RuntimeError("bad record")
        return real_upsert(session, values)

    monkeypatch.setattr(company_import, "upsert_company_by_name", flaky)
    client, _ = _client()
    assert import_companies(db, client, url=API, delay=0) == 1
    assert [c.name for c in db.query(Company).all()] == ["Globex"]


def test_cli_runs_import_and_reports_failure(monkeypatch):
    import import_companies as cli

    seen = {}

    def fake_import(db, client, url, start_page, delay):
        seen.update(url=url, start_page=start_page, delay=delay)
        return 3

    monkeypatch.setattr(cli, "import_companies", fake_import)
    assert cli.main(["--url", API, "--start-page", "4", "--delay", "0"]) == 0
    assert seen == {"url": API, "start_page": 4, "delay": 0.0}

    def failing_import(*args, **kwargs):
        raise CompanyImportError("Failed to fetch page 1")

    monkeypatch.setattr(cli, "import_companies", failing_import)
    assert cli.main(["--delay", "0"]) == 1


def test_non_json_page_aborts_import(db):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    client = httpx.Client(transport=httpx.MockTransport(handler))
    with pytest.raises(CompanyImportError, match="Invalid JSON on page 1"):
        import_companies(db, client, url=API, delay=0)
    assert db.query(Company).count() == 0
