import pytest

from app.models import Company, Review, User
from app.services import rating
from app.services.rating import compute_average_rating, refresh_average_rating
from conftest import make_company


@pytest.fixture
def authors(db):
    users = [User(name=f"u{i}", email=f"u{i}@example.com", hashed_password="x") for i in range(3)]
    db.add_all(users)
    db.commit()
    return users


def test_no_reviews_means_no_average(db):
    company = make_company(db, "Empty", average_rating=3.0)
    assert compute_average_rating(db, company.id) is None
    assert refresh_average_rating(db, company.id) is None
    db.expire_all()
    assert db.get(Company, company.id).average_rating is None


def test_refresh_stores_mean_of_company_reviews_only(db, authors):
    acme = make_company(db, "Acme")
    other = make_company(db, "Other")
    db.add_all(
        [
            Review(rating=5, comment="great", company_id=acme.id, author_id=authors[0].id),
            Review(rating=2, comment="meh", company_id=acme.id, author_id=authors[1].id),
            Review(rating=1, comment="bad", company_id=other.id, author_id=authors[2].id),
        ]
    )
    db.commit()

    assert refresh_average_rating(db, acme.id) == pytest.approx(3.5)
    db.expire_all()
    assert db.get(Company, acme.id).average_rating == pytest.approx(3.5)
    assert db.get(Company, other.id).average_rating is None


def test_refresh_failure_is_logged_and_swallowed(db, monkeypatch, caplog):
    company = make_company(db, "Acme", average_rating=4.0)

    def boom(*args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(rating, "compute_average_rating", boom)
    assert refresh_average_rating(db, company.id) is None
    assert "Failed to refresh average rating" in caplog.text
    db.expire_all()
    assert db.get(Company, company.id).average_rating == 4.0
