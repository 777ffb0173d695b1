import pytest
from sqlalchemy.exc import IntegrityError

from farmfresh import create_app
from farmfresh.extensions import db


@pytest.fixture()
def failing_app():
    app = create_app("testing")

    @app.get("/api/v1/broken-write")
    def broken_write():
        raise IntegrityError("INSERT INTO order_items ...", {}, Exception("FOREIGN KEY constraint failed"))

    @app.get("/broken-page")
    def broken_page():
        raise IntegrityError("DELETE FROM products ...", {}, Exception("FOREIGN KEY constraint failed"))

    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


def test_integrity_error_is_a_neutral_json_conflict(failing_app):
    response = failing_app.test_client().get("/api/v1/broken-write")

    assert response.status_code == 409
    assert response.get_json() == {"success": False, "message": "Conflict with existing data."}


def test_integrity_error_on_page_is_plain_text(failing_app):
    response = failing_app.test_client().get("/broken-page")

    assert response.status_code == 409
    assert response.get_data(as_text=True) == "Conflict with existing data."
    assert response.mimetype == "text/plain"
