import pytest

from aupgrab import create_app
from aupgrab.extensions import db


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


@pytest.fixture
def services(app):
    return app.extensions["aupgrab"]


@pytest.fixture
def submit(services):
    def _submit(category="food", session_id="S1", **overrides):
        fields = {
            "session_id": session_id,
            "name": "Ana Cruz",
            "phone": "09170000000",
            "item_type": "Chicken Adobo",
            "quantity": 2,
            "special_requests": '{"pickupLocation": "Canteen", "notes": "extra rice"}',
            "delivery_location": "Dorm B",
            "total_amount": "150",
        }
        fields.update(overrides)
        return services.bookings.submit(category, **fields)

    return _submit
