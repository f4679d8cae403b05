import pytest


@pytest.mark.parametrize(
    "path, marker",
    [
        ("/static/js/notifications.js", "window.showNotification"),
        ("/static/js/info-modal.js", "window.openInfo"),
        ("/static/js/notification-banner.js", "Notification.requestPermission"),
        ("/static/css/widgets.css", ".notification-toast"),
    ],
)
def test_widget_assets_are_served(client, path, marker):
    resp = client.get(path)
    try:
        assert resp.status_code == 200
        assert marker in resp.get_data(as_text=True)
    finally:
        resp.close()
