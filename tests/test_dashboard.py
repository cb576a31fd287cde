import json

import pytest
from django.urls import reverse

from dashboard.models import DashboardConfig
from dashboard.services.layout import DEFAULT_LAYOUTS, default_widgets, get_config, save_widgets, validate_widgets


def widget(**overrides):
    data = {"id": "w1", "type": "revenue", "x": 0, "y": 0, "w": 3, "h": 2}
    data.update(overrides)
    return data


class TestValidateWidgets:
    @pytest.mark.parametrize("dashboard_type", list(DEFAULT_LAYOUTS))
    def test_default_layouts_are_valid(self, dashboard_type):
        assert validate_widgets(default_widgets(dashboard_type)) == default_widgets(dashboard_type)

    def test_fills_title_and_config(self):
        cleaned = validate_widgets([widget()])
        assert cleaned[0]["title"] == "Chiffre d'affaires"
        assert cleaned[0]["config"] == {}

    @pytest.mark.parametrize("bad", [
        [widget(), widget()],
        [widget(type="weather")],
        [widget(x=10, w=4)],
        [widget(w=0)],
        [widget(x=-1)],
        [widget(y=True)],
        [widget(id="")],
        [widget(config=[1, 2])],
        ["w1"],
    ])
    def test_rejects(self, bad):
        with pytest.raises(ValueError):
            validate_widgets(bad)

    def test_not_a_list(self):
        with pytest.raises(ValueError):
            validate_widgets({"widgets": []})


@pytest.mark.django_db
class TestConfig:
    def test_builtin_default_is_unsaved(self, organization, user):
        config = get_config(user, organization, DashboardConfig.DashboardType.COMMERCIAL)
        assert config.pk is None
        assert config.widgets == default_widgets(DashboardConfig.DashboardType.COMMERCIAL)

    def test_organization_template_then_own_layout(self, organization, user, make_user):
        manager = make_user("carol")
        DashboardConfig.objects.create(
            organization=organization, user=manager, dashboard_type="default", is_default=True, widgets=[widget()],
        )

        config = get_config(user, organization)
        assert config.widgets == [widget()]

        save_widgets(config, [widget(id="mine", type="pending_quotes")])
        assert get_config(user, organization).widgets[0]["id"] == "mine"


@pytest.mark.django_db
class TestViews:
    def test_home(self, logged_client):
        assert logged_client.get("/").status_code == 200
        assert logged_client.get("/?type=finance").status_code == 200
        assert logged_client.get("/?type=commercial").status_code == 200

    def test_save_layout(self, logged_client, user):
        body = {"type": "default", "widgets": [widget(), widget(id="w2", type="activity_feed", x=3)]}
        response = logged_client.post(reverse("dashboard:save-layout"), json.dumps(body), content_type="application/json")

        assert response.status_code == 200
        assert response.json()["ok"] is True
        assert len(DashboardConfig.objects.get(user=user).widgets) == 2

    def test_save_layout_rejects_invalid(self, logged_client):
        body = {"type": "default", "widgets": [widget(x=11)]}
        response = logged_client.post(reverse("dashboard:save-layout"), json.dumps(body), content_type="application/json")
        assert response.status_code == 400
        assert response.json()["ok"] is False

    def test_save_layout_rejects_bad_json(self, logged_client):
        response = logged_client.post(reverse("dashboard:save-layout"), "{nope", content_type="application/json")
        assert response.status_code == 400
