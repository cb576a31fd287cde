from types import SimpleNamespace

import pytest

from crm.services.map_markers import bucket_key, group_markers, markers_payload, reconcile_selection


def prospect(pk, lat, lng, name="Prospect"):
    return SimpleNamespace(pk=pk, latitude=lat, longitude=lng, company_name=f"{name} {pk}", city="Paris", status_id=None, status=None)


class TestBucketKey:
    def test_rounds_half_up_to_five_decimals(self):
        assert bucket_key(48.856615, 2.352222) == "48.85662,2.35222"

    def test_negative_zero_is_normalized(self):
        assert bucket_key(-0.000001, 0) == "0.00000,0.00000"

    @pytest.mark.parametrize("a, b", [(48.8566201, 48.85662), (2.3522249, 2.352224)])
    def test_nearby_points_share_a_bucket(self, a, b):
        assert bucket_key(a, 0) == bucket_key(b, 0)


class TestGroupMarkers:
    def test_same_place_becomes_a_stack(self):
        groups = group_markers([
            prospect(1, 45.764043, 4.835659),
            prospect(2, 48.856614, 2.352222),
            prospect(3, 45.7640431, 4.8356592),
            prospect(4, None, None),
        ])

        assert [g.key for g in groups] == ["45.76404,4.83566", "48.85661,2.35222"]
        assert [p.pk for p in groups[0].members] == [1, 3]
        assert groups[0].is_stack
        assert groups[0].label == "+2"
        assert not groups[1].is_stack
        assert groups[1].label == ""

    def test_every_located_prospect_is_in_exactly_one_group(self):
        prospects = [prospect(i, 45 + (i % 3) / 10, 4.0) for i in range(1, 10)]
        groups = group_markers(prospects)
        members = [p.pk for g in groups for p in g.members]
        assert sorted(members) == list(range(1, 10))


class TestSelection:
    def setup_method(self):
        self.groups = group_markers([
            prospect(1, 45.764043, 4.835659),
            prospect(2, 45.764043, 4.835659),
            prospect(3, 48.856614, 2.352222),
        ])

    def test_selected_member_of_stack(self):
        state = reconcile_selection(self.groups, 2)
        assert state.selected_key == "45.76404,4.83566"
        assert state.icons == {"45.76404,4.83566": "selected", "48.85661,2.35222": "default"}

    def test_selection_dropped_when_prospect_gone(self):
        state = reconcile_selection(self.groups, 99)
        assert state.selected_key is None
        assert set(state.icons.values()) == {"default"}

    def test_payload(self):
        payload = markers_payload(self.groups, selected_id=3)
        assert payload[0]["stack"] is True
        assert payload[0]["label"] == "+2"
        assert [p["id"] for p in payload[0]["prospects"]] == [1, 2]
        assert payload[1]["icon"] == "selected"
        assert payload[1]["color"] == "#6B7280"
