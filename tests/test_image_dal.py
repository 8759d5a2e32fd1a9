"""Tests for the DynamoDB data access layer."""

import asyncio
import copy

import pytest

from conftest import FARMER_INDEX, FakeTable, make_record
from dal.image_dal import ImageDAL


@pytest.fixture
def labelled_record():
    return make_record(
        "p1",
        "Asha",
        "wheat",
        "2024-05-01T00:00:00Z",
        pestName="aphid",
        pestStage="nymph",
        cropStage="flowering",
        diseaseName="",
        remarks="first pass",
        isGoldStandard=False,
    )


class TestUpdateImage:
    def test_partial_update_never_clobbers_other_fields(self, labelled_record):
        table = FakeTable([labelled_record])
        before = copy.deepcopy(table.items["p1"])

        asyncio.run(ImageDAL(table).update_image("p1", {"remarks": "looks like rust"}))

        after = table.items["p1"]
        assert after["remarks"] == "looks like rust"
        for attr, value in before.items():
            if attr != "remarks":
                assert after[attr] == value

    def test_update_uses_set_with_placeholders(self, labelled_record):
        table = FakeTable([labelled_record])
        asyncio.run(ImageDAL(table).update_image("p1", {"timestamp": "x", "isGoldStandard": True}))
        method, kwargs = table.calls[-1]
        assert method == "update_item"
        assert kwargs["Key"] == {"id": "p1"}
        assert kwargs["UpdateExpression"] == "SET #f0 = :v0, #f1 = :v1"

    def test_empty_update_is_rejected_before_the_store(self, labelled_record):
        table = FakeTable([labelled_record])
        with pytest.raises(ValueError):
            asyncio.run(ImageDAL(table).update_image("p1", {}))
        assert table.calls == []


class TestReads:
    def test_query_index_page_builds_key_condition(self, scenario_records):
        table = FakeTable(scenario_records)
        page = asyncio.run(
            ImageDAL(table).query_index_page(FARMER_INDEX, "farmerName", "Bala", limit=1)
        )
        assert [row["id"] for row in page.rows] == ["r4"]
        assert page.last_key == {"id": "r4", "farmerName": "Bala", "timestamp": "2024-01-04T00:00:00Z"}

    def test_scan_page_projection_uses_placeholders(self, scenario_records):
        table = FakeTable(scenario_records)
        page = asyncio.run(ImageDAL(table).scan_page(projection=("id", "timestamp")))
        method, kwargs = table.calls[0]
        assert kwargs["ProjectionExpression"] == "#p0, #p1"
        assert page.rows[0] == {"id": "r1", "timestamp": "2024-01-01T00:00:00Z"}

    def test_put_image_stores_the_full_record(self):
        table = FakeTable()
        asyncio.run(ImageDAL(table).put_image({"id": "n1", "farmerName": "Devi"}))
        assert table.items == {"n1": {"id": "n1", "farmerName": "Devi"}}
