"""Shared fixtures: in-memory stand-ins for the DynamoDB table and S3 client.

FakeTable mimics the parts of DynamoDB the service relies on:
- `Limit` bounds the items *evaluated*, and FilterExpression runs afterwards,
  so a page can come back empty while `LastEvaluatedKey` is still set.
- Index queries return items ordered by `timestamp`, newest-first when
  `ScanIndexForward=False`.
- Without `Limit`, pages are cut at `default_page_size` items to stand in
  for the 1 MB response cap.
"""

import copy
import re
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

FARMER_INDEX = "GSI_FarmerNameTimestamp"
CROP_INDEX = "GSI_CropNameTimestamp"


def evaluate_condition(condition, item):
    """Evaluate a boto3 condition object against a plain dict item."""
    expression = condition.get_expression()
    operator = expression["operator"]
    values = expression["values"]
    if operator == "AND":
        return all(evaluate_condition(value, item) for value in values)
    if operator == "OR":
        return any(evaluate_condition(value, item) for value in values)
    if operator == "NOT":
        return not evaluate_condition(values[0], item)
    if operator == "=":
        attr, expected = values
        return attr.name in item and item[attr.name] == expected
    if operator == "attribute_not_exists":
        return values[0].name not in item
    if operator == "attribute_exists":
        return values[0].name in item
    raise NotImplementedError(f"FakeTable does not support operator {operator!r}")


class FakeTable:
    """In-memory DynamoDB `Table` with two timestamp-ordered secondary indexes."""

    def __init__(self, items=(), default_page_size=1000):
        self.items = {}
        for item in items:
            self.items[item["id"]] = copy.deepcopy(item)
        self.indexes = {
            FARMER_INDEX: ("farmerName", "timestamp"),
            CROP_INDEX: ("cropName", "timestamp"),
        }
        self.default_page_size = default_page_size
        self.calls = []
        self.fail_with = None

    # --- reads -----------------------------------------------------------
    def scan(self, **kwargs):
        self._record("scan", kwargs)
        ordered = list(self.items.values())
        return self._page(ordered, kwargs, lambda item: {"id": item["id"]})

    def query(self, **kwargs):
        self._record("query", kwargs)
        hash_attr, range_attr = self.indexes[kwargs["IndexName"]]
        key_condition = kwargs["KeyConditionExpression"]
        candidates = [
            item
            for item in self.items.values()
            if hash_attr in item and evaluate_condition(key_condition, item)
        ]
        candidates.sort(
            key=lambda item: (item.get(range_attr, ""), item["id"]),
            reverse=not kwargs.get("ScanIndexForward", True),
        )

        def index_key(item):
            key = {"id": item["id"], hash_attr: item[hash_attr]}
            if range_attr in item:
                key[range_attr] = item[range_attr]
            return key

        return self._page(candidates, kwargs, index_key)

    # --- writes ----------------------------------------------------------
    def put_item(self, Item):
        self._record("put_item", {"Item": Item})
        self.items[Item["id"]] = copy.deepcopy(Item)
        return {}

    def update_item(self, Key, UpdateExpression, ExpressionAttributeNames, ExpressionAttributeValues, ReturnValues="NONE"):
        self._record("update_item", {"Key": Key, "UpdateExpression": UpdateExpression})
        assert UpdateExpression.startswith("SET ")
        item = self.items.setdefault(Key["id"], dict(Key))
        for assignment in UpdateExpression[len("SET "):].split(","):
            name_ref, value_ref = (part.strip() for part in assignment.split("="))
            item[ExpressionAttributeNames[name_ref]] = ExpressionAttributeValues[value_ref]
        return {}

    # --- helpers ---------------------------------------------------------
    def _record(self, method, kwargs):
        self.calls.append((method, kwargs))
        if self.fail_with is not None:
            raise self.fail_with

    def _page(self, ordered, kwargs, key_fn):
        start = 0
        start_key = kwargs.get("ExclusiveStartKey")
        if start_key:
            ids = [item["id"] for item in ordered]
            start = ids.index(start_key["id"]) + 1 if start_key["id"] in ids else len(ordered)

        window_size = kwargs.get("Limit") or self.default_page_size
        window = ordered[start:start + window_size]

        filter_expression = kwargs.get("FilterExpression")
        matched = [item for item in window if filter_expression is None or evaluate_condition(filter_expression, item)]

        projection = kwargs.get("ProjectionExpression")
        if projection:
            names = kwargs.get("ExpressionAttributeNames", {})
            attrs = [names.get(ref.strip(), ref.strip()) for ref in re.split(r",", projection)]
            matched = [{attr: item[attr] for attr in attrs if attr in item} for item in matched]

        response = {"Items": copy.deepcopy(matched), "Count": len(matched), "ScannedCount": len(window)}
        if window and start + len(window) < len(ordered):
            response["LastEvaluatedKey"] = key_fn(window[-1])
        return response

    def query_calls(self):
        return [kwargs for method, kwargs in self.calls if method == "query"]


class FakeS3Client:
    """Presigns deterministic URLs; keys listed in `failing_keys` raise."""

    def __init__(self, failing_keys=()):
        self.failing_keys = set(failing_keys)
        self.objects = {}

    def generate_presigned_url(self, ClientMethod, Params=None, ExpiresIn=3600, HttpMethod=None):
        key = Params["Key"]
        if key in self.failing_keys:
            raise RuntimeError(f"cannot sign {key}")
        return f"https://{Params['Bucket']}.example/{key}?method={ClientMethod}&expires={ExpiresIn}"

    def put_object(self, Bucket, Key, Body, ContentType=None):
        self.objects[(Bucket, Key)] = {"Body": Body, "ContentType": ContentType}
        return {}


def make_record(record_id, farmer, crop, timestamp, **extra):
    record = {
        "id": record_id,
        "farmerName": farmer,
        "cropName": crop,
        "timestamp": timestamp,
        "imageUrl": f"images/{record_id}.jpg",
    }
    record.update(extra)
    return record


@pytest.fixture
def scenario_records():
    """Asha/Bala dataset; the last record has no isGoldStandard attribute at all."""
    return [
        make_record("r1", "Asha", "wheat", "2024-01-01T00:00:00Z", isGoldStandard=True),
        make_record("r2", "Asha", "rice", "2024-01-02T00:00:00Z", isGoldStandard=False),
        make_record("r3", "Bala", "wheat", "2024-01-03T00:00:00Z", isGoldStandard=True),
        make_record("r4", "Bala", "wheat", "2024-01-04T00:00:00Z"),
    ]


@pytest.fixture
def fake_aws():
    def _build(table, s3_client=None, **overrides):
        state = SimpleNamespace(
            table=table,
            s3_client=s3_client or FakeS3Client(),
            bucket="crop-images",
            farmer_index=FARMER_INDEX,
            crop_index=CROP_INDEX,
            signed_url_expires=3600,
            dual_filter_page_size=200,
        )
        for name, value in overrides.items():
            setattr(state, name, value)
        return state

    return _build


@pytest.fixture
def api_client(fake_aws, monkeypatch):
    """Return a factory building a TestClient with fake AWS state and a session cookie."""
    from fastapi.testclient import TestClient

    from main import create_app

    monkeypatch.delenv("AUTH_COOKIE_NAME", raising=False)

    def _build(table, s3_client=None, verifier=None, with_session=True):
        app = create_app()
        app.state.aws = fake_aws(table, s3_client)
        app.state.session_verifier = verifier
        client = TestClient(app)
        if with_session:
            client.cookies.set("agri_auth", "session-token")
        return client

    return _build
