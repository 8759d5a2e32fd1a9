"""Async Data Access Layer for the images table.

Provides ImageDAL, a thin wrapper over a boto3 DynamoDB `Table` resource.
Each method issues exactly one store call on a worker thread so the
event loop is never blocked; paging loops live in the services above.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from boto3.dynamodb.conditions import ConditionBase, Key


@dataclass
class PageResult:
    """One page of raw items plus the store's continuation key (None when exhausted)."""

    rows: List[Dict[str, Any]] = field(default_factory=list)
    last_key: Optional[Dict[str, Any]] = None


class ImageDAL:
    """Data access layer for image records.

    The constructor accepts a boto3 `Table` resource (or any object exposing
    `scan`, `query`, `update_item` and `put_item` with the same
    keyword arguments).
    """

    PARTITION_KEY = "id"

    def __init__(self, table: Any) -> None:
        self._table = table

    async def scan_page(
        self,
        *,
        filter_expression: Optional[ConditionBase] = None,
        limit: Optional[int] = None,
        start_key: Optional[Dict[str, Any]] = None,
        projection: Optional[Sequence[str]] = None,
    ) -> PageResult:
        """Scan one page of the base table.

        Args:
            filter_expression: Non-key filter applied after `limit` is reached.
            limit: Maximum number of items to evaluate (None = store default page).
            start_key: `ExclusiveStartKey` from a previous page.
            projection: Attribute names to return (None = all).
        """
        kwargs: Dict[str, Any] = {}
        self._apply_common(kwargs, filter_expression, limit, start_key, projection)
        response = await asyncio.to_thread(self._table.scan, **kwargs)
        return self._to_page(response)

    async def query_index_page(
        self,
        index_name: str,
        key_attr: str,
        key_value: Any,
        *,
        filter_expression: Optional[ConditionBase] = None,
        limit: Optional[int] = None,
        start_key: Optional[Dict[str, Any]] = None,
        projection: Optional[Sequence[str]] = None,
        newest_first: bool = True,
    ) -> PageResult:
        """Query one page of a secondary index with `key_attr = key_value`."""
        kwargs: Dict[str, Any] = {
            "IndexName": index_name,
            "KeyConditionExpression": Key(key_attr).eq(key_value),
            "ScanIndexForward": not newest_first,
        }
        self._apply_common(kwargs, filter_expression, limit, start_key, projection)
        response = await asyncio.to_thread(self._table.query, **kwargs)
        return self._to_page(response)

    async def put_image(self, item: Mapping[str, Any]) -> None:
        """Insert (or replace) a full image record."""
        await asyncio.to_thread(self._table.put_item, Item=dict(item))

    async def update_image(self, image_id: str, fields: Mapping[str, Any]) -> None:
        """SET only the given attributes on the record keyed by `image_id`.

        Attributes not named in `fields` are left untouched.

        Raises:
            ValueError: If `fields` is empty.
        """
        if not fields:
            raise ValueError("No fields to update")

        names: Dict[str, str] = {}
        values: Dict[str, Any] = {}
        sets: List[str] = []
        for idx, (attr, value) in enumerate(fields.items()):
            names[f"#f{idx}"] = attr
            values[f":v{idx}"] = value
            sets.append(f"#f{idx} = :v{idx}")

        await asyncio.to_thread(
            self._table.update_item,
            Key={self.PARTITION_KEY: image_id},
            UpdateExpression=f"SET {', '.join(sets)}",
            ExpressionAttributeNames=names,
            ExpressionAttributeValues=values,
            ReturnValues="NONE",
        )

    @staticmethod
    def _apply_common(
        kwargs: Dict[str, Any],
        filter_expression: Optional[ConditionBase],
        limit: Optional[int],
        start_key: Optional[Dict[str, Any]],
        projection: Optional[Sequence[str]],
    ) -> None:
        if filter_expression is not None:
            kwargs["FilterExpression"] = filter_expression
        if limit is not None:
            kwargs["Limit"] = int(limit)
        if start_key:
            kwargs["ExclusiveStartKey"] = start_key
        if projection:
            # Placeholders keep reserved words such as `timestamp` usable.
            names = {f"#p{idx}": attr for idx, attr in enumerate(projection)}
            kwargs["ProjectionExpression"] = ", ".join(names)
            kwargs["ExpressionAttributeNames"] = names

    @staticmethod
    def _to_page(response: Mapping[str, Any]) -> PageResult:
        return PageResult(
            rows=list(response.get("Items") or []),
            last_key=response.get("LastEvaluatedKey") or None,
        )
