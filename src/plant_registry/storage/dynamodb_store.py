from __future__ import annotations

import os
from typing import Any, Dict, Iterable, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import StoreLoadError
from ..models import normalize_name


class DynamoStorage:
    """dynamodb implementation of the persistence port
    uses a simple key design: pk = sk = f"PLANT#{normalized name}"
    save_all rewrites the table contents to match the in-memory collection
    """

    def __init__(self, table_name: Optional[str] = None, region: Optional[str] = None, table: Any = None):
        self.region = region or os.environ.get("AWS_REGION", "eu-west-1")
        self.table_name = table_name or os.environ.get("DDB_TABLE", "plants")
        if table is None:
            dynamodb = boto3.resource("dynamodb", region_name=self.region)
            table = dynamodb.Table(self.table_name)
        self.table = table

    # helpers ----------------------------------------------------------
    @staticmethod
    def _pk(name: str) -> str:
        return f"PLANT#{normalize_name(name)}"

    def _to_item(self, data: Dict[str, Any]) -> Dict[str, Any]:
        pk = self._pk(str(data.get("name", "")))
        return {"PK": pk, "SK": pk, "entity": "PLANT", **{k: v for k, v in data.items() if v is not None}}

    @staticmethod
    def _from_item(item: Dict[str, Any]) -> Dict[str, Any]:
        # strip dynamo-only fields
        return {k: v for k, v in item.items() if k not in {"PK", "SK", "entity"}}

    def _scan(self) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        kwargs: Dict[str, Any] = {}
        while True:
            res = self.table.scan(**kwargs)
            items.extend(it for it in res.get("Items", []) if it.get("entity") == "PLANT")
            last = res.get("LastEvaluatedKey")
            if not last:
                return items
            kwargs["ExclusiveStartKey"] = last

    # interface methods -----------------------------------------------
    def load_all(self) -> List[Dict[str, Any]]:
        try:
            return [self._from_item(it) for it in self._scan()]
        except (BotoCoreError, ClientError) as e:
            raise StoreLoadError(f"dynamodb table {self.table_name} is unreadable: {e}") from e

    def save_all(self, items: Iterable[Dict[str, Any]]) -> None:
        wanted = [self._to_item(it) for it in items]
        keep = {it["PK"] for it in wanted}
        stale = [it["PK"] for it in self._scan() if it["PK"] not in keep]
        with self.table.batch_writer() as batch:
            for item in wanted:
                batch.put_item(Item=item)
            for pk in stale:
                batch.delete_item(Key={"PK": pk, "SK": pk})
