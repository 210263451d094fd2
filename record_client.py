"""
Record API clients.

All clients expose the same four calls and answer with the hosted backend's
response shape: ``{"success": bool, "message": str, "data": ...}`` for reads and
``{"success": bool, "results": [{"success": bool, "data"|"message": ...}]}``
for writes.
"""
import copy
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

import requests
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

import database
from errors import ServiceError
from record_query import field_names, page, record_matches, sort_records, to_mongo_filter

logger = logging.getLogger(__name__)

RECORD_BACKEND = os.getenv("RECORD_BACKEND", "http")
APPER_BASE_URL = os.getenv("APPER_BASE_URL")
APPER_PROJECT_ID = os.getenv("APPER_PROJECT_ID")
APPER_PUBLIC_KEY = os.getenv("APPER_PUBLIC_KEY")
APPER_TIMEOUT = float(os.getenv("APPER_TIMEOUT", "30"))

Response = Dict[str, Any]


class RecordClient(Protocol):
    """Interface of the hosted record API."""

    def fetch_records(self, table_name: str, params: Optional[Dict[str, Any]] = None) -> Response:
        ...

    def get_record_by_id(self, table_name: str, record_id: int,
                         params: Optional[Dict[str, Any]] = None) -> Response:
        ...

    def create_record(self, table_name: str, params: Dict[str, Any]) -> Response:
        ...

    def update_record(self, table_name: str, params: Dict[str, Any]) -> Response:
        ...


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _project(record: Dict[str, Any], names: List[str]) -> Dict[str, Any]:
    if not names:
        return copy.deepcopy(record)
    keep = set(names) | {"Id"}
    return {k: copy.deepcopy(v) for k, v in record.items() if k in keep}


class HttpRecordClient:
    """Client for the hosted backend's REST endpoints."""

    def __init__(self, base_url: str, project_id: str, public_key: str,
                 timeout: float = APPER_TIMEOUT, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "X-Project-Id": project_id,
            "Authorization": f"Bearer {public_key}",
            "Content-Type": "application/json",
        })

    def _post(self, path: str, payload: Dict[str, Any]) -> Response:
        response = self.session.post(f"{self.base_url}/{path}", json=payload, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def fetch_records(self, table_name, params=None):
        return self._post(f"{table_name}/fetch", params or {})

    def get_record_by_id(self, table_name, record_id, params=None):
        return self._post(f"{table_name}/get/{int(record_id)}", params or {})

    def create_record(self, table_name, params):
        return self._post(f"{table_name}/create", params)

    def update_record(self, table_name, params):
        return self._post(f"{table_name}/update", params)


class MongoRecordClient:
    """Record API backed by MongoDB, one collection per table."""

    def __init__(self, db):
        self.db = db

    @staticmethod
    def _projection(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        projection: Dict[str, Any] = {"_id": False}
        names = field_names(params)
        if names:
            projection.update({name: True for name in names})
            projection["Id"] = True
        return projection

    def fetch_records(self, table_name, params=None):
        params = params or {}
        cursor = self.db[table_name].find(to_mongo_filter(params), self._projection(params))
        sort = [
            (s["fieldName"], -1 if (s.get("sorttype") or "ASC").upper() == "DESC" else 1)
            for s in params.get("orderBy") or []
        ]
        if sort:
            cursor = cursor.sort(sort)
        paging = params.get("pagingInfo") or {}
        if paging.get("offset"):
            cursor = cursor.skip(int(paging["offset"]))
        if paging.get("limit"):
            cursor = cursor.limit(int(paging["limit"]))
        return {"success": True, "data": list(cursor)}

    def get_record_by_id(self, table_name, record_id, params=None):
        record = self.db[table_name].find_one({"Id": int(record_id)}, self._projection(params))
        return {"success": True, "data": record}

    def create_record(self, table_name, params):
        results = []
        for incoming in params.get("records") or []:
            doc = dict(incoming)
            try:
                doc["Id"] = database.next_id(self.db, table_name)
                doc["CreatedOn"] = _now()
                self.db[table_name].insert_one(doc)
            except PyMongoError as e:
                logger.error("Insert into %s failed: %s", table_name, e)
                results.append({"success": False, "message": str(e)})
                continue
            doc.pop("_id", None)
            results.append({"success": True, "data": doc})
        return {"success": True, "results": results}

    def update_record(self, table_name, params):
        results = []
        for incoming in params.get("records") or []:
            changes = {k: v for k, v in incoming.items() if k != "Id"}
            changes["ModifiedOn"] = _now()
            try:
                updated = self.db[table_name].find_one_and_update(
                    {"Id": int(incoming["Id"])},
                    {"$set": changes},
                    projection={"_id": False},
                    return_document=ReturnDocument.AFTER,
                )
            except PyMongoError as e:
                logger.error("Update of %s failed: %s", table_name, e)
                results.append({"success": False, "message": str(e)})
                continue
            if updated is None:
                results.append({"success": False, "message": "Record not found"})
            else:
                results.append({"success": True, "data": updated})
        return {"success": True, "results": results}


class InMemoryRecordClient:
    """Simple in-memory record store for development and tests."""

    def __init__(self):
        self.tables: Dict[str, Dict[int, Dict[str, Any]]] = {}
        self._next_ids: Dict[str, int] = {}

    def _table(self, table_name: str) -> Dict[int, Dict[str, Any]]:
        return self.tables.setdefault(table_name, {})

    def _insert(self, table_name: str, record: Dict[str, Any]) -> Dict[str, Any]:
        record_id = self._next_ids.get(table_name, 0) + 1
        self._next_ids[table_name] = record_id
        stored = {"CreatedOn": _now(), **copy.deepcopy(record), "Id": record_id}
        self._table(table_name)[record_id] = stored
        return stored

    def seed(self, table_name: str, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Insert records directly, bypassing the response envelope."""
        return [copy.deepcopy(self._insert(table_name, r)) for r in records]

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.tables.clear()
        self._next_ids.clear()

    def fetch_records(self, table_name, params=None):
        rows = [r for r in self._table(table_name).values() if record_matches(r, params)]
        rows = page(sort_records(rows, params), params)
        names = field_names(params)
        return {"success": True, "data": [_project(r, names) for r in rows]}

    def get_record_by_id(self, table_name, record_id, params=None):
        record = self._table(table_name).get(int(record_id))
        if record is None:
            return {"success": True, "data": None}
        return {"success": True, "data": _project(record, field_names(params))}

    def create_record(self, table_name, params):
        results = [
            {"success": True, "data": copy.deepcopy(self._insert(table_name, r))}
            for r in params.get("records") or []
        ]
        return {"success": True, "results": results}

    def update_record(self, table_name, params):
        results = []
        table = self._table(table_name)
        for incoming in params.get("records") or []:
            record = table.get(int(incoming.get("Id") or 0))
            if record is None:
                results.append({"success": False, "message": "Record not found"})
                continue
            record.update({k: copy.deepcopy(v) for k, v in incoming.items() if k != "Id"})
            record["ModifiedOn"] = _now()
            results.append({"success": True, "data": copy.deepcopy(record)})
        return {"success": True, "results": results}


def unwrap_result(response: Response, failure_message: str, label: str) -> Dict[str, Any]:
    """Return the first successful record of a create/update response or raise."""
    if not response.get("success"):
        logger.error(response.get("message"))
        raise ServiceError(failure_message)

    results = response.get("results") or []
    failed = [r for r in results if not r.get("success")]
    if failed:
        logger.error("Failed to %s: %s", label, failed)
        raise ServiceError(failure_message)

    successful = [r for r in results if r.get("success")]
    if successful:
        return successful[0]["data"]
    raise ServiceError(failure_message)


# Accessor

_apper_client: Optional[RecordClient] = None


def _build_client() -> Optional[RecordClient]:
    if RECORD_BACKEND == "memory":
        return InMemoryRecordClient()
    if RECORD_BACKEND == "mongo":
        if database.db is None:
            logger.warning("RECORD_BACKEND=mongo but DATABASE_URL/DATABASE_NAME are not set")
            return None
        return MongoRecordClient(database.db)
    if not (APPER_BASE_URL and APPER_PROJECT_ID and APPER_PUBLIC_KEY):
        logger.warning("Hosted record API is not configured")
        return None
    return HttpRecordClient(APPER_BASE_URL, APPER_PROJECT_ID, APPER_PUBLIC_KEY)


def get_apper_client() -> Optional[RecordClient]:
    """Return the shared record client, or None when none can be configured."""
    global _apper_client
    if _apper_client is None:
        _apper_client = _build_client()
    return _apper_client


def set_apper_client(client: Optional[RecordClient]) -> None:
    global _apper_client
    _apper_client = client
