"""
Query params for the record API.

Builders for the `fields` / `where` / `orderBy` payloads, plus two evaluators
of `where` and `whereGroups`: a MongoDB filter translator and a matcher that
runs against plain dict records.
"""
import re
from typing import Any, Callable, Dict, Iterable, List, Optional

OPERATORS = (
    "EqualTo",
    "NotEqualTo",
    "Contains",
    "DoesNotContain",
    "StartsWith",
    "EndsWith",
    "GreaterThan",
    "GreaterThanOrEqualTo",
    "LessThan",
    "LessThanOrEqualTo",
)

_COMPARISONS = {
    "GreaterThan": "$gt",
    "GreaterThanOrEqualTo": "$gte",
    "LessThan": "$lt",
    "LessThanOrEqualTo": "$lte",
}


# Builders

def field_list(names: Iterable[str]) -> List[Dict[str, Any]]:
    return [{"field": {"Name": name}} for name in names]


def field_names(params: Optional[Dict[str, Any]]) -> List[str]:
    if not params:
        return []
    return [f["field"]["Name"] for f in params.get("fields") or []]


def where(field: str, operator: str, values: List[Any]) -> Dict[str, Any]:
    return {"FieldName": field, "Operator": operator, "Values": values}


def equal_to(field: str, value: Any) -> List[Dict[str, Any]]:
    return [where(field, "EqualTo", [value])]


def any_contains(fields: Iterable[str], text: str) -> List[Dict[str, Any]]:
    """A single OR group matching `text` inside any of `fields`."""
    return [{
        "operator": "OR",
        "subGroups": [
            {
                "conditions": [{"fieldName": f, "operator": "Contains", "values": [text]}],
                "operator": "",
            }
            for f in fields
        ],
    }]


def order_by(field: str, direction: str = "ASC") -> List[Dict[str, Any]]:
    return [{"fieldName": field, "sorttype": direction}]


# Normalization

def _conditions(params: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Flatten `where` into the lowercase condition shape used by whereGroups."""
    return [
        {"fieldName": c["FieldName"], "operator": c["Operator"], "values": c.get("Values") or []}
        for c in params.get("where") or []
    ]


def _check_operator(operator: str) -> None:
    if operator not in OPERATORS:
        raise ValueError(f"Unsupported operator: {operator}")


def _joiner(operator: Optional[str]) -> str:
    return "OR" if (operator or "").upper() == "OR" else "AND"


# MongoDB translation

def _mongo_condition(cond: Dict[str, Any]) -> Dict[str, Any]:
    field, operator, values = cond["fieldName"], cond["operator"], cond.get("values") or []
    _check_operator(operator)

    if operator == "EqualTo":
        return {field: values[0]} if len(values) == 1 else {field: {"$in": values}}
    if operator == "NotEqualTo":
        return {field: {"$nin": values}}
    if operator in _COMPARISONS:
        if not values:
            raise ValueError(f"{operator} needs a value")
        return {field: {_COMPARISONS[operator]: values[0]}}

    patterns = {
        "Contains": "{}",
        "DoesNotContain": "{}",
        "StartsWith": "^{}",
        "EndsWith": "{}$",
    }
    regexes = [patterns[operator].format(re.escape(str(v))) for v in values]
    if operator == "DoesNotContain":
        return {"$and": [{field: {"$not": {"$regex": r, "$options": "i"}}} for r in regexes]}
    if len(regexes) == 1:
        return {field: {"$regex": regexes[0], "$options": "i"}}
    return {"$or": [{field: {"$regex": r, "$options": "i"}} for r in regexes]}


def _mongo_join(operator: str, parts: List[Dict[str, Any]]) -> Dict[str, Any]:
    if len(parts) == 1:
        return parts[0]
    return {"$or" if operator == "OR" else "$and": parts}


def to_mongo_filter(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Translate `where` and `whereGroups` into a MongoDB query document."""
    if not params:
        return {}
    clauses = [_mongo_condition(c) for c in _conditions(params)]

    for group in params.get("whereGroups") or []:
        sub_clauses = []
        for sub in group.get("subGroups") or []:
            parts = [_mongo_condition(c) for c in sub.get("conditions") or []]
            if parts:
                sub_clauses.append(_mongo_join(_joiner(sub.get("operator")), parts))
        if sub_clauses:
            clauses.append(_mongo_join(_joiner(group.get("operator")), sub_clauses))

    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


# In-process matching

def _text(value: Any) -> str:
    return str(value).lower()


def _compare(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def check(actual: Any, expected: Any) -> bool:
        if actual is None:
            return False
        try:
            return op(actual, expected)
        except TypeError:
            return op(str(actual), str(expected))
    return check


_PREDICATES: Dict[str, Callable[[Any, Any], bool]] = {
    "EqualTo": lambda a, e: a == e,
    "Contains": lambda a, e: a is not None and _text(e) in _text(a),
    "StartsWith": lambda a, e: a is not None and _text(a).startswith(_text(e)),
    "EndsWith": lambda a, e: a is not None and _text(a).endswith(_text(e)),
    "GreaterThan": _compare(lambda a, e: a > e),
    "GreaterThanOrEqualTo": _compare(lambda a, e: a >= e),
    "LessThan": _compare(lambda a, e: a < e),
    "LessThanOrEqualTo": _compare(lambda a, e: a <= e),
}


def _condition_matches(record: Dict[str, Any], cond: Dict[str, Any]) -> bool:
    operator, values = cond["operator"], cond.get("values") or []
    _check_operator(operator)
    actual = record.get(cond["fieldName"])

    if operator == "NotEqualTo":
        return all(actual != v for v in values)
    if operator == "DoesNotContain":
        return actual is None or all(_text(v) not in _text(actual) for v in values)
    return any(_PREDICATES[operator](actual, v) for v in values)


def _join(operator: str, results: List[bool]) -> bool:
    return any(results) if operator == "OR" else all(results)


def record_matches(record: Dict[str, Any], params: Optional[Dict[str, Any]]) -> bool:
    """Evaluate `where` and `whereGroups` against a single record."""
    if not params:
        return True
    if not all(_condition_matches(record, c) for c in _conditions(params)):
        return False

    for group in params.get("whereGroups") or []:
        sub_results = []
        for sub in group.get("subGroups") or []:
            conds = sub.get("conditions") or []
            if conds:
                sub_results.append(
                    _join(_joiner(sub.get("operator")), [_condition_matches(record, c) for c in conds])
                )
        if sub_results and not _join(_joiner(group.get("operator")), sub_results):
            return False
    return True


def _sort_key(value: Any, cast: Callable[[Any], Any] = lambda v: v) -> tuple:
    return (value is not None, cast(value) if value is not None else 0)


def sort_records(records: List[Dict[str, Any]], params: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Apply `orderBy`; missing values sort first in ascending order."""
    ordered = list(records)
    # Stable sorts applied last-key-first give multi-key ordering.
    for key in reversed((params or {}).get("orderBy") or []):
        field = key["fieldName"]
        descending = (key.get("sorttype") or "ASC").upper() == "DESC"
        try:
            ordered = sorted(ordered, key=lambda r: _sort_key(r.get(field)), reverse=descending)
        except TypeError:
            # Mixed value types in one column compare as text.
            ordered = sorted(ordered, key=lambda r: _sort_key(r.get(field), str), reverse=descending)
    return ordered


def page(records: List[Dict[str, Any]], params: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    paging = (params or {}).get("pagingInfo") or {}
    offset = int(paging.get("offset") or 0)
    limit = int(paging.get("limit") or 0)
    # A zero limit means no limit, as with a Mongo cursor.
    if not limit:
        return records[offset:]
    return records[offset:offset + limit]
