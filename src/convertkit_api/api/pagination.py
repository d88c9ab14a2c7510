"""Cursor pagination helpers for v4 list endpoints.

List endpoints accept ``after_cursor``, ``before_cursor``, ``per_page`` and
``include_total_count`` and answer with a ``pagination`` block. Cursors
are opaque; they are copied from one response into the next request.
"""

from typing import Any, Callable, Dict, Iterator, Optional

from ..models.base_models import Pagination
from ..models.result import ApiResult


def build_pagination_params(
    params: Optional[Dict[str, Any]] = None,
    after_cursor: Optional[str] = None,
    before_cursor: Optional[str] = None,
    per_page: Optional[int] = None,
    include_total_count: bool = False,
) -> Dict[str, Any]:
    """Merge pagination arguments into request parameters.

    :param params: Existing request parameters
    :type params: Optional[Dict[str, Any]]
    :param after_cursor: Return results after this cursor
    :type after_cursor: Optional[str]
    :param before_cursor: Return results before this cursor
    :type before_cursor: Optional[str]
    :param per_page: Number of results per page
    :type per_page: Optional[int]
    :param include_total_count: Ask the API to count all results
    :type include_total_count: bool
    :return: New parameter dictionary
    :rtype: Dict[str, Any]
    """
    merged = dict(params or {})
    merged["include_total_count"] = include_total_count
    if after_cursor:
        merged["after"] = after_cursor
    if before_cursor:
        merged["before"] = before_cursor
    if per_page:
        merged["per_page"] = per_page
    return merged


def get_pagination(data: Any) -> Optional[Pagination]:
    if not isinstance(data, dict) or not isinstance(data.get("pagination"), dict):
        return None
    return Pagination.model_validate(data["pagination"])


def paginate(
    fetch: Callable[..., ApiResult], **kwargs: Any
) -> Iterator[ApiResult]:
    """Yield every page of a list endpoint.

    ``fetch`` is a resource method accepting ``after_cursor``, such as
    :meth:`ConvertKitAPI.get_tags`. Iteration stops after the last page,
    or after yielding the first failure.

    Example:
        >>> for page in paginate(api.get_tags, per_page=100):
        ...     tags.extend(page.unwrap()["tags"])
    """
    after_cursor = kwargs.pop("after_cursor", None)
    while True:
        result = fetch(after_cursor=after_cursor, **kwargs)
        yield result
        if not result.ok:
            return

        pagination = get_pagination(result.data)
        if pagination is None or not pagination.has_next_page or not pagination.end_cursor:
            return
        after_cursor = pagination.end_cursor
