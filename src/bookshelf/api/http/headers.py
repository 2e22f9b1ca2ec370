"""Response headers for entity alerts and pagination."""

from urllib.parse import parse_qsl, urlencode

from starlette.datastructures import URL

from src.bookshelf.entities.core.paging import Page


def entity_alert_headers(app_name: str, action: str, entity_name: str, param: str) -> dict[str, str]:
    """Headers announcing that an entity was created, updated or deleted.

    ``action`` is one of ``created``, ``updated`` or ``deleted``.
    """
    return {
        f"X-{app_name}-alert": f"{app_name}.{entity_name}.{action}",
        f"X-{app_name}-params": param,
    }


def entity_creation_alert(app_name: str, entity_name: str, param: str) -> dict[str, str]:
    return entity_alert_headers(app_name, "created", entity_name, param)


def entity_update_alert(app_name: str, entity_name: str, param: str) -> dict[str, str]:
    return entity_alert_headers(app_name, "updated", entity_name, param)


def entity_deletion_alert(app_name: str, entity_name: str, param: str) -> dict[str, str]:
    return entity_alert_headers(app_name, "deleted", entity_name, param)


def failure_alert_headers(app_name: str, entity_name: str, error_key: str) -> dict[str, str]:
    return {
        f"X-{app_name}-error": f"error.{error_key}",
        f"X-{app_name}-params": entity_name,
    }


def _page_link(url: URL, page: int, size: int, rel: str) -> str:
    params = [
        (key, value)
        for key, value in parse_qsl(url.query, keep_blank_values=True)
        if key not in ("page", "size")
    ]
    params += [("page", str(page)), ("size", str(size))]
    return f'<{url.replace(query=urlencode(params))}>; rel="{rel}"'


def pagination_headers(url: URL, page: Page) -> dict[str, str]:
    """``X-Total-Count`` plus an RFC 5988 ``Link`` header for the given page."""
    links = []
    if page.has_next:
        links.append(_page_link(url, page.page + 1, page.size, "next"))
    if page.has_previous:
        links.append(_page_link(url, page.page - 1, page.size, "prev"))
    links.append(_page_link(url, max(page.total_pages - 1, 0), page.size, "last"))
    links.append(_page_link(url, 0, page.size, "first"))
    return {
        "X-Total-Count": str(page.total),
        "Link": ",".join(links),
    }
