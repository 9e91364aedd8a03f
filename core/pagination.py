from django.core.paginator import Paginator


def paginate(items, page, per_page):
    """
    Slice ``items`` (list or queryset) into one page.

    Returns ``(page_items, {"pages": n, "page": p})``. Non-numeric pages fall
    back to the first page, pages past the end to the last one.
    """
    paginator = Paginator(items, per_page)
    page_obj = paginator.get_page(page)
    return list(page_obj.object_list), {
        "pages": paginator.num_pages,
        "page": page_obj.number,
    }


def sort_from_params(params):
    """Reads ``sort_key`` / ``sort_direction`` query params into a sort dict."""
    key = params.get("sort_key")
    if not key:
        return None
    direction = "desc" if params.get("sort_direction") == "desc" else "asc"
    return {"key": key, "direction": direction}
