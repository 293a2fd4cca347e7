"""Navigation target construction for the preview environment."""

from typing import List, Mapping, Optional, Tuple
from urllib.parse import parse_qsl, quote_plus, urlencode, urljoin, urlsplit, urlunsplit

from preview_driver.models import BranchConfig

QA_PARAM = "isqa"
BRANCH_ID_PARAM = "branchId"
SITE_REVISION_PARAM = "siteRevision"

ROOT_PATHS = ("", "/")


def form_quote(value, safe="", encoding=None, errors=None) -> str:
    """Quote like ``URLSearchParams``: space is ``+`` and only ``*-._`` stay bare."""
    return quote_plus(value, safe="*", encoding=encoding, errors=errors).replace(
        "~", "%7E"
    )


def set_query_param(pairs: List[Tuple[str, str]], key: str, value: str) -> None:
    """Set ``key`` like ``URLSearchParams.set``.

    The first occurrence is replaced in place and later duplicates are
    dropped; a new key is appended.
    """
    replaced = False
    kept: List[Tuple[str, str]] = []
    for name, current in pairs:
        if name != key:
            kept.append((name, current))
        elif not replaced:
            kept.append((name, value))
            replaced = True
    if not replaced:
        kept.append((key, value))
    pairs[:] = kept


def build_url(
    base_url: str,
    path: str,
    branch_config: Optional[BranchConfig],
    *,
    add_qa_param: bool = True,
    stamp_branch_params: bool = True,
    normalize_root_path: bool = True,
    extra_params: Optional[Mapping[str, object]] = None,
) -> str:
    """Turn ``path`` into an absolute preview URL.

    Scheme, host and fragment come from ``base_url``. The pathname and query
    come from ``path`` resolved against ``base_url``.

    Args:
        base_url: Absolute site URL
        path: Path (or URL) to open, with an optional query string
        branch_config: Preview build to target
        add_qa_param: Set ``isqa=true``
        stamp_branch_params: Set ``branchId`` and ``siteRevision``
        normalize_root_path: Resolve ``""`` and ``"/"`` to the site root
        extra_params: Additional query parameters, set last

    Returns:
        Absolute URL string

    Raises:
        ValueError: If ``base_url`` is not absolute
    """
    base = urlsplit(base_url)
    if not base.scheme or not base.netloc:
        raise ValueError(f"Base URL must be absolute: {base_url!r}")

    if normalize_root_path and path in ROOT_PATHS:
        path = "/"

    target = urlsplit(urljoin(base_url, path))
    pairs = parse_qsl(target.query, keep_blank_values=True)
    changed = bool(add_qa_param or stamp_branch_params or extra_params)

    if add_qa_param:
        set_query_param(pairs, QA_PARAM, "true")
    if stamp_branch_params:
        config = branch_config or BranchConfig()
        set_query_param(pairs, BRANCH_ID_PARAM, config.branch_id)
        set_query_param(pairs, SITE_REVISION_PARAM, config.site_revision)
    for key, value in (extra_params or {}).items():
        if isinstance(value, bool):
            value = str(value).lower()
        set_query_param(pairs, key, str(value))

    # An untouched query keeps its original encoding.
    query = urlencode(pairs, quote_via=form_quote) if changed else target.query
    return urlunsplit(
        (base.scheme, base.netloc, target.path or "/", query, base.fragment)
    )
