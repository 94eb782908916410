"""Header filter — selects which request headers go onto the completion event."""

from typing import TYPE_CHECKING, Iterable, Iterator, Optional, Tuple

if TYPE_CHECKING:
    from ..models.options import HeaderLoggingOptions


def canonical_header_name(name: str) -> str:
    """``x-custom-header`` -> ``X-Custom-Header``."""
    return "-".join(part.capitalize() for part in name.split("-"))


def get_filtered_headers(
    headers: Iterable[Tuple[str, str]],
    options: Optional["HeaderLoggingOptions"],
) -> Iterator[Tuple[str, str]]:
    """
    Yield ``(prefix + name, value)`` for every header that should be logged.

    Precedence is Exclude > Include > LogAll, and a header is yielded at
    most once. Names are compared case-insensitively.
    """
    if options is None:
        return

    include = {name.casefold() for name in options.include}
    exclude = {name.casefold() for name in options.exclude}

    for name, value in headers:
        folded = name.casefold()
        if folded in exclude:
            continue
        if folded in include or options.log_all:
            yield options.prefix + name, value
