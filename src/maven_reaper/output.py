"""Render records one per line, either raw or as an aligned table."""

from collections.abc import Iterable, Iterator

PACKAGE_HEADERS = ["ID", "NAME", "UPDATED", "URL"]
VERSION_HEADERS = ["ID", "VERSION", "UPDATED", "PACKAGE"]
RESULT_HEADERS = ["TARGET", "ID", "NAME", "UPDATED", "URL/PACKAGE", "OUTCOME"]


def render_raw(rows: Iterable[list[str]]) -> Iterator[str]:
    """Tab-separated, no header."""
    for row in rows:
        yield "\t".join(row)


def render_table(
    headers: list[str], rows: Iterable[list[str]]
) -> Iterator[str]:
    """Columns padded to a common width, under a header and a rule.

    The rows are consumed before anything is yielded, since the widths
    depend on all of them.
    """
    allrows = [headers, *rows]
    widths = [max(len(r[i]) for r in allrows) for i in range(len(headers))]
    for idx, row in enumerate(allrows):
        yield "  ".join(
            x.ljust(widths[i]) for i, x in enumerate(row)
        ).rstrip()
        if idx == 0:
            yield "  ".join("-" * w for w in widths)


def render(
    headers: list[str], rows: Iterable[list[str]], *, raw: bool = False
) -> Iterator[str]:
    if raw:
        return render_raw(rows)
    return render_table(headers, rows)
