"""Page builders and a capturing sink shared by the tests."""

from __future__ import annotations

from typing import Iterable

from highscores.pipeline.aggregator import Highscores

BASE_URL = "https://hiscores.test/m=hiscore_oldschool/overall.ws"

HEADER_ROW = "<tr><td></td></tr>"


def make_row(rank: str, name: str, level: str, xp: str) -> str:
    return (
        f'<tr class="personal-hiscores__row">'
        f'<td class="right">\n{rank}\n</td>'
        f'<td class="left"><a href="hiscorepersonal?user1={name}">{name}</a></td>'
        f'<td class="right">{level}</td>'
        f'<td class="right">{xp}</td>'
        f"</tr>"
    )


def make_page(rows: Iterable[str], header: str = HEADER_ROW) -> bytes:
    """Wrap *rows* in a minimal highscores-like HTML document."""
    body = header + "".join(rows)
    html = (
        "<!DOCTYPE html>\n<html><head><title>Hiscores</title></head><body>\n"
        '<div class="personal-hiscores__table-container"><table>\n'
        f"<tbody>{body}</tbody>\n"
        "</table></div></body></html>"
    )
    return html.encode("utf-8")


class MemorySink:
    """Sink that keeps what it was given."""

    def __init__(self) -> None:
        self.calls: list[Highscores] = []

    def accept(self, aggregate: Highscores) -> str:
        self.calls.append(aggregate)
        return f"memory:{len(aggregate)}"
