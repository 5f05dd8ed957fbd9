"""Command that removes vertices or edges from the graph database in parallel.

Elements can be removed by label, or all of them. When removing all data,
remove the edges first.
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from typing import Any

from .client import Client
from .errors import GdbError
from .result import ResultSetFuture
from .settings import Settings

log = logging.getLogger(__name__)

_FETCH_DSL = ".hasLabel(GDB___label).has(id, gt(GDB___id)).limit(2560).id()"
_DROP_CHUNK = 64
_USAGE = (
    "No enough args provided. Please run: "
    "gdb-remover -host <gdb host> -username <username> -password <password> -port <gdb port>"
)


def _prefix(edge: bool) -> str:
    return "g.E()" if edge else "g.V()"


def banner(client: Any, edge: bool, label: str) -> bool:
    """Report what will be removed; return True when there is anything."""
    dsl = "g." + ("E()." if edge else "V().")
    tips = "Start to remove all " + ("edges" if edge else "vertices")
    bindings: dict[str, Any] = {}
    if label:
        dsl += "hasLabel(GDB___label)."
        bindings["GDB___label"] = label
        tips += " with label " + label
    log.info(tips)

    dsl += "count()"
    try:
        results = client.submit(dsl, bindings)
    except GdbError as exc:
        log.error("fetch element count failed: %s", exc)
        return False

    count = results[0].as_int() if results else 0
    if count > 0:
        log.info("total cnt: %d, begin to drop", count)
        return True
    log.info("total cnt: 0, no need to drop")
    return False


def _report_count(client: Any, edge: bool, quit_event: threading.Event) -> None:
    dsl = "g.E().count()" if edge else "g.V().count()"
    last = 0
    while not quit_event.wait(1):
        try:
            results = client.submit(dsl)
        except GdbError as exc:
            log.warning("get count failed: %s", exc)
            continue
        current = results[0].as_int() if results else 0
        log.info("total %d, %f qps", current, float(last - current))
        last = current


def drop_by_ids_async(client: Any, edge: bool, ids: list[str]) -> ResultSetFuture | None:
    """Send one request dropping the elements with ``ids``; None if it fails."""
    bindings = {f"GDB___id{index}": element_id for index, element_id in enumerate(ids)}
    dsl = ("g.E(" if edge else "g.V(") + " ,".join(bindings) + ").drop()"
    try:
        return client.submit_async(dsl, bindings)
    except GdbError as exc:
        log.error("submit request failed: %s", exc)
        return None


def drop_by_label(client: Any, edge: bool, label: str) -> None:
    """Drop every element with ``label``, a page of ids at a time."""
    bindings: dict[str, Any] = {"GDB___id": "", "GDB___label": label}
    dsl = _prefix(edge) + _FETCH_DSL

    while True:
        try:
            results = client.submit(dsl, bindings)
        except GdbError as exc:
            log.warning("fetch ids failed, try again: %s", exc)
            continue

        ids = [result.as_str() for result in results]
        if not ids:
            log.info("finished label : %s", label)
            return

        chunks = (ids[start : start + _DROP_CHUNK] for start in range(0, len(ids), _DROP_CHUNK))
        futures = [
            future
            for future in (drop_by_ids_async(client, edge, chunk) for chunk in chunks)
            if future is not None
        ]
        for future in futures:
            try:
                future.results()
            except GdbError as exc:
                log.error("drop failed: %s", exc)

        bindings["GDB___id"] = ids[-1]


def _fetch_labels(client: Any, edge: bool) -> list[str]:
    results = client.submit(_prefix(edge) + ".group().by(label()).select(keys)")
    return [item for result in results for item in (result.as_list() or []) if isinstance(item, str)]


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gdb-remover", description="Remove vertices or edges from a graph database."
    )
    parser.add_argument("--host", "-host", default="", help="GDB connection host")
    parser.add_argument("--username", "-username", default="", help="GDB username")
    parser.add_argument("--password", "-password", default="", help="GDB password")
    parser.add_argument("--port", "-port", type=int, default=8182, help="GDB connection port")
    parser.add_argument("--edge", "-edge", action="store_true", help="remove edges only")
    parser.add_argument("--label", "-label", default="", help="drop elements with this label")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the remover; returns the exit status."""
    args = _parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    if not (args.host and args.username and args.password):
        print(_USAGE, file=sys.stderr)
        return 1

    settings = Settings(
        host=args.host,
        port=args.port,
        username=args.username,
        password=args.password,
        max_concurrent_request=64,
    )
    with Client(settings) as client:
        if not banner(client, args.edge, args.label):
            return 0

        if args.label:
            labels = [args.label]
        else:
            try:
                labels = _fetch_labels(client, args.edge)
            except GdbError as exc:
                log.error("fetch all labels failed, please set specified label: %s", exc)
                return 1

        quit_event = threading.Event()
        reporter = threading.Thread(
            target=_report_count, args=(client, args.edge, quit_event), daemon=True
        )
        reporter.start()
        log.info("drop element by labels: %s", labels)
        try:
            for label in labels:
                drop_by_label(client, args.edge, label)
        finally:
            quit_event.set()
            reporter.join()

    log.info("Byebye...")
    return 0


if __name__ == "__main__":
    sys.exit(main())