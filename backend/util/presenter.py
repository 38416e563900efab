# @role: Renders JSON response bodies as ANSI tables for terminal clients
# @used_by: main.py
# @filter_type: utility
# @tags: cli, formatting, presenter
"""
Terminal presentation of API responses.

``present`` is a pure transform: it looks at the shape of a JSON body and
renders the matching table or key/value block. Nothing here touches stored
data; the HTTP middleware in ``main.py`` decides when to call it.
"""
import json
from typing import Any, Iterable, List, Mapping, Optional

RESET = "\x1b[0m"
BOLD = "\x1b[1m"
DIM = "\x1b[2m"
GREEN = "\x1b[32m"
RED = "\x1b[31m"

MAX_COLUMN_WIDTH = 28
MIN_COLUMN_WIDTH = 6
MAX_KEY_WIDTH = 24
ELLIPSIS = "…"

CLI_AGENTS = ("curl", "httpie", "wget")

STOCK_COLUMNS = ["Symbol", "Name", "Price", "Change", "%"]
HOLDING_COLUMNS = ["Symbol", "Name", "Qty", "Avg", "Price", "Value", "P/L%"]
TRANSACTION_COLUMNS = ["ID", "Type", "Symbol", "Qty", "Price", "Time"]


def wants_table(query: Mapping[str, str], headers: Mapping[str, str]) -> bool:
    user_agent = (headers.get("user-agent") or "").lower()
    accept = headers.get("accept") or ""
    return (
        query.get("format") == "cli"
        or "text/plain" in accept
        or any(agent in user_agent for agent in CLI_AGENTS)
    )


def wants_pretty(query: Mapping[str, str], headers: Mapping[str, str]) -> bool:
    return wants_table(query, headers) or query.get("pretty") in ("1", "true")


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def pad(text: str, width: int) -> str:
    if len(text) > width:
        text = text[:width - 1] + ELLIPSIS
    return text.ljust(width)


def format_key_value_block(title: str, data: Mapping[str, Any]) -> str:
    keys = list(data)
    if not keys:
        return f"{BOLD}{title}{RESET}\n{DIM}(no data){RESET}"
    key_width = min(max(len(k) for k in keys), MAX_KEY_WIDTH)
    lines = [f"{DIM}{pad(k, key_width)}{RESET}  {_cell(data[k])}" for k in keys]
    return f"{BOLD}{title}{RESET}\n" + "\n".join(lines)


def format_table(title: str, rows: List[Mapping[str, Any]], columns: Optional[List[str]] = None) -> str:
    if not rows:
        return f"{BOLD}{title}{RESET}\n{DIM}(no data){RESET}"
    cols = columns or list(rows[0])
    widths = []
    for col in cols:
        longest_cell = max(len(_cell(r.get(col))) for r in rows)
        widths.append(min(max(len(col), longest_cell, MIN_COLUMN_WIDTH), MAX_COLUMN_WIDTH))

    header = "  ".join(pad(c.upper(), w) for c, w in zip(cols, widths))
    sep = "  ".join("─" * w for w in widths)
    body = "\n".join(
        "  ".join(pad(_cell(r.get(c)), w) for c, w in zip(cols, widths))
        for r in rows
    )
    return f"{BOLD}{title}{RESET}\n{DIM}{header}{RESET}\n{sep}\n{body}"


def _holding_rows(holdings: Iterable[Mapping[str, Any]]) -> List[dict]:
    rows = []
    for h in holdings:
        quantity = h.get("quantity") or 0
        price = h.get("currentPrice") or 0
        value = h.get("value")
        rows.append({
            "Symbol": h.get("symbol"),
            "Name": h.get("name"),
            "Qty": quantity,
            "Avg": h.get("avgPrice"),
            "Price": h.get("currentPrice"),
            "Value": value if value is not None else round(quantity * price, 2),
            "P/L%": h.get("gainLossPercent", 0),
        })
    return rows


def _title(body: Mapping[str, Any], path: str) -> str:
    success = True if body.get("success") is None else bool(body.get("success"))
    badge = f"{GREEN}✔ SUCCESS{RESET}" if success else f"{RED}✖ ERROR{RESET}"
    return f"{badge}  {DIM}{path}{RESET}"


def to_cli(body: Any, path: str) -> str:
    if not isinstance(body, dict):
        return json.dumps(body, indent=2, ensure_ascii=False)

    title = _title(body, path)

    # Auth/profile
    if body.get("user"):
        parts = [title, format_key_value_block("User", {
            k: v for k, v in body["user"].items() if k != "portfolio"
        })]
        if body.get("token"):
            parts.append(f"{DIM}Token:{RESET} {body['token']}")
        return "\n\n".join(parts)

    # Stocks list
    if isinstance(body.get("data"), list):
        rows = [{
            "Symbol": s.get("symbol"),
            "Name": s.get("name"),
            "Price": s.get("price"),
            "Change": s.get("change"),
            "%": s.get("changePercent"),
        } for s in body["data"]]
        return "\n\n".join([title, format_table(body.get("message") or "Data", rows, STOCK_COLUMNS)])

    # Portfolio
    if isinstance(body.get("portfolio"), dict):
        p = body["portfolio"]
        holdings = p.get("stocks") or p.get("holdings") or []
        rows = _holding_rows(holdings)
        overview = {
            "cash": p.get("cash"),
            "totalValue": round((p.get("cash") or 0) + sum(r["Value"] or 0 for r in rows), 2),
            "totalInvested": round(sum((h.get("quantity") or 0) * (h.get("avgPrice") or 0) for h in holdings), 2),
            "stocksCount": len(holdings),
            "transactions": len(p.get("transactions") or []),
        }
        parts = [title, format_key_value_block("Portfolio", overview),
                 format_table("Holdings", rows, HOLDING_COLUMNS)]
        if isinstance(body.get("summary"), dict):
            parts.append(format_key_value_block("Summary", body["summary"]))
        return "\n\n".join(parts)

    # Summary
    if isinstance(body.get("summary"), dict):
        return "\n\n".join([title, format_key_value_block("Summary", body["summary"])])

    # Performance
    if isinstance(body.get("performance"), dict):
        perf = body["performance"]
        figures = {k: v for k, v in perf.items() if k not in ("topPerformer", "worstPerformer")}
        movers = [h for h in (perf.get("topPerformer"), perf.get("worstPerformer")) if h]
        return "\n\n".join([title, format_key_value_block("Performance", figures),
                            format_table("Top / Worst", _holding_rows(movers), HOLDING_COLUMNS)])

    # Holdings list
    if isinstance(body.get("holdings"), list):
        return "\n\n".join([title, format_table("Holdings", _holding_rows(body["holdings"]), HOLDING_COLUMNS)])

    # Transactions list
    if isinstance(body.get("transactions"), list):
        rows = [{
            "ID": t.get("id"),
            "Type": t.get("type"),
            "Symbol": t.get("symbol"),
            "Qty": t.get("quantity"),
            "Price": t.get("price"),
            "Time": (t.get("timestamp") or "").replace("T", " ").replace("Z", ""),
        } for t in body["transactions"]]
        return "\n\n".join([title, format_table("Transactions", rows, TRANSACTION_COLUMNS)])

    # Fallback: pretty JSON
    return json.dumps(body, indent=2, ensure_ascii=False)


def present(body: Any, request_path: str, table: bool) -> str:
    """Render ``body`` as terminal text when ``table`` is set, else as indented JSON."""
    if table:
        return to_cli(body, request_path)
    return json.dumps(body, indent=2, ensure_ascii=False)
