"""Message source: load a group's chat history from an export.

Supported exports:

* SQLite (``.db``/``.sqlite``/``.sqlite3``) with a ``messages`` table
  ``(id, chat_id, sender, timestamp, content, is_from_me)``
* JSON: a list of message objects with the same keys
* CSV with the same columns (matched case-insensitively)

Messages come back in storage order. Sorting is the caller's job.
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from tour_butler.core_signups import RawMessage

COLUMNS = ["id", "chat_id", "sender", "timestamp", "content", "is_from_me"]

_ALIASES = {
    "text": "content",
    "body": "content",
    "from_me": "is_from_me",
    "fromme": "is_from_me",
    "chatid": "chat_id",
    "group_id": "chat_id",
    "ts": "timestamp",
}

SQLITE_SUFFIXES = {".db", ".sqlite", ".sqlite3"}


class MessageSourceError(ValueError):
    """Raised for message exports that cannot be read at all."""


def _read_sqlite(path: Path, group_id: Optional[str]) -> pd.DataFrame:
    query = "SELECT id, chat_id, sender, timestamp, content, is_from_me FROM messages"
    params: tuple = ()
    if group_id:
        query += " WHERE chat_id = ?"
        params = (group_id,)
    con = sqlite3.connect(str(path))
    try:
        return pd.read_sql_query(query, con, params=params)
    finally:
        con.close()


def _read_json(path: Path) -> pd.DataFrame:
    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if isinstance(data, dict):
        data = data.get("messages", [])
    if not isinstance(data, list):
        raise MessageSourceError(f"{path}: expected a list of messages")
    return pd.DataFrame(data)


def _normalize_frame(df: pd.DataFrame) -> pd.DataFrame:
    sources: Dict[str, List[object]] = {}
    for col in df.columns:
        key = str(col).strip().lower()
        key = _ALIASES.get(key, key)
        if key in COLUMNS:
            sources.setdefault(key, []).append(col)

    out = pd.DataFrame(index=df.index)
    for col in COLUMNS:
        cols = sources.get(col)
        if not cols:
            out[col] = "" if col != "is_from_me" else 0
        elif len(cols) == 1:
            out[col] = df[cols[0]]
        else:
            # "text" und "content" gemischt: erster nicht-leerer Wert gewinnt
            out[col] = df[cols].bfill(axis=1).iloc[:, 0]
    df = out

    for col in ("id", "chat_id", "sender", "content"):
        df[col] = df[col].fillna("").astype(str)
    df["timestamp"] = pd.to_numeric(df["timestamp"], errors="coerce")
    df = df[df["timestamp"].notna()].copy()
    # Millisekunden-Exporte
    df["timestamp"] = df["timestamp"].where(df["timestamp"] <= 1e12, df["timestamp"] // 1000)
    df["timestamp"] = df["timestamp"].astype("int64")
    df["is_from_me"] = df["is_from_me"].map(
        lambda v: str(v).strip().lower() in {"1", "1.0", "true", "yes"}
    )
    return df[df["content"].str.strip() != ""]


def load_messages(path: str, group_id: Optional[str] = None) -> List[RawMessage]:
    """Read all messages of ``group_id`` (or of every chat if ``None``)."""

    src = Path(path)
    if not src.exists():
        print(f"[warn] message export not found: {src}")
        return []

    suffix = src.suffix.lower()
    if suffix in SQLITE_SUFFIXES:
        df = _read_sqlite(src, group_id)
    elif suffix == ".json":
        df = _read_json(src)
    elif suffix == ".csv":
        df = pd.read_csv(src, dtype=str)
    else:
        raise MessageSourceError(f"unsupported message export: {src}")

    if df.empty:
        return []
    df = _normalize_frame(df)
    if group_id:
        df = df[df["chat_id"] == group_id]

    return [
        RawMessage(
            sender=getattr(row, "sender"),
            timestamp=int(getattr(row, "timestamp")),
            content=getattr(row, "content"),
            from_me=bool(getattr(row, "is_from_me")),
            id=getattr(row, "id"),
            chat_id=getattr(row, "chat_id"),
        )
        for row in df.itertuples(index=False)
    ]


__all__ = ["COLUMNS", "MessageSourceError", "load_messages"]
