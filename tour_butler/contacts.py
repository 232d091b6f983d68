"""Contact directory: sender id → display name."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Mapping, Optional

import pandas as pd

from tour_butler.text_utils import normalize_text


def clean_sender_id(sender: str) -> str:
    """``"351912345678@s.whatsapp.net"`` → ``"351912345678"``."""
    return normalize_text(sender or "").split("@", 1)[0].lstrip("+")


class ContactDirectory:
    """Read-only lookup injected into :class:`~tour_butler.core_signups.SignupParser`."""

    def __init__(self, names: Optional[Mapping[str, str]] = None) -> None:
        self._names: Dict[str, str] = {}
        for key, value in (names or {}).items():
            phone = clean_sender_id(str(key))
            name = normalize_text(value or "")
            if phone and name:
                self._names[phone] = name

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, sender: object) -> bool:
        return clean_sender_id(str(sender)) in self._names

    def resolve_display_name(self, sender: str) -> str:
        phone = clean_sender_id(sender)
        return self._names.get(phone, phone)

    __call__ = resolve_display_name

    @classmethod
    def from_file(cls, path: Optional[str]) -> "ContactDirectory":
        """Load ``{"phone": "Name"}`` JSON or a ``Phone,Name`` CSV.

        A missing file gives an empty directory; every sender then resolves to
        its bare phone number.
        """

        if not path:
            return cls()
        file_path = Path(path)
        if not file_path.exists():
            print(f"[warn] contacts file not found: {file_path} – using phone numbers")
            return cls()

        if file_path.suffix.lower() == ".csv":
            df = pd.read_csv(file_path, dtype=str)
            cols = {str(c).strip().lower(): c for c in df.columns}
            phone_col, name_col = cols.get("phone"), cols.get("name")
            if phone_col is None or name_col is None:
                print(f"[warn] {file_path}: expected columns Phone,Name – ignoring file")
                return cls()
            df = df[[phone_col, name_col]].fillna("")
            return cls(dict(zip(df[phone_col], df[name_col])))

        with file_path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            print(f"[warn] {file_path}: expected a JSON object – ignoring file")
            return cls()
        return cls({str(k): str(v) for k, v in data.items() if v is not None})


__all__ = ["ContactDirectory", "clean_sender_id"]
