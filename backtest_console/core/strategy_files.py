"""Loading strategy documents from uploaded files and from the editor."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Sequence


class NamedFile(Protocol):
    name: str

    def getvalue(self) -> bytes: ...


@dataclass(frozen=True)
class ParseResult:
    success: bool
    content: str = ""
    parsed: Optional[Dict[str, Any]] = None
    file_name: Optional[str] = None
    error: Optional[str] = None

    @property
    def strategy_name(self) -> Optional[str]:
        if not self.parsed:
            return None
        name = self.parsed.get("name")
        return name if isinstance(name, str) and name else None


def is_json_file(name: str) -> bool:
    return name.endswith(".json")


def format_strategy(document: Any) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def parse_strategy_text(text: str, file_name: Optional[str] = None) -> ParseResult:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        return ParseResult(success=False, file_name=file_name, error=str(exc))
    return ParseResult(
        success=True,
        content=format_strategy(parsed),
        parsed=parsed if isinstance(parsed, dict) else None,
        file_name=file_name,
    )


def load_file(upload: NamedFile) -> ParseResult:
    try:
        text = upload.getvalue().decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        return ParseResult(success=False, file_name=upload.name, error=str(exc))
    return parse_strategy_text(text, upload.name)


def load_dropped(files: Sequence[NamedFile]) -> ParseResult:
    """Use the first ``.json`` file out of a multi-file drop."""
    for upload in files:
        if is_json_file(upload.name):
            return load_file(upload)
    return ParseResult(success=False, error="Please drop a .json file")


def load_selected(upload: Optional[NamedFile]) -> ParseResult:
    if upload is None:
        return ParseResult(success=False, error="No file selected")
    if not is_json_file(upload.name):
        return ParseResult(success=False, file_name=upload.name, error="Please select a .json file")
    return load_file(upload)


def resolve_strategy_name(current: str, result: ParseResult) -> str:
    """A name from the file only fills an empty name field."""
    if current:
        return current
    return result.strategy_name or current


class StrategyInputError(ValueError):
    pass


def parse_editor(text: str) -> Dict[str, Any]:
    if not text.strip():
        raise StrategyInputError("Strategy JSON is empty")
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise StrategyInputError("Strategy is not valid JSON") from exc
    if not isinstance(parsed, dict):
        raise StrategyInputError("Strategy is not valid JSON")
    return parsed
