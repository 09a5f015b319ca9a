"""Edit settings.ini in place without losing the user's comments.

:meth:`configparser.ConfigParser.write` regenerates the whole file, so
comments and layout vanish on every save.  These helpers touch only the
lines being updated.

Only ``;`` starts an inline comment: colour values such as ``#3498db``
begin with ``#``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple

INLINE_COMMENT = ";"
LINE_COMMENTS = ("#", ";")


@dataclass
class _SectionRange:
    name: str
    start: int
    end: int


class _IniEditor:
    def __init__(self, lines: List[str], newline: str) -> None:
        self._lines = lines
        self._newline = newline

    @property
    def lines(self) -> List[str]:
        return self._lines

    def set(self, section: str, key: str, value: str) -> None:
        section_range = self._find_section(section)
        assignment = f"{key} = {value}"

        if section_range is None:
            if self._lines and self._lines[-1].strip():
                self._lines.append("")
            self._lines.append(f"[{section}]")
            self._lines.append(assignment)
            return

        start, end = section_range.start, section_range.end
        key_lower = key.lower()

        for idx in range(start + 1, end):
            line = self._lines[idx]
            stripped = line.strip()
            if not stripped or stripped.startswith(LINE_COMMENTS) or "=" not in line:
                continue
            if stripped.split("=", 1)[0].strip().lower() != key_lower:
                continue

            prefix, suffix = _split_comment(line)
            self._lines[idx] = f"{_rebuild_assignment(prefix, key, value)}{suffix}"
            return

        # Append after the section's last setting, ahead of blank separator lines
        insert_at = end
        while insert_at > start + 1 and self._lines[insert_at - 1].strip() == "":
            insert_at -= 1
        self._lines.insert(insert_at, assignment)

    def to_string(self) -> str:
        if not self._lines:
            return ""
        return self._newline.join(self._lines) + self._newline

    def _find_section(self, name: str) -> Optional[_SectionRange]:
        current_name = None
        current_start = None
        for idx, line in enumerate(self._lines):
            stripped = line.strip()
            if stripped.startswith("[") and stripped.endswith("]"):
                if current_name == name:
                    return _SectionRange(current_name, current_start, idx)
                current_name = stripped[1:-1].strip()
                current_start = idx
        if current_name == name and current_start is not None:
            return _SectionRange(current_name, current_start, len(self._lines))
        return None


def _split_comment(line: str) -> Tuple[str, str]:
    pos = line.find(INLINE_COMMENT)
    if pos == -1:
        return line, ""
    return line[:pos], line[pos:]


def _rebuild_assignment(prefix: str, key: str, value: str) -> str:
    """Swap the value in ``key = value`` keeping the original spacing."""
    eq_index = prefix.find("=")
    before_eq = prefix[:eq_index]
    after_eq = prefix[eq_index + 1 :]

    leading = before_eq[: len(before_eq) - len(before_eq.lstrip())]
    key_core = before_eq.strip()
    trailing_key_ws = before_eq[len(leading) + len(key_core) :]

    value_prefix = after_eq[: len(after_eq) - len(after_eq.lstrip())]
    value_suffix = after_eq[len(after_eq.rstrip()) :]

    return f"{leading}{key}{trailing_key_ws}={value_prefix}{value}{value_suffix}"


def _create_editor(path: Path, encoding: str) -> _IniEditor:
    if path.exists():
        raw = path.read_text(encoding=encoding)
        newline = "\r\n" if "\r\n" in raw else "\n"
        return _IniEditor(raw.splitlines(), newline)
    return _IniEditor([], "\n")


def update_ini_file(
    path: Path,
    updates: Mapping[str, Mapping[str, Any]],
    *,
    encoding: str = "utf-8",
) -> None:
    """Write *updates* (``{section: {key: value}}``) into *path*.

    Existing keys are rewritten on their own line, new keys are appended
    to their section and new sections to the end of the file.  Every
    other line, comments included, is left as it was.
    """
    ini_path = Path(path)
    editor = _create_editor(ini_path, encoding)

    for section, values in updates.items():
        for key, value in values.items():
            editor.set(section, key, str(value))

    ini_path.parent.mkdir(parents=True, exist_ok=True)
    # newline="" keeps the file's own line endings
    with ini_path.open("w", encoding=encoding, newline="") as fp:
        fp.write(editor.to_string())
