"""Line-diff statistics between two stored document revisions"""

import difflib
import json
from typing import Any


def diff_summary(old: str, new: str) -> dict[str, int]:
    """Return added/deleted/unchanged line counts. Useful for compact change stats."""
    old_lines, new_lines = old.splitlines(), new.splitlines()
    matcher = difflib.SequenceMatcher(None, old_lines, new_lines)
    added = deleted = unchanged = 0

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            unchanged += i2 - i1
        elif tag == "replace":
            deleted += i2 - i1
            added += j2 - j1
        elif tag == "insert":
            added += j2 - j1
        elif tag == "delete":
            deleted += i2 - i1

    return {"added": added, "deleted": deleted, "unchanged": unchanged}


def payload_diff_summary(old: dict[str, Any], new: dict[str, Any]) -> dict[str, int]:
    """diff_summary over the pretty-printed JSON of two document payloads."""
    def _dump(value: dict[str, Any]) -> str:
        return json.dumps(value, indent=2, sort_keys=True, ensure_ascii=False, default=str)
    return diff_summary(_dump(old), _dump(new))
