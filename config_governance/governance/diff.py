"""
Diff Engine — structural diff between two stored config versions.
Nested dicts are walked down to their leaves; lists are compared whole.
"""

import json
from typing import Optional, Dict, List, Any

from .models import DiffResult, ConfigChange, ChangeType
from .ports import VersionStore


def _normalise(value: Any) -> Any:
    # 1.0 and 1 serialise identically; bools are left alone
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, dict):
        return {k: _normalise(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalise(v) for v in value]
    return value


def _canonical(value: Any) -> str:
    return json.dumps(_normalise(value), sort_keys=True, default=str)


def compare_configs(old: Dict[str, Any], new: Dict[str, Any], prefix: str = "") -> List[ConfigChange]:
    """Leaf-level changes turning `old` into `new`, with dot-joined paths."""
    changes: List[ConfigChange] = []

    for key, old_value in old.items():
        path = f"{prefix}.{key}" if prefix else key
        if key not in new:
            changes.append(ConfigChange(path=path, type=ChangeType.REMOVED, old_value=old_value))
            continue
        new_value = new[key]
        if _canonical(old_value) == _canonical(new_value):
            continue
        if isinstance(old_value, dict) and isinstance(new_value, dict):
            changes.extend(compare_configs(old_value, new_value, path))
        else:
            changes.append(ConfigChange(
                path=path, type=ChangeType.MODIFIED, old_value=old_value, new_value=new_value,
            ))

    for key, new_value in new.items():
        if key not in old:
            path = f"{prefix}.{key}" if prefix else key
            changes.append(ConfigChange(path=path, type=ChangeType.ADDED, new_value=new_value))

    return changes


class DiffEngine:

    def __init__(self, versions: VersionStore):
        self._versions = versions

    async def get_diff(self, version_id_1: str, version_id_2: str) -> Optional[DiffResult]:
        """Diff from version 1 to version 2, or None if either id is unknown."""
        v1 = await self._versions.get(version_id_1)
        v2 = await self._versions.get(version_id_2)
        if not v1 or not v2:
            return None

        return DiffResult(
            config_type=v1.config_type,
            config_id=v1.config_id,
            from_version=v1.version,
            to_version=v2.version,
            changes=compare_configs(v1.config, v2.config),
        )
