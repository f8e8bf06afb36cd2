#!/usr/bin/env python3
"""Scan/size logic: rule candidates, sizes, visible keys."""
import fnmatch
import os
import pathlib
import platform
import plistlib
import re
import subprocess
import time
from typing import Dict, List, Tuple

from ..core import config as config_module
from ..core.constants import (
    APP_SUPPORT,
    APP_LOG_DIRS,
    APP_SUPPORT_MAX_DIRS,
    BOOT_VOLUME_NAMES,
    FINDER_METADATA_MAX_DEPTH,
    FINDER_METADATA_SKIP_DIRS,
    HOME,
    IOS_BACKUP_DIR,
    NETWORK_FS_TYPES,
    TM_MIN_AGE_HOURS,
    TM_SEARCH_DEPTH,
    VOLUMES_DIR,
)
from ..core.rules import RULES, PROTECTED_APP_PATTERNS
from ..utils.disk import human_size, du_path, older_files

_MOUNT_LINE = re.compile(r"^(?P<device>.+?) on (?P<mountpoint>.+) \((?P<fstype>[^,)]+)")


def glob_matches(parent, pattern) -> List[str]:
    """Matches of pattern below parent, never parent itself."""
    if not os.path.isdir(parent):
        return []
    root = os.path.abspath(parent)
    out = []
    for path in pathlib.Path(parent).glob(pattern):
        p = str(path)
        if os.path.abspath(p) == root:
            continue
        out.append(p)
    return out


def _glob_items(rule) -> List[Tuple[str, int]]:
    seen = set()
    out = []
    for parent, pattern, _label in rule.get("items", []):
        for p in glob_matches(parent, pattern):
            if p in seen:
                continue
            seen.add(p)
            out.append((p, du_path(p)))
    return out


def _aged_items(rule, cfg=None) -> List[Tuple[str, int]]:
    cfg = cfg or config_module.load()
    temp_days = int(cfg.get("temp_file_age_days") or 7)
    out = []
    for root, name_glob, days in rule.get("aged", []):
        out.extend(older_files(root, name_glob, temp_days if days is None else days))
    return out


def parse_mount_output(text: str) -> Dict[str, str]:
    """Map mount point -> filesystem type from `mount` output."""
    out = {}
    for line in text.splitlines():
        m = _MOUNT_LINE.match(line.strip())
        if m:
            out[m.group("mountpoint")] = m.group("fstype").strip().lower()
    return out


def _mounted_filesystems() -> Dict[str, str]:
    try:
        out = subprocess.check_output(["mount"], text=True, timeout=10)
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError):
        return {}
    return parse_mount_output(out)


def local_volumes() -> List[str]:
    """Mounted volumes under /Volumes, skipping the boot volume and network shares."""
    if not os.path.isdir(VOLUMES_DIR):
        return []
    mounts = _mounted_filesystems()
    out = []
    for name in sorted(os.listdir(VOLUMES_DIR)):
        if name in BOOT_VOLUME_NAMES:
            continue
        volume = os.path.join(VOLUMES_DIR, name)
        if not os.path.isdir(volume) or os.path.islink(volume):
            continue
        if mounts.get(volume) in NETWORK_FS_TYPES:
            continue
        out.append(volume)
    return out


def parse_hdiutil_mounts(data: bytes) -> Dict[str, str]:
    """Map image path -> first mount point from `hdiutil info -plist` output."""
    try:
        info = plistlib.loads(data)
    except (plistlib.InvalidFileException, ValueError):
        return {}
    out = {}
    for image in info.get("images", []):
        path = image.get("image-path")
        if not path:
            continue
        for entity in image.get("system-entities", []):
            mount = entity.get("mount-point")
            if mount:
                out[path] = mount
                break
    return out


def _mounted_images() -> Dict[str, str]:
    try:
        data = subprocess.check_output(["hdiutil", "info", "-plist"], timeout=30)
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError):
        return {}
    return parse_hdiutil_mounts(data)


def in_progress_backups(root, now=None) -> List[Tuple[str, int]]:
    """*.inProgress dirs within TM_SEARCH_DEPTH of root, older than TM_MIN_AGE_HOURS, non-empty."""
    out = []
    if not os.path.isdir(root):
        return out
    cutoff = (now if now is not None else time.time()) - TM_MIN_AGE_HOURS * 3600
    base_depth = root.rstrip(os.sep).count(os.sep)
    for dirpath, dirs, _files in os.walk(root, followlinks=False):
        depth = dirpath.rstrip(os.sep).count(os.sep) - base_depth
        matched = []
        for name in dirs:
            if not name.lower().endswith(".inprogress"):
                continue
            full = os.path.join(dirpath, name)
            matched.append(name)
            try:
                if os.path.getmtime(full) >= cutoff:
                    continue
            except OSError:
                continue
            size = du_path(full)
            if size > 0:
                out.append((full, size))
        # never descend into a backup in progress, and stop at the search depth
        dirs[:] = [] if depth + 1 >= TM_SEARCH_DEPTH else [d for d in dirs if d not in matched]
    return out


def _tm_failed_backups() -> List[Tuple[str, int]]:
    out = []
    volumes = local_volumes()
    if not volumes:
        return out
    images = None
    for volume in volumes:
        out.extend(in_progress_backups(os.path.join(volume, "Backups.backupdb")))
        try:
            names = sorted(os.listdir(volume))
        except OSError:
            continue
        bundles = [
            os.path.join(volume, name)
            for name in names
            if name.endswith((".backupbundle", ".sparsebundle"))
        ]
        bundles = [b for b in bundles if os.path.isdir(b)]
        if not bundles:
            continue
        if images is None:
            images = _mounted_images()
        for bundle in bundles:
            mount = images.get(bundle)
            if mount and os.path.isdir(mount):
                out.extend(in_progress_backups(mount))
    return out


def is_protected_app(name, extra_patterns=()) -> bool:
    for pattern in (*PROTECTED_APP_PATTERNS, *extra_patterns):
        if fnmatch.fnmatchcase(name, pattern):
            return True
    return False


def _app_support_logs(cfg=None) -> List[Tuple[str, int]]:
    """Return [(path, size), ...] for entries inside app log folders in Application Support."""
    cfg = cfg or config_module.load()
    extra = cfg.get("protected_apps") or []
    out = []
    try:
        names = sorted(os.listdir(APP_SUPPORT))
    except OSError:
        return out
    seen = 0
    for name in names:
        app_dir = os.path.join(APP_SUPPORT, name)
        if not os.path.isdir(app_dir) or os.path.islink(app_dir):
            continue
        seen += 1
        if seen > APP_SUPPORT_MAX_DIRS:
            break
        if is_protected_app(name, extra):
            continue
        for log_dir in APP_LOG_DIRS:
            for p in glob_matches(os.path.join(app_dir, log_dir), "*"):
                out.append((p, du_path(p)))
    return out


def ds_store_files(root, max_depth=FINDER_METADATA_MAX_DEPTH) -> List[Tuple[str, int]]:
    """.DS_Store files within max_depth of root, skipping Library, trash and VCS dirs."""
    out = []
    if not os.path.isdir(root):
        return out
    base_depth = root.rstrip(os.sep).count(os.sep)
    for dirpath, dirs, files in os.walk(root, followlinks=False):
        if ".DS_Store" in files:
            fp = os.path.join(dirpath, ".DS_Store")
            if not os.path.islink(fp):
                out.append((fp, du_path(fp)))
        depth = dirpath.rstrip(os.sep).count(os.sep) - base_depth
        dirs[:] = [] if depth >= max_depth else [d for d in dirs if d not in FINDER_METADATA_SKIP_DIRS]
    return out


def writable_local_volumes() -> List[str]:
    return [v for v in local_volumes() if os.access(v, os.W_OK)]


def _finder_metadata(cfg=None) -> List[Tuple[str, int]]:
    cfg = cfg or config_module.load()
    if cfg.get("protect_finder_metadata"):
        return []
    out = ds_store_files(HOME)
    for volume in writable_local_volumes():
        out.extend(ds_store_files(volume))
    return out


def ios_backup_size() -> int:
    """Bytes under the MobileSync backup folder, 0 when it is missing or empty."""
    try:
        if not os.listdir(IOS_BACKUP_DIR):
            return 0
    except OSError:
        return 0
    return du_path(IOS_BACKUP_DIR)


def _ios_backups() -> List[Tuple[str, int]]:
    # reported by the cleaner, never removed
    return []


SPECIAL_CANDIDATES = {
    "app_support_logs": _app_support_logs,
    "finder_metadata": _finder_metadata,
    "ios_backups": _ios_backups,
    "time_machine_failed": _tm_failed_backups,
}


def rule_applies(key, machine=None) -> bool:
    """False for rules pinned to another CPU architecture (e.g. arm64-only caches)."""
    arch = RULES[key].get("arch")
    if arch is None:
        return True
    return (machine or platform.machine()) == arch


def candidates(key) -> List[Tuple[str, int]]:
    """Everything a rule would remove, as [(path, size), ...]."""
    rule = RULES[key]
    if not rule_applies(key):
        return []
    if rule["type"] == "special":
        return SPECIAL_CANDIDATES[key]()
    out = _glob_items(rule)
    if rule["type"] == "aged":
        out.extend(_aged_items(rule))
    return out


def format_target_size(key) -> str:
    """Size string with optional item count, e.g. '2.1 GB (45 items)'."""
    items = candidates(key)
    size_str = human_size(sum(s for _, s in items))
    if items:
        return f"{size_str} ({len(items)} items)"
    return size_str


def visible_targets() -> Tuple[list, set]:
    """Return (visible keys, exclude set). Loads config once."""
    cfg = config_module.load()
    excl = set(cfg.get("exclude_targets") or [])
    keys = [k for k in RULES if k not in excl and rule_applies(k)]
    return keys, excl
