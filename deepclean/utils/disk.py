"""Disk and path helpers for deepclean."""
import fnmatch
import os
import time

#size formatter
def human_size(num):
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if abs(num) < 1024.0:
            return f"{num:3.1f} {unit}"
        num /= 1024.0
    return f"{num:.1f} PB"


def du_path(path):
    if os.path.islink(path):
        return 0
    if os.path.isfile(path):
        try:
            return os.path.getsize(path)
        except OSError:
            return 0
    total = 0
    try:
        if not os.path.exists(path):
            return 0
        for root, dirs, files in os.walk(path, followlinks=False):
            for f in files:
                try:
                    fp = os.path.join(root, f)
                    total += os.path.getsize(fp)
                except OSError:
                    pass
        return total
    except OSError:
        return 0


def older_files(root, name_glob, days, now=None):
    """Return [(path, size), ...] for regular files below root matching name_glob and older than days."""
    out = []
    if not os.path.isdir(root):
        return out
    cutoff = (now if now is not None else time.time()) - days * 86400
    for dirpath, dirs, files in os.walk(root, followlinks=False):
        for name in files:
            if not fnmatch.fnmatch(name, name_glob):
                continue
            fp = os.path.join(dirpath, name)
            try:
                st = os.stat(fp, follow_symlinks=False)
            except OSError:
                continue
            if os.path.islink(fp) or st.st_mtime >= cutoff:
                continue
            out.append((fp, st.st_size))
    return out
