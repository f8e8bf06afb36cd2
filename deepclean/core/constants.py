"""Path and tool constants for deepclean."""

import pathlib

HOME = str(pathlib.Path.home())

APP_SUPPORT = f"{HOME}/Library/Application Support"
USER_CACHES = f"{HOME}/Library/Caches"
CONTAINERS = f"{HOME}/Library/Containers"

VOLUMES_DIR = "/Volumes"
BOOT_VOLUME_NAMES = {"MacintoshHD", "Macintosh HD"}
NETWORK_FS_TYPES = {"nfs", "smbfs", "afpfs", "cifs", "webdav"}

# Failed Time Machine backups younger than this may still be in progress
TM_MIN_AGE_HOURS = 24
TM_SEARCH_DEPTH = 3

APP_SUPPORT_MAX_DIRS = 200
APP_LOG_DIRS = ("log", "logs", "activitylog")

# .DS_Store search below $HOME and each writable local volume
FINDER_METADATA_MAX_DEPTH = 5
FINDER_METADATA_SKIP_DIRS = {"Library", ".Trash", ".Trashes", "node_modules", ".git", ".Spotlight-V100", ".fseventsd"}

IOS_BACKUP_DIR = f"{APP_SUPPORT}/MobileSync/Backup"
IOS_BACKUP_REPORT_BYTES = 100 * 1024 * 1024

# macOS sudo keeps a credential for 5 minutes (timestamp_timeout); refresh well inside that
KEEPALIVE_INTERVAL = 60
KEEPALIVE_STOP_TIMEOUT = 2.0
SUDO_PROBE_TIMEOUT = 5

SUDO_ACTIVE_ENV = "DEEPCLEAN_SUDO_ACTIVE"

LOG_DIR = f"{HOME}/.deepclean/logs"
