"""Cleanup rules and key sets for deepclean.

Each rule is a plain dict:

- ``type`` is ``"globs"``, ``"aged"`` or ``"special"``.
- ``items`` lists ``(parent, glob, label)``; every match below ``parent`` is removed.
- ``aged`` lists ``(root, name_glob, days)``; regular files older than ``days``
  are removed. ``days=None`` means the configured temp file age.
- ``sudo`` marks rules that need an elevated session.
- ``arch`` (optional) limits a rule to one ``platform.machine()`` value.
"""

from .constants import (
    HOME,
    APP_SUPPORT,
    USER_CACHES,
    CONTAINERS,
)

RULES = {
    "user_essentials": {
        "type": "globs",
        "desc": "User essentials (caches, logs, trash, crash reports)",
        "sudo": False,
        "items": [
            (USER_CACHES, "*", "User app cache"),
            (f"{HOME}/Library/Logs", "*", "User app logs"),
            (f"{HOME}/.Trash", "*", "Trash"),
            (f"{APP_SUPPORT}/CrashReporter", "*", "Crash reports"),
            (f"{HOME}/Library/DiagnosticReports", "*", "Diagnostic reports"),
            (USER_CACHES, "com.apple.QuickLook.thumbnailcache", "QuickLook thumbnails"),
            (f"{USER_CACHES}/Quick Look", "*", "QuickLook cache"),
            (USER_CACHES, "com.apple.iconservices*", "Icon services cache"),
            (f"{USER_CACHES}/CloudKit", "*", "CloudKit cache"),
            (f"{HOME}/Downloads", "*.download", "Incomplete downloads (Safari)"),
            (f"{HOME}/Downloads", "*.crdownload", "Incomplete downloads (Chrome)"),
            (f"{HOME}/Downloads", "*.part", "Incomplete downloads (partial)"),
            (f"{HOME}/Library/Autosave Information", "*", "Autosave information"),
            (f"{HOME}/Library/IdentityCaches", "*", "Identity caches"),
            (f"{HOME}/Library/Suggestions", "*", "Suggestions cache (Siri)"),
            (f"{HOME}/Library/Calendars", "Calendar Cache", "Calendar cache"),
            (f"{APP_SUPPORT}/AddressBook/Sources", "*/Photos.cache", "Address Book photo cache"),
        ],
    },
    "macos_system_caches": {
        "type": "globs",
        "desc": "macOS caches (saved app state, Spotlight, WebKit)",
        "sudo": False,
        "items": [
            (f"{HOME}/Library/Saved Application State", "*", "Saved application states"),
            (USER_CACHES, "com.apple.spotlight", "Spotlight cache"),
            (USER_CACHES, "com.apple.photoanalysisd", "Photo analysis cache"),
            (USER_CACHES, "com.apple.akd", "Apple ID cache"),
            (f"{USER_CACHES}/com.apple.Safari/Webpage Previews", "*", "Safari webpage previews"),
            (f"{APP_SUPPORT}/CloudDocs/session/db", "*", "iCloud session cache"),
            (f"{USER_CACHES}/com.apple.Safari/fsCachedData", "*", "Safari cached data"),
            (f"{USER_CACHES}/com.apple.WebKit.WebContent", "*", "WebKit content cache"),
            (f"{USER_CACHES}/com.apple.WebKit.Networking", "*", "WebKit network cache"),
        ],
    },
    "sandboxed_app_caches": {
        "type": "globs",
        "desc": "Sandboxed app caches (~/Library/Containers)",
        "sudo": False,
        "items": [
            (f"{CONTAINERS}/com.apple.wallpaper.agent/Data/Library/Caches", "*", "Wallpaper agent cache"),
            (f"{CONTAINERS}/com.apple.mediaanalysisd/Data/Library/Caches", "*", "Media analysis cache"),
            (f"{CONTAINERS}/com.apple.AppStore/Data/Library/Caches", "*", "App Store cache"),
            (
                f"{CONTAINERS}/com.apple.configurator.xpc.InternetService/Data/tmp",
                "*",
                "Apple Configurator temp files",
            ),
            (CONTAINERS, "*/Data/Library/Caches/*", "Sandboxed app caches"),
        ],
    },
    "browsers": {
        "type": "globs",
        "desc": "Browser caches (Safari, Chrome, Edge, Firefox, Arc, ...)",
        "sudo": False,
        "items": [
            (f"{USER_CACHES}/com.apple.Safari", "*", "Safari cache"),
            (f"{USER_CACHES}/Google/Chrome", "*", "Chrome cache"),
            (f"{APP_SUPPORT}/Google/Chrome", "*/Application Cache/*", "Chrome app cache"),
            (f"{APP_SUPPORT}/Google/Chrome", "*/GPUCache/*", "Chrome GPU cache"),
            (f"{USER_CACHES}/Chromium", "*", "Chromium cache"),
            (f"{USER_CACHES}/com.microsoft.edgemac", "*", "Edge cache"),
            (f"{USER_CACHES}/company.thebrowser.Browser", "*", "Arc cache"),
            (f"{USER_CACHES}/company.thebrowser.dia", "*", "Dia cache"),
            (f"{USER_CACHES}/BraveSoftware/Brave-Browser", "*", "Brave cache"),
            (f"{USER_CACHES}/Firefox", "*", "Firefox cache"),
            (f"{USER_CACHES}/com.operasoftware.Opera", "*", "Opera cache"),
            (f"{USER_CACHES}/com.vivaldi.Vivaldi", "*", "Vivaldi cache"),
            (f"{USER_CACHES}/Comet", "*", "Comet cache"),
            (f"{USER_CACHES}/com.kagi.kagimacOS", "*", "Orion cache"),
            (f"{USER_CACHES}/zen", "*", "Zen cache"),
            (f"{APP_SUPPORT}/Firefox/Profiles", "*/cache2/*", "Firefox profile cache"),
        ],
    },
    "cloud_storage": {
        "type": "globs",
        "desc": "Cloud storage app caches (Dropbox, Drive, OneDrive, ...)",
        "sudo": False,
        "items": [
            (USER_CACHES, "com.dropbox.*", "Dropbox cache"),
            (USER_CACHES, "com.getdropbox.dropbox", "Dropbox cache"),
            (USER_CACHES, "com.google.GoogleDrive", "Google Drive cache"),
            (USER_CACHES, "com.baidu.netdisk", "Baidu Netdisk cache"),
            (USER_CACHES, "com.alibaba.teambitiondisk", "Alibaba Cloud cache"),
            (USER_CACHES, "com.box.desktop", "Box cache"),
            (USER_CACHES, "com.microsoft.OneDrive", "OneDrive cache"),
        ],
    },
    "office_apps": {
        "type": "globs",
        "desc": "Office app caches (Microsoft Office, iWork, Mail)",
        "sudo": False,
        "items": [
            (USER_CACHES, "com.microsoft.Word", "Microsoft Word cache"),
            (USER_CACHES, "com.microsoft.Excel", "Microsoft Excel cache"),
            (USER_CACHES, "com.microsoft.Powerpoint", "Microsoft PowerPoint cache"),
            (f"{USER_CACHES}/com.microsoft.Outlook", "*", "Microsoft Outlook cache"),
            (USER_CACHES, "com.apple.iWork.*", "Apple iWork cache"),
            (USER_CACHES, "com.kingsoft.wpsoffice.mac", "WPS Office cache"),
            (f"{USER_CACHES}/org.mozilla.thunderbird", "*", "Thunderbird cache"),
            (f"{USER_CACHES}/com.apple.mail", "*", "Apple Mail cache"),
        ],
    },
    "virtualization": {
        "type": "globs",
        "desc": "Virtualization tool caches (VMware, Parallels, Vagrant)",
        "sudo": False,
        "items": [
            (USER_CACHES, "com.vmware.fusion", "VMware Fusion cache"),
            (USER_CACHES, "com.parallels.*", "Parallels cache"),
            (f"{HOME}/VirtualBox VMs", ".cache", "VirtualBox cache"),
            (f"{HOME}/.vagrant.d/tmp", "*", "Vagrant temporary files"),
        ],
    },
    "app_support_logs": {
        "type": "special",
        "desc": "App logs (~/Library/Application Support/*/logs)",
        "sudo": False,
    },
    "finder_metadata": {
        "type": "special",
        "desc": "Finder metadata (.DS_Store in home and local volumes)",
        "sudo": False,
    },
    "ios_backups": {
        "type": "special",
        "desc": "iOS device backups (report only, never deleted)",
        "sudo": False,
    },
    "apple_silicon_caches": {
        "type": "globs",
        "desc": "Apple Silicon caches (Rosetta 2, media services)",
        "sudo": True,
        "arch": "arm64",
        "items": [
            ("/Library/Apple/usr/share/rosetta", "rosetta_update_bundle", "Rosetta 2 cache"),
            (USER_CACHES, "com.apple.rosetta.update", "Rosetta 2 user cache"),
            (USER_CACHES, "com.apple.amp.mediasevicesd", "Apple Silicon media service cache"),
        ],
    },
    "deep_system": {
        "type": "aged",
        "desc": "Deep system cleanup (old system caches, temp files, logs)",
        "sudo": True,
        "aged": [
            ("/Library/Caches", "*.cache", 7),
            ("/Library/Caches", "*.tmp", 7),
            ("/Library/Caches", "*.log", 30),
            ("/tmp", "*", None),
            ("/var/tmp", "*", None),
            ("/Library/Logs/DiagnosticReports", "*", 30),
            ("/Library/Logs/CrashReporter", "*", 30),
            ("/var/log", "*.log", 30),
            ("/var/log", "*.gz", 30),
        ],
        "items": [
            ("/Library/Updates", "*", "System updates"),
        ],
    },
    "time_machine_failed": {
        "type": "special",
        "desc": "Failed Time Machine backups (*.inProgress, older than 24h)",
        "sudo": True,
    },
}

# Application Support folders whose logs are never touched
PROTECTED_APP_PATTERNS = (
    "com.apple.*",
    "Adobe*",
    "JetBrains*",
    "1Password",
    "Claude",
    "*ClashX*",
    "*clash*",
    "mihomo*",
    "*Surge*",
    "iTerm*",
    "*iterm*",
    "Warp*",
    "Kitty*",
    "Alacritty*",
    "WezTerm*",
    "Ghostty*",
)

# Targets that require explicit --force to delete
DANGEROUS_KEYS = {"deep_system", "time_machine_failed"}

SUDO_KEYS = {k for k, r in RULES.items() if r["sudo"]}
