"""EVTX Triage - Constants and patterns"""

import re

VERSION = "1.0.0"

SECURITY_AUDITING_PROVIDER = "Microsoft-Windows-Security-Auditing"
EVENTLOG_PROVIDER = "Microsoft-Windows-Eventlog"

# Event ID lists
FILE_ACCESS_IDS = frozenset({4663, 4656, 4658, 4660, 4670, 5140, 5142, 5144, 5145})
USB_IDS = frozenset({20001, 2100, 2102, 2003, 400, 410, 1006, 1010, 3003, 3100, 3102, 6416, 6421, 6422, 6424})
DEVICE_INFO_IDS = frozenset({1006, 1010, 20001, 2100, 2102, 2003, 6416, 6421, 6422, 6424, 400, 410})
NETWORK_IDS = frozenset({5156, 5158, 5152, 5154})
REMOTE_ACCESS_IDS = frozenset({624, 4624, 4625, 4634, 4647, 4776, 4648, 4800, 4801, 4778, 4779, 1149})
PRIV_ESC_IDS = frozenset({4672, 4697, 4720, 4732, 4728, 4616, 4726})
ANTI_FORENSICS_IDS = frozenset({1102, 104})
POWERSHELL_IDS = frozenset({4104, 4103})
EMAIL_TRUST_IDS = frozenset({4107, 4110})

SUCCESSFUL_LOGON_ID = 4624
SPECIAL_PRIVILEGES_ID = 4672
PROCESS_CREATION_ID = 4688
SCRIPT_BLOCK_ID = 4104
RDP_AUTH_ID = 1149
SECURITY_LOG_CLEARED_ID = 1102
SYSTEM_LOG_CLEARED_ID = 104

EVENT_DESCRIPTIONS = {
    4663: "File/folder access attempt", 4656: "Handle to object requested", 4658: "Handle to object closed",
    4660: "Object deleted", 4670: "Permissions on object changed", 5140: "Access to a network share",
    5142: "Network share added", 5144: "Network share deleted", 5145: "Network share checked for access",
    20001: "USB device connected (DriverFrameworks-UserMode)", 2100: "USB device removed",
    2102: "USB device removal requested", 2003: "USB device configured/removed",
    400: "Device install (Kernel-PnP)", 410: "Device install (Kernel-PnP)",
    1006: "Storage/volume interaction", 1010: "Storage/volume interaction",
    3003: "Device configured", 3100: "Device started", 3102: "Device removed",
    6416: "New external device recognized", 6421: "PNP: Device enable requested",
    6422: "PNP: Device disable requested", 6424: "PNP: Device property change",
    5156: "Allowed outbound network connection", 5158: "TCP connection bind",
    5152: "Blocked connection", 5154: "Allowed connection",
    624: "Legacy logon/account event", 4624: "Successful logon", 4625: "Failed logon",
    4634: "Logoff", 4647: "User-initiated logoff", 4776: "Credential validation",
    4648: "Logon using explicit credentials", 4800: "Workstation locked", 4801: "Workstation unlocked",
    4778: "RDP session reconnected", 4779: "RDP session disconnected", 1149: "Successful RDP authentication",
    4672: "Special privileges assigned to new logon", 4697: "Service installed",
    4720: "User account created", 4732: "User added to local group",
    4728: "User added to privileged/AD group", 4616: "System time changed", 4726: "User account deleted",
    1102: "Security audit log cleared", 104: "System event log cleared",
    4104: "PowerShell script block logged", 4103: "PowerShell command logged",
    4107: "Certificate / trust error (Outlook/WinTrust)", 4110: "Certificate / trust chain issue",
}

UNKNOWN_DESCRIPTION = "Unknown/other"

CLOUD_PROCESS_NAMES = (
    "OneDrive.exe", "Dropbox.exe", "GoogleDriveFS.exe", "Box.exe",
    "rclone.exe", "winscp.exe", "filezilla.exe",
)
EMAIL_CLIENT_PROCESS_NAMES = ("OUTLOOK.EXE", "thunderbird.exe")

ENCODED_COMMAND_MARKER = "-EncodedCommand"

# Provider qualifiers (case-insensitive substrings)
USB_PROVIDER_MARKERS = (
    "Kernel-PnP", "DriverFrameworks-UserMode", "UserPnp", "StorPort",
    "USB", "Volume", "Partition", "Disk",
)
RDP_PROVIDER_MARKERS = ("TerminalServices", "RemoteConnectionManager")
POWERSHELL_PROVIDER_MARKERS = ("PowerShell",)
EMAIL_TRUST_PROVIDER_MARKERS = ("CAPI", "Certificate", "Crypto", "WinTrust")

# External storage filter (case-insensitive substrings of the description)
STORAGE_DENY_KEYWORDS = (
    "ACPI", "ROOT", "UEFI", "Display", "MMDEVAPI", "HID", "input.inf",
    "BTH", "bthusb", "NET", "wbfusbdriver", "print",
)
STORAGE_ALLOW_KEYWORDS = (
    "USBSTOR", "usbstor.inf", "UASPSTOR", "Disk", "Volume", "Mass Storage",
    "{36fc9e60-c465-11cf-8056-444553540000}",
)
STORAGE_PROVIDER_MARKERS = ("Partition", "Storage-ClassPnP")

# Noise suppression
SERVICE_LOGON_TYPE = "5"
LOCAL_SYSTEM_SID = "S-1-5-18"
MACHINE_ACCOUNT_SUFFIX = "$"
IGNORED_ACCOUNT_NAMES = frozenset({"SYSTEM", "LOCAL SERVICE", "NETWORK SERVICE", "ANONYMOUS LOGON"})
IGNORED_ACCOUNT_PREFIXES = ("DWM-", "UMFD-")

# Hard caps on stored snippets
MAX_SAMPLES = 3
MAX_SNIPPET_LENGTH = 200
ELLIPSIS = "..."

# Device identity fragments
VID_PID_PATTERN = re.compile(r"VID_([0-9A-F]{4}).*?PID_([0-9A-F]{4})", re.IGNORECASE)
VOLUME_GUID_PATTERN = re.compile(r"Volume\{[0-9A-F\-]+\}", re.IGNORECASE)
CONTAINER_ID_PATTERN = re.compile(r"Container ID:\s*\{([0-9A-F\-]+)\}", re.IGNORECASE)

SECURITY_LOG_NAME = "Security"

# Security audit subcategories (System/Task)
SECURITY_TASK_NAMES = {
    104: "Log clear",
    12288: "Security State Change", 12289: "Security System Extension", 12290: "System Integrity",
    12291: "IPsec Driver", 12292: "Other System Events",
    12544: "Logon", 12545: "Logoff", 12546: "Account Lockout", 12547: "IPsec Main Mode",
    12548: "Special Logon", 12549: "IPsec Quick Mode", 12550: "IPsec Extended Mode",
    12551: "Other Logon/Logoff Events", 12552: "Network Policy Server",
    12553: "User / Device Claims", 12554: "Group Membership",
    12800: "File System", 12801: "Registry", 12802: "Kernel Object", 12803: "SAM",
    12804: "Other Object Access Events", 12805: "Certification Services",
    12806: "Application Generated", 12807: "Handle Manipulation", 12808: "File Share",
    12809: "Filtering Platform Packet Drop", 12810: "Filtering Platform Connection",
    12811: "Detailed File Share", 12812: "Removable Storage", 12813: "Central Policy Staging",
    13056: "Sensitive Privilege Use", 13057: "Non Sensitive Privilege Use", 13058: "Other Privilege Use Events",
    13312: "Process Creation", 13313: "Process Termination", 13314: "DPAPI Activity",
    13315: "RPC Events", 13316: "Plug and Play Events",
    13568: "Audit Policy Change", 13569: "Authentication Policy Change",
    13570: "Authorization Policy Change", 13571: "MPSSVC Rule-Level Policy Change",
    13572: "Filtering Platform Policy Change", 13573: "Other Policy Change Events",
    13824: "User Account Management", 13825: "Computer Account Management",
    13826: "Security Group Management", 13827: "Distribution Group Management",
    13828: "Application Group Management", 13829: "Other Account Management Events",
    14336: "Credential Validation", 14337: "Kerberos Service Ticket Operations",
    14338: "Other Account Logon Events", 14339: "Kerberos Authentication Service",
}

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
EXPORT_STAMP_FORMAT = "%Y%m%d_%H%M%S"
