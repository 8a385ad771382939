DOMAIN = "printshare"
VERSION = "0.3.0"

# Config entry keys
CONF_ENTRY_NAME = "entry_name"
CONF_HOST = "host"
CONF_LANGUAGE = "language"
CONF_SCAN_INTERVAL = "scan_interval"

DEFAULT_ENTRY_NAME = "AirPrint Bridge"
DEFAULT_HOST = "http://127.0.0.1:8631"
DEFAULT_LOCALE = "en"
DEFAULT_SCAN_INTERVAL = 60   # seconds between directory refreshes
MIN_SCAN_INTERVAL = 10

SUPPORTED_LOCALES = ("en", "zh")

# Log buffer
LOG_CAPACITY = 100
LOG_TIME_FORMAT = "%H:%M:%S"

# Backend RPC
REQUEST_TIMEOUT = 5          # seconds, multiplied by attempt number for each retry
REQUEST_ATTEMPTS = 3

CMD_GET_PRINTERS = "get_printers"
CMD_GET_SHARED_PRINTERS = "get_shared_printers"
CMD_SHARE_PRINTER = "share_printer"
CMD_UNSHARE_PRINTER = "unshare_printer"
CMD_SET_LANGUAGE = "set_language"

# Services
SERVICE_REFRESH = "refresh"
SERVICE_CLEAR_LOG = "clear_log"
SERVICE_SET_LOCALE = "set_locale"
ATTR_LOCALE = "locale"

# Button variants exposed on DeviceView
VARIANT_PRIMARY = "primary"
VARIANT_SUCCESS = "success"
VARIANT_PENDING = "pending"
