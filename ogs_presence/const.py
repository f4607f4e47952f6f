"""Constants for the OGS presence library."""

# Configuration
CONF_API_URL = "api_url"
CONF_MODE = "mode"
CONF_TOKEN = "token"
CONF_TIMEOUT = "timeout"

MODE_BACKEND = "backend"
MODE_PROXY = "proxy"

# Environment variables read by config.load_config_from_env
ENV_API_URL = "OGS_API_URL"
ENV_API_MODE = "OGS_API_MODE"
ENV_API_TOKEN = "OGS_API_TOKEN"
ENV_API_TIMEOUT = "OGS_API_TIMEOUT"

# Default values
DEFAULT_TIMEOUT = 30  # seconds
DEFAULT_MODE = MODE_BACKEND
PROXY_PREFIX = "/api"

DEFAULT_HEADERS = {
	"Accept": "application/json",
	"Content-Type": "application/json",
}

# Location strings as reported by the backend
LOCATION_PRESENT = "Anwesend"
LOCATION_PRESENT_PREFIX = "Anwesend - "
LOCATION_HOME = "Zuhause"
LOCATION_SCHOOLYARD = "Schulhof"
LOCATION_TRANSIT = "Unterwegs"
LOCATION_LEGACY_ABSENT = "Abwesend"

SICK_LABEL = "Krank"

# Display modes
DISPLAY_MODE_ROOM_NAME = "roomName"
DISPLAY_MODE_GROUP_NAME = "groupName"
DISPLAY_MODE_CONTEXT_AWARE = "contextAware"

# Colours
COLOR_GROUP_ROOM = "#83CD2D"
COLOR_OTHER_ROOM = "#5080D8"
COLOR_TRANSIT = "#D946EF"
COLOR_SCHOOLYARD = "#F78C10"
COLOR_HOME = "#FF3130"
COLOR_SICK = "#EAB308"

# Envelope keys that never carry entity data
METADATA_KEYS = frozenset({
	"status",
	"message",
	"success",
	"code",
	"meta",
	"pagination",
})

# Claiming
CLAIM_ROLE_SUPERVISOR = "supervisor"

# Schulhof supervision toggle actions
SCHULHOF_ACTION_START = "start"
SCHULHOF_ACTION_STOP = "stop"
