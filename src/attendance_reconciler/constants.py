import os

OUTPUT_DATE_FORMAT = "%m/%d/%Y"

# Accepted timestamp layouts for attendance rows, tried in order
TIMESTAMP_FORMATS = [
	"%Y-%m-%d %H:%M:%S",
	"%Y-%m-%d %H:%M",
	"%Y-%m-%d",
	"%Y-%m-%dT%H:%M:%S",
	"%Y-%m-%dT%H:%M",
	"%m/%d/%Y %H:%M:%S",
	"%m/%d/%Y %H:%M",
	"%m/%d/%Y",
]

SERVICE_EVENT_NAME = "Sunday Service"
SERVICE_EVENT_ID = "Service"
VOLUNTEER_MARKER = "volunteer"
UNKNOWN_EVENT_NAME = "UnknownEvent"
UNKNOWN_EVENT_ID = "UnknownID"
INSTANCE_KEY_SEPARATOR = "|"

# Identifier allocation guard
MAX_ID_COLLISIONS = 20000

# Activity tiers
CORE_THRESHOLD = 12
ACTIVE_THRESHOLD = 3
ROSTER_RECENT_DAYS = 90

# Private data root and wire timezone - can be overridden by environment
DEFAULT_DATA_PATH = os.getenv("ATTENDANCE_DATA_PATH", "attendance_data")
DEFAULT_TIMEZONE = os.getenv("ATTENDANCE_TIMEZONE", "UTC")

# Source files inside a data folder
DIRECTORY_FILE = "directory.csv"
SERVICE_LOG_FILE = "service_attendance.csv"
EVENT_LOG_FILE = "event_attendance.csv"
STATS_FILE = "attendance_stats.csv"

DIRECTORY_CSV_FIELDS = ["ID", "Full Name", "Email", "First Name", "Last Name"]

SERVICE_LOG_CSV_FIELDS = [
	"ID", "Full Name", "First Name", "Last Name", "Timestamp", "Status", "Email", "Notes"
]

EVENT_LOG_CSV_FIELDS = [
	"ID", "Full Name", "Event Name", "Event ID", "First Name", "Last Name",
	"Email", "Phone", "Form Sheet", "Role", "Timestamp"
]

STATS_CSV_FIELDS = [
	"ID", "Full Name", "First Name", "Last Name", "Quarter Count", "Month Count",
	"Volunteer Count", "Last Attended", "Last Event", "Total Unique Events",
	"Recent Count", "Activity Level"
]

# Positional offsets in the stats table (column letter in comments)
STATS_ID_COL = 0            # A
STATS_NAME_COL = 1          # B
STATS_FIRST_NAME_COL = 2    # C
STATS_LAST_NAME_COL = 3     # D
STATS_QUARTER_COL = 4       # E
STATS_MONTH_COL = 5         # F
STATS_VOLUNTEER_COL = 6     # G
STATS_LAST_DATE_COL = 7     # H
STATS_LAST_EVENT_COL = 8    # I
STATS_TOTAL_COL = 9         # J
STATS_RECENT_COL = 10       # K
STATS_ACTIVITY_COL = 11     # L

# Header aliases accepted by the CSV adapters (lowercased)
HEADER_ALIASES = {
	"ID": ["id", "person id", "bel"],
	"Full Name": ["full name", "name"],
	"First Name": ["first name", "firstname"],
	"Last Name": ["last name", "lastname"],
	"Email": ["email", "email address"],
}
