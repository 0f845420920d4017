import os

DATABASE_URL = os.environ.get("TASKSHEET_DATABASE_URL", "sqlite:///tasksheet.sqlite3")
DATABASE_ECHO = os.environ.get("TASKSHEET_DATABASE_ECHO", "") == "1"

# Header text used to find the task name / quantity columns of each sheet.
NAME_HEADER_KEYWORD = "nombre"
QUANTITY_HEADER_KEYWORD = "cantidad"

AUTO_SAVE_DELAY_SECONDS = float(os.environ.get("TASKSHEET_AUTO_SAVE_DELAY", "2.0"))

SSE_POLL_SECONDS = 0.5
SSE_KEEPALIVE_SECONDS = 25

MAX_UPLOAD_BYTES = 20 * 1024 * 1024

APP_HOST = os.environ.get("TASKSHEET_HOST", "127.0.0.1")
APP_PORT = int(os.environ.get("TASKSHEET_PORT", "8889"))
LOG_LEVEL = os.environ.get("TASKSHEET_LOG_LEVEL", "INFO")

# Keep extension handling centralized so routes and the loader stay consistent.
ALLOWED_EXCEL_EXTENSIONS = {".xlsx", ".xlsm"}
ALLOWED_UPLOAD_EXTENSIONS = ALLOWED_EXCEL_EXTENSIONS | {".csv"}

# Create missing tables at startup instead of waiting for POST /api/setup.
AUTO_CREATE_TABLES = os.environ.get("TASKSHEET_AUTO_CREATE_TABLES", "1") == "1"
