import threading
from datetime import datetime

# "checking" | "connected" | "setup" | "error"
connection_status = "checking"
connection_error = None

data_version = 0
last_updated = None

connected_clients = []

version_lock = threading.Lock()


def notify_clients():
    """Bump the data version and flag every SSE client for an update."""
    global data_version, last_updated

    with version_lock:
        data_version += 1
        last_updated = datetime.now().isoformat()

    for client in connected_clients:
        client["needs_update"] = True
