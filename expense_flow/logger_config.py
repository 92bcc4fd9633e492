# logger_config.py
import logging
import os

LOG_FILE = os.environ.get("LOG_FILE", "expense_dashboard.log")
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def setup_logger():
    """Configures the root logger for the entire application."""
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(LOG_FILE, mode='a'), # Log to a file
            logging.StreamHandler()                  # Log to console
        ]
    )
    # Shared logger for the flows, the gateway client and the UI
    return logging.getLogger("ExpenseDashboard")

# Initialize and get the logger instance
DASHBOARD_LOGGER = setup_logger()
